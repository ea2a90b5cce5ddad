"""Clock dependency so request handlers never read the wall clock directly."""

from datetime import datetime

from app.models.shared import utc_now


def get_now() -> datetime:
    """Current UTC time; override in tests to pin "today"."""
    return utc_now()
