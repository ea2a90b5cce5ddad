import hmac

from fastapi import HTTPException, Request

from app.core.config import settings


def verify_cron_secret(request: Request) -> None:
    """Check ``Authorization: Bearer <CRON_SECRET>`` for scheduler-triggered endpoints.

    When no secret is configured the check is skipped, so local setups can
    trigger sweeps without credentials.
    """
    if not settings.CRON_SECRET:
        return

    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Cron secret is required")

    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    if not hmac.compare_digest(auth_header[7:], settings.CRON_SECRET):
        raise HTTPException(status_code=401, detail="Invalid cron secret")
