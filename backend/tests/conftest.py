"""Shared test fixtures for all test modules."""

import contextlib
import uuid
from datetime import date
from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core import database as db_module
from app.core.database import Base, get_db
from app.models.invoice import Invoice, InvoiceStatus

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Fixed "today" used by dispatch and API tests
TODAY = date(2026, 10, 19)


def create_invoice(db: Session, **overrides: Any) -> Invoice:
    """Insert an outstanding, reminder-eligible invoice unless overridden."""
    values: dict[str, Any] = {
        "invoice_number": f"INV-{uuid.uuid4().hex[:8].upper()}",
        "client_name": "Amira Hassan",
        "client_email": "amira@example.com",
        "status": InvoiceStatus.SENT.value,
        "currency": "EUR",
        "total_amount": Decimal("1250.00"),
        "amount_paid": Decimal("0"),
        "balance_due": Decimal("1250.00"),
        "issue_date": date(2026, 9, 1),
        "due_date": TODAY,
    }
    values.update(overrides)
    invoice = Invoice(**values)
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    # Patch module-level engine and session factory
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    # Restore originals
    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass
