from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings


def database_connect_args(dsn: str, timeout: float) -> dict[str, Any]:
    """Driver arguments bounding how long a single database call may wait."""
    if dsn.startswith("sqlite"):
        # Seconds to wait on a locked database before raising
        return {"check_same_thread": False, "timeout": timeout}
    if dsn.startswith("postgresql"):
        return {"options": f"-c statement_timeout={int(timeout * 1000)}"}
    return {}


engine = create_engine(
    settings.APP_DATABASE_DSN,
    connect_args=database_connect_args(
        settings.APP_DATABASE_DSN, settings.DATABASE_TIMEOUT_SECONDS,
    ),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
