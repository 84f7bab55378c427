"""Engine, session factory and the request-scoped session dependency."""

from collections.abc import Generator
from typing import Annotated, Any, Dict

from fastapi import Depends
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from foodbank.core.config import settings


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _engine_options(url: str) -> Dict[str, Any]:
    if _is_sqlite(url):
        # One file, shared across FastAPI's worker threads.
        return {"connect_args": {"check_same_thread": False}, "pool_pre_ping": True}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_recycle": settings.db_pool_recycle_seconds,
        "pool_pre_ping": True,
    }


def _enforce_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()


engine = create_engine(
    settings.database_url,
    echo=settings.debug and settings.log_level == "DEBUG",
    **_engine_options(settings.database_url),
)
if _is_sqlite(settings.database_url):
    _enforce_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


def get_db() -> Generator[Session, None, None]:
    """Yield one session per request and close it afterwards."""
    with SessionLocal() as db:
        yield db


DbSession = Annotated[Session, Depends(get_db)]
