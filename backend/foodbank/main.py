"""FastAPI application entry point."""

import json
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.engine import make_url

from foodbank import models  # noqa: F401  (registers every table on Base.metadata)
from foodbank.api.routes import api_router
from foodbank.core.config import settings
from foodbank.core.rate_limit import limiter
from foodbank.db.base import Base
from foodbank.db.session import SessionLocal, engine
from foodbank.services.notification_service import get_notification_client

# Configure logging - use JSON format in production, human-readable in dev
root_logger = logging.getLogger()
root_logger.setLevel(getattr(logging, settings.log_level))
root_logger.handlers.clear()


class JSONFormatter(logging.Formatter):
    def format(self, record):
        return json.dumps({
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        })


if settings.debug:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
else:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

root_logger.addHandler(handler)
logger = logging.getLogger(__name__)


def _ensure_sqlite_directory(database_url: str) -> None:
    database = make_url(database_url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Food Bank Inventory API")

    # Create tables if they don't exist (for SQLite dev)
    if settings.database_url.startswith("sqlite"):
        _ensure_sqlite_directory(settings.database_url)
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created (SQLite mode)")

    yield

    await get_notification_client().close()
    logger.info("Shutting down Food Bank Inventory API")


app = FastAPI(
    title="Food Bank Inventory API",
    description="Request approval, inventory allocation and movement ledger",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting setup
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
    max_age=600,
)

# Include API routes
app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
def health_check():
    """Basic liveness check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/health/ready")
def readiness_check():
    """Readiness probe with database connectivity check."""
    db = None
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        database = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        database = "unhealthy"
    finally:
        if db:
            db.close()

    ready = database == "healthy"
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": {"database": database}},
    )
