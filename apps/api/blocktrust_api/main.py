"""BlockTrust API - Main FastAPI application."""

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blocktrust_api.db.session import get_db
from blocktrust_api.errors import BlockTrustError, StorageUnavailable
from blocktrust_api.middleware.auth import AuthMiddleware
from blocktrust_api.middleware.correlation import CorrelationIDMiddleware
from blocktrust_api.routes import admin, ledger, petitions, templates, voting
from blocktrust_api.settings import get_settings

# Configure logging
LOG_FORMATS = {
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s", "module": "%(name)s"}',
    "text": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
}
logging.basicConfig(
    level=get_settings().log_level,
    format=LOG_FORMATS.get(get_settings().log_format, LOG_FORMATS["json"]),
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting BlockTrust API...")
    try:
        settings.validate_production_settings()
    except ValueError as e:
        logger.error(f"Configuration validation failed: {e}")
        raise
    logger.info(f"Ledger hash mode: {settings.ledger_hash_mode}")

    yield
    logger.info("Shutting down BlockTrust API...")


# Create FastAPI app
app = FastAPI(
    title="BlockTrust API",
    description="Voting events and petitions with a simulated ledger audit trail",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Custom middleware (order matters - last added is first executed)
app.add_middleware(AuthMiddleware)
app.add_middleware(CorrelationIDMiddleware)

# Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Register routers
app.include_router(voting.router)
app.include_router(petitions.router)
app.include_router(admin.router)
app.include_router(ledger.router)
app.include_router(templates.router)


@app.exception_handler(BlockTrustError)
async def blocktrust_error_handler(request: Request, exc: BlockTrustError):
    """Render domain errors in the ``{"error": ...}`` envelope."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}", extra={"path": request.url.path})
    else:
        logger.info(f"{type(exc).__name__}: {exc.message}", extra={"path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    """Store failures outside a unit of work (reads, role lookups) are 503s."""
    logger.error(f"Storage error on {request.url.path}: {exc}", exc_info=exc)
    return await blocktrust_error_handler(request, StorageUnavailable())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are validation failures (400)."""
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"{location}: {message}" if location else message},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Anything else is a 500, logged with its traceback."""
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint (basic liveness)."""
    return {
        "status": "healthy",
        "service": "blocktrust-api",
        "version": "0.1.0",
    }


def _migrations_at_head(db: Session) -> bool:
    """Compare the database revision with the newest Alembic script."""
    from alembic.config import Config
    from alembic.runtime.migration import MigrationContext
    from alembic.script import ScriptDirectory

    context = MigrationContext.configure(db.connection())
    current_rev = context.get_current_revision()

    alembic_ini_path = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
    alembic_cfg = Config(alembic_ini_path)
    alembic_cfg.set_main_option("script_location", os.path.join(os.path.dirname(alembic_ini_path), "alembic"))
    head_rev = ScriptDirectory.from_config(alembic_cfg).get_current_head()

    if current_rev != head_rev:
        logger.warning(f"Migrations not at head: current={current_rev}, head={head_rev}")
        return False
    return True


@app.get("/ready")
async def readiness_check(db: Session = Depends(get_db)):
    """Readiness check endpoint (verifies the database and migrations)."""
    checks = {
        "database": False,
        "migrations": None,  # None if not required, True/False if required
    }
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.error(f"Database check failed: {e}")

    # Migrations must be at head outside development
    if checks["database"] and not settings.is_development:
        try:
            checks["migrations"] = _migrations_at_head(db)
        except Exception as e:
            logger.error(f"Migration check failed: {e}")
            checks["migrations"] = False

    all_ready = all(value for value in checks.values() if value is not None)
    return JSONResponse(
        content={
            "status": "ready" if all_ready else "not_ready",
            "checks": checks,
        },
        status_code=200 if all_ready else 503,
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "BlockTrust API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
