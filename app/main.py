"""
Contravention Tracker Backend - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, OperationalError

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import (
    http_exception_handler,
    validation_exception_handler,
    integrity_error_handler,
    generic_exception_handler
)
from app.core.escalation_config import get_escalation_matrix
from app.core.logging import setup_logging
from app.core.security import hash_password, validate_password
from app.db.session import SessionLocal, create_sqlite_tables
from app.models.employee import Employee, Role
from app.services.contravention_type_service import seed_default_types
from app.services.training_service import seed_default_course

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    parsed = urlparse(url)
    if parsed.scheme.startswith("sqlite"):
        return url
    if parsed.password:
        netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
        if parsed.port:
            netloc += f":{parsed.port}"
        return urlunparse(parsed._replace(netloc=netloc))
    return url


app = FastAPI(
    title="Contravention Tracker Backend",
    description="Procurement contravention tracking with points and escalation",
    version=settings.VERSION or "1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include all API routes under /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup_log_config() -> None:
    """Log DATABASE_URL and load the escalation matrix; an invalid matrix aborts startup."""
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))
    get_escalation_matrix()
    create_sqlite_tables()


@app.on_event("startup")
def bootstrap_reference_data() -> None:
    """
    Seed the contravention type catalog and default course, and create the
    initial admin user when no admin exists.
    """
    db = SessionLocal()
    try:
        seed_default_types(db)
        seed_default_course(db)

        admin_exists = db.query(Employee).filter(Employee.role == Role.ADMIN.value).first()
        if admin_exists:
            logger.info("Admin user already exists, skipping initial bootstrap")
            return

        db.add(Employee(
            emp_code="ADM-001",
            name="System Administrator",
            email=settings.INITIAL_ADMIN_EMAIL,
            role=Role.ADMIN.value,
            password_hash=hash_password(validate_password(settings.INITIAL_ADMIN_PASSWORD)),
            active=True,
        ))
        db.commit()
        logger.info("Initial admin user created: emp_code=ADM-001")
        logger.info("Password: [set via INITIAL_ADMIN_PASSWORD environment variable]")
    except OperationalError as e:
        # Tables not created yet (run alembic upgrade head)
        db.rollback()
        logger.warning("Database not ready, skipping bootstrap: %s", e)
    finally:
        db.close()
