"""
FastAPI application for the Campus LMS
Courses, lectures, assignments, e-content, enrollments, semesters and events.
"""
import traceback
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from lms import __version__
from lms.api.routes import (
    admin, assignments, auth, courses, econtent, events, lectures, semesters, students, teachers,
)
from lms.config import BASE_DIR, get_settings
from lms.errors import LMSError
from lms.logging_setup import RequestContextMiddleware, configure_logging
from lms.models.database import create_tables

settings = get_settings()
configure_logging(settings)

# ============= FASTAPI APP SETUP =============
app = FastAPI(
    title="Campus LMS API",
    description="Learning-management backend: courses, lectures, assignments, e-content and enrollments",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[RequestContextMiddleware.header_name],
)
app.add_middleware(RequestContextMiddleware)


def error_response(status_code: int, message: str, exc: Exception = None, headers=None) -> JSONResponse:
    """`{"success": false, "error": ...}`, plus the stack outside production"""
    content = {"success": False, "error": message}
    if exc is not None and not settings.is_production:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(LMSError)
async def lms_error_handler(request: Request, exc: LMSError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return error_response(exc.status_code, exc.message, exc)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
    return error_response(409, "Resource already exists", exc)


# Global exception handler for anything unexpected
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled exception on {request.method} {request.url.path}")
    return error_response(500, "Internal Server Error", exc)


def run_migrations() -> None:
    """Upgrade the database to the latest Alembic revision"""
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config(str(Path(BASE_DIR) / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))
    command.upgrade(alembic_cfg, "head")


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    if settings.migrate_on_startup:
        logger.info("Running database migrations...")
        run_migrations()
        logger.info("Database migrations completed")
    create_tables()
    logger.info("Database tables created/verified")


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Campus LMS API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "storage_configured": bool(settings.storage_bucket and settings.storage_access_key_id),
    }


app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(courses.router)
app.include_router(students.router)
app.include_router(teachers.router)
app.include_router(lectures.router)
app.include_router(assignments.router)
app.include_router(econtent.router)
app.include_router(semesters.router)
app.include_router(events.router)
