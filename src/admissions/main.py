"""
Admissions API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Database, Redis and file store
- Background job scheduler
- CORS middleware
- API routing and service error handling
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from admissions.api import api_router
from admissions.core.auth import CurrentUser, get_current_admin_user
from admissions.core.config import settings
from admissions.core.database import close_db, init_db
from admissions.core.exceptions import ServiceError
from admissions.core.rate_limit import close_rate_limit_backend, connect_rate_limit_backend
from admissions.core.scheduler import (
    list_registered_jobs,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from admissions.modules.documents.jobs import register_document_jobs
from admissions.modules.storage.file_store import get_file_store

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown of Redis, the database, the file store and
    the background job scheduler.
    """
    print(f"Starting Admissions API in {settings.python_env} mode...")

    # Redis is only used for rate limiting, which falls back to memory
    try:
        await connect_rate_limit_backend()
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await get_file_store().initialize()
        print(f"[OK] File store ready at {get_file_store().root}")
    except Exception as e:
        print(f"[FAIL] File store initialization failed: {e}")
        raise

    try:
        register_document_jobs()
        await start_scheduler()
        print("[OK] Background scheduler started")
    except Exception as e:
        print(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield

    print("Shutting down Admissions API...")

    # Stop the scheduler first (wait for running jobs)
    await stop_scheduler()
    print("[OK] Background scheduler stopped")

    await close_rate_limit_backend()
    await close_db()
    print("[OK] Cleanup complete")


app = FastAPI(
    title="Admissions API",
    description="Applicant registration: documents, academic history and application review",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Service errors that escape a route without being translated."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.error_code}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"error": exc.error_code, "message": exc.message}},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
            }
        },
    )


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the Admissions API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check endpoint."""
    return {"status": "ready"}


# ============================================
# Background Job Endpoints
# ============================================
# Manual triggering for operations; jobs otherwise run on schedule.


@app.get("/admin/jobs", tags=["Admin - Jobs"])
async def list_jobs(admin: CurrentUser = Depends(get_current_admin_user)):
    """List registered background jobs and their next run time."""
    return {"jobs": list_registered_jobs()}


@app.post("/admin/jobs/{job_id}/trigger", tags=["Admin - Jobs"])
async def trigger_job(job_id: str, admin: CurrentUser = Depends(get_current_admin_user)):
    """
    Run a background job immediately.

    Available jobs:
        - documents_sweep_orphan_files

    Raises:
        HTTPException 400: If job_id is not found.
    """
    logger.info(f"Admin {admin.id} triggered job {job_id}")
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
