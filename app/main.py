"""
UrbanFix AI - FastAPI Application Entry Point

Civic issue reporting backend: citizen reports, admin triage, field worker
resolution, official municipal pages with a personalized feed, gamification
and notifications.
"""

import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config.firebase import initialize_firestore
from app.core.errors import UrbanFixError
from app.core.settings import settings
from app.routes import gamification, health, issues, municipal, notifications, users, workflows


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("app")


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Civic issue reporting with municipal pages, feeds and gamification",
    debug=settings.DEBUG
)


@app.exception_handler(UrbanFixError)
async def urbanfix_error_handler(request: Request, exc: UrbanFixError):
    """Map domain errors to their HTTP status with a machine-readable code."""
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}", exc_info=exc.__cause__)
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code}
    )


# Global exception handler to catch ALL exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error("=" * 80)
    logger.error("🔥 GLOBAL EXCEPTION HANDLER CAUGHT EXCEPTION")
    logger.error(f"Path: {request.url.path}")
    logger.error(f"Method: {request.method}")
    logger.error("=" * 80, exc_info=exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"Internal server error: {str(exc)}", "code": "internal_error"}
    )


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Catch Pydantic validation errors and log them."""
    logger.warning("🔥 VALIDATION ERROR HANDLER")
    logger.warning(f"Path: {request.url.path}")
    logger.warning(f"Method: {request.method}")
    logger.warning(f"Errors: {exc.errors()}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({"detail": exc.errors(), "body": exc.body, "code": "validation_error"})
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} {response.status_code} {duration_ms:.1f}ms")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup.
    Currently: Firestore connection (skipped when USE_MOCK_DB is set)
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if settings.USE_MOCK_DB:
        logger.info("USE_MOCK_DB=true, using in-memory stores")
        return

    try:
        initialize_firestore()
    except Exception as e:
        logger.warning(f"Warning: Firestore initialization failed: {e}")
        logger.warning("   The app will start but database operations may fail.")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Cleanup on application shutdown.
    """
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(issues.router)
app.include_router(municipal.router)
app.include_router(workflows.router)
app.include_router(gamification.router)
app.include_router(notifications.router)
app.include_router(users.router)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "municipal_feed": "/api/issues/municipal-feed"
    }
