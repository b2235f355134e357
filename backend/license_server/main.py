"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from license_server.config import get_settings, get_version
from license_server.dependencies import get_current_admin
from license_server.api.exceptions import register_exception_handlers
from license_server.api.routes import admin_auth, admin_licenses, client_auth, client_license
from license_server.api.routes import license as license_routes
from license_server.tasks import start_scheduler, stop_scheduler, list_jobs


# Configure logging - force INFO level even if uvicorn configured it already
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logging.getLogger().setLevel(logging.INFO)

# Silence SQLAlchemy query logging (too verbose)
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
logging.getLogger('sqlalchemy.pool').setLevel(logging.WARNING)

# Silence passlib bcrypt version warning (known compatibility issue with bcrypt 4.x)
logging.getLogger('passlib.handlers.bcrypt').setLevel(logging.ERROR)

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("License Server %s starting...", get_version())
    logger.info("  Environment: %s", settings.ENVIRONMENT.upper())
    if settings.DATABASE_URL:
        logger.info("  Database: %s", settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured')
    else:
        logger.warning("  Database: NOT configured (data endpoints will answer 500)")
    logger.info("  Session expiry: %d hours", settings.SESSION_EXPIRY_HOURS)

    if not settings.SECRET_KEY:
        logger.warning("  SECRET_KEY not set: admin sessions use a per-process key and end on restart")
    if not (settings.ADMIN_PASSWORD_HASH or settings.ADMIN_PASSWORD):
        logger.warning("  Admin login disabled: neither ADMIN_PASSWORD_HASH nor ADMIN_PASSWORD is set")

    scheduler_started = False
    if settings.SCHEDULER_ENABLED and settings.DATABASE_URL:
        logger.info("  Background scheduler: Starting...")
        try:
            await start_scheduler(interval_hours=settings.SESSION_CLEANUP_INTERVAL_HOURS)
            scheduler_started = True
            logger.info("  Background scheduler: Started successfully")
        except Exception as e:
            logger.error("  Background scheduler: Failed to start - %s", e)
            # Don't fail startup if scheduler fails
    else:
        logger.info("  Background scheduler: Disabled")

    yield  # Application runs

    # Shutdown
    logger.info("License Server shutting down...")
    if scheduler_started:
        try:
            await stop_scheduler()
            logger.info("  Background scheduler: Stopped")
        except Exception as e:
            logger.error("  Background scheduler: Error during shutdown - %s", e)


# Create FastAPI application
app = FastAPI(
    title="License Server API",
    description="API for issuing, approving and validating software licenses",
    version=get_version(),
    docs_url="/api/docs" if settings.DEBUG else None,  # Disable docs in production
    redoc_url="/api/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)


# Plain OPTIONS requests (no CORS preflight headers) get a 200 on any API path.
# Registered before CORSMiddleware so preflights are still answered by CORS.
@app.middleware("http")
async def answer_plain_options(request: Request, call_next):
    if request.method == "OPTIONS" and request.url.path.startswith("/api/"):
        return Response(status_code=200)
    return await call_next(request)


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# Include API routers
app.include_router(admin_auth.router)
app.include_router(admin_licenses.router)
app.include_router(client_auth.router)
app.include_router(client_license.router)
app.include_router(license_routes.router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Scheduler status endpoint (admin only)
@app.get("/api/admin/scheduler/jobs", dependencies=[Depends(get_current_admin)])
async def get_scheduled_jobs():
    """Get list of scheduled background jobs."""
    return {"jobs": list_jobs()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "license_server.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
