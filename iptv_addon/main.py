"""
IPTV Addon - FastAPI Backend

Turns M3U playlists and XMLTV guides into per-user addon catalogs
with clear-key DRM aware stream resolution.
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from iptv_addon.config import get_settings
from iptv_addon.errors import ConfigError, DrmConfigError, FetchError, FormatError, NotFoundError
from iptv_addon.rate_limit import limiter
from iptv_addon.routers import addon, configure, favorites
from iptv_addon.services.maintenance import MaintenanceWorker
from iptv_addon.services.tenant_service import get_tenant_service

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Starting IPTV Addon Backend...")
    settings = get_settings()

    tenants = await get_tenant_service()
    logger.info(f"Tenant store initialized ({settings.storage_backend})")

    worker = MaintenanceWorker(
        tenants,
        idle_hours=settings.tenant_idle_hours,
        refresh_hours=settings.refresh_interval_hours,
    )
    if worker.enabled:
        await worker.start()
    app.state.maintenance = worker

    yield

    if worker.enabled:
        await worker.stop()
    logger.info("Shutting down IPTV Addon Backend...")


# Create FastAPI app
settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Per-user IPTV addon built from M3U playlists and XMLTV guides",
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status and duration of every request."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} {response.status_code} - {duration_ms:.0f}ms")
    return response


# Include routers
app.include_router(configure.router)
app.include_router(favorites.router)
app.include_router(addon.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


# Error handlers
@app.exception_handler(FetchError)
@app.exception_handler(FormatError)
@app.exception_handler(ConfigError)
@app.exception_handler(DrmConfigError)
async def ingestion_error_handler(request: Request, exc: Exception):
    """Source and configuration problems are the client's to fix."""
    logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    if isinstance(exc, ConfigError):
        error = "Invalid configuration"
    else:
        error = "Failed to load M3U file. Please check if the URL is accessible and contains valid M3U content."
    return JSONResponse(status_code=400, content={"error": error, "details": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "iptv_addon.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
