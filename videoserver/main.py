"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order
- Each app instance owns its own metadata store

For local development:
    uvicorn videoserver.main:app --reload --port 3000

For production:
    gunicorn videoserver.main:app -w 1 -k uvicorn.workers.UvicornWorker

Run a single worker: the metadata store lives in process memory, so
multiple workers would each see a different set of videos.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.dependencies import build_storage_client
from .api.routes import health, videos
from .config.settings import Settings, get_settings
from .core.videos.exceptions import UploadValidationError, VideoServiceError
from .core.videos.formatting import format_file_size
from .core.videos.store import VideoStore

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "GET /api/health": "Health check",
    "GET /api/health/ready": "Readiness check",
    "GET /api/videos": "List videos",
    "GET /api/videos/{id}": "Get one video",
    "POST /api/upload": "Upload a video",
    "DELETE /api/videos/{id}": "Delete a video",
    "DELETE /api/videos": "Delete all videos",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Runs on startup and shutdown. FastAPI calls this automatically
    when the application starts/stops.
    """
    settings: Settings = app.state.settings

    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        "Video server starting",
        extra={
            "version": settings.api_version,
            "bucket": settings.cos_bucket_name,
            "region": settings.cos_region,
            "mock_mode": settings.storage_mock_mode,
        }
    )

    # Missing credentials are reported, not fatal: listing still works
    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info(
        "Video server shutting down",
        extra={"videos_in_memory": len(app.state.video_store)}
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application. Tests pass their own
    Settings; production uses the cached environment settings.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Register, list and remove videos stored in Tencent Cloud COS.

        ## Workflow

        1. **Upload**: `POST /api/upload` (multipart, field `video`, optional `title`)
        2. **Browse**: `GET /api/videos` and `GET /api/videos/{id}`
        3. **Remove**: `DELETE /api/videos/{id}`

        Metadata is held in memory and is lost when the process restarts.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.video_store = VideoStore(newest_first=settings.list_newest_first)
    app.state.storage_client = build_storage_client(settings)

    # Configure allowed origins via CORS_ORIGINS environment variable
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_origins_list != ["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/api/health",
        tags=["Health"],
    )

    app.include_router(
        videos.router,
        prefix="/api",
        tags=["Videos"],
    )

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        stats = app.state.video_store.stats()
        return {
            "message": "Video server API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "storage": {
                "provider": "mock" if settings.storage_mock_mode else "Tencent Cloud COS",
                "bucket": settings.cos_bucket_name,
                "region": settings.cos_region,
            },
            "endpoints": ENDPOINTS,
            "statistics": {
                "totalVideos": stats.count,
                "totalSize": format_file_size(stats.total_size),
            },
        }

    @app.exception_handler(VideoServiceError)
    async def video_service_error_handler(request: Request, exc: VideoServiceError):
        """Render domain errors as {success, message, error}."""
        content = {
            "success": False,
            "message": exc.message,
            "error": exc.code,
        }
        if isinstance(exc, UploadValidationError) and exc.violation is not None:
            content["violation"] = exc.violation.value

        if exc.http_status >= 500:
            logger.error(
                "Request failed",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "error": exc.message,
                }
            )

        return JSONResponse(status_code=exc.http_status, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Unknown routes get a structured 404 listing what does exist."""
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "message": "Endpoint not found",
                    "path": request.url.path,
                    "endpoints": ENDPOINTS,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Prevents stack traces from leaking to clients. We log the full
        error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Internal server error",
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "videoserver.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
