"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with a fake storage gateway
- Explicit about initialization order

For local development:
    uvicorn src.main:app --reload

For production:
    gunicorn src.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.routes import files, health
from .config.settings import get_settings
from .infrastructure.storage.client import ObjectStorageGateway, create_storage_gateway

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    On startup the storage gateway is built (unless one was injected)
    and the bucket is created if missing. A StorageUnavailable raised
    here aborts startup on purpose: serving uploads without a bucket
    only produces errors.
    """
    settings = get_settings()

    logger.info(
        "Storage gateway starting",
        extra={
            "version": __version__,
            "endpoint": settings.minio_endpoint,
            "bucket": settings.minio_bucket_name,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    gateway: Optional[ObjectStorageGateway] = getattr(app.state, "storage", None)
    if gateway is None:
        gateway = create_storage_gateway(settings.storage_config())

    await gateway.ensure_bucket_exists()
    app.state.storage = gateway

    yield

    logger.info("Storage gateway shutting down")


def create_app(storage: Optional[ObjectStorageGateway] = None) -> FastAPI:
    """
    Application factory.

    Pass a prebuilt gateway to skip creating a boto3 client (tests).
    The bucket check still runs on startup either way.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        File storage service backed by MinIO.

        ## Authentication

        File endpoints require an API key provided in the `X-API-Key` header.

        ## Endpoints

        - `POST /api/v1/files`: upload files, get presigned URLs back
        - `GET /api/v1/files/url`: presigned URL for a stored object
        - `GET /api/v1/files/public-url`: unsigned URL for public buckets
        - `DELETE /api/v1/files`: delete one object
        - `POST /api/v1/files/delete`: delete many objects
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    if storage is not None:
        app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        files.router,
        prefix="/api/v1/files",
        tags=["Files"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - points at the docs."""
        return {
            "message": settings.api_title,
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Logs the full error server-side but returns a generic message.
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
            content={"detail": "Internal server error."}
        )

    return app


# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=get_settings().log_level.lower(),
    )
