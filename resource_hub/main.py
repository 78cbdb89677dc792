"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from resource_hub.api import admin, auth, resources
from resource_hub.config import get_settings
from resource_hub.services.errors import RateLimited, ResourceHubError
from resource_hub.services.rate_limit import build_upload_rate_limiter

settings = get_settings()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.state.upload_rate_limiter = build_upload_rate_limiter(settings)
    logger.info(f"Resource Hub started ({settings.environment})")
    yield


app = FastAPI(
    title="Resource Hub API",
    description="Community resource sharing with versioned uploads and moderation",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(ResourceHubError)
async def resource_hub_error_handler(request: Request, exc: ResourceHubError):
    """Render domain errors as JSON with their HTTP status."""
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", settings.site_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register routers
app.include_router(auth.router)
app.include_router(resources.router)
app.include_router(admin.router)

# Stored assets are served under the same paths as their refs
storage_root = Path(settings.storage_root)
app.mount(
    "/downloads",
    StaticFiles(directory=storage_root / "downloads", check_dir=False),
    name="downloads",
)
app.mount(
    "/images",
    StaticFiles(directory=storage_root / "images", check_dir=False),
    name="images",
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
