# pkgregistry/main.py
import re

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from .api.v1 import admin, auth, health, packages
from .core.config import get_settings
from .core.logging import configure_logging


class NormalizePathMiddleware(BaseHTTPMiddleware):
    """Collapse repeated slashes so //packages maps to /packages."""

    async def dispatch(self, request, call_next):
        scope = request.scope
        original_path = scope.get("path", "")
        normalized_path = re.sub(r"/{2,}", "/", original_path)
        if normalized_path != original_path:
            logger.debug("Normalizing path from {} to {}", original_path, normalized_path)
            scope["path"] = normalized_path
        return await call_next(request)

def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)
    app = FastAPI(title=settings.APP_NAME, version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(NormalizePathMiddleware)

    app.include_router(auth.router, prefix="/v1/auth", tags=["auth"])
    app.include_router(packages.router, prefix="/v1", tags=["packages"])
    app.include_router(admin.router, prefix="/v1", tags=["admin"])
    app.include_router(health.router, prefix="/v1/health", tags=["health"])

    # Root-level aliases (/package, /packages, /reset) for API Gateway routes
    app.include_router(packages.router, include_in_schema=False)
    app.include_router(admin.router, include_in_schema=False)

    logger.info("{} started (metadata={}, storage={})",
                settings.APP_NAME, settings.METADATA_BACKEND, settings.STORAGE_BACKEND)
    return app


app = create_app()
