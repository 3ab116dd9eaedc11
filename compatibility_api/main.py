"""FastAPI app entry point for the vehicle compatibility proxy."""

import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from compatibility_api.api.routes import router
from compatibility_api.config import Settings, get_settings
from compatibility_api.logging import log_request, log_response, logger, setup_logging
from compatibility_api.services.ebay import EbayMetadataClient


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan: one shared eBay client per process."""
        if not settings.credential_configured:
            logger.warning("EBAY_AUTH_TOKEN not set - lookups will answer 401")
        app.state.ebay_client = EbayMetadataClient(settings)
        yield
        await app.state.ebay_client.close()

    app = FastAPI(
        title="Vehicle Compatibility Proxy",
        description="Renders eBay parts compatibility lookups as embeddable HTML tables",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        client = request.client.host if request.client else "-"
        log_request(request.method, request.url.path, client=client)

        response = await call_next(request)

        duration_ms = (time.time() - start) * 1000
        log_response(request.method, request.url.path, response.status_code, duration_ms)
        return response

    # Handlers read settings through Depends(get_app_settings)
    app.state.settings = settings

    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "service": "vehicle-compatibility-proxy",
            "credential_configured": settings.credential_configured,
        }

    # Mounted last so the API routes win over same-named files
    if settings.static_dir and Path(settings.static_dir).is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app


app = create_app()
