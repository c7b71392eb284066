# api/main.py
import logging
from contextlib import asynccontextmanager
from datetime import datetime, UTC
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from magpie.config import Settings
from magpie.errors import CatalogError
from magpie.logging_config import configure_logging
from api.dependencies import Services, build_services
from api.routes import auth, books

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Build the API around an explicit set of services."""
    settings = settings or (services.settings if services else Settings())
    configure_logging(settings.log_level)
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services.database.init_db()
        try:
            yield
        finally:
            await services.context_resolver.wait_for_background()

    app = FastAPI(title="Magpie Catalog", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error, "message": exc.message},
        )

    @app.get("/api/health")
    async def health():
        return {"status": "OK", "timestamp": datetime.now(UTC).isoformat()}

    app.include_router(books.router, prefix="/api")
    app.include_router(books.search_router, prefix="/api")
    app.include_router(auth.router, prefix="/api")
    return app
