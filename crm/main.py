"""
FastAPI Production Application

Main entry point for the CRM Dashboard API.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from crm.catalog import CatalogValidationError, NotFoundError
from crm.chat import WebhookChatClient
from crm.config import Settings, get_settings
from crm.config.logging import configure_logging
from crm.database.connection import close_database, init_database
from crm.export import EmptyExportError
from crm.reporting import DataSourceUnavailable
from crm.serving.api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from crm.serving.api.routes import (
    activities_router,
    categories_router,
    chat_router,
    customers_router,
    dashboard_router,
    export_router,
    health_router,
    products_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    logger.info("Starting CRM Dashboard API")

    await init_database()

    yield

    logger.info("Shutting down...")
    await app.state.chat_client.close()
    await close_database()


# =============================================================================
# ERROR MAPPING
# =============================================================================

async def data_source_unavailable_handler(request: Request, exc: DataSourceUnavailable) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc), "collection": exc.collection})


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def validation_error_handler(request: Request, exc: CatalogValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation failed",
            "errors": [{"field": e.field, "message": e.message} for e in exc.errors],
        },
    )


async def empty_export_handler(request: Request, exc: EmptyExportError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Tests build their own app from here and override the database
    dependencies instead of running the lifespan.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="CRM Dashboard API",
        description="Catalog management, purchase ledger and dashboard reporting",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.state.chat_client = WebhookChatClient(
        settings.chat.webhook_url,
        settings.chat.health_url,
        timeout=settings.chat.timeout_seconds,
        health_timeout=settings.chat.health_timeout_seconds,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.security.rate_limit_requests,
        window_seconds=settings.security.rate_limit_window_seconds,
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(DataSourceUnavailable, data_source_unavailable_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(CatalogValidationError, validation_error_handler)
    app.add_exception_handler(EmptyExportError, empty_export_handler)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(categories_router, prefix="/api/v1/categories", tags=["Categories"])
    app.include_router(products_router, prefix="/api/v1/products", tags=["Products"])
    app.include_router(customers_router, prefix="/api/v1/customers", tags=["Customers"])
    app.include_router(activities_router, prefix="/api/v1/activities", tags=["Activities"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["Dashboard"])
    app.include_router(export_router, prefix="/api/v1/export", tags=["Export"])
    app.include_router(chat_router, prefix="/api/v1/chat", tags=["Chat"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "CRM Dashboard API",
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
