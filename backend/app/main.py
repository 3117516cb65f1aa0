"""CMS Workflow Backend - FastAPI Entry Point."""
import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import structlog
from fastapi import FastAPI

from app.config import settings
from app.database import engine
from app.middleware.cors import setup_cors
from app.middleware.error_handler import setup_error_handlers
from app.middleware.logging_middleware import LoggingMiddleware
from app.middleware.metrics import MetricsMiddleware, setup_metrics
from app.api.v1 import admin as admin_router
from app.api.v1 import audit as audit_router
from app.api.v1 import contents as contents_router
from app.api.v1 import versions as versions_router
from app.api.v1 import workflow as workflow_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    logger.info("startup", env=settings.APP_ENV)
    # Sentry init
    if settings.SENTRY_DSN:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration

        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[FastApiIntegration()],
            traces_sample_rate=0.1 if settings.APP_ENV == "production" else 1.0,
            environment=settings.APP_ENV,
        )

    yield

    await engine.dispose()
    logger.info("shutdown")


def create_app() -> FastAPI:
    logging.basicConfig(level=settings.LOG_LEVEL)

    application = FastAPI(
        title="CMS Workflow API",
        description="Content lifecycle, review workflow, versions and audit trail",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Middleware (order matters: last added = first executed)
    setup_cors(application)
    setup_error_handlers(application)
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(MetricsMiddleware)

    # Prometheus metrics endpoint
    setup_metrics(application)

    # API Routers
    application.include_router(contents_router.router, prefix="/api/v1/contents", tags=["Contents"])
    application.include_router(workflow_router.router, prefix="/api/v1/workflow", tags=["Workflow"])
    application.include_router(versions_router.router, prefix="/api/v1/versions", tags=["Versions"])
    application.include_router(audit_router.router, prefix="/api/v1/audit", tags=["Audit"])
    application.include_router(admin_router.router, prefix="/api/v1/admin", tags=["Admin"])

    # Health check
    @application.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
