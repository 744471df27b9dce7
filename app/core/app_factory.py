from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances with their own settings, clock and
document service client.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Callable

import redis.asyncio as redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.documents import AbstractDocumentServiceClient, create_document_client
from app.api.routes import auth_router, documents_router, health_router
from app.core.access import AccessControls, build_access_controls
from app.core.config import Settings, settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware, security_headers_middleware
from app.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


def create_app(
    cfg: Settings | None = None,
    *,
    document_client: AbstractDocumentServiceClient | None = None,
    access_controls: AccessControls | None = None,
    clock: Callable[[], float] = time.time,
    redis_client_factory: Callable[[str], Any] = redis.from_url,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        cfg: Settings to build from; defaults to the process-wide settings.
        document_client: Downstream client; built from ``cfg`` when omitted.
        access_controls: Prebuilt access-control container, mainly for tests.
        clock: Time source for local rate-limit/lockout state and tokens.
        redis_client_factory: Builds the Redis client from ``REDIS_URL``.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.

    Raises:
        ConfigurationAppError: In production with a missing, placeholder or
            short JWT secret. The process must not start serving.
    """
    cfg = cfg or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    if access_controls is None:
        access_controls = build_access_controls(
            cfg,
            clock=clock,
            redis_client_factory=redis_client_factory,
        )
    if document_client is None:
        document_client = create_document_client(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "gateway.started",
            extra={
                "app_env": cfg.app_env,
                "shared_store_configured": access_controls.store_provider.enabled,
                "dev_tokens_allowed": access_controls.authenticator.allow_dev_tokens,
            },
        )
        try:
            yield
        finally:
            await access_controls.close()
            await document_client.aclose()
            logger.info("gateway.stopped")

    app = FastAPI(
        title="RelayDocs Gateway",
        description=(
            "Public entry point for RelayDocs. Authenticates callers with bearer "
            "tokens, rate-limits and locks out abusive login attempts, and "
            "forwards document operations to the document service."
        ),
        version="0.1.0",
        debug=cfg.app.debug,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.access_controls = access_controls
    app.state.document_client = document_client

    # Middleware (last registered runs first)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cfg.app.web_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", cfg.log.request_id_header],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(documents_router, prefix="/api/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    return app
