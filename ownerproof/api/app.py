"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from ownerproof import __version__
from ownerproof.api.routes import router
from ownerproof.config import ServiceConfig
from ownerproof.core.errors import PipelineError
from ownerproof.core.orchestrator import PipelineOrchestrator

logger = logging.getLogger(__name__)

INTERNAL_ERROR_TEXT = "Internal Server Error."


def create_app(
    config: ServiceConfig | None = None,
    orchestrator: PipelineOrchestrator | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Raises ``MissingConfigurationError`` before anything is served if a
    required setting is absent. When *orchestrator* is omitted one is wired
    from *config* at startup, sharing a single ``httpx.AsyncClient``.
    """
    config = (config or ServiceConfig()).require()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.orchestrator is not None:
            yield
            return
        async with httpx.AsyncClient(timeout=config.http_timeout_seconds) as client:
            app.state.orchestrator = PipelineOrchestrator.from_config(config, client)
            logger.info(
                "ownerproof API starting - publisher=%s, ledger=%s",
                config.publisher_backend,
                config.ledger_path,
            )
            yield
            app.state.orchestrator = None
        logger.info("ownerproof API shutdown - HTTP client closed")

    app = FastAPI(
        title="ownerproof",
        description="Proof-of-ownership NFT metadata for YouTube channels",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError) -> PlainTextResponse:
        if exc.http_status >= 500:
            return PlainTextResponse(INTERNAL_ERROR_TEXT, status_code=exc.http_status)
        return PlainTextResponse(exc.message, status_code=exc.http_status)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
        logger.exception(
            "Unhandled error on %s", request.url.path, extra={"route": request.url.path}
        )
        return PlainTextResponse(INTERNAL_ERROR_TEXT, status_code=500)

    app.include_router(router)
    return app
