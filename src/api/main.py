"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from src.adapters.context.memory import InMemoryClientContexts
from src.api.errors import register_exception_handlers
from src.api.v1 import router as v1_router
from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Storefront identity flows v1 - Registration, password recovery and email change",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Opens the Identity Store HTTP client on startup
    - Creates the in-memory client context store
    - Closes the HTTP client on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Identity Store at %s", settings.identity_base_url)

    client = httpx.AsyncClient(
        base_url=settings.identity_base_url,
        timeout=httpx.Timeout(settings.request_timeout_seconds),
    )

    # Store shared objects in app state for dependency injection
    app.state.http_client = client
    app.state.contexts = InMemoryClientContexts(
        cooldown_seconds=settings.resend_cooldown_seconds,
        idle_seconds=settings.context_idle_seconds,
        max_contexts=settings.max_client_contexts,
    )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await client.aclose()
    logger.info("Identity Store client closed")


app = FastAPI(
    title="storefront-identity",
    description="Account verification and recovery workflows for the storefront",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness check. The Identity Store is not probed."""
    return {"status": "healthy"}
