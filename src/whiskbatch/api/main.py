"""Whisk Batch Generator: FastAPI proxy application.

This module defines the FastAPI ``app`` instance, the REST routes, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The proxy is stateless per request apart from one shared resource:

- **Session store**: the cached upstream session lives in a key-value store
  (in memory, or Redis when ``WHISK_REDIS_URL`` is set).  The store, the HTTP
  client and the service objects built on them are created in the lifespan
  handler and kept on ``app.state``.
- **Generation**: each ``POST /generate`` resolves an access token (refreshing
  the cached session at most once) and makes exactly one upstream call.

Endpoints
---------
========  ====================  ==========================================
Method    Path                  Purpose
========  ====================  ==========================================
POST      ``/generate``         Proxy one prompt to the generation API
POST      ``/api/generate``     Same handler, kept for the bundled UI path
GET       ``/api/config``       Aspect ratios and request delay bounds
GET       ``/api/session``      Whether the cached session is usable
========  ====================  ==========================================

Usage
-----
CLI (installed entry point)::

    whiskbatch

Direct invocation::

    python -m whiskbatch.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from whiskbatch import __version__
from whiskbatch.core.config import (
    ASPECT_RATIOS,
    MAX_REQUEST_DELAY_MS,
    MIN_REQUEST_DELAY_MS,
    WhiskConfig,
    config,
)
from whiskbatch.core.kv_store import KeyValueStore, create_store
from whiskbatch.core.session_cache import SessionCache, SessionRecord
from whiskbatch.core.token_resolver import AccessTokenResolver
from whiskbatch.core.whisk_client import WhiskClient

from .generate_handler import handle_generate

logger = logging.getLogger(__name__)


def create_app(
    settings: WhiskConfig = config,
    store: KeyValueStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the proxy application.

    Args:
        settings: Configuration to read endpoints and store settings from
        store: Session store to use instead of the configured one
        transport: HTTP transport for upstream calls (tests pass a
            ``httpx.MockTransport``)

    Returns:
        A FastAPI application with its lifespan wired up
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the shared store and HTTP client; close them on shutdown."""
        # --- Startup -------------------------------------------------------
        app.state.store = store if store is not None else create_store(settings.redis_url)
        # Upstream generation can take far longer than httpx's 5 s default.
        app.state.http_client = httpx.AsyncClient(timeout=None, transport=transport)

        app.state.session_cache = SessionCache(
            app.state.store,
            key=settings.session_key,
            lookahead=timedelta(seconds=settings.expiry_lookahead_seconds),
        )
        resolver = AccessTokenResolver(
            app.state.session_cache,
            app.state.http_client,
            settings.identity_url,
            cookie_name=settings.session_cookie_name,
        )
        app.state.whisk_client = WhiskClient(
            resolver,
            app.state.http_client,
            settings.generation_url,
            model=settings.image_model,
        )
        logger.info("Proxy services initialised.")

        yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        await app.state.http_client.aclose()
        await app.state.store.close()
        logger.info("Proxy services closed on shutdown.")

    app = FastAPI(
        title="Whisk Batch Generator",
        description="Token-caching proxy for the Whisk image generation API.",
        version=__version__,
        lifespan=lifespan,
    )

    # The UI is served by Gradio on a different port.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/generate")
    @app.post("/api/generate")
    async def generate(request: Request) -> JSONResponse:
        """Proxy a single prompt to the upstream generation endpoint.

        The body is read raw so malformed JSON can be answered with the
        ``Invalid JSON body`` envelope instead of FastAPI's 422 format.

        Returns:
            ``200`` with the upstream result, ``400`` or ``500`` with
            ``{"error": ...}``
        """
        body = await request.body()
        status_code, payload = await handle_generate(
            body,
            request.app.state.whisk_client,
            default_aspect_ratio=settings.default_aspect_ratio,
        )
        return JSONResponse(content=payload, status_code=status_code)

    @app.get("/api/config")
    async def get_config() -> dict:
        """Return the options the UI needs to render its configuration panel."""
        return {
            "version": __version__,
            "aspect_ratios": [
                {"id": ratio_id, "label": label} for ratio_id, label in ASPECT_RATIOS.items()
            ],
            "default_aspect_ratio": settings.default_aspect_ratio,
            "request_delay": {
                "default": settings.request_delay_ms,
                "min": MIN_REQUEST_DELAY_MS,
                "max": MAX_REQUEST_DELAY_MS,
            },
        }

    @app.get("/api/session")
    async def get_session_status(request: Request) -> dict:
        """Report whether the cached upstream session is usable.

        The access token itself is never returned.
        """
        session = await request.app.state.session_cache.get()
        if isinstance(session, SessionRecord):
            return {"usable": True, "expires_at": session.expires_at.isoformat()}
        return {"usable": False, "reason": session.reason}

    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~whiskbatch.core.config.config` (which
    loads from ``WHISK_SERVER_HOST`` and ``WHISK_SERVER_PORT`` environment
    variables).  Defaults to ``0.0.0.0:8000``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "whiskbatch.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
