"""FastAPI application serving the exiftool tag catalog as streamed JSON.

WHY: Clients want the full list of tags exiftool knows about, as JSON,
without waiting for (or the server buffering) the whole multi-megabyte
catalog. GET /tags runs `exiftool -listx` per request and streams the
converted records as they are decoded.

HOW: create_app() builds a FastAPI app around a startup-resolved
ServiceConfig. GET /tags checks that the connection can carry a streamed
body, then returns a StreamingResponse over TagStream.body(). GET /
redirects to /tags; GET /health reports liveness.

RULES:
- The config is passed in; no module-level mutable state
- HTTP/1.0 requests to /tags get 412 and no tool is started
- /tags responses are chunked, application/json, and never cached
- Each request gets its own TagStream (own process, pipe, counters)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response, StreamingResponse

from taginfo_stream import __version__
from taginfo_stream.config import ServiceConfig
from taginfo_stream.server.models import HealthResponse
from taginfo_stream.server.streaming import (
    STREAM_HEADERS,
    STREAMING_DISABLED_MESSAGE,
    TagStream,
    supports_streaming,
)

logger = logging.getLogger(__name__)


def create_app(config: ServiceConfig) -> FastAPI:
    """Build the API around one resolved configuration."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Serving tags from %s", config.tool_path)
        yield
        logger.info("Web server stopped")

    app = FastAPI(
        lifespan=lifespan,
        title="exiftool Tag Catalog API",
        description=(
            "Streams the catalog of tags exiftool can read and write as a "
            "JSON array, one object per tag, converted on the fly from "
            "`exiftool -listx`."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.config = config

    @app.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/tags", status_code=303)

    @app.get(
        "/tags",
        tags=["tags"],
        summary="Stream the tag catalog",
        description=(
            "Runs exiftool and streams every tag definition as a JSON array. "
            "Each element has `type`, `writable`, `path` (`<group>:<name>`), "
            "`group` and a `description` mapping language codes to labels. "
            "The array is always closed, even if exiftool fails part way."
        ),
        responses={
            200: {"content": {"application/json": {}}, "description": "Streamed JSON array of tags"},
            412: {"content": {"text/plain": {}}, "description": "Connection cannot carry a streamed body"},
        },
    )
    async def stream_tags(request: Request) -> Response:
        if not supports_streaming(request.scope):
            logger.warning("Refusing /tags over HTTP/%s", request.scope.get("http_version"))
            return PlainTextResponse(STREAMING_DISABLED_MESSAGE, status_code=412)

        stream = TagStream(config)
        return StreamingResponse(
            stream.body(),
            media_type="application/json",
            headers=STREAM_HEADERS,
        )

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["health"],
        summary="Health check",
        description="Liveness and readiness check for load balancers and orchestrators.",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__, tool=config.tool_path)

    return app
