"""FastAPI application that proxies local traffic to a preview session."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import PlainTextResponse

from edge_preview.errors import RemoteUnavailable
from edge_preview.server.forward import PreviewForwarder, filter_headers
from edge_preview.server.middleware import AccessLogMiddleware
from edge_preview.version import __version__

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(forwarder: PreviewForwarder) -> FastAPI:
    """Instantiate the preview proxy with a single catch-all route."""

    app = FastAPI(
        title="Edge Preview",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.forwarder = forwarder
    app.add_middleware(AccessLogMiddleware)

    @app.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
    async def proxy(request: Request, path: str) -> Response:
        body = await request.body()
        try:
            upstream = await asyncio.to_thread(
                forwarder.forward,
                request.method,
                request.url.path,
                request.url.query,
                request.headers.items(),
                body,
            )
        except RemoteUnavailable as exc:
            logger.warning("Preview upstream unavailable: %s", exc)
            return PlainTextResponse(str(exc), status_code=status.HTTP_502_BAD_GATEWAY)
        response = Response(content=upstream.body, status_code=upstream.status)
        # repeated headers such as set-cookie are kept one line each
        for name, value in filter_headers(upstream.headers, "content-length"):
            response.raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
        return response

    return app


__all__ = ["create_app"]
