"""Serve the preview proxy with uvicorn on a pre-bound socket."""

from __future__ import annotations

import logging
import socket

import uvicorn
from fastapi import FastAPI

from edge_preview.models import ServerConfig

logger = logging.getLogger(__name__)


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind the listening socket up front so address errors surface as ``OSError``."""

    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(128)
        sock.setblocking(False)
    except OSError:
        sock.close()
        raise
    return sock


class PreviewServer:
    """Run ``app`` until cancelled or uvicorn shuts down."""

    def __init__(self, app: FastAPI, config: ServerConfig) -> None:
        self.app = app
        self.config = config

    async def serve(self) -> None:
        sock = bind_socket(self.config.listen_host, self.config.listen_port)
        uvicorn_config = uvicorn.Config(
            self.app,
            log_level="warning",
            access_log=False,
            lifespan="off",
        )
        server = uvicorn.Server(uvicorn_config)
        logger.info(
            "Listening on http://%s:%d",
            self.config.listen_host,
            self.config.listen_port,
        )
        try:
            await server.serve(sockets=[sock])
        finally:
            sock.close()


__all__ = ["PreviewServer", "bind_socket"]
