from __future__ import annotations

import asyncio

import pytest

from edge_preview.errors import TaskFailure, TaskSource
from edge_preview.models import PreviewToken, ServerConfig, TokenGeneration
from edge_preview.server import PreviewForwarder, PreviewServer, create_app
from edge_preview.server.runner import bind_socket
from edge_preview.session import supervise
from tests.fakes import FakeApiClient


def test_bind_socket_picks_port() -> None:
    sock = bind_socket("127.0.0.1", 0)
    try:
        assert sock.getsockname()[1] > 0
    finally:
        sock.close()


def test_port_in_use_fails_server_task() -> None:
    taken = bind_socket("127.0.0.1", 0)
    port = taken.getsockname()[1]
    forwarder = PreviewForwarder(
        preview_host="example.com",
        preview_token=PreviewToken("PT2", TokenGeneration.ARTIFACT),
        client=FakeApiClient(),
    )
    server = PreviewServer(
        create_app(forwarder), ServerConfig(listen_host="127.0.0.1", listen_port=port)
    )

    async def inspector() -> None:
        await asyncio.sleep(3600)

    try:
        with pytest.raises(TaskFailure) as excinfo:
            asyncio.run(supervise(inspector(), server.serve()))
    finally:
        taken.close()
    assert excinfo.value.source is TaskSource.SERVER
    assert isinstance(excinfo.value.cause, OSError)
