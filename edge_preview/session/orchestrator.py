"""Sequence the preview handshake and supervise the session tasks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from edge_preview.errors import ConfigurationError, MalformedResponse, TaskFailure, TaskSource
from edge_preview.inspector import InspectorRelay, inspector_url
from edge_preview.models import (
    Artifact,
    AssetManifest,
    DeployConfig,
    DeployTarget,
    PreviewSession,
    ServerConfig,
    SessionCredentials,
    ZonedConfig,
)
from edge_preview.sdk import API_BASE_URL, RemoteApiClient
from edge_preview.server import PreviewForwarder, PreviewServer, create_app
from edge_preview.session import setup
from edge_preview.session.build import build_artifact

logger = logging.getLogger(__name__)

TaskFactory = Callable[[PreviewSession], Coroutine[Any, Any, None]]


def check_preview_host(config: DeployConfig, server_config: ServerConfig) -> None:
    """Reject a zoned session without a preview host before anything is registered."""

    if isinstance(config, ZonedConfig) and not server_config.host:
        raise ConfigurationError("A host is required to preview a zoned script.")


def resolve_preview_host(
    client: RemoteApiClient,
    target: DeployTarget,
    config: DeployConfig,
    server_config: ServerConfig,
) -> str:
    """Return the host preview traffic is addressed to."""

    check_preview_host(config, server_config)
    if server_config.host:
        return server_config.host
    address = f"{API_BASE_URL}/accounts/{target.account_id}/workers/subdomain"
    result = client.get(address).raise_for_status().json().get("result")
    subdomain = result.get("subdomain") if isinstance(result, dict) else None
    if not isinstance(subdomain, str) or not subdomain:
        raise MalformedResponse(f"{address} did not return a workers.dev subdomain")
    return f"{target.name}.{subdomain}.workers.dev"


def prepare(
    client: RemoteApiClient,
    target: DeployTarget,
    config: DeployConfig,
    server_config: ServerConfig,
    artifact: Artifact,
    manifest: AssetManifest | None = None,
) -> PreviewSession:
    """Run registration, exchange and upload strictly in order.

    Any failure propagates before a session task exists.
    """

    check_preview_host(config, server_config)
    handle = setup.init(client, config)
    exchange_token = setup.exchange(client, handle)
    uploaded = setup.upload(client, target, artifact, manifest, config, exchange_token)
    preview_host = resolve_preview_host(client, uploaded.target, config, server_config)
    logger.info("Preview session ready for %s", uploaded.target.name)
    return PreviewSession(
        target=uploaded.target,
        exchange=handle,
        preview_token=uploaded.preview_token,
        inspector_url=inspector_url(handle.ws_token),
        preview_host=preview_host,
    )


async def supervise(
    inspector: Coroutine[Any, Any, None],
    server: Coroutine[Any, Any, None],
) -> None:
    """Run both session tasks until both finish or one of them fails.

    The first failure cancels the sibling, waits for it to unwind and is raised
    as :class:`TaskFailure`; when both fail together the inspector failure wins.
    Cancelling ``supervise`` cancels both tasks.
    """

    tasks = {
        asyncio.create_task(inspector, name="inspector"): TaskSource.INSPECTOR,
        asyncio.create_task(server, name="server"): TaskSource.SERVER,
    }
    pending: set[asyncio.Task[None]] = set(tasks)
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
            # inspector before server when both end in the same round
            for task in [candidate for candidate in tasks if candidate in done]:
                if task.cancelled():
                    raise TaskFailure(tasks[task], asyncio.CancelledError())
                exc = task.exception()
                if exc is not None:
                    raise TaskFailure(tasks[task], exc) from exc
                logger.info("%s task finished", tasks[task].value)
    finally:
        for task in pending:
            task.cancel()
        for task in pending:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.debug("%s task failed while cancelling", tasks[task].value, exc_info=True)


def _default_relay(session: PreviewSession) -> Coroutine[Any, Any, None]:
    return InspectorRelay(session.inspector_url).run()


def _default_server(server_config: ServerConfig) -> TaskFactory:
    def factory(session: PreviewSession) -> Coroutine[Any, Any, None]:
        forwarder = PreviewForwarder(
            preview_host=session.preview_host,
            preview_token=session.preview_token,
            upstream_scheme=server_config.upstream_scheme,
        )
        return PreviewServer(create_app(forwarder), server_config).serve()

    return factory


async def run(
    target: DeployTarget,
    config: DeployConfig,
    credentials: SessionCredentials,
    server_config: ServerConfig,
    *,
    manifest: AssetManifest | None = None,
    client: RemoteApiClient | None = None,
    relay: TaskFactory | None = None,
    serve: TaskFactory | None = None,
) -> PreviewSession:
    """Establish a preview session and keep its inspector relay and server alive.

    Only returns once both tasks have ended cleanly; the first task failure is
    raised as :class:`TaskFailure`.
    """

    check_preview_host(config, server_config)
    client = client or RemoteApiClient(credentials)
    artifact = await asyncio.to_thread(build_artifact, target)
    session = await asyncio.to_thread(
        prepare, client, target, config, server_config, artifact, manifest
    )
    relay = relay or _default_relay
    serve = serve or _default_server(server_config)
    await supervise(relay(session), serve(session))
    return session


__all__ = ["check_preview_host", "prepare", "resolve_preview_host", "run", "supervise"]
