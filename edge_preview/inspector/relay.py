"""Relay between the remote devtools inspector and the local log output."""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import json
import logging
from collections.abc import Callable
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed

INSPECTOR_URL_TEMPLATE = "wss://rawhttp.cloudflareworkers.com/inspect/{ws_token}"
KEEPALIVE_INTERVAL = 10.0

logger = logging.getLogger(__name__)
console_logger = logging.getLogger("edge_preview.inspector.console")

_CONSOLE_LEVELS = {
    "debug": logging.DEBUG,
    "log": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "assert": logging.ERROR,
    "trace": logging.DEBUG,
}


def inspector_url(ws_token: str) -> str:
    return INSPECTOR_URL_TEMPLATE.format(ws_token=ws_token)


def _describe(remote_object: dict[str, Any]) -> str:
    if "value" in remote_object:
        value = remote_object["value"]
        return value if isinstance(value, str) else json.dumps(value)
    for key in ("unserializableValue", "description"):
        if key in remote_object:
            return str(remote_object[key])
    return str(remote_object.get("type", "undefined"))


def format_console_call(params: dict[str, Any]) -> tuple[int, str]:
    """Return the log level and text of a ``Runtime.consoleAPICalled`` event."""

    level = _CONSOLE_LEVELS.get(str(params.get("type", "log")), logging.INFO)
    args = params.get("args") or []
    text = " ".join(_describe(arg) for arg in args if isinstance(arg, dict))
    return level, text


def format_exception(params: dict[str, Any]) -> str:
    details = params.get("exceptionDetails") or {}
    exception = details.get("exception") or {}
    return str(exception.get("description") or details.get("text") or "Uncaught exception")


class InspectorRelay:
    """Connect to the inspector websocket and surface console output as logs.

    ``run`` returns when the inspector closes the connection normally and
    raises when the connection fails; cancellation closes the socket.
    """

    def __init__(
        self,
        url: str,
        *,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
        connect: Callable[[str], Any] = websockets.connect,
    ) -> None:
        self.url = url
        self.keepalive_interval = keepalive_interval
        self._connect = connect
        self._ids = itertools.count(1)

    async def run(self) -> None:
        logger.info("Connecting to inspector at %s", self.url)
        async with self._connect(self.url) as websocket:
            await self._send(websocket, "Runtime.enable")
            keepalive = asyncio.create_task(self._keepalive(websocket))
            try:
                async for raw in websocket:
                    self.handle_message(raw)
            finally:
                keepalive.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await keepalive
        logger.info("Inspector connection closed")

    def handle_message(self, raw: str | bytes) -> None:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Ignoring non-JSON inspector frame")
            return
        if not isinstance(message, dict):
            return
        method = message.get("method")
        params = message.get("params") or {}
        if method == "Runtime.consoleAPICalled":
            level, text = format_console_call(params)
            console_logger.log(level, text)
        elif method == "Runtime.exceptionThrown":
            console_logger.error(format_exception(params))
        else:
            logger.debug("inspector.message", extra={"inspector_method": method})

    async def _send(self, websocket: Any, method: str) -> None:
        await websocket.send(json.dumps({"id": next(self._ids), "method": method}))

    async def _keepalive(self, websocket: Any) -> None:
        # the reader loop reports the close
        with contextlib.suppress(ConnectionClosed):
            while True:
                await asyncio.sleep(self.keepalive_interval)
                await self._send(websocket, "Runtime.getIsolateId")


__all__ = [
    "INSPECTOR_URL_TEMPLATE",
    "InspectorRelay",
    "format_console_call",
    "format_exception",
    "inspector_url",
]
