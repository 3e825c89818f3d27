"""Error taxonomy for preview session setup and supervision."""

from __future__ import annotations

import enum


class PreviewError(RuntimeError):
    """Base class for every failure surfaced by a preview session."""


class RemoteRejected(PreviewError):
    """Raised when the control plane answers with a non-success status."""

    def __init__(self, url: str, status: int, body: str) -> None:
        super().__init__(f"{url} returned HTTP {status}: {body}")
        self.url = url
        self.status = status
        self.body = body


class RemoteUnavailable(PreviewError):
    """Raised when the remote host cannot be reached at all."""


class MalformedResponse(PreviewError):
    """Raised when a response body does not have the expected shape."""


class InvalidExchangeUrl(PreviewError):
    """Raised when the registration response carries an exchange URL without a host."""


class MissingToken(PreviewError):
    """Raised when the exchange response omits the preview token header."""


class BuildFailed(PreviewError):
    """Raised when the script artifact cannot be produced."""


class ConfigurationError(PreviewError):
    """Raised when the session cannot be described from the given settings."""


class TaskSource(str, enum.Enum):
    """Long-running session tasks."""

    INSPECTOR = "inspector"
    SERVER = "server"


class TaskFailure(PreviewError):
    """Raised when one of the session tasks terminates abnormally."""

    def __init__(self, source: TaskSource, cause: BaseException) -> None:
        super().__init__(f"{source.value} task failed: {cause}")
        self.source = source
        self.cause = cause


__all__ = [
    "BuildFailed",
    "ConfigurationError",
    "InvalidExchangeUrl",
    "MalformedResponse",
    "MissingToken",
    "PreviewError",
    "RemoteRejected",
    "RemoteUnavailable",
    "TaskFailure",
    "TaskSource",
]
