"""Dataclasses describing a preview session and its inputs."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeAlias


@dataclass(frozen=True, slots=True)
class Route:
    pattern: str


@dataclass(frozen=True, slots=True)
class SiteConfig:
    """Static assets bucket served next to the script."""

    bucket: Path
    entry_point: str | None = None


@dataclass(frozen=True, slots=True)
class DeployTarget:
    """Destination script of a preview session.

    Targets are immutable; provisioning the site namespace yields a new
    snapshot with ``site_namespace_id`` filled in.
    """

    account_id: str
    name: str
    script_path: Path
    build_command: str | None = None
    site: SiteConfig | None = None
    site_namespace_id: str | None = None


@dataclass(frozen=True, slots=True)
class ZonedConfig:
    zone_id: str
    routes: tuple[Route, ...] = ()


@dataclass(frozen=True, slots=True)
class ZonelessConfig:
    account_id: str


DeployConfig: TypeAlias = ZonedConfig | ZonelessConfig


@dataclass(frozen=True, slots=True)
class SessionCredentials:
    """Authentication material forwarded to the control plane."""

    api_token: str | None = None
    email: str | None = None
    api_key: str | None = None

    def to_headers(self) -> dict[str, str]:
        if self.api_token:
            return {"Authorization": f"Bearer {self.api_token}"}
        if self.email and self.api_key:
            return {"X-Auth-Email": self.email, "X-Auth-Key": self.api_key}
        return {}

    @property
    def is_complete(self) -> bool:
        return bool(self.to_headers())


@dataclass(frozen=True, slots=True)
class ExchangeHandle:
    ws_token: str
    exchange_host: str


class TokenGeneration(str, enum.Enum):
    """Successive generations of the preview credential."""

    EXCHANGE = "exchange"
    ARTIFACT = "artifact"


@dataclass(frozen=True, slots=True)
class PreviewToken:
    """Short-lived preview credential tagged with the step that issued it."""

    value: str
    generation: TokenGeneration

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Artifact:
    filename: str
    content: bytes
    content_type: str = "application/javascript"


@dataclass(frozen=True, slots=True)
class AssetManifest:
    """Maps asset paths inside the site bucket to their uploaded keys."""

    entries: Mapping[str, str] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return dict(self.entries)


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Local listening address and upstream selection for the preview server."""

    host: str | None = None
    listen_host: str = "127.0.0.1"
    listen_port: int = 8787
    upstream_scheme: str = "https"


@dataclass(frozen=True, slots=True)
class UploadResult:
    preview_token: PreviewToken
    target: DeployTarget


@dataclass(frozen=True, slots=True)
class PreviewSession:
    """Everything the long-running tasks need once setup has completed."""

    target: DeployTarget
    exchange: ExchangeHandle
    preview_token: PreviewToken
    inspector_url: str
    preview_host: str


__all__ = [
    "Artifact",
    "AssetManifest",
    "DeployConfig",
    "DeployTarget",
    "ExchangeHandle",
    "PreviewSession",
    "PreviewToken",
    "Route",
    "ServerConfig",
    "SessionCredentials",
    "SiteConfig",
    "TokenGeneration",
    "UploadResult",
    "ZonedConfig",
    "ZonelessConfig",
]
