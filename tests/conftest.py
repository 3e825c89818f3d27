"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from edge_preview.models import (
    Artifact,
    DeployTarget,
    Route,
    SessionCredentials,
    ZonedConfig,
    ZonelessConfig,
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("EDGE_PREVIEW_HOME", str(home))
    for name in ("EDGE_PREVIEW_API_TOKEN", "EDGE_PREVIEW_EMAIL", "EDGE_PREVIEW_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture()
def script(tmp_path: Path) -> Path:
    path = tmp_path / "worker.js"
    path.write_text("addEventListener('fetch', () => {})\n", encoding="utf-8")
    return path


@pytest.fixture()
def target(script: Path) -> DeployTarget:
    return DeployTarget(account_id="acct1", name="myworker", script_path=script)


@pytest.fixture()
def artifact() -> Artifact:
    return Artifact(filename="worker.js", content=b"addEventListener('fetch', () => {})\n")


@pytest.fixture()
def zoneless() -> ZonelessConfig:
    return ZonelessConfig(account_id="acct1")


@pytest.fixture()
def zoned() -> ZonedConfig:
    return ZonedConfig(
        zone_id="zone-42",
        routes=(Route("example.com/*"), Route("api.example.com/v1/*")),
    )


@pytest.fixture()
def credentials() -> SessionCredentials:
    return SessionCredentials(api_token="secret-token")
