from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from edge_preview.cli import main as cli_main
from edge_preview.config import config_path, load_user_config
from edge_preview.errors import TaskFailure, TaskSource
from edge_preview.models import ZonedConfig, ZonelessConfig


@pytest.fixture()
def recorded_runs(monkeypatch: pytest.MonkeyPatch) -> list[tuple]:
    calls: list[tuple] = []

    async def fake_run(target, config, credentials, server_config):
        calls.append((target, config, credentials, server_config))

    monkeypatch.setattr(cli_main.orchestrator, "run", fake_run)
    return calls


def test_dev_zoneless(recorded_runs: list[tuple], script: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli_main.app,
        [
            "--api-token",
            "tok",
            "dev",
            "--account-id",
            "acct1",
            "--name",
            "myworker",
            "--script",
            str(script),
            "--port",
            "9000",
        ],
    )
    assert result.exit_code == 0, result.output
    target, config, credentials, server_config = recorded_runs[0]
    assert target.account_id == "acct1"
    assert target.name == "myworker"
    assert target.site is None
    assert config == ZonelessConfig(account_id="acct1")
    assert credentials.api_token == "tok"
    assert server_config.listen_port == 9000
    assert server_config.upstream_scheme == "https"


def test_dev_zoned_keeps_route_order(
    recorded_runs: list[tuple], script: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("EDGE_PREVIEW_API_TOKEN", "env-token")
    runner = CliRunner()
    result = runner.invoke(
        cli_main.app,
        [
            "dev",
            "--account-id",
            "acct1",
            "--name",
            "myworker",
            "--script",
            str(script),
            "--zone-id",
            "zone-42",
            "--route",
            "b.example.com/*",
            "--route",
            "a.example.com/*",
            "--host",
            "b.example.com",
            "--site-bucket",
            str(script.parent),
        ],
    )
    assert result.exit_code == 0, result.output
    target, config, credentials, server_config = recorded_runs[0]
    assert isinstance(config, ZonedConfig)
    assert [route.pattern for route in config.routes] == ["b.example.com/*", "a.example.com/*"]
    assert credentials.api_token == "env-token"
    assert server_config.host == "b.example.com"
    assert target.site is not None


def test_dev_rejects_zone_without_routes(recorded_runs: list[tuple], script: Path) -> None:
    result = CliRunner().invoke(
        cli_main.app,
        [
            "--api-token",
            "tok",
            "dev",
            "--account-id",
            "a",
            "--name",
            "n",
            "--script",
            str(script),
            "--zone-id",
            "z",
        ],
    )
    assert result.exit_code == 2
    assert "--route" in result.output
    assert recorded_runs == []


def test_dev_rejects_zone_without_host(recorded_runs: list[tuple], script: Path) -> None:
    result = CliRunner().invoke(
        cli_main.app,
        [
            "--api-token",
            "tok",
            "dev",
            "--account-id",
            "a",
            "--name",
            "n",
            "--script",
            str(script),
            "--zone-id",
            "z",
            "--route",
            "example.com/*",
        ],
    )
    assert result.exit_code == 2
    assert "--host" in result.output
    assert recorded_runs == []


def test_dev_requires_credentials(
recorded_runs: list[tuple], script: Path) -> None:
    result = CliRunner().invoke(
        cli_main.app,
        ["dev", "--account-id", "a", "--name", "n", "--script", str(script)],
    )
    assert result.exit_code == 2
    assert "No credentials configured" in result.output
    assert recorded_runs == []


def test_dev_reports_session_failure(monkeypatch: pytest.MonkeyPatch, script: Path) -> None:
    async def failing_run(*_args, **_kwargs):
        raise TaskFailure(TaskSource.INSPECTOR, ConnectionError("closed"))

    monkeypatch.setattr(cli_main.orchestrator, "run", failing_run)
    result = CliRunner().invoke(
        cli_main.app,
        ["--api-token", "t", "dev", "--account-id", "a", "--name", "n", "--script", str(script)],
    )
    assert result.exit_code == 1
    assert "inspector task failed: closed" in result.output


def test_configure_persists_credentials() -> None:
    result = CliRunner().invoke(
        cli_main.app, ["configure", "--email", "me@example.com", "--api-key", "k"]
    )
    assert result.exit_code == 0, result.output
    assert str(config_path()) in result.output
    config = load_user_config()
    assert config.email == "me@example.com"
    assert config.api_key == "k"
    assert config.api_token is None


def test_configure_requires_material() -> None:
    result = CliRunner().invoke(cli_main.app, ["configure", "--email", "me@example.com"])
    assert result.exit_code == 2


def test_configure_rejects_half_pair() -> None:
    result = CliRunner().invoke(
        cli_main.app, ["configure", "--api-token", "tok", "--api-key", "k"]
    )
    assert result.exit_code == 2
    assert "together" in result.output
    assert not config_path().exists()


def test_dev_reports_broken_config(
    recorded_runs: list[tuple], script: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("EDGE_PREVIEW_EMAIL", "me@example.com")
    result = CliRunner().invoke(
        cli_main.app,
        ["dev", "--account-id", "a", "--name", "n", "--script", str(script)],
    )
    assert result.exit_code == 1
    assert "api_key is not set" in result.output
    assert recorded_runs == []
