"""Click-based CLI for running edge preview sessions."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import click

from edge_preview.config import UserConfig, load_user_config, save_user_config
from edge_preview.errors import ConfigurationError, PreviewError
from edge_preview.models import (
    DeployConfig,
    DeployTarget,
    Route,
    ServerConfig,
    SiteConfig,
    ZonedConfig,
    ZonelessConfig,
)
from edge_preview.session import orchestrator


@dataclass
class CLIState:
    api_token: str | None = None

    def ensure_credentials(self) -> UserConfig:
        try:
            settings = load_user_config().merged(api_token=self.api_token)
        except ConfigurationError as exc:
            raise click.ClickException(str(exc)) from exc
        if not settings.credentials().is_complete:
            message = (
                "No credentials configured. Set EDGE_PREVIEW_API_TOKEN or run "
                "'edge-preview configure'."
            )
            raise click.UsageError(message)
        return settings


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _deploy_config(account_id: str, zone_id: str | None, routes: Iterable[str]) -> DeployConfig:
    patterns = [route.strip() for route in routes if route.strip()]
    if zone_id:
        if not patterns:
            raise click.BadParameter(
                "Zoned previews need at least one --route.", param_hint="--route"
            )
        return ZonedConfig(zone_id=zone_id, routes=tuple(Route(pattern) for pattern in patterns))
    if patterns:
        raise click.BadParameter("--route requires --zone-id.", param_hint="--route")
    return ZonelessConfig(account_id=account_id)


@click.group()
@click.option("--api-token", help="Override the API token for this invocation.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def app(ctx: click.Context, api_token: str | None, verbose: bool) -> None:
    """Preview worker scripts against the edge."""

    _configure_logging(verbose)
    ctx.obj = CLIState(api_token=api_token)


@app.command()
@click.option("--api-token", help="Scoped API token.")
@click.option("--email", help="Account email, used with --api-key.")
@click.option("--api-key", help="Global API key, used with --email.")
def configure(api_token: str | None, email: str | None, api_key: str | None) -> None:
    """Persist credentials under ~/.edge-preview/config.toml."""

    if bool(email) != bool(api_key):
        raise click.UsageError("--email and --api-key must be given together.")
    if not api_token and not email:
        raise click.UsageError("Provide --api-token, or both --email and --api-key.")
    path = save_user_config(UserConfig(api_token=api_token, email=email, api_key=api_key))
    click.echo(f"Saved configuration to {path}.")


@app.command()
@click.option("--account-id", required=True, help="Account that owns the script.")
@click.option("--name", required=True, help="Script name.")
@click.option(
    "--script",
    "script_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Built script uploaded to the preview session.",
)
@click.option("--build-command", help="Command run before the script is read.")
@click.option("--zone-id", help="Preview on a zone instead of workers.dev.")
@click.option("--route", "routes", multiple=True, help="Route pattern for zoned previews.")
@click.option(
    "--site-bucket",
    type=click.Path(file_okay=False, path_type=Path),
    help="Static assets directory served through the site namespace.",
)
@click.option("--host", help="Host preview requests are addressed to.")
@click.option("--ip", "listen_host", default="127.0.0.1", show_default=True)
@click.option("--port", "listen_port", default=8787, show_default=True, type=int)
@click.option(
    "--upstream-protocol",
    type=click.Choice(["https", "http"], case_sensitive=False),
    default="https",
    show_default=True,
)
@click.pass_obj
def dev(
    state: CLIState,
    account_id: str,
    name: str,
    script_path: Path,
    build_command: str | None,
    zone_id: str | None,
    routes: Iterable[str],
    site_bucket: Path | None,
    host: str | None,
    listen_host: str,
    listen_port: int,
    upstream_protocol: str,
) -> None:
    """Start a preview session with a local server and inspector relay."""

    settings = state.ensure_credentials()
    target = DeployTarget(
        account_id=account_id,
        name=name,
        script_path=script_path,
        build_command=build_command,
        site=SiteConfig(bucket=site_bucket) if site_bucket else None,
    )
    deploy_config = _deploy_config(account_id, zone_id, routes)
    if zone_id and not host:
        raise click.BadParameter("Zoned previews need --host.", param_hint="--host")
    server_config = ServerConfig(
        host=host,
        listen_host=listen_host,
        listen_port=listen_port,
        upstream_scheme=upstream_protocol.lower(),
    )
    try:
        asyncio.run(
            orchestrator.run(target, deploy_config, settings.credentials(), server_config)
        )
    except PreviewError as exc:
        raise click.ClickException(str(exc)) from exc
    except KeyboardInterrupt:
        click.echo("Preview session stopped.")


def main() -> None:
    """Entry point for console_scripts."""

    app(standalone_mode=True)
