"""User credential settings shared by the CLI and the session runner."""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path

from edge_preview.errors import ConfigurationError
from edge_preview.models import SessionCredentials

_CONFIG_FILENAME = "config.toml"
_ENV_HOME = "EDGE_PREVIEW_HOME"

# Each persisted credential field and the environment variable that overrides it.
ENV_OVERRIDES = {
    "api_token": "EDGE_PREVIEW_API_TOKEN",
    "email": "EDGE_PREVIEW_EMAIL",
    "api_key": "EDGE_PREVIEW_API_KEY",
}


@dataclass(slots=True)
class UserConfig:
    """Credentials from the config file, possibly overridden per invocation.

    Either an API token or the email/global key pair authenticates a session;
    the email and key are only meaningful together.
    """

    api_token: str | None = None
    email: str | None = None
    api_key: str | None = None

    def merged(self, **overrides: str | None) -> UserConfig:
        """Return a copy where every non-empty override replaces the stored value."""

        return replace(self, **{name: value for name, value in overrides.items() if value})

    def validate(self) -> UserConfig:
        if bool(self.email) != bool(self.api_key):
            missing = "api_key" if self.email else "email"
            raise ConfigurationError(
                f"Credentials need both email and api_key; {missing} is not set."
            )
        return self

    def credentials(self) -> SessionCredentials:
        return SessionCredentials(api_token=self.api_token, email=self.email, api_key=self.api_key)


def config_path() -> Path:
    """Return the path to the persisted user configuration."""

    custom = os.environ.get(_ENV_HOME)
    home = Path(custom) if custom else Path.home() / ".edge-preview"
    return home / _CONFIG_FILENAME


def _read_config_file(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"{path} is not valid TOML: {exc}") from exc
    values: dict[str, str] = {}
    for item in fields(UserConfig):
        value = data.get(item.name)
        if value is None or value == "":
            continue
        if not isinstance(value, str):
            raise ConfigurationError(f"{path}: {item.name} must be a string")
        values[item.name] = value
    return values


def load_user_config() -> UserConfig:
    """Read the config file, apply environment overrides and check the credential pair."""

    stored = UserConfig(**_read_config_file(config_path()))
    overrides = {name: os.environ.get(variable) for name, variable in ENV_OVERRIDES.items()}
    return stored.merged(**overrides).validate()


def save_user_config(config: UserConfig) -> Path:
    """Write the non-empty credentials to the config file, readable by the owner only."""

    config.validate()
    path = config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = []
    for item in fields(config):
        value = getattr(config, item.name)
        if value:
            lines.append(f"{item.name} = {json.dumps(value)}\n")
    path.write_text("".join(lines), encoding="utf-8")
    path.chmod(0o600)
    return path
