"""Produce the script artifact uploaded to a preview session."""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from edge_preview.errors import BuildFailed
from edge_preview.models import Artifact, DeployTarget

logger = logging.getLogger(__name__)


def build_artifact(target: DeployTarget, *, cwd: Path | None = None) -> Artifact:
    """Run the optional build command and load the resulting script."""

    if target.build_command:
        argv = shlex.split(target.build_command)
        logger.info("Running build command: %s", target.build_command)
        try:
            subprocess.run(argv, cwd=cwd, check=True)  # noqa: S603
        except FileNotFoundError as exc:
            raise BuildFailed(f"Build command not found: {argv[0]}") from exc
        except subprocess.CalledProcessError as exc:
            raise BuildFailed(
                f"Build command failed with exit code {exc.returncode}: {target.build_command}"
            ) from exc

    script_path = Path(target.script_path)
    if cwd is not None and not script_path.is_absolute():
        script_path = cwd / script_path
    try:
        content = script_path.read_bytes()
    except OSError as exc:
        raise BuildFailed(f"Could not read script {script_path}: {exc}") from exc
    return Artifact(filename=script_path.name, content=content)


__all__ = ["build_artifact"]
