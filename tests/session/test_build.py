from __future__ import annotations

import shlex
import sys
from dataclasses import replace
from pathlib import Path

import pytest

from edge_preview.errors import BuildFailed
from edge_preview.models import DeployTarget
from edge_preview.session.build import build_artifact


def test_reads_script(target: DeployTarget) -> None:
    artifact = build_artifact(target)
    assert artifact.filename == "worker.js"
    assert artifact.content.startswith(b"addEventListener")


def test_runs_build_command_before_reading(tmp_path: Path) -> None:
    output = tmp_path / "dist" / "out.js"
    code = (
        f"import pathlib; p = pathlib.Path({str(output)!r}); "
        "p.parent.mkdir(); p.write_text('built')"
    )
    target = DeployTarget(
        account_id="acct1",
        name="myworker",
        script_path=output,
        build_command=shlex.join([sys.executable, "-c", code]),
    )
    artifact = build_artifact(target)
    assert artifact.content == b"built"
    assert artifact.filename == "out.js"


def test_relative_script_resolves_against_cwd(tmp_path: Path) -> None:
    (tmp_path / "index.js").write_text("x", encoding="utf-8")
    target = DeployTarget(account_id="a", name="n", script_path=Path("index.js"))
    assert build_artifact(target, cwd=tmp_path).content == b"x"


def test_failing_build_command(target: DeployTarget) -> None:
    command = shlex.join([sys.executable, "-c", "raise SystemExit(3)"])
    failing = replace(target, build_command=command)
    with pytest.raises(BuildFailed, match="exit code 3"):
        build_artifact(failing)


def test_unknown_build_command(target: DeployTarget) -> None:
    with pytest.raises(BuildFailed, match="not found"):
        build_artifact(replace(target, build_command="definitely-not-a-real-binary-xyz"))


def test_missing_script(tmp_path: Path) -> None:
    target = DeployTarget(account_id="a", name="n", script_path=tmp_path / "missing.js")
    with pytest.raises(BuildFailed):
        build_artifact(target)
