"""Preview session setup steps and supervision."""

from .build import build_artifact
from .orchestrator import check_preview_host, prepare, resolve_preview_host, run, supervise
from .setup import exchange, get_session_config, init, upload
from .sites import ensure_site_namespace

__all__ = [
    "build_artifact",
    "check_preview_host",
    "ensure_site_namespace",
    "exchange",
    "get_session_config",
    "init",
    "prepare",
    "resolve_preview_host",
    "run",
    "supervise",
    "upload",
]
