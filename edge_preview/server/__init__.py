"""Local preview server."""

from .app import create_app
from .forward import PreviewForwarder
from .runner import PreviewServer

__all__ = ["PreviewForwarder", "PreviewServer", "create_app"]
