"""Inspector websocket relay."""

from .relay import InspectorRelay, inspector_url

__all__ = ["InspectorRelay", "inspector_url"]
