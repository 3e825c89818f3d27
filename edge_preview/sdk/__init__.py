"""Exported HTTP primitives used by the session setup steps."""

from .client import API_BASE_URL, PREVIEW_TOKEN_HEADER, ApiResponse, RemoteApiClient
from .multipart import FormPart, MultipartForm

__all__ = [
    "API_BASE_URL",
    "ApiResponse",
    "FormPart",
    "MultipartForm",
    "PREVIEW_TOKEN_HEADER",
    "RemoteApiClient",
]
