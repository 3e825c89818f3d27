"""HTTP client powered by urllib for the control plane and preview hosts."""

from __future__ import annotations

import json
import ssl
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, cast
from urllib import error, request

from edge_preview import __version__
from edge_preview.errors import MalformedResponse, RemoteRejected, RemoteUnavailable
from edge_preview.models import SessionCredentials

API_BASE_URL = "https://api.cloudflare.com/client/v4"
PREVIEW_TOKEN_HEADER = "cf-workers-preview-token"


@dataclass
class ApiResponse:
    """Status, headers and raw body of a finished request."""

    url: str
    status: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        return next((value for key, value in self.headers if key.lower() == wanted), None)

    def header_list(self, name: str) -> list[str]:
        wanted = name.lower()
        return [value for key, value in self.headers if key.lower() == wanted]

    def json(self) -> dict[str, Any]:
        try:
            data = json.loads(self.body.decode() or "null")
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedResponse(f"{self.url} did not return JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise MalformedResponse(f"{self.url} returned a non-object JSON body")
        return cast(dict[str, Any], data)

    def raise_for_status(self) -> ApiResponse:
        if not self.ok:
            raise RemoteRejected(self.url, self.status, self.text)
        return self


class _NoRedirect(request.HTTPRedirectHandler):
    def redirect_request(self, *args: Any, **kwargs: Any) -> None:
        return None


class RemoteApiClient:
    """Minimal HTTP client that attaches session credentials to every request.

    Non-success statuses are returned as :class:`ApiResponse` values rather than
    raised, so each caller decides how a rejection is reported.
    """

    def __init__(
        self,
        credentials: SessionCredentials | None = None,
        *,
        verify_tls: bool = True,
        timeout: float = 30.0,
        follow_redirects: bool = True,
        default_headers: bool = True,
    ) -> None:
        self._credentials = credentials
        self._default_headers = default_headers
        self._timeout = timeout
        handlers: list[request.BaseHandler] = []
        if not verify_tls:
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            handlers.append(request.HTTPSHandler(context=context))
        if not follow_redirects:
            handlers.append(_NoRedirect())
        self._opener = request.build_opener(*handlers)

    def close(self) -> None:  # pragma: no cover - kept for API symmetry
        return None

    def get(self, url: str, *, headers: Mapping[str, str] | None = None) -> ApiResponse:
        return self.request("GET", url, headers=headers)

    def post(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> ApiResponse:
        return self.request("POST", url, headers=headers, body=body, json_body=json_body)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> ApiResponse:
        merged: dict[str, str] = {}
        if self._default_headers:
            merged["User-Agent"] = f"edge-preview/{__version__}"
            merged["Accept"] = "application/json"
        if self._credentials is not None:
            merged.update(self._credentials.to_headers())
        if json_body is not None:
            body = json.dumps(json_body).encode()
            merged["Content-Type"] = "application/json"
        merged.update(headers or {})
        req = request.Request(url, data=body, headers=merged, method=method)
        try:
            with self._opener.open(req, timeout=self._timeout) as resp:
                return ApiResponse(
                    url=url,
                    status=resp.status,
                    headers=list(resp.headers.items()),
                    body=resp.read(),
                )
        except error.HTTPError as exc:
            with exc:
                return ApiResponse(
                    url=url,
                    status=exc.code,
                    headers=list(exc.headers.items()) if exc.headers else [],
                    body=exc.read(),
                )
        except error.URLError as exc:
            raise RemoteUnavailable(f"Could not reach {url}: {exc.reason}") from exc
