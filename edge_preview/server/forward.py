"""Forward local requests to the previewed script."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from edge_preview.models import PreviewToken
from edge_preview.sdk import PREVIEW_TOKEN_HEADER, ApiResponse, RemoteApiClient

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


def filter_headers(headers: Iterable[tuple[str, str]], *drop: str) -> list[tuple[str, str]]:
    """Drop hop-by-hop headers and ``drop`` names, keeping repeated headers in order."""

    dropped = HOP_BY_HOP_HEADERS.union(name.lower() for name in drop)
    return [(name, value) for name, value in headers if name.lower() not in dropped]


def fold_headers(headers: Iterable[tuple[str, str]]) -> dict[str, str]:
    # urllib sends one value per name, so repeated request headers are joined
    folded: dict[str, tuple[str, str]] = {}
    for name, value in headers:
        key = name.lower()
        if key in folded:
            first, joined = folded[key]
            separator = "; " if key == "cookie" else ", "
            folded[key] = (first, f"{joined}{separator}{value}")
        else:
            folded[key] = (name, value)
    return dict(folded.values())


@dataclass
class PreviewForwarder:
    """Rewrite requests for ``preview_host`` and attach the artifact-scoped token."""

    preview_host: str
    preview_token: PreviewToken
    upstream_scheme: str = "https"
    client: RemoteApiClient = field(
        default_factory=lambda: RemoteApiClient(follow_redirects=False, default_headers=False)
    )

    def upstream_url(self, path: str, query: str = "") -> str:
        url = f"{self.upstream_scheme}://{self.preview_host}{path or '/'}"
        return f"{url}?{query}" if query else url

    def forward(
        self,
        method: str,
        path: str,
        query: str,
        headers: Iterable[tuple[str, str]],
        body: bytes,
    ) -> ApiResponse:
        outgoing = fold_headers(
            filter_headers(headers, "host", "content-length", PREVIEW_TOKEN_HEADER)
        )
        outgoing["Host"] = self.preview_host
        outgoing[PREVIEW_TOKEN_HEADER] = self.preview_token.value
        return self.client.request(
            method,
            self.upstream_url(path, query),
            headers=outgoing,
            body=body or None,
        )


__all__ = ["HOP_BY_HOP_HEADERS", "PreviewForwarder", "filter_headers", "fold_headers"]
