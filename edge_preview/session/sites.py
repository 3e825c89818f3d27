"""Provisioning of the static-assets namespace backing a site target."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from edge_preview.errors import MalformedResponse, RemoteRejected
from edge_preview.models import DeployTarget
from edge_preview.sdk import API_BASE_URL, ApiResponse, RemoteApiClient

logger = logging.getLogger(__name__)

STATIC_CONTENT_BINDING = "__STATIC_CONTENT"
_TITLE_EXISTS_CODE = 10014


def site_namespace_title(target: DeployTarget, *, preview: bool) -> str:
    title = f"__{target.name}-workers_sites_assets"
    return f"{title}_preview" if preview else title


def ensure_site_namespace(
    client: RemoteApiClient, target: DeployTarget, *, preview: bool = True
) -> DeployTarget:
    """Return ``target`` with its site namespace id, creating the namespace if needed.

    Targets that already carry a namespace id are returned unchanged, so the
    namespace is provisioned at most once per session. Nothing is rolled back
    if a later setup step fails.
    """

    if target.site_namespace_id is not None:
        return target

    title = site_namespace_title(target, preview=preview)
    address = f"{API_BASE_URL}/accounts/{target.account_id}/storage/kv/namespaces"
    response = client.post(address, json_body={"title": title})
    if response.ok:
        namespace_id = _namespace_id(response.json().get("result"), address)
        logger.info("Created site namespace %s (%s)", title, namespace_id)
    elif _title_exists(response):
        namespace_id = _find_namespace(client, address, title)
        logger.info("Reusing site namespace %s (%s)", title, namespace_id)
    else:
        raise RemoteRejected(address, response.status, response.text)
    return replace(target, site_namespace_id=namespace_id)


def _title_exists(response: ApiResponse) -> bool:
    try:
        errors = response.json().get("errors") or []
    except MalformedResponse:
        return False
    return any(isinstance(err, dict) and err.get("code") == _TITLE_EXISTS_CODE for err in errors)


def _find_namespace(client: RemoteApiClient, address: str, title: str) -> str:
    page = 1
    while True:
        listing = client.get(f"{address}?page={page}&per_page=100").raise_for_status().json()
        namespaces = listing.get("result")
        if not isinstance(namespaces, list):
            raise MalformedResponse(f"{address} returned a body without a namespace list")
        for namespace in namespaces:
            if isinstance(namespace, dict) and namespace.get("title") == title:
                return _namespace_id(namespace, address)
        if len(namespaces) < 100:
            raise MalformedResponse(f"Namespace {title!r} reported as existing but was not listed")
        page += 1


def _namespace_id(value: Any, address: str) -> str:
    namespace_id = value.get("id") if isinstance(value, dict) else None
    if not isinstance(namespace_id, str) or not namespace_id:
        raise MalformedResponse(f"{address} did not return a namespace id")
    return namespace_id


__all__ = ["STATIC_CONTENT_BINDING", "ensure_site_namespace", "site_namespace_title"]
