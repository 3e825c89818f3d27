"""Preview session handshake: registration, token exchange and script upload."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit

from edge_preview.errors import InvalidExchangeUrl, MalformedResponse, MissingToken
from edge_preview.models import (
    Artifact,
    AssetManifest,
    DeployConfig,
    DeployTarget,
    ExchangeHandle,
    PreviewToken,
    TokenGeneration,
    UploadResult,
    ZonedConfig,
)
from edge_preview.sdk import (
    API_BASE_URL,
    PREVIEW_TOKEN_HEADER,
    FormPart,
    MultipartForm,
    RemoteApiClient,
)
from edge_preview.session.sites import STATIC_CONTENT_BINDING, ensure_site_namespace

logger = logging.getLogger(__name__)

SESSION_CONFIG_PART = "wrangler-session-config"
MANIFEST_BINDING = "__STATIC_CONTENT_MANIFEST"


def get_initialize_address(config: DeployConfig) -> str:
    if isinstance(config, ZonedConfig):
        return f"{API_BASE_URL}/zones/{config.zone_id}/workers/edge-preview"
    return f"{API_BASE_URL}/accounts/{config.account_id}/workers/subdomain/edge-preview"


def get_upload_address(target: DeployTarget) -> str:
    return f"{API_BASE_URL}/accounts/{target.account_id}/workers/scripts/{target.name}/edge-preview"


def get_session_config(config: DeployConfig) -> dict[str, Any]:
    """Return the session scope sent with the upload.

    Zoned sessions list their route patterns in declaration order; zoneless
    sessions only flag the workers.dev subdomain.
    """

    if isinstance(config, ZonedConfig):
        return {"routes": [route.pattern for route in config.routes]}
    return {"workers_dev": True}


def init(client: RemoteApiClient, config: DeployConfig) -> ExchangeHandle:
    """Register a preview session and return its exchange handle."""

    address = get_initialize_address(config)
    logger.debug("session.init", extra={"address": address})
    payload = client.get(address).raise_for_status().json()
    result = _result_object(payload, address)
    exchange_url = result.get("exchange_url")
    ws_token = result.get("token")
    if not isinstance(exchange_url, str) or not isinstance(ws_token, str):
        raise MalformedResponse(f"{address} did not return an exchange_url and token")
    try:
        host = urlsplit(exchange_url).hostname
    except ValueError:
        host = None
    if not host:
        raise InvalidExchangeUrl(
            f"Exchange URL {exchange_url!r} has no host; the preview service returned an "
            "unusable session, please report this issue."
        )
    return ExchangeHandle(ws_token=ws_token, exchange_host=host)


def exchange(client: RemoteApiClient, handle: ExchangeHandle) -> PreviewToken:
    """Trade the exchange host for the first preview token of the session."""

    address = f"https://{handle.exchange_host}"
    logger.debug("session.exchange", extra={"address": address})
    response = client.get(address).raise_for_status()
    value = response.header(PREVIEW_TOKEN_HEADER)
    if not value:
        raise MissingToken("Could not get token to initialize preview session")
    return PreviewToken(value=value, generation=TokenGeneration.EXCHANGE)


def build_upload_form(
    target: DeployTarget,
    artifact: Artifact,
    manifest: AssetManifest | None,
    session_config: dict[str, Any],
) -> MultipartForm:
    bindings: list[dict[str, str]] = []
    if target.site_namespace_id is not None:
        bindings.append(
            {
                "type": "kv_namespace",
                "name": STATIC_CONTENT_BINDING,
                "namespace_id": target.site_namespace_id,
            }
        )
    if manifest is not None:
        bindings.append({"type": "text_blob", "name": MANIFEST_BINDING, "part": MANIFEST_BINDING})

    form = MultipartForm()
    form.add(FormPart.json("metadata", {"body_part": "script", "bindings": bindings}))
    form.add(
        FormPart(
            name="script",
            content=artifact.content,
            content_type=artifact.content_type,
            filename=artifact.filename,
        )
    )
    if manifest is not None:
        form.add(FormPart.json(MANIFEST_BINDING, manifest.to_payload(), filename=MANIFEST_BINDING))
    form.add(FormPart.json(SESSION_CONFIG_PART, session_config, filename=""))
    return form


def upload(
    client: RemoteApiClient,
    target: DeployTarget,
    artifact: Artifact,
    manifest: AssetManifest | None,
    config: DeployConfig,
    current_token: PreviewToken,
) -> UploadResult:
    """Upload the script under ``current_token`` and return its own preview token."""

    if target.site is not None:
        target = ensure_site_namespace(client, target, preview=True)

    address = get_upload_address(target)
    form = build_upload_form(target, artifact, manifest, get_session_config(config))
    logger.debug("session.upload", extra={"address": address, "parts": form.names()})
    response = client.post(
        address,
        headers={
            PREVIEW_TOKEN_HEADER: current_token.value,
            "Content-Type": form.content_type,
        },
        body=form.encode(),
    ).raise_for_status()
    result = _result_object(response.json(), address)
    value = result.get("preview_token")
    if not isinstance(value, str) or not value:
        raise MalformedResponse(f"{address} did not return a preview_token")
    return UploadResult(
        preview_token=PreviewToken(value=value, generation=TokenGeneration.ARTIFACT),
        target=target,
    )


def _result_object(payload: dict[str, Any], address: str) -> dict[str, Any]:
    result = payload.get("result")
    if not isinstance(result, dict):
        raise MalformedResponse(f"{address} returned a body without a result object")
    return result


__all__ = [
    "PREVIEW_TOKEN_HEADER",
    "build_upload_form",
    "exchange",
    "get_initialize_address",
    "get_session_config",
    "get_upload_address",
    "init",
    "upload",
]
