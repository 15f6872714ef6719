"""Upload to a WordPress site through the custom ``ingro/v1/upload`` REST route.

Authentication uses a WordPress Application Password over HTTP basic auth.
"""
from __future__ import annotations

import re
from typing import Any, Dict

import httpx

from catalog_sync.config import Config
from catalog_sync.errors import DeliveryError
from catalog_sync.json_logger import JsonLogger, log_event

UPLOAD_TIMEOUT_S = 60.0


def upload_url(config: Config) -> str:
    endpoint = config.wp_upload_endpoint
    if not endpoint.startswith("/"):
        endpoint = f"/{endpoint}"
    return f"{config.wp_base_url}{endpoint}"


def _auth(config: Config) -> httpx.BasicAuth:
    # Application passwords are displayed in space-separated groups.
    return httpx.BasicAuth(config.wp_user, re.sub(r"\s", "", config.wp_app_pass))


async def upload_to_wordpress(
    buffer: bytes,
    filename: str,
    *,
    config: Config,
    logger: JsonLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Dict[str, Any]:
    files = {"file": (filename, buffer, "text/csv")}
    data = {"filename": filename}

    async with httpx.AsyncClient(timeout=UPLOAD_TIMEOUT_S, transport=transport) as client:
        try:
            response = await client.post(upload_url(config), files=files, data=data, auth=_auth(config))
        except httpx.HTTPError as exc:
            raise DeliveryError(f"WordPress upload failed: {exc}") from exc

    if response.status_code >= 400:
        raise DeliveryError(f"WordPress API error {response.status_code}: {response.text}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise DeliveryError(f"WordPress upload returned non-JSON body: {response.text[:200]}") from exc

    if not isinstance(payload, dict) or not payload.get("ok"):
        raise DeliveryError(f"WordPress upload failed: {payload!r}")

    log_event(
        logger=logger,
        phase="delivery",
        message="WordPress upload successful",
        target="wp",
        path=payload.get("path"),
        bytes=payload.get("size"),
    )
    return payload
