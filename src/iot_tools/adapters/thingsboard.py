"""ThingsBoard REST adapter.

Encapsulates upstream API details and error normalization.
"""

from __future__ import annotations

from typing import Any

import httpx

from . import AdapterError, upstream_error
from ..auth import ThingsBoardAuth

TELEMETRY_PATH = "/api/plugins/telemetry"


def _request(auth: ThingsBoardAuth, method: str, path: str, **kwargs: Any) -> httpx.Response:
    settings = auth.settings
    headers = {
        "accept": "application/json",
        "X-Authorization": f"Bearer {auth.get_access_token()}",
    }
    url = f"{settings.thingsboard_url}{path}"
    try:
        with httpx.Client(timeout=settings.request_timeout_s) as client:
            resp = client.request(method, url, headers=headers, **kwargs)
    except httpx.RequestError as exc:
        raise AdapterError("UPSTREAM_UNAVAILABLE", f"ThingsBoard request failed: {exc}", {"url": url}) from exc

    if resp.status_code == 401:
        # Token revoked or rotated server-side; the next call logs in again.
        auth.clear_token()
    if resp.status_code >= 400:
        raise upstream_error(resp, "ThingsBoard API error")
    return resp


def get_timeseries(
    *,
    auth: ThingsBoardAuth,
    entity_type: str,
    entity_id: str,
    use_strict_data_types: bool,
) -> dict[str, list[dict[str, Any]]]:
    params = {"useStrictDataTypes": str(use_strict_data_types).lower()}
    resp = _request(
        auth,
        "GET",
        f"{TELEMETRY_PATH}/{entity_type}/{entity_id}/values/timeseries",
        params=params,
    )
    data = resp.json()
    if not isinstance(data, dict):
        raise AdapterError("UPSTREAM_ERROR", "Unexpected timeseries payload", {"type": type(data).__name__})
    return data


def get_attributes(*, auth: ThingsBoardAuth, entity_type: str, entity_id: str) -> list[dict[str, Any]]:
    resp = _request(auth, "GET", f"{TELEMETRY_PATH}/{entity_type}/{entity_id}/values/attributes")
    data = resp.json()
    if not isinstance(data, list):
        raise AdapterError("UPSTREAM_ERROR", "Unexpected attributes payload", {"type": type(data).__name__})
    return data


def post_shared_attributes(*, auth: ThingsBoardAuth, entity_id: str, attributes: dict[str, Any]) -> dict:
    resp = _request(auth, "POST", f"{TELEMETRY_PATH}/{entity_id}/SHARED_SCOPE", json=attributes)
    # ThingsBoard answers attribute writes with an empty 200.
    if not resp.content.strip():
        return {}
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"response": body}
