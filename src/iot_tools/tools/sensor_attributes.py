"""Sensor attributes tool."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from ..adapters.thingsboard import get_attributes
from ..auth import get_auth
from ..schemas import SensorAttribute, SensorAttributesInput, SensorAttributesOutput, SensorSummary
from ..settings import ToolServerSettings
from .common import iso_from_ms, resolve_entity_id, utc_now_iso

# ThingsBoard attribute key -> summary field
SUMMARY_KEYS = {
    "macAddress": "mac_address",
    "localIp": "local_ip",
    "ssid": "ssid",
    "rssi": "rssi",
    "ledState": "led_state",
    "ledMode": "led_mode",
    "active": "active",
}


def latest_by_key(raw: list[dict[str, Any]]) -> list[SensorAttribute]:
    """Keep the newest entry per key, in order of first appearance."""
    latest: dict[str, SensorAttribute] = {}
    for item in raw:
        if not isinstance(item, dict) or "key" not in item:
            continue
        ts = int(item.get("lastUpdateTs") or 0)
        current = latest.get(item["key"])
        if current is None or ts > current.last_update_ts:
            latest[item["key"]] = SensorAttribute(
                key=item["key"],
                value=item.get("value"),
                last_update_ts=ts,
                timestamp=iso_from_ms(ts),
            )
    return list(latest.values())


def build_summary(attributes: list[SensorAttribute]) -> SensorSummary:
    values = {SUMMARY_KEYS[a.key]: a.value for a in attributes if a.key in SUMMARY_KEYS}
    try:
        return SensorSummary.model_validate(values)
    except ValidationError as exc:
        # Drop fields the device reported in an unexpected shape.
        bad = {err["loc"][0] for err in exc.errors() if err["loc"]}
        return SensorSummary.model_validate({k: v for k, v in values.items() if k not in bad})


def get_sensor_attributes(
    payload: SensorAttributesInput, settings: ToolServerSettings, _trace_id: str
) -> SensorAttributesOutput:
    entity_id = resolve_entity_id(payload.entity_id, settings)
    raw = get_attributes(
        auth=get_auth(),
        entity_type=settings.thingsboard_entity_type,
        entity_id=entity_id,
    )
    attributes = latest_by_key(raw)
    return SensorAttributesOutput(
        entity_id=entity_id,
        attributes=attributes,
        attribute_count=len(attributes),
        message=f"Retrieved {len(attributes)} sensor attributes successfully",
        timestamp=utc_now_iso(),
        summary=build_summary(attributes),
        raw_attribute_count=len(raw),
    )


def describe(payload: SensorAttributesInput, result: SensorAttributesOutput) -> dict[str, Any]:
    return {
        "entity_id": result.entity_id,
        "raw_attribute_count": result.raw_attribute_count,
        "unique_attribute_count": result.attribute_count,
    }
