"""Temperature tool."""

from __future__ import annotations

import math
from typing import Any

from ..adapters.thingsboard import get_timeseries
from ..auth import get_auth
from ..schemas import TemperatureInput, TemperatureOutput
from ..settings import ToolServerSettings
from .common import iso_from_ms, resolve_entity_id, utc_now_iso

NO_DATA = "No data"


def latest_sample(series: Any) -> dict[str, Any] | None:
    """Pick the highest-ts sample of a timeseries list."""
    if not isinstance(series, list):
        return None
    samples = [s for s in series if isinstance(s, dict) and "ts" in s]
    if not samples:
        return None
    return max(samples, key=lambda s: s["ts"])


def _as_float(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _is_temperature_key(key: str) -> bool:
    return "temp" in key.lower()


def pick_temperature(
    data: dict[str, Any], preferred: list[str]
) -> tuple[str, float, dict[str, Any]] | None:
    """Find the temperature reading among *temp* keys, preferred ones first."""
    candidates = [key for key in preferred if key in data and _is_temperature_key(key)]
    candidates += [key for key in data if _is_temperature_key(key) and key not in candidates]
    for key in candidates:
        sample = latest_sample(data[key])
        if sample is None:
            continue
        value = _as_float(sample.get("value"))
        if value is not None:
            return key, value, sample
    return None


def get_temperature(payload: TemperatureInput, settings: ToolServerSettings, _trace_id: str) -> TemperatureOutput:
    entity_id = resolve_entity_id(payload.entity_id, settings)
    data = get_timeseries(
        auth=get_auth(),
        entity_type=settings.thingsboard_entity_type,
        entity_id=entity_id,
        use_strict_data_types=payload.use_strict_data_types,
    )

    all_sensor_data: dict[str, dict[str, Any]] = {}
    for key, series in data.items():
        sample = latest_sample(series)
        if sample is not None:
            all_sensor_data[key] = {
                "value": sample.get("value"),
                "timestamp": iso_from_ms(sample["ts"]),
                "raw_timestamp": sample["ts"],
            }

    found = pick_temperature(data, payload.preferred_keys())
    if found is None:
        return TemperatureOutput(
            temperature=NO_DATA,
            source="none",
            sensor_id=entity_id,
            message="No temperature data found in response",
            timestamp=utc_now_iso(),
            all_sensor_data=all_sensor_data,
        )

    key, value, sample = found
    timestamp = iso_from_ms(sample["ts"])
    return TemperatureOutput(
        temperature=f"{value:.2f}",
        source=key,
        sensor_id=entity_id,
        message=f"Latest temperature: {value:.2f}°C from {key} at {timestamp}",
        timestamp=timestamp,
        all_sensor_data=all_sensor_data,
    )


def describe(payload: TemperatureInput, result: TemperatureOutput) -> dict[str, Any]:
    return {
        "entity_id": result.sensor_id,
        "data_keys_found": list(result.all_sensor_data),
        "sensor_data_count": len(result.all_sensor_data),
    }
