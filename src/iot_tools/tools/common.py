"""Helpers shared by the ThingsBoard tools."""

from __future__ import annotations

from datetime import datetime, timezone

from ..adapters import AdapterError
from ..settings import ToolServerSettings


def resolve_entity_id(entity_id: str | None, settings: ToolServerSettings) -> str:
    target = (entity_id or "").strip() or settings.thingsboard_default_entity_id
    if not target:
        raise AdapterError(
            "MISSING_ENTITY_ID",
            "Entity ID is required and no default entity ID configured",
        )
    return target


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def iso_from_ms(ts: int | float) -> str:
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc).isoformat().replace("+00:00", "Z")
