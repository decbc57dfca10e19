"""LED control tool."""

from __future__ import annotations

from typing import Any

from ..adapters.thingsboard import post_shared_attributes
from ..auth import get_auth
from ..schemas import LedControlInput, LedControlOutput
from ..settings import ToolServerSettings
from .common import resolve_entity_id, utc_now_iso


def set_led_state(payload: LedControlInput, settings: ToolServerSettings, _trace_id: str) -> LedControlOutput:
    entity_id = resolve_entity_id(payload.entity_id, settings)
    post_shared_attributes(
        auth=get_auth(),
        entity_id=entity_id,
        attributes={"ledState": payload.led_state},
    )
    return LedControlOutput(
        success=True,
        led_state=payload.led_state,
        entity_id=entity_id,
        message=f"LED successfully {'turned ON' if payload.led_state else 'turned OFF'}",
        timestamp=utc_now_iso(),
    )


def describe(payload: LedControlInput, result: LedControlOutput) -> dict[str, Any]:
    return {
        "entity_id": result.entity_id,
        "action": "turn_on" if result.led_state else "turn_off",
    }
