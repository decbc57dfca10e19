"""LED control provider: switches the device LED."""

from __future__ import annotations

from typing import Any

from iot_tools.tools import LED_CONTROL
from ..prompts import LED_CONTROL_SYSTEM
from ..schemas import LedControlAnalysis
from .base import SpecialistAgent


class LedControlProvider(SpecialistAgent):
    name = "LedControlProvider"
    tool_name = LED_CONTROL
    system_prompt = LED_CONTROL_SYSTEM
    analysis_model = LedControlAnalysis
    decline_message = "Query is not related to LED control"

    def tool_arguments(self, analysis: LedControlAnalysis) -> dict[str, Any] | None:
        if not analysis.needs_led_control or analysis.led_action == "unknown":
            return None
        args: dict[str, Any] = {"led_state": analysis.led_action == "turn_on"}
        if analysis.entity_id:
            args["entity_id"] = analysis.entity_id
        return args

    def success_message(self, data: dict[str, Any]) -> str:
        return f"LED control executed successfully: {'ON' if data.get('led_state') else 'OFF'}"
