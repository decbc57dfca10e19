"""Temperature provider: reads sensor telemetry."""

from __future__ import annotations

from typing import Any

from iot_tools.tools import TEMPERATURE
from ..prompts import TEMPERATURE_SYSTEM
from ..schemas import TemperatureAnalysis
from .base import SpecialistAgent


class TemperatureProvider(SpecialistAgent):
    name = "TemperatureProvider"
    tool_name = TEMPERATURE
    system_prompt = TEMPERATURE_SYSTEM
    analysis_model = TemperatureAnalysis
    decline_message = "Query is not related to IoT sensor data"

    def tool_arguments(self, analysis: TemperatureAnalysis) -> dict[str, Any] | None:
        if not analysis.needs_iot_data:
            return None
        args: dict[str, Any] = {"keys": analysis.keys or "temperature"}
        if analysis.entity_id:
            args["entity_id"] = analysis.entity_id
        if analysis.use_strict_data_types is not None:
            args["use_strict_data_types"] = analysis.use_strict_data_types
        return args

    def success_message(self, data: dict[str, Any]) -> str:
        return "IoT sensor data retrieved successfully"
