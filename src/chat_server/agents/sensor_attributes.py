"""Sensor attributes provider: fetches device status and configuration."""

from __future__ import annotations

from typing import Any

from iot_tools.tools import SENSOR_ATTRIBUTES
from ..prompts import SENSOR_ATTRIBUTES_SYSTEM
from ..schemas import SensorAttributesAnalysis
from .base import SpecialistAgent


class SensorAttributesProvider(SpecialistAgent):
    name = "SensorAttributesProvider"
    tool_name = SENSOR_ATTRIBUTES
    system_prompt = SENSOR_ATTRIBUTES_SYSTEM
    analysis_model = SensorAttributesAnalysis
    decline_message = "Query is not related to sensor attributes"

    def tool_arguments(self, analysis: SensorAttributesAnalysis) -> dict[str, Any] | None:
        if not analysis.needs_sensor_attributes:
            return None
        return {"entity_id": analysis.entity_id} if analysis.entity_id else {}

    def success_message(self, data: dict[str, Any]) -> str:
        return f"Sensor attributes retrieved successfully: {data.get('attribute_count', 0)} attributes found"
