"""Tool registry for the ThingsBoard tool server."""

from __future__ import annotations

from typing import Callable

from ..schemas import (
    LedControlInput,
    LedControlOutput,
    SensorAttributesInput,
    SensorAttributesOutput,
    TemperatureInput,
    TemperatureOutput,
    ToolSpec,
)
from . import led_control, sensor_attributes, temperature

ToolHandler = Callable[[object, object, str], object]

TEMPERATURE = "get_temperature"
LED_CONTROL = "led_control"
SENSOR_ATTRIBUTES = "sensor_attributes"

TOOL_SPECS: dict[str, ToolSpec] = {
    TEMPERATURE: ToolSpec(
        name=TEMPERATURE,
        description="Read the latest temperature telemetry of an IoT device.",
        input_model=TemperatureInput,
        output_model=TemperatureOutput,
        describe=temperature.describe,
    ),
    LED_CONTROL: ToolSpec(
        name=LED_CONTROL,
        description="Turn the device LED on or off via a shared attribute.",
        input_model=LedControlInput,
        output_model=LedControlOutput,
        describe=led_control.describe,
    ),
    SENSOR_ATTRIBUTES: ToolSpec(
        name=SENSOR_ATTRIBUTES,
        description="Fetch device attributes (network, LED, activity status).",
        input_model=SensorAttributesInput,
        output_model=SensorAttributesOutput,
        describe=sensor_attributes.describe,
    ),
}

TOOL_HANDLERS: dict[str, ToolHandler] = {
    TEMPERATURE: temperature.get_temperature,
    LED_CONTROL: led_control.set_led_state,
    SENSOR_ATTRIBUTES: sensor_attributes.get_sensor_attributes,
}


def get_tool_spec(name: str) -> ToolSpec | None:
    return TOOL_SPECS.get(name)


def get_tool_handler(name: str) -> ToolHandler | None:
    return TOOL_HANDLERS.get(name)


def list_tool_specs() -> list[ToolSpec]:
    return list(TOOL_SPECS.values())
