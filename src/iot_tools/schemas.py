"""Shared tool schemas (single source of truth).

Chat server and tool server both import these models to avoid drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, Field, StrictBool


class ToolError(BaseModel):
    """Normalized error payload returned by tools."""
    code: str
    message: str
    details: dict[str, Any] | None = None


class ToolMeta(BaseModel):
    """Metadata attached to tool responses for observability."""
    tool_name: str
    trace_id: str
    latency_ms: int | None = None
    source: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class ToolResponse(BaseModel):
    """Unified response wrapper for all tools."""
    ok: bool
    data: Any | None = None
    error: ToolError | None = None
    meta: ToolMeta


class TemperatureInput(BaseModel):
    """Input for the temperature tool."""
    entity_id: str | None = Field(default=None, description="Device id; default device when omitted")
    keys: str = Field(
        default="temperature",
        description="Comma-separated temperature telemetry keys to try first",
    )
    use_strict_data_types: bool = Field(default=False, description="Ask ThingsBoard for typed values")

    def preferred_keys(self) -> list[str]:
        return [key.strip() for key in self.keys.split(",") if key.strip()]


class TemperatureOutput(BaseModel):
    """Output for the temperature tool."""
    temperature: str
    unit: str = "°C"
    source: str
    sensor_id: str
    message: str
    timestamp: str
    all_sensor_data: dict[str, dict[str, Any]] = Field(default_factory=dict)


class LedControlInput(BaseModel):
    """Input for the LED control tool."""
    entity_id: str | None = Field(default=None, description="Device id; default device when omitted")
    led_state: StrictBool = Field(..., description="true to turn the LED on, false to turn it off")


class LedControlOutput(BaseModel):
    """Output for the LED control tool."""
    success: bool
    led_state: bool
    entity_id: str
    message: str
    timestamp: str


class SensorAttributesInput(BaseModel):
    """Input for the sensor attributes tool."""
    entity_id: str | None = Field(default=None, description="Device id; default device when omitted")


class SensorAttribute(BaseModel):
    key: str
    value: Any = None
    last_update_ts: int
    timestamp: str


class SensorSummary(BaseModel):
    """Well-known device attributes pulled out of the full list."""
    mac_address: str | None = None
    local_ip: str | None = None
    ssid: str | None = None
    rssi: float | None = None
    led_state: bool | None = None
    led_mode: int | None = None
    active: bool | None = None


class SensorAttributesOutput(BaseModel):
    """Output for the sensor attributes tool."""
    entity_id: str
    attributes: list[SensorAttribute]
    attribute_count: int
    message: str
    timestamp: str
    summary: SensorSummary
    raw_attribute_count: int


@dataclass(frozen=True)
class ToolSpec:
    """Tool registry metadata used by chat server/tool server."""
    name: str
    description: str
    input_model: type[BaseModel]
    output_model: type[BaseModel]
    describe: Callable[[Any, Any], dict[str, Any]] | None = None

    def details(self, payload: BaseModel, result: BaseModel) -> dict[str, Any]:
        return self.describe(payload, result) if self.describe else {}
