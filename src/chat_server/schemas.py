"""Structured outputs the hosted model is asked to fill in."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Intent = Literal["iot_sensor_query", "led_control", "sensor_attributes", "general_chat", "other"]


class IntentAnalysis(BaseModel):
    intent: Intent = Field(..., description="The type of user intent")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence in the intent classification")
    needs_iot_data: bool = Field(default=False, description="Whether this query requires IoT sensor data")
    needs_led_control: bool = Field(
        default=False, description="Whether this query requires LED control (turn on/off)"
    )
    needs_sensor_attributes: bool = Field(
        default=False, description="Whether this query requires sensor attributes/status/config"
    )
    reasoning: str = Field(default="", description="Brief explanation of the classification")


class TemperatureAnalysis(BaseModel):
    needs_iot_data: bool = Field(
        ..., description="Whether the user is asking for IoT sensor data (temperature, humidity, etc.)"
    )
    entity_id: str | None = Field(default=None, description="The entity ID of the device. Null for default.")
    keys: str | None = Field(
        default=None, description="Comma-separated telemetry keys. Null for the default 'temperature'."
    )
    use_strict_data_types: bool | None = Field(default=None, description="Whether to use strict data types.")


class LedControlAnalysis(BaseModel):
    needs_led_control: bool = Field(
        ..., description="Whether the user is asking to control the LED (turn on/off)"
    )
    led_action: Literal["turn_on", "turn_off", "unknown"] = Field(
        ..., description="The action to perform on the LED"
    )
    entity_id: str | None = Field(default=None, description="The entity ID of the device. Null for default.")
    reasoning: str = Field(default="", description="Brief explanation of the LED control classification")


class SensorAttributesAnalysis(BaseModel):
    needs_sensor_attributes: bool = Field(
        ..., description="Whether the user is asking for sensor attributes, status, info, or configuration"
    )
    entity_id: str | None = Field(default=None, description="The entity ID of the device. Null for default.")
    reasoning: str = Field(default="", description="Brief explanation of the sensor attributes classification")
