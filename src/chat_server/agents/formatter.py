"""Response formatter: phrases the final reply from tool data or an error."""

from __future__ import annotations

from typing import Any

from iot_tools.schemas import LedControlOutput, SensorAttributesOutput, TemperatureOutput
from ..llm import BaseLLM
from ..logging import get_logger
from ..prompts import FORMATTER_SYSTEM
from ..state import AgentContext, AgentResponse

logger = get_logger("response_formatter")


def detect_data_type(data: dict[str, Any] | None) -> str:
    if not data:
        return "none"
    if "temperature" in data:
        return "temperature"
    if "led_state" in data:
        return "led_control"
    if "attributes" in data:
        return "sensor_attributes"
    return "unknown"


def _temperature_facts(data: dict[str, Any]) -> str:
    reading = TemperatureOutput.model_validate(data)
    return (
        "IoT sensor data retrieved:\n"
        f"- Temperature: {reading.temperature}{reading.unit}\n"
        f"- Source: {reading.source}\n"
        f"- Timestamp: {reading.timestamp}\n"
        f"- Sensor ID: {reading.sensor_id}\n"
        f"- Message: {reading.message}\n\n"
        "Provide a friendly, natural response to the user that includes this sensor information. "
        "Focus on the temperature reading and make it conversational."
    )


def _led_facts(data: dict[str, Any]) -> str:
    led = LedControlOutput.model_validate(data)
    state = "ON" if led.led_state else "OFF"
    return (
        "LED control action completed:\n"
        f"- LED State: {state}\n"
        f"- Action: Turned {state}\n"
        f"- Device ID: {led.entity_id}\n"
        f"- Timestamp: {led.timestamp}\n"
        f"- Status: {'Successful' if led.success else 'Failed'}\n"
        f"- Message: {led.message}\n\n"
        "Provide a friendly, natural response to the user confirming the LED control action. "
        "Be conversational and confirm what was done."
    )


def _attribute_facts(data: dict[str, Any]) -> str:
    result = SensorAttributesOutput.model_validate(data)
    summary = result.summary
    lines = [
        f"MAC Address: {summary.mac_address}" if summary.mac_address else None,
        f"Local IP: {summary.local_ip}" if summary.local_ip else None,
        f"WiFi Network: {summary.ssid}" if summary.ssid else None,
        f"Signal Strength (RSSI): {summary.rssi} dBm" if summary.rssi is not None else None,
        f"LED State: {'ON' if summary.led_state else 'OFF'}" if summary.led_state is not None else None,
        f"LED Mode: {summary.led_mode}" if summary.led_mode is not None else None,
        f"Device Active: {'Yes' if summary.active else 'No'}" if summary.active is not None else None,
    ]
    key_info = "\n".join(f"- {line}" for line in lines if line) or "- No well-known attributes reported"
    return (
        "Sensor attributes retrieved successfully:\n"
        f"- Device ID: {result.entity_id}\n"
        f"- Total Attributes: {result.attribute_count}\n"
        f"- Retrieved at: {result.timestamp}\n\n"
        f"Key Device Information:\n{key_info}\n\n"
        "Provide a friendly, natural response to the user presenting the sensor attributes and device "
        "status. Focus on connectivity, status and key settings. Make it conversational and easy to "
        "understand."
    )


_FACTS = {
    "temperature": _temperature_facts,
    "led_control": _led_facts,
    "sensor_attributes": _attribute_facts,
}


def build_prompt(user_query: str, data: dict[str, Any] | None = None, error: str | None = None) -> str:
    prompt = f'User asked: "{user_query}"\n\n'
    if error:
        return prompt + f"There was an error: {error}\nPlease provide a helpful error message to the user."
    facts = _FACTS.get(detect_data_type(data))
    if facts is None:
        return prompt + "Please provide a general helpful response to the user's query."
    return prompt + facts(data)


class ResponseFormatter:
    name = "ResponseFormatter"

    def __init__(self, llm: BaseLLM) -> None:
        self._llm = llm

    def format(
        self,
        context: AgentContext,
        data: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> AgentResponse:
        logger.info(
            "formatter_inputs",
            extra={
                "extra": {
                    "trace_id": context.trace_id,
                    "data_type": detect_data_type(data),
                    "has_error": bool(error),
                }
            },
        )
        try:
            text = self._llm.complete_text(
                system=FORMATTER_SYSTEM,
                prompt=build_prompt(context.user_query, data, error),
                purpose=self.name,
            )
        except Exception as exc:  # noqa: BLE001
            return AgentResponse(
                success=False,
                error=f"{self.name} error: {exc}",
                message="Sorry, there was a problem processing your query. Please try again.",
            )
        return AgentResponse(
            success=True,
            message=text,
            data={"response_data": data, "original_query": context.user_query},
        )
