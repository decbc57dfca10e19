"""Orchestrator: classifies intent and routes to one specialist."""

from __future__ import annotations

from ..llm import BaseLLM
from ..logging import get_logger
from ..prompts import ORCHESTRATOR_SYSTEM
from ..schemas import IntentAnalysis
from ..state import AgentContext, AgentResponse
from ..tool_broker import ToolBroker
from .base import SpecialistAgent
from .formatter import ResponseFormatter
from .led_control import LedControlProvider
from .sensor_attributes import SensorAttributesProvider
from .temperature import TemperatureProvider

logger = get_logger("orchestrator")

SENSOR_ATTRIBUTES_ROUTE = "sensor_attributes"
LED_CONTROL_ROUTE = "led_control"
TEMPERATURE_ROUTE = "temperature"


def select_route(analysis: IntentAnalysis, threshold: float) -> str | None:
    """Pick a specialist, or None for a general reply.

    Attributes win over LED control, which wins over temperature, when the
    model flags more than one need.
    """
    if analysis.confidence <= threshold:
        return None
    if analysis.needs_sensor_attributes or analysis.intent == "sensor_attributes":
        return SENSOR_ATTRIBUTES_ROUTE
    if analysis.needs_led_control or analysis.intent == "led_control":
        return LED_CONTROL_ROUTE
    if analysis.needs_iot_data or analysis.intent == "iot_sensor_query":
        return TEMPERATURE_ROUTE
    return None


class Orchestrator:
    def __init__(self, llm: BaseLLM, broker: ToolBroker, confidence_threshold: float = 0.7) -> None:
        self._llm = llm
        self._threshold = confidence_threshold
        self.formatter = ResponseFormatter(llm)
        self.specialists: dict[str, SpecialistAgent] = {
            SENSOR_ATTRIBUTES_ROUTE: SensorAttributesProvider(llm, broker),
            LED_CONTROL_ROUTE: LedControlProvider(llm, broker),
            TEMPERATURE_ROUTE: TemperatureProvider(llm, broker),
        }

    def classify(self, context: AgentContext) -> IntentAnalysis:
        return self._llm.complete_json(
            system=ORCHESTRATOR_SYSTEM,
            prompt=f'Classify this user query: "{context.user_query}"',
            schema=IntentAnalysis,
            purpose="Orchestrator",
        )

    async def run(self, context: AgentContext) -> AgentResponse:
        try:
            analysis = self.classify(context)
        except Exception as exc:  # noqa: BLE001
            logger.info("orchestrator_error", extra={"extra": {"trace_id": context.trace_id, "error": str(exc)}})
            return AgentResponse(
                success=False,
                error=f"Orchestrator error: {exc}",
                message="Sorry, there was a problem processing your query.",
            )

        route = select_route(analysis, self._threshold)
        context.metadata["route"] = route or "general_chat"
        logger.info(
            "intent_classified",
            extra={"extra": {"trace_id": context.trace_id, "route": context.metadata["route"], **analysis.model_dump()}},
        )

        if route is None:
            response = self.formatter.format(context)
        else:
            result = await self.specialists[route].run(context)
            if result.success:
                response = self.formatter.format(context, data=result.data)
            elif result.declined:
                # Specialist disagreed with the classifier; answer as general chat.
                context.metadata["route"] = "general_chat"
                response = self.formatter.format(context)
            else:
                response = self.formatter.format(context, error=result.error)

        response.reasoning = analysis.reasoning or None
        return response
