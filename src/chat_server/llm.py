"""Hosted-model access for the agents.

``LLMClient`` talks to OpenAI. ``HeuristicLLM`` answers the same calls with
keyword rules so the whole pipeline runs without an API key (local demos,
tests). Both record every call on the request trace.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterator, TypeVar

from openai import OpenAI
from pydantic import BaseModel

from .logging import get_logger
from .prompts import JSON_INSTRUCTIONS
from .schemas import IntentAnalysis, LedControlAnalysis, SensorAttributesAnalysis, TemperatureAnalysis
from .settings import AgentSettings
from .state import TraceRecord
from .trace import record_llm_call

logger = get_logger("llm")

T = TypeVar("T", bound=BaseModel)

HEURISTIC_MODEL = "heuristic"


def resolve_model(requested: str | None, default: str) -> str:
    """Map a UI model choice such as ``openai/gpt-4o`` to an OpenAI model name."""
    if not requested:
        return default
    provider, sep, name = requested.partition("/")
    if not sep:
        return provider
    if provider == "openai" and name:
        return name
    logger.info("unsupported_model_provider", extra={"extra": {"requested": requested, "using": default}})
    return default


class BaseLLM:
    model: str

    def __init__(self, settings: AgentSettings, trace: TraceRecord | None = None) -> None:
        self._settings = settings
        self._trace = trace

    def complete_json(
        self, *, system: str, prompt: str, schema: type[T], purpose: str, temperature: float | None = None
    ) -> T:
        raise NotImplementedError

    def complete_text(self, *, system: str, prompt: str, purpose: str, temperature: float | None = None) -> str:
        raise NotImplementedError

    def stream_text(
        self, *, system: str, messages: list[dict[str, str]], purpose: str, temperature: float | None = None
    ) -> Iterator[str]:
        raise NotImplementedError

    def _record(
        self,
        purpose: str,
        temperature: float,
        messages: list[dict[str, Any]],
        *,
        finish_reason: str | None = None,
        output: Any = None,
        error: str | None = None,
    ) -> None:
        if self._trace is None:
            return
        record_llm_call(
            self._trace,
            model=self.model,
            purpose=purpose,
            temperature=temperature,
            messages_summary=_summarize_messages(messages),
            finish_reason=finish_reason,
            output=output,
            error=error,
        )


class LLMClient(BaseLLM):
    def __init__(
        self,
        settings: AgentSettings,
        trace: TraceRecord | None = None,
        model: str | None = None,
        client: OpenAI | None = None,
    ) -> None:
        super().__init__(settings, trace)
        self.model = model or settings.openai_model
        self._client = client or OpenAI(api_key=settings.openai_api_key)

    def complete_json(
        self, *, system: str, prompt: str, schema: type[T], purpose: str, temperature: float | None = None
    ) -> T:
        temperature = self._settings.classifier_temperature if temperature is None else temperature
        instructions = JSON_INSTRUCTIONS.format(schema=json.dumps(schema.model_json_schema()))
        messages = [
            {"role": "system", "content": f"{system}\n\n{instructions}"},
            {"role": "user", "content": prompt},
        ]
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                response_format={"type": "json_object"},
                timeout=self._settings.openai_timeout_s,
            )
            choice = response.choices[0]
            result = schema.model_validate_json(choice.message.content or "")
        except Exception as exc:
            self._failed(purpose, temperature, messages, exc)
            raise
        self._record(
            purpose, temperature, messages, finish_reason=choice.finish_reason, output=result.model_dump()
        )
        return result

    def complete_text(self, *, system: str, prompt: str, purpose: str, temperature: float | None = None) -> str:
        temperature = self._settings.formatter_temperature if temperature is None else temperature
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                timeout=self._settings.openai_timeout_s,
            )
        except Exception as exc:
            self._failed(purpose, temperature, messages, exc)
            raise
        choice = response.choices[0]
        text = choice.message.content or ""
        self._record(purpose, temperature, messages, finish_reason=choice.finish_reason, output=text)
        return text

    def stream_text(
        self, *, system: str, messages: list[dict[str, str]], purpose: str, temperature: float | None = None
    ) -> Iterator[str]:
        temperature = self._settings.chat_temperature if temperature is None else temperature
        full_messages = [{"role": "system", "content": system}, *messages]
        chunks: list[str] = []
        finish_reason = None
        try:
            stream = self._client.chat.completions.create(
                model=self.model,
                messages=full_messages,
                temperature=temperature,
                stream=True,
                timeout=self._settings.openai_timeout_s,
            )
            for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                finish_reason = choice.finish_reason or finish_reason
                delta = choice.delta.content if choice.delta else None
                if delta:
                    chunks.append(delta)
                    yield delta
        except Exception as exc:
            self._failed(purpose, temperature, full_messages, exc)
            raise
        self._record(purpose, temperature, full_messages, finish_reason=finish_reason, output="".join(chunks))

    def _failed(self, purpose: str, temperature: float, messages: list[dict[str, Any]], exc: Exception) -> None:
        logger.info(
            "llm_error",
            extra={"extra": {"purpose": purpose, "model": self.model, "error": str(exc)}},
        )
        self._record(purpose, temperature, messages, error=str(exc))


_QUERY_RE = re.compile(r'User (?:query|asked): "(?P<query>.*?)"', re.DOTALL | re.IGNORECASE)
_LED_RE = re.compile(r"\b(led|light|lights|luz|lamp|bombilla)\b", re.IGNORECASE)
# A bare "on"/"off" is a state question ("is the LED on?"), not a command.
_LED_ON_RE = re.compile(
    r"\b(turn|switch|put)\b[\w\s]*?\bon\b|\b(encender|enciende|prender|prende)\b", re.IGNORECASE
)
_LED_OFF_RE = re.compile(r"\b(turn|switch|put)\b[\w\s]*?\boff\b|\b(apagar|apaga)\b", re.IGNORECASE)
_ATTRIBUTES_RE = re.compile(
    r"attribute|atributo|status|estado|config|propert|propiedad|\bmac\b|\bip\b|ssid|wi-?fi|rssi|"
    r"device info|sensor info|informaci[oó]n",
    re.IGNORECASE,
)
_TEMPERATURE_RE = re.compile(
    r"temp|\bhot\b|\bcold\b|calor|fr[ií]o|humid|humedad|sensor reading|readings|lectura|iot data",
    re.IGNORECASE,
)
_GREETING_RE = re.compile(r"\b(hello|hi|hey|hola|how are you|thanks|thank you|gracias)\b", re.IGNORECASE)
_ENTITY_RE = re.compile(r"\b[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\b", re.IGNORECASE)

HELP_TEXT = (
    "I can read the device temperature, turn the LED on or off, "
    "or show the device attributes. What would you like to do?"
)


def _extract_query(prompt: str) -> str:
    match = _QUERY_RE.search(prompt)
    return match.group("query") if match else prompt


def _led_action(query: str) -> str:
    if _LED_OFF_RE.search(query):
        return "turn_off"
    if _LED_ON_RE.search(query):
        return "turn_on"
    return "unknown"


def _entity_id(query: str) -> str | None:
    match = _ENTITY_RE.search(query)
    return match.group(0) if match else None


def heuristic_intent(query: str) -> IntentAnalysis:
    if _LED_RE.search(query) and _led_action(query) != "unknown":
        return IntentAnalysis(
            intent="led_control", confidence=0.9, needs_led_control=True, reasoning="LED keyword with on/off verb"
        )
    if _ATTRIBUTES_RE.search(query):
        return IntentAnalysis(
            intent="sensor_attributes",
            confidence=0.9,
            needs_sensor_attributes=True,
            reasoning="device status keyword",
        )
    if _TEMPERATURE_RE.search(query):
        return IntentAnalysis(
            intent="iot_sensor_query", confidence=0.9, needs_iot_data=True, reasoning="sensor reading keyword"
        )
    if _GREETING_RE.search(query):
        return IntentAnalysis(intent="general_chat", confidence=0.9, reasoning="greeting or small talk")
    return IntentAnalysis(intent="other", confidence=0.5, reasoning="no IoT keyword found")


class HeuristicLLM(BaseLLM):
    """Keyword-rule stand-in for the hosted model."""

    model = HEURISTIC_MODEL

    def complete_json(
        self, *, system: str, prompt: str, schema: type[T], purpose: str, temperature: float | None = None
    ) -> T:
        query = _extract_query(prompt)
        if schema is IntentAnalysis:
            result: BaseModel = heuristic_intent(query)
        elif schema is TemperatureAnalysis:
            result = TemperatureAnalysis(
                needs_iot_data=bool(_TEMPERATURE_RE.search(query)), entity_id=_entity_id(query)
            )
        elif schema is LedControlAnalysis:
            action = _led_action(query) if _LED_RE.search(query) else "unknown"
            result = LedControlAnalysis(
                needs_led_control=action != "unknown",
                led_action=action,
                entity_id=_entity_id(query),
                reasoning="keyword match",
            )
        elif schema is SensorAttributesAnalysis:
            result = SensorAttributesAnalysis(
                needs_sensor_attributes=bool(_ATTRIBUTES_RE.search(query)),
                entity_id=_entity_id(query),
                reasoning="keyword match",
            )
        else:
            raise ValueError(f"No heuristic for {schema.__name__}")
        messages = [{"role": "system", "content": system}, {"role": "user", "content": prompt}]
        self._record(purpose, 0.0, messages, finish_reason="stop", output=result.model_dump())
        return result  # type: ignore[return-value]

    def complete_text(self, *, system: str, prompt: str, purpose: str, temperature: float | None = None) -> str:
        if "There was an error:" in prompt:
            error = prompt.split("There was an error:", 1)[1].splitlines()[0].strip()
            text = f"Sorry, I couldn't complete that request. {error}"
        else:
            facts = [line[2:] for line in prompt.splitlines() if line.startswith("- ")]
            text = "Here is what I found:\n" + "\n".join(facts) if facts else HELP_TEXT
        messages = [{"role": "system", "content": system}, {"role": "user", "content": prompt}]
        self._record(purpose, 0.0, messages, finish_reason="stop", output=text)
        return text

    def stream_text(
        self, *, system: str, messages: list[dict[str, str]], purpose: str, temperature: float | None = None
    ) -> Iterator[str]:
        self._record(purpose, 0.0, [{"role": "system", "content": system}, *messages], output=HELP_TEXT)
        for index, word in enumerate(HELP_TEXT.split(" ")):
            yield word if index == 0 else f" {word}"


def create_llm(
    settings: AgentSettings, trace: TraceRecord | None = None, requested_model: str | None = None
) -> BaseLLM:
    if settings.mock_llm or not settings.openai_api_key:
        return HeuristicLLM(settings, trace)
    return LLMClient(settings, trace, model=resolve_model(requested_model, settings.openai_model))


def _summarize_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {"role": msg.get("role"), "content_len": len(str(msg.get("content", "")))}
        for msg in messages
    ]
