"""Protocol adapter for incoming requests.

Keep this layer thin so protocol changes do not affect core agent logic.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, AsyncIterator

from pydantic import BaseModel, Field
from starlette.concurrency import iterate_in_threadpool

from .agents import Orchestrator
from .llm import BaseLLM, create_llm
from .logging import get_logger
from .messages import ChatRequest, UIMessage, last_user_text, to_model_messages
from .prompts import GENERAL_CHAT_SYSTEM
from .settings import AgentSettings, get_settings
from .state import AgentContext, AgentResponse
from .stream import UIMessageStream, chunk_text
from .tool_broker import ToolBroker
from .trace import build_trace, finalize_trace, record_final, write_trace

logger = get_logger("executor")

FALLBACK_ANSWER = "Sorry, there was a problem processing your query. Please try again."


class AskRequest(BaseModel):
    query: str = Field(..., min_length=1)
    conversation_id: str | None = None


class AskResponse(BaseModel):
    answer: str
    trace_id: str
    route: str | None = None
    tool_calls: list[dict] | None = None


class EmptyQueryError(ValueError):
    """The conversation holds no user text to answer."""


@dataclass
class PipelineRun:
    settings: AgentSettings
    context: AgentContext
    llm: BaseLLM
    result: AgentResponse
    history: list[dict[str, str]]
    started_at_ts: float

    @property
    def answered(self) -> bool:
        return self.result.success and bool(self.result.message)

    def tool_calls_payload(self) -> list[dict[str, Any]]:
        return [
            {
                "name": call.name,
                "arguments": call.arguments,
                "ok": call.ok,
                "output": call.output,
                "error": call.error,
            }
            for call in self.context.tool_calls
        ]

    def finish(self, answer: str) -> None:
        record_final(
            self.context.trace,
            answer_text=answer,
            route=self.context.metadata.get("route"),
            render_meta={"answered_by_agents": self.answered},
        )
        finalize_trace(self.context.trace, self.started_at_ts)
        if self.settings.trace_enabled:
            write_trace(self.context.trace, self.settings.trace_dir)


async def run_pipeline(
    query: str,
    trace_id: str,
    messages: list[UIMessage] | None = None,
    metadata: dict[str, Any] | None = None,
) -> PipelineRun:
    # Construct agents per request; the only shared state is the token cache.
    settings = get_settings()
    metadata = dict(metadata or {})
    started_at_ts = time.time()
    trace = build_trace(trace_id, query, client_meta=metadata, message_count=len(messages or []) or 1)
    context = AgentContext(
        user_query=query,
        trace_id=trace_id,
        trace=trace,
        messages=list(messages or []),
        metadata=metadata,
    )
    llm = create_llm(settings, trace, requested_model=metadata.get("model"))
    orchestrator = Orchestrator(llm, ToolBroker(settings), settings.confidence_threshold)
    result = await orchestrator.run(context)
    logger.info(
        "orchestrator_result",
        extra={
            "extra": {
                "trace_id": trace_id,
                "success": result.success,
                "has_message": bool(result.message),
                "error": result.error,
            }
        },
    )
    history = to_model_messages(messages) if messages else [{"role": "user", "content": query}]
    return PipelineRun(settings, context, llm, result, history, started_at_ts)


async def handle_ask(payload: AskRequest, trace_id: str) -> AskResponse:
    run = await run_pipeline(payload.query, trace_id, metadata={"conversation_id": payload.conversation_id})
    if run.answered:
        answer = run.result.message or ""
    else:
        try:
            answer = "".join(
                run.llm.stream_text(system=GENERAL_CHAT_SYSTEM, messages=run.history, purpose="GeneralChat")
            )
        except Exception:  # noqa: BLE001
            answer = run.result.message or FALLBACK_ANSWER
    run.finish(answer)
    return AskResponse(
        answer=answer,
        trace_id=trace_id,
        route=run.context.metadata.get("route"),
        tool_calls=run.tool_calls_payload(),
    )


async def start_chat(request: ChatRequest, trace_id: str) -> PipelineRun:
    query = last_user_text(request.messages)
    if not query.strip():
        raise EmptyQueryError("No user message found")
    return await run_pipeline(query, trace_id, messages=request.messages, metadata=request.metadata())


async def _collect(deltas: AsyncIterator[str], sink: list[str]) -> AsyncIterator[str]:
    async for delta in deltas:
        sink.append(delta)
        yield delta


async def stream_chat(run: PipelineRun) -> AsyncIterator[str]:
    """Render a finished pipeline run as a UI message stream."""
    stream = UIMessageStream()
    answer: list[str] = []
    # The trace is finalized even when the client disconnects mid-stream.
    try:
        yield stream.start()
        try:
            if run.answered:
                if run.result.reasoning:
                    for chunk in stream.reasoning(run.result.reasoning):
                        yield chunk
                for record in run.context.tool_calls:
                    for chunk in stream.tool_call(record):
                        yield chunk
                answer.append(run.result.message or "")
                for chunk in stream.text(chunk_text(run.result.message or "")):
                    yield chunk
            else:
                # Agents could not answer; let the model reply to the whole conversation.
                deltas = iterate_in_threadpool(
                    run.llm.stream_text(system=GENERAL_CHAT_SYSTEM, messages=run.history, purpose="GeneralChat")
                )
                async for chunk in stream.atext(_collect(deltas, answer)):
                    yield chunk
        except Exception as exc:  # noqa: BLE001
            logger.info("stream_error", extra={"extra": {"trace_id": run.context.trace_id, "error": str(exc)}})
            yield stream.error(FALLBACK_ANSWER)
        for chunk in stream.finish():
            yield chunk
    finally:
        run.finish("".join(answer))
