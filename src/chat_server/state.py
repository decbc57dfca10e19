"""Lightweight per-request state containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

ORCHESTRATOR = "orchestrator"
RESPONSE_FORMATTER = "response_formatter"


@dataclass
class TraceRecord:
    """Structured trace container for a single request."""

    trace_id: str
    started_at: str
    finished_at: str | None = None
    latency_ms: int | None = None
    request: dict[str, Any] = field(default_factory=dict)
    llm: list[dict[str, Any]] = field(default_factory=list)
    tools: list[dict[str, Any]] = field(default_factory=list)
    final: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolCallRecord:
    name: str
    arguments: dict[str, Any]
    ok: bool
    output: dict[str, Any] | None = None
    error: dict[str, Any] | None = None
    call_id: str = ""


@dataclass
class AgentContext:
    """Everything an agent sees about the current request."""

    user_query: str
    trace_id: str
    trace: TraceRecord
    messages: list[Any] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    tool_calls: list[ToolCallRecord] = field(default_factory=list)


@dataclass
class AgentResponse:
    success: bool
    data: Any | None = None
    message: str | None = None
    error: str | None = None
    next_agent: str | None = None
    reasoning: str | None = None

    @property
    def declined(self) -> bool:
        """The specialist judged the query outside its area."""
        return not self.success and self.next_agent == ORCHESTRATOR
