"""Shared flow of the specialist agents.

A specialist asks the model whether the query is really for it, extracts the
tool arguments, calls exactly one tool and hands the result on to the
response formatter.
"""

from __future__ import annotations

import uuid
from typing import Any, ClassVar

from pydantic import BaseModel

from ..llm import BaseLLM
from ..logging import get_logger
from ..prompts import query_prompt
from ..state import ORCHESTRATOR, RESPONSE_FORMATTER, AgentContext, AgentResponse, ToolCallRecord
from ..tool_broker import ToolBroker

logger = get_logger("agents")


class SpecialistAgent:
    name: ClassVar[str]
    tool_name: ClassVar[str]
    system_prompt: ClassVar[str]
    analysis_model: ClassVar[type[BaseModel]]
    decline_message: ClassVar[str]

    def __init__(self, llm: BaseLLM, broker: ToolBroker) -> None:
        self._llm = llm
        self._broker = broker

    def tool_arguments(self, analysis: Any) -> dict[str, Any] | None:
        """Map the analysis to tool arguments, or None when the query is not ours."""
        raise NotImplementedError

    def success_message(self, data: dict[str, Any]) -> str:
        return f"{self.name} completed successfully"

    async def run(self, context: AgentContext) -> AgentResponse:
        try:
            analysis = self._llm.complete_json(
                system=self.system_prompt,
                prompt=query_prompt(context.user_query),
                schema=self.analysis_model,
                purpose=self.name,
            )
            logger.info(
                "specialist_analysis",
                extra={"extra": {"trace_id": context.trace_id, "agent": self.name, **analysis.model_dump()}},
            )

            args = self.tool_arguments(analysis)
            if args is None:
                return AgentResponse(success=False, error=self.decline_message, next_agent=ORCHESTRATOR)

            result = await self._broker.call_tool(self.tool_name, args, context.trace_id, context.trace)
            context.tool_calls.append(
                ToolCallRecord(
                    name=self.tool_name,
                    arguments=args,
                    ok=result.ok,
                    output=result.data if result.ok else None,
                    error=result.error.model_dump() if result.error else None,
                    call_id=f"call_{uuid.uuid4().hex[:12]}",
                )
            )
            if not result.ok or not result.data:
                message = result.error.message if result.error else "empty tool result"
                return AgentResponse(
                    success=False,
                    error=f"{self.tool_name} error: {message}",
                    next_agent=RESPONSE_FORMATTER,
                )

            return AgentResponse(
                success=True,
                data=result.data,
                message=self.success_message(result.data),
                next_agent=RESPONSE_FORMATTER,
            )
        except Exception as exc:  # noqa: BLE001
            logger.info(
                "specialist_error",
                extra={"extra": {"trace_id": context.trace_id, "agent": self.name, "error": str(exc)}},
            )
            return AgentResponse(
                success=False,
                error=f"{self.name} error: {exc}",
                next_agent=RESPONSE_FORMATTER,
            )
