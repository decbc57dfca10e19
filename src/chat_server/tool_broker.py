"""Unified tool calling layer.

This isolates tool invocation details (HTTP/in-proc, errors) from the agents.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from iot_tools.executor import run_tool
from iot_tools.schemas import ToolError, ToolMeta, ToolResponse
from .logging import get_logger
from .settings import AgentSettings
from .state import TraceRecord
from .trace import record_tool_call

logger = get_logger("tool_broker")

INPROC = "inproc"


class ToolBroker:
    def __init__(self, settings: AgentSettings) -> None:
        self._settings = settings

    @property
    def transport(self) -> str:
        return INPROC if self._settings.mcp_base_url == INPROC else "http"

    async def call_tool(
        self,
        name: str,
        args: dict[str, Any],
        trace_id: str,
        trace: TraceRecord | None = None,
    ) -> ToolResponse:
        # Allow in-process calls for tests or single-process deployments.
        if self.transport == INPROC:
            response = run_tool(name, args, _inproc_settings(), trace_id)
        else:
            response = await self._call_tool_http(name, args, trace_id)
        if trace is not None:
            record_tool_call(
                trace,
                tool_name=name,
                args=args,
                ok=response.ok,
                latency_ms=response.meta.latency_ms,
                result=response.data if response.ok else None,
                error=response.error.model_dump() if response.error else None,
                transport=self.transport,
            )
        return response

    async def _call_tool_http(self, name: str, args: dict[str, Any], trace_id: str) -> ToolResponse:
        url = f"{self._settings.mcp_base_url.rstrip('/')}/tools/{name}"
        start = time.time()
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.request_timeout_s, trust_env=False
            ) as client:
                resp = await client.post(url, json=args, headers={"x-trace-id": trace_id})
        except httpx.RequestError as exc:
            return self._failure(name, trace_id, start, "TOOL_UNAVAILABLE", str(exc))

        if resp.status_code == 404:
            return self._failure(name, trace_id, start, "NOT_FOUND", f"Unknown tool: {name}")
        if resp.status_code >= 500:
            return self._failure(
                name, trace_id, start, "TOOL_UPSTREAM_5XX", f"Tool server error: {resp.status_code}"
            )

        try:
            response = ToolResponse.model_validate(resp.json())
        except ValueError as exc:
            return self._failure(name, trace_id, start, "TOOL_BAD_RESPONSE", str(exc))

        logger.info(
            "tool_call",
            extra={
                "extra": {
                    "trace_id": trace_id,
                    "tool": name,
                    "latency_ms": int((time.time() - start) * 1000),
                    "status_code": resp.status_code,
                    "ok": response.ok,
                }
            },
        )
        return response

    def _failure(self, name: str, trace_id: str, start: float, code: str, message: str) -> ToolResponse:
        latency_ms = int((time.time() - start) * 1000)
        logger.info(
            "tool_call_failed",
            extra={
                "extra": {
                    "trace_id": trace_id,
                    "tool": name,
                    "latency_ms": latency_ms,
                    "error_code": code,
                    "error": message,
                }
            },
        )
        return ToolResponse(
            ok=False,
            data=None,
            error=ToolError(code=code, message=message),
            meta=ToolMeta(tool_name=name, trace_id=trace_id, latency_ms=latency_ms),
        )


def _inproc_settings():
    from iot_tools.settings import get_settings

    return get_settings()
