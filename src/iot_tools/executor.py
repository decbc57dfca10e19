"""Validate, run and wrap a tool call in a ToolResponse envelope.

Used by the HTTP tool server and by the chat server's in-process broker so
both paths produce identical envelopes.
"""

from __future__ import annotations

import time
from typing import Any

from pydantic import ValidationError

from .adapters import AdapterError
from .logging import get_logger
from .schemas import ToolError, ToolMeta, ToolResponse
from .settings import ToolServerSettings
from .tools import get_tool_handler, get_tool_spec

logger = get_logger("tool_executor")


def _failure(name: str, trace_id: str, start: float, error: ToolError, event: str) -> ToolResponse:
    latency_ms = int((time.time() - start) * 1000)
    logger.info(
        event,
        extra={
            "extra": {
                "trace_id": trace_id,
                "tool": name,
                "latency_ms": latency_ms,
                "ok": False,
                "error_code": error.code,
            }
        },
    )
    return ToolResponse(
        ok=False,
        data=None,
        error=error,
        meta=ToolMeta(tool_name=name, trace_id=trace_id, latency_ms=latency_ms, source="thingsboard"),
    )


def run_tool(name: str, args: dict[str, Any], settings: ToolServerSettings, trace_id: str) -> ToolResponse:
    start = time.time()
    spec = get_tool_spec(name)
    handler = get_tool_handler(name)
    if not spec or not handler:
        return _failure(
            name, trace_id, start, ToolError(code="NOT_FOUND", message=f"Unknown tool: {name}"), "tool_not_found"
        )

    try:
        input_obj = spec.input_model.model_validate(args)
    except ValidationError as exc:
        return _failure(
            name, trace_id, start, ToolError(code="INVALID_ARGUMENT", message=str(exc)), "tool_validation_error"
        )

    try:
        result = handler(input_obj, settings, trace_id)
    except ValidationError as exc:
        # ThingsBoard answered with a shape the output models reject.
        error = ToolError(code="UPSTREAM_ERROR", message=f"Unexpected ThingsBoard payload: {exc}")
        return _failure(name, trace_id, start, error, "tool_upstream_payload_error")
    except AdapterError as exc:
        error = ToolError(code=exc.code, message=exc.message, details=exc.details)
        return _failure(name, trace_id, start, error, "tool_adapter_error")
    except Exception as exc:  # noqa: BLE001
        return _failure(name, trace_id, start, ToolError(code="TOOL_ERROR", message=str(exc)), "tool_error")

    latency_ms = int((time.time() - start) * 1000)
    logger.info(
        "tool_call",
        extra={"extra": {"trace_id": trace_id, "tool": name, "latency_ms": latency_ms, "ok": True}},
    )
    return ToolResponse(
        ok=True,
        data=result.model_dump(),
        error=None,
        meta=ToolMeta(
            tool_name=name,
            trace_id=trace_id,
            latency_ms=latency_ms,
            source="thingsboard",
            details=spec.details(input_obj, result),
        ),
    )
