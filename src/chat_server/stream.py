"""Server-sent UI message stream.

Emits the part sequence the browser chat expects::

    data: {"type": "start", "messageId": "..."}
    data: {"type": "reasoning-start", "id": "..."} ... reasoning-delta ... reasoning-end
    data: {"type": "tool-input-available", "toolCallId": "...", "toolName": "...", "input": {...}}
    data: {"type": "tool-output-available", "toolCallId": "...", "output": {...}}
    data: {"type": "text-start", "id": "..."} ... text-delta ... text-end
    data: {"type": "finish"}
    data: [DONE]
"""

from __future__ import annotations

import json
import re
import uuid
from typing import Any, AsyncIterator, Iterable, Iterator

from .state import ToolCallRecord

MEDIA_TYPE = "text/event-stream"
HEADERS = {
    "x-vercel-ai-ui-message-stream": "v1",
    "cache-control": "no-cache",
    "x-accel-buffering": "no",
}
DONE = "data: [DONE]\n\n"

_CHUNK_RE = re.compile(r"\S+\s*|\s+")


def sse(part: dict[str, Any]) -> str:
    return f"data: {json.dumps(part, ensure_ascii=False, default=str)}\n\n"


def chunk_text(text: str) -> list[str]:
    """Split text into word-sized deltas that concatenate back to the input."""
    return _CHUNK_RE.findall(text)


class UIMessageStream:
    def __init__(self, message_id: str | None = None) -> None:
        self.message_id = message_id or f"msg_{uuid.uuid4().hex}"
        self._parts = 0

    def _part_id(self, kind: str) -> str:
        self._parts += 1
        return f"{kind}_{self._parts}"

    def start(self) -> str:
        return sse({"type": "start", "messageId": self.message_id})

    def reasoning(self, text: str) -> Iterator[str]:
        part_id = self._part_id("reasoning")
        yield sse({"type": "reasoning-start", "id": part_id})
        yield sse({"type": "reasoning-delta", "id": part_id, "delta": text})
        yield sse({"type": "reasoning-end", "id": part_id})

    def tool_call(self, record: ToolCallRecord) -> Iterator[str]:
        call_id = record.call_id or self._part_id("call")
        yield sse(
            {
                "type": "tool-input-available",
                "toolCallId": call_id,
                "toolName": record.name,
                "input": record.arguments,
            }
        )
        if record.ok:
            yield sse({"type": "tool-output-available", "toolCallId": call_id, "output": record.output})
        else:
            error = (record.error or {}).get("message", "Tool call failed")
            yield sse({"type": "tool-output-error", "toolCallId": call_id, "errorText": error})

    def text(self, deltas: Iterable[str]) -> Iterator[str]:
        part_id = self._part_id("text")
        yield sse({"type": "text-start", "id": part_id})
        for delta in deltas:
            yield sse({"type": "text-delta", "id": part_id, "delta": delta})
        yield sse({"type": "text-end", "id": part_id})

    async def atext(self, deltas: AsyncIterator[str]) -> AsyncIterator[str]:
        part_id = self._part_id("text")
        yield sse({"type": "text-start", "id": part_id})
        async for delta in deltas:
            yield sse({"type": "text-delta", "id": part_id, "delta": delta})
        yield sse({"type": "text-end", "id": part_id})

    def error(self, message: str) -> str:
        return sse({"type": "error", "errorText": message})

    def finish(self) -> Iterator[str]:
        yield sse({"type": "finish"})
        yield DONE
