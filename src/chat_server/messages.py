"""Chat message DTOs exchanged with the browser UI."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class UIMessagePart(BaseModel):
    """One renderable piece of a message: text, reasoning, tool output, source..."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str
    text: str | None = None
    state: str | None = None
    input: Any | None = None
    output: Any | None = None
    url: str | None = None
    tool_call_id: str | None = Field(default=None, alias="toolCallId")


class UIMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = ""
    role: Literal["user", "assistant", "system"]
    parts: list[UIMessagePart] = Field(default_factory=list)

    def text(self) -> str:
        return "\n".join(part.text for part in self.parts if part.type == "text" and part.text)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[UIMessage] = Field(default_factory=list)
    model: str | None = None
    web_search: bool = Field(default=False, alias="webSearch")

    def metadata(self) -> dict[str, Any]:
        return {"model": self.model, "web_search": self.web_search}


def last_user_text(messages: list[UIMessage]) -> str:
    """Text of the first text part of the most recent user message."""
    for message in reversed(messages):
        if message.role != "user":
            continue
        for part in message.parts:
            if part.type == "text":
                return part.text or ""
        return ""
    return ""


def to_model_messages(messages: list[UIMessage]) -> list[dict[str, str]]:
    """Convert UI messages to chat-completion messages, dropping non-text ones."""
    converted: list[dict[str, str]] = []
    for message in messages:
        text = message.text()
        if text:
            converted.append({"role": message.role, "content": text})
    return converted
