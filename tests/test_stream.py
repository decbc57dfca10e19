import json

from chat_server.messages import ChatRequest, last_user_text, to_model_messages
from chat_server.state import ToolCallRecord
from chat_server.stream import DONE, UIMessageStream, chunk_text
from client.cli import iter_stream_parts


def decode(chunks):
    return list(iter_stream_parts(line for chunk in chunks for line in chunk.split("\n")))


def test_chunks_concatenate_to_original():
    text = "Hello  there,\nthe LED is now ON. "
    chunks = chunk_text(text)
    assert "".join(chunks) == text
    assert len(chunks) > 1
    assert chunk_text("") == []


def test_answer_stream_part_sequence():
    stream = UIMessageStream("msg_1")
    record = ToolCallRecord(
        name="led_control", arguments={"led_state": True}, ok=True, output={"led_state": True}, call_id="call_1"
    )
    chunks = [stream.start(), *stream.reasoning("LED request"), *stream.tool_call(record)]
    chunks += [*stream.text(["The LED ", "is on."]), *stream.finish()]

    parts = decode(chunks)
    assert [p["type"] for p in parts] == [
        "start",
        "reasoning-start",
        "reasoning-delta",
        "reasoning-end",
        "tool-input-available",
        "tool-output-available",
        "text-start",
        "text-delta",
        "text-delta",
        "text-end",
        "finish",
    ]
    assert parts[0]["messageId"] == "msg_1"
    assert parts[4] == {
        "type": "tool-input-available",
        "toolCallId": "call_1",
        "toolName": "led_control",
        "input": {"led_state": True},
    }
    text_ids = {p["id"] for p in parts if p["type"].startswith("text-")}
    assert len(text_ids) == 1
    assert chunks[-1] == DONE


def test_failed_tool_call_streams_error_text():
    record = ToolCallRecord(
        name="get_temperature", arguments={}, ok=False, error={"code": "AUTH_FAILED", "message": "bad login"}
    )
    parts = decode(UIMessageStream().tool_call(record))
    assert parts[1]["type"] == "tool-output-error"
    assert parts[1]["errorText"] == "bad login"
    assert parts[0]["toolCallId"] == parts[1]["toolCallId"]


def test_stream_keeps_non_ascii_text():
    start, delta, _end = UIMessageStream().text(["22.50°C"])
    assert json.loads(start[len("data: "):])["type"] == "text-start"
    assert "°C" in delta


def test_last_user_text_uses_most_recent_user_message():
    request = ChatRequest.model_validate(
        {
            "messages": [
                {"id": "1", "role": "user", "parts": [{"type": "text", "text": "first"}]},
                {"id": "2", "role": "assistant", "parts": [{"type": "text", "text": "reply"}]},
                {
                    "id": "3",
                    "role": "user",
                    "parts": [{"type": "source-url", "url": "https://x"}, {"type": "text", "text": "second"}],
                },
            ],
            "model": "openai/gpt-4o",
            "webSearch": True,
        }
    )
    assert last_user_text(request.messages) == "second"
    assert request.metadata() == {"model": "openai/gpt-4o", "web_search": True}
    assert to_model_messages(request.messages) == [
        {"role": "user", "content": "first"},
        {"role": "assistant", "content": "reply"},
        {"role": "user", "content": "second"},
    ]


def test_last_user_text_empty_without_user_message():
    request = ChatRequest.model_validate(
        {"messages": [{"role": "assistant", "parts": [{"type": "text", "text": "hi"}]}]}
    )
    assert last_user_text(request.messages) == ""
    assert last_user_text([]) == ""


def test_iter_stream_parts_is_lazy_and_stops_at_done():
    lines = iter(['data: {"type": "start"}', "", "data: [DONE]", "data: not json"])
    parts = iter_stream_parts(lines)
    assert next(parts) == {"type": "start"}
    assert list(parts) == []
    assert next(lines) == "data: not json"
