import json

from fastapi.testclient import TestClient

from chat_server import app as chat_app
from chat_server.executor import start_chat, stream_chat
from chat_server.messages import ChatRequest
from chat_server.settings import get_settings as get_agent_settings
from client.cli import build_parser, iter_stream_parts

from conftest import ENTITY_ID


def user_message(text: str) -> dict:
    return {"id": "m1", "role": "user", "parts": [{"type": "text", "text": text}]}


def test_smoke_ask_led_with_mock(thingsboard):
    client = TestClient(chat_app.app)
    resp = client.post("/v1/ask", json={"query": "turn on the LED"}, headers={"x-trace-id": "trace-led"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["trace_id"] == "trace-led"
    assert data["route"] == "led_control"
    assert data["tool_calls"][0]["name"] == "led_control"
    assert data["tool_calls"][0]["output"]["led_state"] is True
    assert "LED State: ON" in data["answer"]
    assert thingsboard.shared == [{"ledState": True}]


def test_smoke_ask_led_question_does_not_switch_led(thingsboard):
    client = TestClient(chat_app.app)
    data = client.post("/v1/ask", json={"query": "is the LED on?"}).json()
    assert data["route"] == "general_chat"
    assert data["tool_calls"] == []
    assert thingsboard.shared == []


def test_smoke_ask_general_chat(thingsboard):
    client = TestClient(chat_app.app)
    data = client.post("/v1/ask", json={"query": "hello there"}).json()
    assert data["route"] == "general_chat"
    assert data["tool_calls"] == []
    assert data["answer"]
    assert thingsboard.requests == []


def test_smoke_ask_writes_trace(thingsboard, monkeypatch, tmp_path):
    monkeypatch.setenv("IOT_CHAT_TRACE_ENABLED", "true")
    monkeypatch.setenv("IOT_CHAT_TRACE_DIR", str(tmp_path))
    get_agent_settings.cache_clear()

    client = TestClient(chat_app.app)
    client.post("/v1/ask", json={"query": "turn off the LED"}, headers={"x-trace-id": "trace-file"})

    files = list(tmp_path.glob("*_trace-file.json"))
    assert len(files) == 1
    trace = json.loads(files[0].read_text(encoding="utf-8"))
    assert trace["final"]["route"] == "led_control"
    assert trace["tools"][0]["transport"] == "inproc"
    assert trace["tools"][0]["args"] == {"led_state": False}
    assert [call["purpose"] for call in trace["llm"]][:2] == ["Orchestrator", "LedControlProvider"]


def test_smoke_ask_rejects_empty_query(tb_env):
    client = TestClient(chat_app.app)
    assert client.post("/v1/ask", json={"query": ""}).status_code == 422


def test_chat_stream_with_temperature_tool(thingsboard):
    thingsboard.timeseries = {"temperature": [{"ts": 1758215705509, "value": "22.5"}]}
    client = TestClient(chat_app.app)
    resp = client.post(
        "/api/chat",
        json={"messages": [user_message("what is the temperature?")], "model": "openai/gpt-4o", "webSearch": False},
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.headers["x-vercel-ai-ui-message-stream"] == "v1"
    assert resp.text.rstrip().endswith("data: [DONE]")

    parts = list(iter_stream_parts(resp.text.splitlines()))
    types = [p["type"] for p in parts]
    assert types[0] == "start"
    assert types[-1] == "finish"
    assert "tool-input-available" in types
    output = next(p for p in parts if p["type"] == "tool-output-available")["output"]
    assert output["temperature"] == "22.50"
    assert output["sensor_id"] == ENTITY_ID
    text = "".join(p["delta"] for p in parts if p["type"] == "text-delta")
    assert "Temperature: 22.50°C" in text


def test_chat_stream_reports_tool_error(thingsboard):
    thingsboard.failures["/api/auth/login"] = (401, "bad credentials")
    client = TestClient(chat_app.app)
    resp = client.post("/api/chat", json={"messages": [user_message("show the device status")]})
    parts = list(iter_stream_parts(resp.text.splitlines()))
    error = next(p for p in parts if p["type"] == "tool-output-error")
    assert "Authentication failed" in error["errorText"]
    text = "".join(p["delta"] for p in parts if p["type"] == "text-delta")
    assert text.startswith("Sorry, I couldn't complete that request.")


def test_chat_without_user_message_is_400(tb_env):
    client = TestClient(chat_app.app)
    resp = client.post("/api/chat", json={"messages": []})
    assert resp.status_code == 400
    assert resp.json() == {"error": "No user message found"}


def test_cli_parser_defaults():
    args = build_parser().parse_args(["turn on the LED", "--stream"])
    assert args.agent_url == "http://localhost:7002"
    assert args.stream is True
    assert args.verbose is False


async def test_stream_finalizes_trace_when_client_disconnects(thingsboard):
    request = ChatRequest.model_validate({"messages": [user_message("hello there")]})
    run = await start_chat(request, "trace-disconnect")

    chunks = stream_chat(run)
    assert '"type": "start"' in await chunks.__anext__()
    await chunks.aclose()

    assert run.context.trace.finished_at is not None
    assert run.context.trace.final["route"] == "general_chat"
