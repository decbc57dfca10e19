import json
from typing import Any

import httpx
import pytest

from chat_server.settings import get_settings as get_agent_settings
from iot_tools.auth import get_auth
from iot_tools.settings import get_settings as get_tool_settings

ENTITY_ID = "6f1b5c20-94d1-11f0-a1d2-3b4a5c6d7e8f"

_REAL_CLIENT = httpx.Client


class FakeThingsBoard:
    """In-memory ThingsBoard answering the REST calls the adapter makes."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.logins = 0
        self.timeseries: dict[str, Any] = {}
        self.attributes: list[dict[str, Any]] = []
        self.shared: list[dict[str, Any]] = []
        self.failures: dict[str, tuple[int, str]] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        for suffix, (status, body) in self.failures.items():
            if path.endswith(suffix):
                return httpx.Response(status, text=body)
        if path == "/api/auth/login":
            self.logins += 1
            return httpx.Response(200, json={"token": f"tb-token-{self.logins}", "refreshToken": "refresh"})
        if path.endswith("/values/timeseries"):
            return httpx.Response(200, json=self.timeseries)
        if path.endswith("/values/attributes"):
            return httpx.Response(200, json=self.attributes)
        if path.endswith("/SHARED_SCOPE"):
            self.shared.append(json.loads(request.content))
            return httpx.Response(200)
        return httpx.Response(404, text="not found")

    def api_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path != "/api/auth/login"]


def clear_caches() -> None:
    get_agent_settings.cache_clear()
    get_tool_settings.cache_clear()
    get_auth.cache_clear()


@pytest.fixture
def tb_env(monkeypatch):
    monkeypatch.setenv("THINGSBOARD_URL", "https://tb.test/")
    monkeypatch.setenv("THINGSBOARD_USERNAME", "tenant@example.com")
    monkeypatch.setenv("THINGSBOARD_PASSWORD", "secret")
    monkeypatch.setenv("THINGSBOARD_DEFAULT_ENTITY_ID", ENTITY_ID)
    monkeypatch.delenv("THINGSBOARD_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("IOT_CHAT_THINGSBOARD_ACCESS_TOKEN", raising=False)
    monkeypatch.setenv("IOT_CHAT_MOCK_LLM", "true")
    monkeypatch.setenv("IOT_CHAT_MCP_BASE_URL", "inproc")
    monkeypatch.setenv("IOT_CHAT_TRACE_ENABLED", "false")
    clear_caches()
    yield
    clear_caches()


@pytest.fixture
def thingsboard(monkeypatch, tb_env):
    fake = FakeThingsBoard()
    transport = httpx.MockTransport(fake.handler)

    def client_factory(*args, **kwargs):
        kwargs["transport"] = transport
        return _REAL_CLIENT(*args, **kwargs)

    # auth and the REST adapter both open clients through the httpx module.
    monkeypatch.setattr(httpx, "Client", client_factory)
    return fake


@pytest.fixture
def tool_settings(tb_env):
    return get_tool_settings()
