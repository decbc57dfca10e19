"""FastAPI app for the ThingsBoard tool server.

This server exposes the IoT tools with structured I/O.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import FastAPI, HTTPException, Request

from .executor import run_tool
from .logging import get_logger
from .schemas import ToolResponse
from .settings import get_settings
from .tools import get_tool_spec, list_tool_specs

logger = get_logger("tool_server")

app = FastAPI(title="IoT Chat Tool Server", version="0.1.0")


@app.on_event("startup")
def log_startup_config() -> None:
    settings = get_settings()
    logger.info(
        "tool_server_config",
        extra={
            "extra": {
                "thingsboard_url": settings.thingsboard_url,
                "entity_type": settings.thingsboard_entity_type,
                "default_entity_set": bool(settings.thingsboard_default_entity_id),
                "credentials_set": bool(settings.thingsboard_username and settings.thingsboard_password),
                "access_token_set": bool(settings.thingsboard_access_token),
            }
        },
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/tools")
def list_tools() -> list[dict[str, Any]]:
    return [
        {
            "name": spec.name,
            "description": spec.description,
            "input_schema": spec.input_model.model_json_schema(),
            "output_schema": spec.output_model.model_json_schema(),
        }
        for spec in list_tool_specs()
    ]


@app.post("/tools/{tool_name}")
async def call_tool(tool_name: str, request: Request) -> ToolResponse:
    # Every tool call gets a trace_id for end-to-end debugging.
    trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
    if not get_tool_spec(tool_name):
        raise HTTPException(status_code=404, detail=f"Unknown tool: {tool_name}")

    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        payload = {}
    return run_tool(tool_name, payload, get_settings(), trace_id)


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "iot_tools.server:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
