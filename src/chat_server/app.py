"""FastAPI entry for the chat server."""

from __future__ import annotations

import uuid
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse, StreamingResponse

from .executor import AskRequest, AskResponse, EmptyQueryError, handle_ask, start_chat, stream_chat
from .logging import get_logger
from .messages import ChatRequest
from .settings import get_settings
from .stream import HEADERS, MEDIA_TYPE

STATIC_DIR = Path(__file__).resolve().parent / "static"

app = FastAPI(title="IoT Chat Server", version="0.1.0")
logger = get_logger("chat_server")


def _trace_id(request: Request) -> str:
    # Preserve incoming trace_id if provided, else generate one.
    return request.headers.get("x-trace-id") or str(uuid.uuid4())


@app.on_event("startup")
def log_startup_config() -> None:
    settings = get_settings()
    logger.info(
        "chat_server_config",
        extra={
            "extra": {
                "openai_model": settings.openai_model,
                "openai_key_set": bool(settings.openai_api_key),
                "mock_llm": settings.mock_llm,
                "mcp_base_url": settings.mcp_base_url,
                "confidence_threshold": settings.confidence_threshold,
            }
        },
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/agent-card")
def agent_card() -> dict[str, object]:
    settings = get_settings()
    return {
        "name": "iot-chat-agent",
        "version": "0.1.0",
        "description": "Chat assistant for ThingsBoard devices: temperature, LED control, attributes.",
        "endpoints": {"chat": "/api/chat", "ask": "/v1/ask"},
        "mcp_base_url": settings.mcp_base_url,
    }


@app.get("/", include_in_schema=False)
def index() -> FileResponse:
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")


@app.post("/v1/ask", response_model=AskResponse)
async def ask(payload: AskRequest, request: Request) -> AskResponse:
    return await handle_ask(payload, _trace_id(request))


@app.post("/api/chat")
async def chat(payload: ChatRequest, request: Request):
    trace_id = _trace_id(request)
    try:
        run = await start_chat(payload, trace_id)
    except EmptyQueryError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except Exception as exc:  # noqa: BLE001
        logger.exception("chat_error", extra={"extra": {"trace_id": trace_id, "error": str(exc)}})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    headers = {**HEADERS, "x-trace-id": trace_id}
    return StreamingResponse(stream_chat(run), media_type=MEDIA_TYPE, headers=headers)


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "chat_server.app:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
