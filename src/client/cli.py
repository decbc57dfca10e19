"""Command-line client for the IoT chat server."""

from __future__ import annotations

import argparse
import json
import uuid
from typing import Iterable, Iterator

import httpx


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Talk to the IoT chat server")
    parser.add_argument("query", help="User query, e.g. 'turn on the LED'")
    parser.add_argument("--agent-url", default="http://localhost:7002", help="Chat server base URL")
    parser.add_argument("--timeout", type=float, default=60.0, help="Request timeout seconds")
    parser.add_argument("--stream", action="store_true", help="Use the streaming chat endpoint")
    parser.add_argument("--verbose", action="store_true", help="Print route, tool calls and trace id")
    return parser


def iter_stream_parts(lines: Iterable[str]) -> Iterator[dict]:
    """Decode ``data: {...}`` server-sent event lines into part dicts, stopping at ``[DONE]``."""
    for line in lines:
        if not line.startswith("data: "):
            continue
        data = line[len("data: "):]
        if data == "[DONE]":
            return
        yield json.loads(data)


def _ask(client: httpx.Client, args: argparse.Namespace) -> int:
    resp = client.post(f"{args.agent_url}/v1/ask", json={"query": args.query})
    if resp.status_code >= 400:
        print(f"Request failed: {resp.status_code}")
        print(resp.text)
        return 1

    data = resp.json()
    print(data.get("answer", ""))

    if args.verbose:
        # Debug view to inspect routing, tool usage and trace_id.
        print("\n--- trace_id ---")
        print(data.get("trace_id"))
        print("\n--- route ---")
        print(data.get("route"))
        print("\n--- tool_calls ---")
        print(json.dumps(data.get("tool_calls", []), ensure_ascii=False, indent=2))
    return 0


def _stream(client: httpx.Client, args: argparse.Namespace) -> int:
    payload = {
        "messages": [
            {"id": str(uuid.uuid4()), "role": "user", "parts": [{"type": "text", "text": args.query}]}
        ]
    }
    with client.stream("POST", f"{args.agent_url}/api/chat", json=payload) as resp:
        if resp.status_code >= 400:
            resp.read()
            print(f"Request failed: {resp.status_code}")
            print(resp.text)
            return 1
        for part in iter_stream_parts(resp.iter_lines()):
            kind = part.get("type")
            if kind == "text-delta":
                print(part["delta"], end="", flush=True)
            elif kind == "error":
                print(f"\n[error] {part.get('errorText')}")
            elif args.verbose and kind == "reasoning-delta":
                print(f"[reasoning] {part['delta']}")
            elif args.verbose and kind == "tool-output-available":
                print(f"[tool] {json.dumps(part['output'], ensure_ascii=False)}")
        print()
        if args.verbose:
            print(f"\n--- trace_id ---\n{resp.headers.get('x-trace-id')}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Avoid inheriting system proxy settings that can break localhost calls.
    try:
        with httpx.Client(timeout=args.timeout, trust_env=False) as client:
            return _stream(client, args) if args.stream else _ask(client, args)
    except httpx.ReadTimeout:
        print("Request timed out. The server may still be processing the request.")
        print("Try again with a longer timeout, e.g. --timeout 120")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
