"""Logging for the chat server; same JSON line format as the tool server."""

from __future__ import annotations

from iot_tools.logging import JsonFormatter, get_logger

__all__ = ["JsonFormatter", "get_logger"]
