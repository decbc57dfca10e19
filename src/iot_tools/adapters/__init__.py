"""External API adapters."""

from __future__ import annotations

import httpx


class AdapterError(RuntimeError):
    """Upstream failure normalized to a code the tool envelope can carry."""

    def __init__(self, code: str, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


def upstream_error(resp: httpx.Response, prefix: str) -> AdapterError:
    return AdapterError(
        "UPSTREAM_ERROR",
        f"{prefix}: {resp.status_code} {resp.reason_phrase}. {resp.text[:500]}".strip(),
        {"status_code": resp.status_code, "url": str(resp.request.url)},
    )
