"""ThingsBoard authentication.

Holds one JWT per process and refreshes it lazily. Concurrent refreshes are
not serialized; the login endpoint is idempotent so the last writer wins.
"""

from __future__ import annotations

import base64
import json
import time
from functools import lru_cache

import httpx

from .adapters import AdapterError
from .logging import get_logger
from .settings import ToolServerSettings, get_settings

logger = get_logger("thingsboard_auth")


def jwt_expiry(token: str) -> float | None:
    """Return the ``exp`` claim of a JWT, or None if it cannot be read."""
    try:
        segment = token.split(".")[1]
        segment += "=" * (-len(segment) % 4)
        claims = json.loads(base64.urlsafe_b64decode(segment))
        return float(claims["exp"])
    except (IndexError, KeyError, TypeError, ValueError):
        return None


class ThingsBoardAuth:
    def __init__(self, settings: ToolServerSettings) -> None:
        self._settings = settings
        self._token: str | None = None
        self._expires_at: float | None = None

    @property
    def settings(self) -> ToolServerSettings:
        return self._settings

    def get_access_token(self) -> str:
        now = time.time()
        if self._token and self._expires_at and now < self._expires_at:
            logger.debug("token_cache_hit")
            return self._token

        configured = self._settings.thingsboard_access_token
        if configured:
            expiry = jwt_expiry(configured)
            if expiry is not None and now < expiry:
                logger.info("token_from_env")
                self._token = configured
                self._expires_at = expiry
                return configured

        return self._login()

    def clear_token(self) -> None:
        self._token = None
        self._expires_at = None
        logger.info("token_cleared")

    def _login(self) -> str:
        username = self._settings.thingsboard_username
        password = self._settings.thingsboard_password
        if not username or not password:
            raise AdapterError(
                "MISSING_CREDENTIALS",
                "THINGSBOARD_USERNAME and THINGSBOARD_PASSWORD must be set",
            )

        url = f"{self._settings.thingsboard_url}/api/auth/login"
        start = time.time()
        try:
            with httpx.Client(timeout=self._settings.request_timeout_s) as client:
                resp = client.post(
                    url,
                    json={"username": username, "password": password},
                    headers={"accept": "application/json"},
                )
        except httpx.RequestError as exc:
            raise AdapterError("UPSTREAM_UNAVAILABLE", f"ThingsBoard login failed: {exc}") from exc

        if resp.status_code >= 400:
            raise AdapterError(
                "AUTH_FAILED",
                f"Authentication failed: {resp.status_code}",
                {"status_code": resp.status_code, "body": resp.text[:500]},
            )
        try:
            token = resp.json().get("token")
        except ValueError:
            token = None
        if not token:
            raise AdapterError("AUTH_FAILED", "No access token received from ThingsBoard")

        self._token = token
        self._expires_at = time.time() + self._settings.token_ttl_s
        logger.info(
            "token_issued",
            extra={"extra": {"latency_ms": int((time.time() - start) * 1000)}},
        )
        return token


@lru_cache(maxsize=1)
def get_auth() -> ThingsBoardAuth:
    return ThingsBoardAuth(get_settings())
