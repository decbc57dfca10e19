"""Tool server configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(ENV_FILE, override=False)


class ToolServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="IOT_CHAT_", env_file=str(ENV_FILE), extra="ignore")

    host: str = "0.0.0.0"
    port: int = 7001

    thingsboard_url: str = Field(
        default="https://thingsboard.cloud",
        validation_alias=AliasChoices("THINGSBOARD_URL", "IOT_CHAT_THINGSBOARD_URL"),
    )
    thingsboard_username: str | None = Field(
        default=None,
        validation_alias=AliasChoices("THINGSBOARD_USERNAME", "IOT_CHAT_THINGSBOARD_USERNAME"),
    )
    thingsboard_password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("THINGSBOARD_PASSWORD", "IOT_CHAT_THINGSBOARD_PASSWORD"),
    )
    thingsboard_default_entity_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "THINGSBOARD_DEFAULT_ENTITY_ID", "IOT_CHAT_THINGSBOARD_DEFAULT_ENTITY_ID"
        ),
    )
    thingsboard_entity_type: str = Field(
        default="DEVICE",
        validation_alias=AliasChoices("THINGSBOARD_ENTITY_TYPE", "IOT_CHAT_THINGSBOARD_ENTITY_TYPE"),
    )
    thingsboard_access_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("THINGSBOARD_ACCESS_TOKEN", "IOT_CHAT_THINGSBOARD_ACCESS_TOKEN"),
    )

    # ThingsBoard JWTs live for an hour; refresh five minutes early.
    token_ttl_s: float = 55 * 60
    request_timeout_s: float = 10.0

    @field_validator("thingsboard_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> ToolServerSettings:
    return ToolServerSettings()
