"""
Configuration management using pydantic-settings.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="POLY_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # A transport is only created for the addresses that are set
    rpc_address: str | None = None
    rest_address: str | None = None
    ws_address: str | None = None

    # Overrides the rpc > rest > ws order when set
    default_transport: Literal["rpc", "rest", "ws"] | None = None

    chain_id: int = Field(default=0, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)

    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings()
