"""Configuration via pydantic-settings — 12-factor app style."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """kvtail parser configuration — loaded from env vars / .env file."""

    model_config = SettingsConfigDict(env_prefix="KVTAIL_", env_file=".env", extra="ignore")

    timefield: str = Field(default="", description="Name of the field that contains a timestamp")
    format: str = Field(
        default="",
        description="Format of the timestamp in timefield ('unix', strftime, or reference layout)",
    )
    filter_regex: str = Field(default="", description="Only parse lines matching this regex")
    invert_filter: bool = Field(default=False, description="Only parse lines that do *not* match filter_regex")
    num_parsers: int = Field(default=1, ge=1, description="Worker threads draining the line stream")


settings = Settings()
