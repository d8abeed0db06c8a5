from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application-wide settings populated from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TRAMWATCH_",
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int | None = Field(default=None, ge=1, le=65535)
    read_size: int = Field(default=4096, ge=1)
    connect_timeout: float = Field(default=10.0, gt=0)
    output_format: Literal["rich", "json", "text", "quiet"] | None = None
    config_dir: str = "~/.config/tramwatch"

    @property
    def config_path(self) -> Path:
        return Path(self.config_dir).expanduser()
