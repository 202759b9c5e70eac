"""Harness configuration loaded from ``HARNESS_*`` environment variables."""

import shlex
import sys
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

import chat_server


class HarnessSettings(BaseSettings):
    """Settings shared by every harness stage."""

    # Pacing for humans watching a headed browser
    demo_mode: bool = Field(
        default=False,
        validation_alias=AliasChoices("DEMO_MODE", "HARNESS_DEMO_MODE"),
    )
    demo_pause: float = 1.0

    # Application under test
    app_command: str | None = None  # shell-style; default: python -m chat_server
    static_assets: str | None = None  # default: bundled chat_server/static

    # Service readiness polling
    readiness_timeout: float = 5.0
    readiness_interval: float = 0.1

    # Element query polling
    query_timeout: float = 3.0
    query_interval: float = 0.5

    # Single WebDriver HTTP call
    request_timeout: float = 60.0

    model_config = SettingsConfigDict(env_prefix="HARNESS_", populate_by_name=True)

    @field_validator("demo_mode", mode="before")
    @classmethod
    def parse_demo_mode(cls, v: object) -> bool:
        """Only ``1`` and ``true`` (any case) switch demo mode on."""
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true")
        return bool(v)

    def get_app_argv(self) -> list[str]:
        """Return the application command line as an argv list."""
        if self.app_command:
            return shlex.split(self.app_command)
        return [sys.executable, "-m", "chat_server"]

    def get_static_assets(self) -> Path:
        """Return the assets directory handed to the application."""
        if self.static_assets:
            return Path(self.static_assets)
        return Path(chat_server.__file__).parent / "static"
