from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Both are required; the harness always sets them
    port: int
    static_assets: str

    host: str = Field(default="127.0.0.1", validation_alias="CHAT_HOST")

    model_config = SettingsConfigDict(populate_by_name=True)

    @field_validator("static_assets")
    @classmethod
    def check_index_html(cls, v: str) -> str:
        index_html = Path(v) / "index.html"
        if not index_html.is_file():
            raise ValueError(
                f"STATIC_ASSETS does not point to a directory with index.html: {v}"
            )
        return v
