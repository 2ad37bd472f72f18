from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SITEBOOT_", case_sensitive=False)

    latest_url: str = "https://xkcd.com/info.0.json"
    item_url_template: str = "https://xkcd.com/{id}/info.0.json"
    asset_path: Path = Path("/usr/share/nginx/html/image.png")
    template_path: Path = Path("/usr/share/nginx/html/index.html")
    log_path: Path = Path("/var/log/cron.log")
    interval_seconds: float = Field(default=60.0, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    forward_poll_seconds: float = Field(default=1.0, gt=0)
    file_mode: int = 0o644

    @field_validator("file_mode", mode="before")
    @classmethod
    def _parse_octal(cls, value: object) -> object:
        if isinstance(value, str):
            try:
                return int(value, 8)
            except ValueError as e:
                raise ValueError(f"Invalid octal mode: {value!r}") from e
        return value
