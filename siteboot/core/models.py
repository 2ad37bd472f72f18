"""Domain models for the bootstrap pipeline."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CollectionItem(BaseModel):
    """Metadata for one item of the remote collection.

    Accepts the generic field names (``id``, ``imageURL``) as well as the
    xkcd ones (``num``, ``img``).
    """

    model_config = ConfigDict(extra="ignore")

    id: int = Field(
        ...,
        validation_alias=AliasChoices("id", "num"),
        description="1-based item id",
    )
    image_url: str = Field(
        ...,
        validation_alias=AliasChoices("image_url", "imageURL", "img"),
        description="Image URL",
    )


class ScheduledTask(BaseModel):
    """A recurring command whose combined output is appended to a log."""

    command: list[str] = Field(..., min_length=1, description="Command to run")
    interval: float = Field(default=60.0, gt=0, description="Seconds between firings")
    log_path: Path = Field(..., description="LogStream file receiving output")


class RenderTask(BaseModel):
    """A template rendered in place from its pristine backup."""

    template_path: Path = Field(..., description="Served document path")
    file_mode: int = Field(default=0o644, description="File permissions (octal)")

    @property
    def backup_path(self) -> Path:
        return self.template_path.with_name(self.template_path.name + ".bkp")


class BootstrapState(str, Enum):
    NOT_STARTED = "not_started"
    BOOTSTRAPPING = "bootstrapping"
    SERVING = "serving"
