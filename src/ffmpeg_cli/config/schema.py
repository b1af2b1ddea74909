"""Pydantic models validating the TOML configuration file.

Example file:

    [runner]
    ffmpeg_path = "/usr/local/bin/ffmpeg"
    connect_timeout = 10
    read_timeout = 0       # 0 disables the timeout

    [logging]
    level = "debug"
    format = "json"
    file = "~/.ffmpeg-cli/ffmpeg-cli.log"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ffmpeg_cli.exceptions import ConfigError


class RunnerSectionModel(BaseModel):
    """The ``[runner]`` table."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    ffmpeg_path: str | None = Field(default=None, min_length=1)
    connect_timeout: float | None = Field(default=None, ge=0)
    read_timeout: float | None = Field(default=None, ge=0)


class LoggingSectionModel(BaseModel):
    """The ``[logging]`` table."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    level: Literal["debug", "info", "warning", "error"] | None = None
    format: Literal["text", "json"] | None = None
    file: Path | None = None
    include_stderr: bool | None = None
    max_bytes: int | None = Field(default=None, gt=0)
    backup_count: int | None = Field(default=None, ge=0)

    @field_validator("level", "format", mode="before")
    @classmethod
    def _lowercase(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value


class ConfigFileModel(BaseModel):
    """Whole configuration file."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    runner: RunnerSectionModel = Field(default_factory=RunnerSectionModel)
    logging: LoggingSectionModel = Field(default_factory=LoggingSectionModel)


def _format_validation_error(error: ValidationError) -> tuple[str, str | None]:
    errors = error.errors()
    if not errors:
        return f"Config validation failed: {error}", None
    first_error = errors[0]
    loc = ".".join(str(x) for x in first_error.get("loc", []))
    msg = first_error.get("msg", str(error))
    if loc:
        return f"Config validation failed: {loc}: {msg}", loc
    return f"Config validation failed: {msg}", None


def validate_config_data(data: dict[str, Any]) -> ConfigFileModel:
    """Validate parsed TOML data.

    Args:
        data: Dictionary loaded from the config file.

    Returns:
        Validated model.

    Raises:
        ConfigError: If the data does not match the schema.
    """
    try:
        return ConfigFileModel.model_validate(data)
    except ValidationError as e:
        message, field = _format_validation_error(e)
        raise ConfigError(message, field=field) from e
