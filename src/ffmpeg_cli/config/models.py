"""Configuration data models for ffmpeg-cli.

All models are dataclasses that validate themselves in __post_init__ and
raise ValueError on bad values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ffmpeg_cli.builder import DEFAULT_FFMPEG_COMMAND

VALID_LOG_LEVELS = frozenset({"debug", "info", "warning", "error"})
VALID_LOG_FORMATS = frozenset({"text", "json"})


@dataclass
class RunnerConfig:
    """How ffmpeg is launched and how long to wait on its progress output."""

    # Executable used by the CLI when building jobs
    ffmpeg_path: str = DEFAULT_FFMPEG_COMMAND

    # Seconds to wait for ffmpeg to connect to the progress listener
    # (None or 0 = wait forever)
    connect_timeout: float | None = 30.0

    # Seconds to wait for each progress line (None or 0 = wait forever)
    read_timeout: float | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.ffmpeg_path:
            raise ValueError("ffmpeg_path must not be empty")
        for name in ("connect_timeout", "read_timeout"):
            value = getattr(self, name)
            if value == 0:
                setattr(self, name, None)
            elif value is not None and value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.level.lower() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"level must be one of {sorted(VALID_LOG_LEVELS)}, got {self.level}"
            )
        if self.format.lower() not in VALID_LOG_FORMATS:
            raise ValueError(
                f"format must be one of {sorted(VALID_LOG_FORMATS)}, "
                f"got {self.format}"
            )


@dataclass
class FfmpegCliConfig:
    """Top-level configuration."""

    runner: RunnerConfig = field(default_factory=RunnerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
