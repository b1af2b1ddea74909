"""Configuration builder with explicit layering.

This module provides ConfigBuilder for building FfmpegCliConfig by composing
multiple configuration sources with explicit precedence handling.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from ffmpeg_cli.config.env import EnvReader
from ffmpeg_cli.config.models import FfmpegCliConfig, LoggingConfig, RunnerConfig
from ffmpeg_cli.config.schema import ConfigFileModel

# Environment variable names
ENV_CONFIG_PATH = "FFMPEG_CLI_CONFIG_PATH"
ENV_FFMPEG_PATH = "FFMPEG_CLI_FFMPEG_PATH"
ENV_CONNECT_TIMEOUT = "FFMPEG_CLI_CONNECT_TIMEOUT"
ENV_READ_TIMEOUT = "FFMPEG_CLI_READ_TIMEOUT"
ENV_LOG_LEVEL = "FFMPEG_CLI_LOG_LEVEL"
ENV_LOG_FORMAT = "FFMPEG_CLI_LOG_FORMAT"
ENV_LOG_FILE = "FFMPEG_CLI_LOG_FILE"
ENV_LOG_INCLUDE_STDERR = "FFMPEG_CLI_LOG_INCLUDE_STDERR"


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources. A timeout of 0 (or
    less) is an explicit "no timeout".
    """

    # Runner
    ffmpeg_path: str | None = None
    connect_timeout: float | None = None
    read_timeout: float | None = None

    # Logging
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


def _timeout(value: float | None) -> float | None:
    if value is None or value <= 0:
        return None
    return value


class ConfigBuilder:
    """Builds FfmpegCliConfig from layered sources.

    Sources are applied in order; later sources override earlier ones.

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_model))
        builder.apply(source_from_env(reader))
        builder.apply(cli_source)
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def apply(self, source: ConfigSource) -> None:
        """Apply configuration source, overriding existing values.

        Non-None values from the source override existing values.
        None values are ignored (preserve existing).

        Args:
            source: Configuration source to apply.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> FfmpegCliConfig:
        """Build the final FfmpegCliConfig with defaults for unset values.

        Raises:
            ValueError: If a merged value fails model validation.
        """
        runner_defaults = RunnerConfig()
        runner = RunnerConfig(
            ffmpeg_path=self._get("ffmpeg_path", runner_defaults.ffmpeg_path),
            connect_timeout=_timeout(
                self._get("connect_timeout", runner_defaults.connect_timeout)
            ),
            read_timeout=_timeout(
                self._get("read_timeout", runner_defaults.read_timeout)
            ),
        )

        logging_defaults = LoggingConfig()
        logging_config = LoggingConfig(
            level=self._get("logging_level", logging_defaults.level),
            file=self._get("logging_file", logging_defaults.file),
            format=self._get("logging_format", logging_defaults.format),
            include_stderr=self._get(
                "logging_include_stderr", logging_defaults.include_stderr
            ),
            max_bytes=self._get("logging_max_bytes", logging_defaults.max_bytes),
            backup_count=self._get(
                "logging_backup_count", logging_defaults.backup_count
            ),
        )

        return FfmpegCliConfig(runner=runner, logging=logging_config)


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from environment variables.

    Args:
        reader: EnvReader to read variables through.

    Returns:
        ConfigSource with values from the environment.
    """
    level = reader.get_str(ENV_LOG_LEVEL)
    log_format = reader.get_str(ENV_LOG_FORMAT)
    return ConfigSource(
        ffmpeg_path=reader.get_str(ENV_FFMPEG_PATH),
        connect_timeout=reader.get_float(ENV_CONNECT_TIMEOUT),
        read_timeout=reader.get_float(ENV_READ_TIMEOUT),
        logging_level=level.lower() if level else None,
        logging_file=reader.get_path(ENV_LOG_FILE),
        logging_format=log_format.lower() if log_format else None,
        logging_include_stderr=reader.get_bool(ENV_LOG_INCLUDE_STDERR),
    )


def source_from_file(file_config: ConfigFileModel) -> ConfigSource:
    """Create ConfigSource from a validated config file.

    Args:
        file_config: Validated contents of the TOML file.

    Returns:
        ConfigSource with values from the config file.
    """
    runner = file_config.runner
    logging_conf = file_config.logging
    return ConfigSource(
        ffmpeg_path=runner.ffmpeg_path,
        connect_timeout=runner.connect_timeout,
        read_timeout=runner.read_timeout,
        logging_level=logging_conf.level,
        logging_file=(
            logging_conf.file.expanduser() if logging_conf.file is not None else None
        ),
        logging_format=logging_conf.format,
        logging_include_stderr=logging_conf.include_stderr,
        logging_max_bytes=logging_conf.max_bytes,
        logging_backup_count=logging_conf.backup_count,
    )
