"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. Explicit overrides (CLI flags, passed directly to get_config)
2. Environment variables (FFMPEG_CLI_*)
3. Config file (~/.ffmpeg-cli/config.toml)
4. Default values

Environment variables:
- FFMPEG_CLI_CONFIG_PATH: Path to config file (overrides default location)
- FFMPEG_CLI_FFMPEG_PATH: ffmpeg executable
- FFMPEG_CLI_CONNECT_TIMEOUT: Seconds to wait for ffmpeg to connect back
- FFMPEG_CLI_READ_TIMEOUT: Seconds to wait for each progress line
- FFMPEG_CLI_LOG_LEVEL: debug, info, warning or error
- FFMPEG_CLI_LOG_FORMAT: text or json
- FFMPEG_CLI_LOG_FILE: Log file path
- FFMPEG_CLI_LOG_INCLUDE_STDERR: Also log to stderr when a file is set

Timeouts of 0 or less disable the timeout.
"""

from __future__ import annotations

import logging
import threading
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ffmpeg_cli.config.builder import (
    ENV_CONFIG_PATH,
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from ffmpeg_cli.config.env import EnvReader
from ffmpeg_cli.config.models import FfmpegCliConfig
from ffmpeg_cli.config.schema import ConfigFileModel, validate_config_data
from ffmpeg_cli.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".ffmpeg-cli"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

# Cache for loaded config files (path -> (validated model, mtime))
_config_cache: dict[Path, tuple[ConfigFileModel, float]] = {}
_config_cache_lock = threading.Lock()


def get_default_config_path(env: Mapping[str, str] | None = None) -> Path:
    """Get the config file path.

    Can be overridden by the FFMPEG_CLI_CONFIG_PATH environment variable.
    """
    return EnvReader(env).get_path(ENV_CONFIG_PATH, DEFAULT_CONFIG_FILE)


def clear_config_cache() -> None:
    """Forget every cached config file."""
    with _config_cache_lock:
        _config_cache.clear()


def load_config_file(path: Path) -> ConfigFileModel:
    """Load and validate a TOML config file.

    Results are cached per path and reloaded when the file's mtime changes.
    A missing file yields an empty (all-default) model.

    Args:
        path: Config file to read.

    Returns:
        Validated config file model.

    Raises:
        ConfigError: If the file cannot be read, is not valid TOML, or does
            not match the schema.
    """
    try:
        mtime = path.stat().st_mtime
    except FileNotFoundError:
        logger.debug("Config file %s not found, using defaults", path)
        return ConfigFileModel()
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    with _config_cache_lock:
        cached = _config_cache.get(path)
        if cached is not None and cached[1] == mtime:
            return cached[0]

    try:
        with path.open("rb") as f:
            data: dict[str, Any] = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    model = validate_config_data(data)
    logger.debug("Loaded config file %s", path)

    with _config_cache_lock:
        _config_cache[path] = (model, mtime)
    return model


def get_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: ConfigSource | None = None,
) -> FfmpegCliConfig:
    """Build the effective configuration.

    Args:
        config_path: Config file to read; None uses get_default_config_path().
        env: Environment mapping; None reads os.environ.
        overrides: Highest-precedence values, typically from CLI flags.

    Returns:
        Merged configuration.

    Raises:
        ConfigError: If the file is invalid or merged values fail validation.
    """
    reader = EnvReader(env)
    path = config_path if config_path is not None else get_default_config_path(env)

    builder = ConfigBuilder()
    builder.apply(source_from_file(load_config_file(path)))
    builder.apply(source_from_env(reader))
    if overrides is not None:
        builder.apply(overrides)

    try:
        return builder.build()
    except ValueError as e:
        raise ConfigError(str(e)) from e
