"""Configuration management for ffmpeg-cli.

This module provides configuration loading with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (FFMPEG_CLI_*)
3. Config file (~/.ffmpeg-cli/config.toml)
4. Default values (lowest priority)
"""

from ffmpeg_cli.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from ffmpeg_cli.config.env import EnvReader
from ffmpeg_cli.config.loader import (
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
from ffmpeg_cli.config.models import FfmpegCliConfig, LoggingConfig, RunnerConfig

__all__ = [
    "ConfigBuilder",
    "ConfigSource",
    "EnvReader",
    "FfmpegCliConfig",
    "LoggingConfig",
    "RunnerConfig",
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
    "source_from_env",
    "source_from_file",
]
