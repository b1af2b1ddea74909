"""Structured logging module for ffmpeg-cli.

Provides configurable logging with JSON format support and file rotation.
Includes job context support so records from concurrent jobs can be told
apart.
"""

from ffmpeg_cli.logging.config import configure_logging
from ffmpeg_cli.logging.context import (
    JobContextFilter,
    clear_job_context,
    get_job_context,
    job_context,
    set_job_context,
)
from ffmpeg_cli.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "JobContextFilter",
    "clear_job_context",
    "configure_logging",
    "get_job_context",
    "job_context",
    "set_job_context",
]
