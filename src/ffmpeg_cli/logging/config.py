"""Logging setup for applications built on ffmpeg-cli.

The library only creates loggers; :func:`configure_logging` is called by
the bundled CLI (or any application that wants the same output).
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from ffmpeg_cli.logging.context import JobContextFilter
from ffmpeg_cli.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from ffmpeg_cli.config.models import LoggingConfig

# job_tag is "[job 1a2b3c4d] " while a job is running, empty otherwise
TEXT_FORMAT = "%(asctime)s - %(job_tag)s%(name)s - %(levelname)s - %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _make_formatter(config: LoggingConfig) -> logging.Formatter:
    if config.format.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)


def _open_log_file(config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating log file, or return None if it is unusable."""
    path = Path(config.file).expanduser()  # type: ignore[arg-type]
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Could not open log file {path}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Route all records through the handlers described by ``config``.

    Replaces any handlers already on the root logger. Records go to the
    log file when one is set (and usable), and to stderr otherwise or when
    ``include_stderr`` is true. Every handler tags records with the
    current job.
    """
    level = logging.getLevelNamesMapping()[config.level.upper()]

    handlers: list[logging.Handler] = []
    if config.file is not None:
        file_handler = _open_log_file(config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = _make_formatter(config)
    context_filter = JobContextFilter()

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)
