"""Job context for structured logging.

Provides context propagation using contextvars so that every log record
emitted on behalf of an ffmpeg job carries its job id. asyncio tasks copy
the context they are created in, so setting the context before spawning the
progress task tags all of that task's records.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_output_url: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "output_url", default=None
)


def set_job_context(job_id: str, output_url: str | None = None) -> None:
    """Set the current job context.

    Args:
        job_id: Short job identifier (e.g., "1a2b3c4d").
        output_url: First output of the job, or None.
    """
    _job_id.set(job_id)
    _output_url.set(output_url)


def clear_job_context() -> None:
    """Clear the current job context."""
    _job_id.set(None)
    _output_url.set(None)


@contextmanager
def job_context(
    job_id: str,
    output_url: str | None = None,
) -> Generator[None, None, None]:
    """Context manager for a job's logging context.

    Sets job context on entry and restores the previous one on exit.

    Args:
        job_id: Short job identifier.
        output_url: First output of the job.

    Example:
        with job_context("1a2b3c4d", "out.mp4"):
            logger.info("Spawning ffmpeg")  # Automatically includes context
    """
    old_job_id = _job_id.get()
    old_output_url = _output_url.get()
    try:
        set_job_context(job_id, output_url)
        yield
    finally:
        _job_id.set(old_job_id)
        _output_url.set(old_output_url)


def get_job_context() -> tuple[str | None, str | None]:
    """Get current job context.

    Returns:
        Tuple of (job_id, output_url), either may be None.
    """
    return _job_id.get(), _output_url.get()


class JobContextFilter(logging.Filter):
    """Logging filter that injects job context into log records.

    Adds job_id and output_url attributes for JSON output and a compact
    job_tag such as ``[job 1a2b3c4d] `` for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        job_id, output_url = get_job_context()

        record.job_id = job_id
        record.output_url = output_url
        record.job_tag = f"[job {job_id}] " if job_id else ""

        return True  # Never filter out records
