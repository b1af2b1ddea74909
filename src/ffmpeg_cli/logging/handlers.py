"""JSON log output for ffmpeg-cli.

Every record becomes one JSON object per line. Fields the runner attaches
through ``extra=`` are grouped: the ffmpeg invocation under ``"job"`` and a
finished progress interval under ``"progress"``. Any other extra keys land
in ``"extra"``.

Example line:

    {"timestamp": "2024-05-01T12:00:00.123456+00:00", "level": "DEBUG",
     "logger": "ffmpeg_cli.runner", "message": "Progress interval 3",
     "job": {"job_id": "1a2b3c4d", "output_url": "out.mp4"},
     "progress": {"frame": 72, "fps": 24.0, "speed": 1.02,
                  "status": "continue"}}
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Describe the ffmpeg invocation; job_id/output_url come from JobContextFilter
JOB_FIELDS = (
    "job_id",
    "output_url",
    "progress_url",
    "ffmpeg_path",
    "pid",
    "arg_count",
)

# One finished progress interval, as logged by the pump
PROGRESS_FIELDS = (
    "frame",
    "fps",
    "total_size",
    "out_time_us",
    "speed",
    "status",
)

_GROUPED = frozenset(JOB_FIELDS) | frozenset(PROGRESS_FIELDS)

# Attributes every LogRecord carries, plus ones added during formatting
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
    "job_tag",
}


def _pick(record: logging.LogRecord, names: tuple[str, ...]) -> dict[str, Any]:
    values = {}
    for name in names:
        value = getattr(record, name, None)
        if value is not None:
            values[name] = value
    return values


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        job = _pick(record, JOB_FIELDS)
        if job:
            entry["job"] = job
        progress = _pick(record, PROGRESS_FIELDS)
        if progress:
            entry["progress"] = progress

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in _GROUPED
            and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
