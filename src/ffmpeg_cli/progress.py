"""FFmpeg progress parsing.

FFmpeg's ``-progress`` output is a stream of ``key=value`` lines. Each
reporting interval ends with a ``progress=continue`` line, and the final
one with ``progress=end``. This module turns those lines into typed
:class:`Progress` snapshots, one per interval.

Everything here is pure: the network side lives in :mod:`ffmpeg_cli.runner`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any

from ffmpeg_cli.exceptions import (
    KeyValueParseError,
    UnknownStatusError,
    ValueParseError,
)

# Token ffmpeg uses for values it cannot compute yet
NOT_AVAILABLE = "N/A"


class Status(Enum):
    """What ffmpeg will do after the current interval."""

    CONTINUE = "continue"  # More progress events will follow
    END = "end"  # Processing finished, the stream ends after this


@dataclass
class Progress:
    """One reporting interval of ffmpeg progress.

    Field names follow the keys of ffmpeg's ``-progress`` output. Every
    field is optional because ffmpeg does not document which keys it always
    sends. ``bitrate`` is not tracked; its format is not well defined.
    """

    frame: int | None = None
    fps: float | None = None
    total_size: int | None = None  # Bytes written so far
    out_time: timedelta | None = None  # Position reached in the output
    dup_frames: int | None = None
    drop_frames: int | None = None
    speed: float | None = None  # Relative to 1x playback
    status: Status = Status.CONTINUE

    @property
    def out_time_seconds(self) -> float | None:
        """Get output time in seconds."""
        if self.out_time is not None:
            return self.out_time.total_seconds()
        return None

    @property
    def is_end(self) -> bool:
        return self.status is Status.END

    def get_percent(self, duration_seconds: float | None) -> float:
        """Calculate progress percentage based on duration.

        Args:
            duration_seconds: Total duration of the file in seconds.

        Returns:
            Progress percentage (0.0 to 100.0), or 0.0 if unknown.
        """
        if duration_seconds is None or duration_seconds <= 0:
            return 0.0
        out_time = self.out_time_seconds
        if out_time is None:
            return 0.0
        return min(100.0, (out_time / duration_seconds) * 100)


def parse_line(line: str) -> tuple[str, str] | None:
    """Split one progress line into key and value.

    Only the first ``=`` separates; values may contain more. The key loses
    trailing whitespace and the value loses leading whitespace, since ffmpeg
    pads some values with spaces.

    Args:
        line: Raw line, with or without its newline.

    Returns:
        ``(key, value)`` tuple, or None if the line has no ``=``.
    """
    key, sep, value = line.strip().partition("=")
    if not sep:
        return None
    return key.rstrip(), value.lstrip()


def _parse_unsigned(value: str) -> int:
    # int() would also accept signs, underscores and non-ASCII digits
    if not (value.isascii() and value.isdigit()):
        raise ValueError(f"invalid unsigned integer: {value!r}")
    return int(value)


def _parse_float(value: str) -> float:
    # float() would also accept underscores, padding and non-ASCII digits
    if not value.isascii() or "_" in value or value != value.strip():
        raise ValueError(f"invalid number: {value!r}")
    return float(value)


def _parse_out_time(value: str) -> timedelta:
    return timedelta(microseconds=_parse_unsigned(value))


def _strip_unit(value: str) -> str:
    """Drop a trailing unit suffix such as the ``x`` in ``1.02x``."""
    if value and not value[-1].isdigit():
        return value[:-1]
    return value


# Recognized keys: (Progress attribute, value preprocessor, number parser)
_FIELD_PARSERS: dict[str, tuple[str, Callable[[str], str], Callable[[str], Any]]] = {
    "frame": ("frame", str, _parse_unsigned),
    "fps": ("fps", str, _parse_float),
    "total_size": ("total_size", str, _parse_unsigned),
    "out_time_us": ("out_time", str, _parse_out_time),
    "dup_frames": ("dup_frames", str, _parse_unsigned),
    "drop_frames": ("drop_frames", str, _parse_unsigned),
    "speed": ("speed", _strip_unit, _parse_float),
}

_STATUS_KEY = "progress"


class ProgressParser:
    """Accumulates progress lines into per-interval snapshots.

    The parser holds the snapshot of the interval currently being read.
    Feed it lines in order; it returns a finished :class:`Progress` when an
    interval's ``progress=`` line arrives and starts a fresh one.

    Errors are raised as :class:`~ffmpeg_cli.exceptions.ProgressError`
    subclasses. After an error the parser should not be fed again.

    Usage:
        parser = ProgressParser()
        for line in lines:
            snapshot = parser.feed(line)
            if snapshot is not None:
                handle(snapshot)
    """

    def __init__(self) -> None:
        self._current = Progress()

    @property
    def current(self) -> Progress:
        """The snapshot accumulated so far for the open interval."""
        return self._current

    def feed(self, line: str) -> Progress | None:
        """Consume one line.

        Args:
            line: Raw progress line.

        Returns:
            The completed snapshot if the line closed an interval,
            otherwise None.

        Raises:
            KeyValueParseError: If the line has no ``=``.
            ValueParseError: If a known numeric field fails to parse.
            UnknownStatusError: If ``progress`` is not continue or end.
        """
        if not line.strip():
            return None

        parsed = parse_line(line)
        if parsed is None:
            raise KeyValueParseError(line)
        key, value = parsed

        if key == _STATUS_KEY:
            return self._finish_interval(value)

        field_parser = _FIELD_PARSERS.get(key)
        if field_parser is None:
            # Unknown or unsupported key (bitrate, out_time, stream_0_0_q, ...)
            return None

        attr, prepare, convert = field_parser
        if value == NOT_AVAILABLE:
            setattr(self._current, attr, None)
            return None

        number = prepare(value)
        try:
            converted = convert(number)
        except ValueError as e:
            raise ValueParseError(key, number, e) from e
        setattr(self._current, attr, converted)
        return None

    def _finish_interval(self, value: str) -> Progress:
        try:
            status = Status(value)
        except ValueError:
            raise UnknownStatusError(value) from None

        finished = self._current
        finished.status = status
        self._current = Progress()
        return finished
