"""Formatting utilities.

Pure functions for presenting progress snapshots to people and to JSON
consumers.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from ffmpeg_cli.progress import Progress

_MISSING = "N/A"


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes.

    Returns:
        Formatted string (e.g., "4.2 GB", "128 MB", "1.5 KB").
    """
    if size_bytes >= 1024**3:
        return f"{size_bytes / (1024**3):.1f} GB"
    elif size_bytes >= 1024**2:
        return f"{size_bytes / (1024**2):.1f} MB"
    elif size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes} B"


def format_duration(duration: timedelta) -> str:
    """Format a duration the way ffmpeg does, e.g. "01:02:03.45"."""
    centiseconds = (duration // timedelta(milliseconds=10)) % 100
    total_seconds = int(duration.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{centiseconds:02d}"


def format_progress(
    progress: Progress, duration_seconds: float | None = None
) -> str:
    """One-line status, similar to ffmpeg's own stats line.

    With ``duration_seconds`` (the length of the input) the line ends with
    the share of it already written, e.g. ``42.0%``.
    """
    frame = str(progress.frame) if progress.frame is not None else _MISSING
    fps = f"{progress.fps:.1f}" if progress.fps is not None else _MISSING
    size = (
        format_file_size(progress.total_size)
        if progress.total_size is not None
        else _MISSING
    )
    time = (
        format_duration(progress.out_time)
        if progress.out_time is not None
        else _MISSING
    )
    speed = f"{progress.speed:.2f}x" if progress.speed is not None else _MISSING

    line = f"frame={frame} fps={fps} size={size} time={time} speed={speed}"
    if duration_seconds:
        line += f" {progress.get_percent(duration_seconds):.1f}%"
    if progress.drop_frames:
        line += f" drop={progress.drop_frames}"
    if progress.dup_frames:
        line += f" dup={progress.dup_frames}"
    return line


def progress_to_dict(
    progress: Progress, duration_seconds: float | None = None
) -> dict[str, Any]:
    """JSON-ready mapping of a snapshot.

    ``out_time`` is given in seconds. ``percent`` is only present when
    ``duration_seconds`` is known.
    """
    data = {
        "frame": progress.frame,
        "fps": progress.fps,
        "total_size": progress.total_size,
        "out_time": progress.out_time_seconds,
        "dup_frames": progress.dup_frames,
        "drop_frames": progress.drop_frames,
        "speed": progress.speed,
        "status": progress.status.value,
    }
    if duration_seconds:
        data["percent"] = progress.get_percent(duration_seconds)
    return data
