"""Tests for formatting utilities."""

from datetime import timedelta

import pytest

from ffmpeg_cli.formatting import (
    format_duration,
    format_file_size,
    format_progress,
    progress_to_dict,
)
from ffmpeg_cli.progress import Progress, Status


class TestFormatFileSize:
    """Tests for format_file_size function."""

    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1536, "1.5 KB"),
            (128 * 1024**2, "128.0 MB"),
            (int(4.2 * 1024**3), "4.2 GB"),
        ],
    )
    def test_units(self, size: int, expected: str) -> None:
        assert format_file_size(size) == expected


class TestFormatDuration:
    """Tests for format_duration function."""

    def test_zero(self) -> None:
        assert format_duration(timedelta(0)) == "00:00:00.00"

    def test_hours_minutes_centiseconds(self) -> None:
        assert format_duration(timedelta(seconds=3723, milliseconds=456)) == (
            "01:02:03.45"
        )


class TestFormatProgress:
    """Tests for format_progress function."""

    def test_full_snapshot(self) -> None:
        progress = Progress(
            frame=240,
            fps=48.04,
            total_size=2048,
            out_time=timedelta(seconds=10),
            speed=2.0,
        )
        assert format_progress(progress) == (
            "frame=240 fps=48.0 size=2.0 KB time=00:00:10.00 speed=2.00x"
        )

    def test_missing_fields(self) -> None:
        assert format_progress(Progress()) == (
            "frame=N/A fps=N/A size=N/A time=N/A speed=N/A"
        )

    def test_drop_and_dup_only_when_nonzero(self) -> None:
        progress = Progress(frame=1, drop_frames=2, dup_frames=0)
        assert format_progress(progress).endswith("speed=N/A drop=2")

    def test_percent_with_duration(self) -> None:
        progress = Progress(frame=1, out_time=timedelta(seconds=30), drop_frames=1)
        assert format_progress(progress, duration_seconds=120).endswith(
            "speed=N/A 25.0% drop=1"
        )

    def test_percent_unknown_out_time(self) -> None:
        assert format_progress(Progress(), duration_seconds=120).endswith(
            "speed=N/A 0.0%"
        )


class TestProgressToDict:
    """Tests for progress_to_dict function."""

    def test_values(self) -> None:
        progress = Progress(
            frame=5,
            out_time=timedelta(seconds=1.5),
            speed=1.25,
            status=Status.END,
        )
        assert progress_to_dict(progress) == {
            "frame": 5,
            "fps": None,
            "total_size": None,
            "out_time": 1.5,
            "dup_frames": None,
            "drop_frames": None,
            "speed": 1.25,
            "status": "end",
        }

    def test_percent_only_with_duration(self) -> None:
        progress = Progress(out_time=timedelta(seconds=45))

        assert "percent" not in progress_to_dict(progress)
        assert progress_to_dict(progress, duration_seconds=90)["percent"] == 50.0
