"""Integration tests for running a (fake) ffmpeg with progress reporting."""

import asyncio
import logging
from datetime import timedelta
from pathlib import Path

import pytest

from ffmpeg_cli.builder import File, FfmpegBuilder, KeyValue, Redirect, Single
from ffmpeg_cli.config.models import RunnerConfig
from ffmpeg_cli.exceptions import (
    FfmpegSpawnError,
    KeyValueParseError,
    ProgressIOError,
)
from ffmpeg_cli.logging.context import JobContextFilter
from ffmpeg_cli.progress import Progress, Status
from ffmpeg_cli.runner import run

pytestmark = pytest.mark.integration

INTERVALS = [
    "frame=12\n",
    "fps=24.00\n",
    "bitrate=N/A\n",
    "total_size=2048\n",
    "out_time_us=500000\n",
    "speed=1.00x\n",
    "progress=continue\n",
    "frame=24\n",
    "fps=24.00\n",
    "total_size=4096\n",
    "out_time_us=1000000\n",
    "speed=1.20x\n",
    "progress=end\n",
]


def make_builder(ffmpeg: Path) -> FfmpegBuilder:
    return (
        FfmpegBuilder()
        .command(str(ffmpeg))
        .option(Single("y"))
        .input(File("in.mkv"))
        .output(File("out.mp4").option(KeyValue("vcodec", "libx265")))
    )


class TestRun:
    """Tests for run() against a scripted ffmpeg."""

    @pytest.mark.asyncio
    async def test_progress_option_follows_global_options(
        self, fake_ffmpeg, argv_file: Path
    ) -> None:
        """-progress is appended to the global options, before any input."""
        builder = make_builder(fake_ffmpeg(INTERVALS))

        job = await run(builder)
        await job.progress.collect()
        assert await job.wait() == 0

        argv = argv_file.read_text().split("\n")
        assert job.progress_url.startswith("tcp://127.0.0.1:")
        assert argv == [
            "-y",
            "-progress",
            job.progress_url,
            "-i",
            "in.mkv",
            "-vcodec",
            "libx265",
            "out.mp4",
        ]

    @pytest.mark.asyncio
    async def test_builder_is_not_modified(self, fake_ffmpeg) -> None:
        builder = make_builder(fake_ffmpeg(INTERVALS))

        job = await run(builder)
        await job.progress.collect()
        await job.wait()

        assert builder.options == [Single("y")]

    @pytest.mark.asyncio
    async def test_snapshots_in_order(self, fake_ffmpeg) -> None:
        job = await make_builder(fake_ffmpeg(INTERVALS)).run()

        items = await job.progress.collect()

        assert items == [
            Progress(
                frame=12,
                fps=24.0,
                total_size=2048,
                out_time=timedelta(seconds=0.5),
                speed=1.0,
                status=Status.CONTINUE,
            ),
            Progress(
                frame=24,
                fps=24.0,
                total_size=4096,
                out_time=timedelta(seconds=1),
                speed=1.2,
                status=Status.END,
            ),
        ]
        assert await job.wait() == 0

    @pytest.mark.asyncio
    async def test_nonzero_exit_after_progress(self, fake_ffmpeg) -> None:
        """Progress and exit status are reported independently."""
        job = await run(make_builder(fake_ffmpeg(INTERVALS[:7], exit_code=3)))

        items = await job.progress.collect()

        assert [item.frame for item in items] == [12]
        assert await job.wait() == 3

    @pytest.mark.asyncio
    async def test_exit_before_connect(self, fake_ffmpeg) -> None:
        job = await run(make_builder(fake_ffmpeg(connect=False, exit_code=1)))

        items = await job.progress.collect()

        assert len(items) == 1
        assert isinstance(items[0], ProgressIOError)
        assert "exited with code 1" in str(items[0])
        assert await job.wait() == 1

    @pytest.mark.asyncio
    async def test_connect_timeout(self, fake_ffmpeg) -> None:
        job = await run(
            make_builder(fake_ffmpeg(connect=False, delay=30)),
            RunnerConfig(connect_timeout=0.3),
        )
        try:
            items = await job.progress.collect()
        finally:
            job.process.kill()
            await job.wait()

        assert len(items) == 1
        assert isinstance(items[0], ProgressIOError)
        assert "did not connect" in str(items[0])

    @pytest.mark.asyncio
    async def test_protocol_error_is_stream_item(self, fake_ffmpeg) -> None:
        lines = ["frame=1\n", "progress=continue\n", "frame=2\n", "garbage\n"]
        job = await run(make_builder(fake_ffmpeg(lines)))

        items = await job.progress.collect()

        assert items[0].frame == 1
        assert isinstance(items[1], KeyValueParseError)
        assert len(items) == 2
        assert await job.wait() == 0

    @pytest.mark.asyncio
    async def test_captured_stderr(self, fake_ffmpeg) -> None:
        builder = make_builder(fake_ffmpeg(INTERVALS, stderr="Stream mapping:\n"))
        builder.stderr(Redirect.PIPE)

        job = await run(builder)
        items, (stdout, stderr) = await asyncio.gather(
            job.progress.collect(), job.communicate()
        )

        assert len(items) == 2
        assert stdout is None
        assert stderr == b"Stream mapping:\n"

    @pytest.mark.asyncio
    async def test_spawn_failure(self, tmp_path: Path) -> None:
        builder = make_builder(tmp_path / "missing-ffmpeg")

        with pytest.raises(FfmpegSpawnError) as exc_info:
            await run(builder)

        assert exc_info.value.command == str(tmp_path / "missing-ffmpeg")

    @pytest.mark.asyncio
    async def test_consumer_can_stop_early(self, fake_ffmpeg) -> None:
        job = await run(make_builder(fake_ffmpeg(INTERVALS * 20)))

        first = await job.progress.__anext__()
        job.progress.cancel()

        assert first.frame == 12
        assert await job.wait() == 0
        assert await job.progress.collect() == []

    @pytest.mark.asyncio
    async def test_log_records_carry_job_id(
        self, fake_ffmpeg, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.handler.addFilter(JobContextFilter())
        with caplog.at_level(logging.DEBUG, logger="ffmpeg_cli"):
            job = await run(make_builder(fake_ffmpeg(INTERVALS)))
            await job.progress.collect()
            await job.wait()

        tagged = [r for r in caplog.records if r.name.startswith("ffmpeg_cli.runner")]
        assert tagged
        assert all(r.job_id == job.job_id for r in tagged)
        assert all(r.output_url == "out.mp4" for r in tagged)

        started = next(r for r in tagged if r.getMessage().startswith("Started"))
        assert started.pid == job.pid
        assert started.progress_url == job.progress_url


class TestSummary:
    """Tests for FfmpegJob.summary()."""

    @pytest.mark.asyncio
    async def test_summary(self, fake_ffmpeg) -> None:
        job = await run(make_builder(fake_ffmpeg(INTERVALS)))

        summary = await job.summary()
        await job.wait()

        assert summary.completed
        assert summary.total_frames == 24
        assert summary.total_size == 4096
        assert summary.avg_fps == 24.0
        assert summary.avg_speed == pytest.approx(1.1)
        assert summary.out_time == timedelta(seconds=1)

    @pytest.mark.asyncio
    async def test_summary_raises_stream_error(self, fake_ffmpeg) -> None:
        job = await run(make_builder(fake_ffmpeg(["garbage\n"])))

        with pytest.raises(KeyValueParseError):
            await job.summary()
        await job.wait()
