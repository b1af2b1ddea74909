"""Typed ffmpeg command building with live progress reporting.

Example:
    builder = (
        FfmpegBuilder()
        .option(Single("y"))
        .input(File("input.mkv"))
        .output(File("output.mp4").option(KeyValue("vcodec", "libx265")))
    )
    job = await builder.run()
    async for item in job.progress:
        if isinstance(item, ProgressError):
            raise item
        print(item.frame, item.speed)
    await job.wait()
"""

from ffmpeg_cli.builder import (
    File,
    FfmpegBuilder,
    KeyValue,
    Parameter,
    Redirect,
    Single,
)
from ffmpeg_cli.exceptions import (
    ConfigError,
    FfmpegCliError,
    FfmpegSpawnError,
    KeyValueParseError,
    ProgressError,
    ProgressIOError,
    UnknownStatusError,
    ValueParseError,
)
from ffmpeg_cli.metrics import ProgressMetricsAggregator, ProgressSummary
from ffmpeg_cli.progress import Progress, ProgressParser, Status, parse_line
from ffmpeg_cli.runner import FfmpegJob, run
from ffmpeg_cli.stream import ProgressItem, ProgressStream

__all__ = [
    "ConfigError",
    "FfmpegBuilder",
    "FfmpegCliError",
    "FfmpegJob",
    "FfmpegSpawnError",
    "File",
    "KeyValue",
    "KeyValueParseError",
    "Parameter",
    "Progress",
    "ProgressError",
    "ProgressIOError",
    "ProgressItem",
    "ProgressMetricsAggregator",
    "ProgressParser",
    "ProgressStream",
    "ProgressSummary",
    "Redirect",
    "Single",
    "Status",
    "UnknownStatusError",
    "ValueParseError",
    "parse_line",
    "run",
]
