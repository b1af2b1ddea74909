"""Command line interface for ffmpeg-cli."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from pathlib import Path

import click

from ffmpeg_cli.builder import (
    File,
    FfmpegBuilder,
    KeyValue,
    Parameter,
    Redirect,
    Single,
)
from ffmpeg_cli.config import ConfigSource, FfmpegCliConfig, get_config
from ffmpeg_cli.exceptions import ConfigError, FfmpegCliError, ProgressError
from ffmpeg_cli.formatting import (
    format_duration,
    format_file_size,
    format_progress,
    progress_to_dict,
)
from ffmpeg_cli.logging import configure_logging
from ffmpeg_cli.metrics import ProgressMetricsAggregator, ProgressSummary
from ffmpeg_cli.runner import FfmpegJob, run

logger = logging.getLogger(__name__)

# Number of trailing stderr lines shown when ffmpeg fails
STDERR_TAIL_LINES = 20


def parse_option(text: str) -> Parameter:
    """Turn ``name`` or ``name=value`` into a Parameter.

    A single leading ``-`` is accepted and dropped.

    Raises:
        click.BadParameter: If the option name is empty.
    """
    text = text.removeprefix("-")
    name, sep, value = text.partition("=")
    if not name:
        raise click.BadParameter(f"option name missing in {text!r}")
    if sep:
        return KeyValue(name, value)
    return Single(name)


def build_job(
    inputs: tuple[str, ...],
    outputs: tuple[str, ...],
    global_options: tuple[str, ...] = (),
    input_options: tuple[str, ...] = (),
    output_options: tuple[str, ...] = (),
    ffmpeg_path: str = "ffmpeg",
) -> FfmpegBuilder:
    """Build a job from CLI values.

    Input options apply to every input and output options to every output.
    stderr is captured so it can be shown if ffmpeg fails.
    """
    builder = FfmpegBuilder().command(ffmpeg_path).stderr(Redirect.PIPE)
    for option in global_options:
        builder.option(parse_option(option))
    for url in inputs:
        builder.input(File(url, [parse_option(o) for o in input_options]))
    for url in outputs:
        builder.output(File(url, [parse_option(o) for o in output_options]))
    return builder


def _format_summary(summary: ProgressSummary) -> str:
    parts = [f"{summary.total_frames or 0} frames"]
    if summary.avg_fps is not None:
        parts.append(f"avg {summary.avg_fps:.1f} fps")
    if summary.avg_speed is not None:
        parts.append(f"avg speed {summary.avg_speed:.2f}x")
    if summary.total_size is not None:
        parts.append(format_file_size(summary.total_size))
    if summary.out_time is not None:
        parts.append(format_duration(summary.out_time))
    return ", ".join(parts)


async def _consume(
    job: FfmpegJob,
    aggregator: ProgressMetricsAggregator,
    as_json: bool,
    duration: float | None,
) -> ProgressError | None:
    error: ProgressError | None = None
    async for item in job.progress:
        if isinstance(item, ProgressError):
            error = item
            continue
        aggregator.add_sample(item)
        if as_json:
            click.echo(json.dumps(progress_to_dict(item, duration)))
        else:
            click.echo(format_progress(item, duration))
    return error


async def _run_job(
    builder: FfmpegBuilder,
    config: FfmpegCliConfig,
    as_json: bool,
    duration: float | None = None,
) -> int:
    """Run the job to completion and return the process exit code."""
    job = await run(builder, config.runner)
    aggregator = ProgressMetricsAggregator()

    # stderr is piped, so it must be read while progress is consumed
    error, (_, stderr) = await asyncio.gather(
        _consume(job, aggregator, as_json, duration),
        job.communicate(),
    )
    returncode = job.process.returncode
    assert returncode is not None

    if returncode != 0:
        click.echo(f"ffmpeg exited with code {returncode}", err=True)
        if stderr:
            tail = stderr.decode("utf-8", errors="replace").splitlines()
            for line in tail[-STDERR_TAIL_LINES:]:
                click.echo(line, err=True)
        return returncode

    if error is not None:
        click.echo(f"Error: {error}", err=True)
        return 1

    if not as_json:
        click.echo(f"Done: {_format_summary(aggregator.summarize())}")
    return 0


def _apply_run_flags(
    config: FfmpegCliConfig,
    ffmpeg_path: str | None,
    connect_timeout: float | None,
) -> FfmpegCliConfig:
    """Apply ``run`` command flags on top of the loaded config."""
    runner = config.runner
    if ffmpeg_path is not None:
        runner = replace(runner, ffmpeg_path=ffmpeg_path)
    if connect_timeout is not None:
        runner = replace(
            runner, connect_timeout=connect_timeout if connect_timeout > 0 else None
        )
    return replace(config, runner=runner)


@click.group()
@click.version_option(package_name="ffmpeg-cli")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.ffmpeg-cli/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Run ffmpeg and report its progress."""
    overrides = ConfigSource(
        logging_level=log_level.lower() if log_level else None,
        logging_file=log_file,
        logging_format="json" if log_json else None,
    )
    try:
        config = get_config(config_path, overrides=overrides)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    configure_logging(config.logging)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command("run")
@click.argument("inputs", nargs=-1, required=True)
@click.option(
    "-o",
    "--output",
    "outputs",
    multiple=True,
    required=True,
    help="Output file. Repeatable.",
)
@click.option(
    "-g",
    "--global-option",
    "global_options",
    multiple=True,
    metavar="OPT",
    help="Global option as NAME or NAME=VALUE. Repeatable.",
)
@click.option(
    "-I",
    "--input-option",
    "input_options",
    multiple=True,
    metavar="OPT",
    help="Option applied to every input. Repeatable.",
)
@click.option(
    "-O",
    "--output-option",
    "output_options",
    multiple=True,
    metavar="OPT",
    help="Option applied to every output. Repeatable.",
)
@click.option("--ffmpeg", "ffmpeg_path", default=None, help="ffmpeg executable.")
@click.option(
    "--connect-timeout",
    type=float,
    default=None,
    help="Seconds to wait for ffmpeg to connect back (0 = no limit).",
)
@click.option(
    "--duration",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    metavar="SECONDS",
    help="Input length, to report progress as a percentage.",
)
@click.option("--json", "as_json", is_flag=True, help="Print progress as JSON lines.")
@click.pass_context
def run_command(
    ctx: click.Context,
    inputs: tuple[str, ...],
    outputs: tuple[str, ...],
    global_options: tuple[str, ...],
    input_options: tuple[str, ...],
    output_options: tuple[str, ...],
    ffmpeg_path: str | None,
    connect_timeout: float | None,
    duration: float | None,
    as_json: bool,
) -> None:
    """Transcode INPUTS to the given outputs, printing progress.

    Examples:

    \b
        ffmpeg-cli run input.mkv -o output.mp4 -g y -O vcodec=libx265 -O crf=28
        ffmpeg-cli run input.mkv -o output.webm --json
        ffmpeg-cli run input.mkv -o output.mp4 --duration 5400
    """
    config: FfmpegCliConfig = ctx.obj["config"]
    if ffmpeg_path is not None or connect_timeout is not None:
        config = _apply_run_flags(config, ffmpeg_path, connect_timeout)

    builder = build_job(
        inputs,
        outputs,
        global_options,
        input_options,
        output_options,
        ffmpeg_path=config.runner.ffmpeg_path,
    )

    logger.debug(
        "Running %d input(s) to %d output(s)",
        len(inputs),
        len(outputs),
        extra={"ffmpeg_path": config.runner.ffmpeg_path},
    )
    try:
        exit_code = asyncio.run(_run_job(builder, config, as_json, duration))
    except FfmpegCliError as e:
        raise click.ClickException(str(e)) from e

    ctx.exit(exit_code)

