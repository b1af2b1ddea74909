"""Running ffmpeg with live progress reporting.

:func:`run` binds a loopback TCP listener, adds
``-progress tcp://127.0.0.1:<port>`` to the job, spawns ffmpeg and returns
an :class:`FfmpegJob` straight away. A background task accepts ffmpeg's
connection and turns the ``key=value`` lines it sends into
:class:`~ffmpeg_cli.progress.Progress` items on the job's
:class:`~ffmpeg_cli.stream.ProgressStream`.

Failures while accepting or reading are published as a single
:class:`~ffmpeg_cli.exceptions.ProgressError` item, after which the stream
ends.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import timedelta

from ffmpeg_cli.builder import FfmpegBuilder, KeyValue
from ffmpeg_cli.config.models import RunnerConfig
from ffmpeg_cli.exceptions import (
    FfmpegSpawnError,
    ProgressError,
    ProgressIOError,
)
from ffmpeg_cli.logging.context import job_context
from ffmpeg_cli.metrics import ProgressMetricsAggregator, ProgressSummary
from ffmpeg_cli.progress import Progress, ProgressParser
from ffmpeg_cli.stream import ProgressStream

logger = logging.getLogger(__name__)

LISTEN_HOST = "127.0.0.1"
PROGRESS_OPTION = "progress"

# Seconds a pending connection is still awaited once ffmpeg has exited
EXIT_CONNECT_GRACE = 1.0

_Connection = tuple[asyncio.StreamReader, asyncio.StreamWriter]


@dataclass
class FfmpegJob:
    """A running ffmpeg process and its progress stream.

    The two halves are independent. ``progress`` can be drained before,
    after or alongside waiting on ``process``. When stdout or stderr is
    piped, read them concurrently with the progress stream (for example
    with ``asyncio.gather(job.progress.collect(), job.communicate())``),
    otherwise ffmpeg can block on a full pipe.

    Attributes:
        process: The ffmpeg subprocess.
        progress: Ordered stream of Progress or ProgressError items.
        job_id: Short identifier used to tag log records.
        progress_url: Address ffmpeg was told to report to.
    """

    process: asyncio.subprocess.Process
    progress: ProgressStream
    job_id: str
    progress_url: str
    _pump_task: asyncio.Task[None] = field(repr=False)

    @property
    def pid(self) -> int:
        return self.process.pid

    async def wait(self) -> int:
        """Wait for ffmpeg to exit and return its exit code."""
        return await self.process.wait()

    async def communicate(self) -> tuple[bytes | None, bytes | None]:
        """Wait for ffmpeg to exit, returning captured (stdout, stderr).

        Either element is None unless the matching stream was set to
        ``Redirect.PIPE``.
        """
        return await self.process.communicate()

    async def summary(self) -> ProgressSummary:
        """Drain the progress stream and aggregate it.

        Returns:
            Summary of every snapshot received.

        Raises:
            ProgressError: The error item that ended the stream, if any.
        """
        aggregator = ProgressMetricsAggregator()
        error: ProgressError | None = None
        async for item in self.progress:
            if isinstance(item, ProgressError):
                error = item
            else:
                aggregator.add_sample(item)
        if error is not None:
            raise error
        return aggregator.summarize()


def _handle_pump_task_result(task: asyncio.Task[None]) -> None:
    """Log a pump task that died with an unexpected exception."""
    if task.cancelled():
        logger.debug("Progress task was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Progress task failed unexpectedly", exc_info=exc)


async def run(
    builder: FfmpegBuilder,
    config: RunnerConfig | None = None,
) -> FfmpegJob:
    """Spawn ffmpeg and start collecting its progress.

    The builder is not modified; the ``-progress`` option is added to a
    copy, after the caller's global options.

    Args:
        builder: Job description.
        config: Timeouts; None uses RunnerConfig defaults.

    Returns:
        Handle bundling the process and its progress stream.

    Raises:
        ProgressIOError: If the progress listener cannot be bound.
        FfmpegSpawnError: If ffmpeg cannot be started.
    """
    if config is None:
        config = RunnerConfig()

    connected: asyncio.Future[_Connection] = (
        asyncio.get_running_loop().create_future()
    )

    def on_connect(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        if connected.done():
            # Only ffmpeg's first connection is read
            logger.warning(
                "Rejecting extra progress connection from %s",
                writer.get_extra_info("peername"),
            )
            writer.close()
            return
        connected.set_result((reader, writer))

    try:
        server = await asyncio.start_server(on_connect, host=LISTEN_HOST, port=0)
    except OSError as e:
        raise ProgressIOError(f"cannot bind progress listener: {e}") from e

    port = server.sockets[0].getsockname()[1]
    progress_url = f"tcp://{LISTEN_HOST}:{port}"
    job_id = uuid.uuid4().hex[:8]

    command = builder.with_option(KeyValue(PROGRESS_OPTION, progress_url))
    argv = command.to_command()
    output_url = command.outputs[0].url if command.outputs else None

    with job_context(job_id, output_url):
        logger.debug(
            "Progress listener bound on %s",
            progress_url,
            extra={"progress_url": progress_url},
        )
        logger.debug("ffmpeg argv: %s", argv, extra={"arg_count": len(argv)})
        try:
            process = await asyncio.create_subprocess_exec(
                *argv, **command.subprocess_kwargs()
            )
        except OSError as e:
            server.close()
            await server.wait_closed()
            raise FfmpegSpawnError(command.ffmpeg_command, str(e)) from e

        logger.info(
            "Started %s (pid=%d)",
            command.ffmpeg_command,
            process.pid,
            extra={"progress_url": progress_url, "pid": process.pid},
        )

        stream = ProgressStream()
        # The task inherits the job context set above
        task = asyncio.create_task(
            _run_pump(server, connected, process, stream, config),
            name=f"ffmpeg-progress-{job_id}",
        )
    task.add_done_callback(_handle_pump_task_result)

    return FfmpegJob(
        process=process,
        progress=stream,
        job_id=job_id,
        progress_url=progress_url,
        _pump_task=task,
    )


async def _run_pump(
    server: asyncio.Server,
    connected: asyncio.Future[_Connection],
    process: asyncio.subprocess.Process,
    stream: ProgressStream,
    config: RunnerConfig,
) -> None:
    """Accept ffmpeg's connection and pump it into the stream."""
    writer: asyncio.StreamWriter | None = None
    try:
        try:
            reader, writer = await _accept(connected, process, config.connect_timeout)
        except ProgressIOError as e:
            logger.warning("%s", e)
            stream.publish(e)
            return
        finally:
            # Stop listening; an accepted connection stays open
            server.close()

        logger.debug("ffmpeg connected to progress listener")
        await pump(reader, stream, config.read_timeout)
    finally:
        stream.close()
        if not connected.done():
            connected.cancel()
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug("Error closing progress connection: %s", e)
        await server.wait_closed()


async def _accept(
    connected: asyncio.Future[_Connection],
    process: asyncio.subprocess.Process,
    timeout: float | None,
) -> _Connection:
    """Wait for ffmpeg to connect back.

    Raises:
        ProgressIOError: If ffmpeg exits first or the timeout expires.
    """
    exited = asyncio.ensure_future(process.wait())
    try:
        await asyncio.wait(
            {connected, exited},
            timeout=timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        exited.cancel()

    if not connected.done() and process.returncode is not None:
        # The exit may be noticed before a connection still in the backlog
        await asyncio.wait({connected}, timeout=EXIT_CONNECT_GRACE)

    # A connection wins even if ffmpeg exited in the meantime
    if connected.done():
        return connected.result()
    if process.returncode is not None:
        raise ProgressIOError(
            f"ffmpeg exited with code {process.returncode} "
            "before connecting to the progress listener"
        )
    raise ProgressIOError(
        f"ffmpeg did not connect to the progress listener within {timeout}s"
    )


async def _readline(reader: asyncio.StreamReader, timeout: float | None) -> bytes:
    if timeout is None:
        return await reader.readline()
    return await asyncio.wait_for(reader.readline(), timeout)


async def pump(
    reader: asyncio.StreamReader,
    stream: ProgressStream,
    read_timeout: float | None = None,
) -> None:
    """Read progress lines until EOF, publishing snapshots to ``stream``.

    The first error is published and ends the stream. Reading then
    continues, discarding lines, until ffmpeg closes the connection, so
    ffmpeg never blocks writing progress. A read failure stops reading
    altogether. The stream is closed on return.

    Args:
        reader: Connection from ffmpeg.
        stream: Destination for snapshots and errors.
        read_timeout: Seconds to wait for each line, None for no limit.
    """
    parser = ProgressParser()
    intervals = 0
    try:
        while True:
            try:
                raw = await _readline(reader, read_timeout)
            except TimeoutError:
                _publish_error(
                    stream,
                    ProgressIOError(f"no progress received for {read_timeout}s"),
                )
                return
            except (OSError, ValueError) as e:
                # ValueError: line longer than the reader's buffer limit
                _publish_error(stream, ProgressIOError(str(e)))
                return

            if not raw:
                logger.debug("Progress stream ended after %d intervals", intervals)
                return

            if stream.closed:
                continue

            line = raw.decode("utf-8", errors="replace")
            try:
                snapshot = parser.feed(line)
            except ProgressError as e:
                _publish_error(stream, e)
                continue

            if snapshot is not None:
                intervals += 1
                _publish_snapshot(stream, snapshot, intervals)
    finally:
        stream.close()


def _publish_snapshot(
    stream: ProgressStream, snapshot: Progress, interval: int
) -> None:
    out_time = snapshot.out_time
    logger.debug(
        "Progress interval %d: frame=%s speed=%s",
        interval,
        snapshot.frame,
        snapshot.speed,
        extra={
            "frame": snapshot.frame,
            "fps": snapshot.fps,
            "total_size": snapshot.total_size,
            "out_time_us": out_time // timedelta(microseconds=1)
            if out_time is not None
            else None,
            "speed": snapshot.speed,
            "status": snapshot.status.value,
        },
    )
    if not stream.publish(snapshot) and stream.cancelled:
        # Consumer went away; keep draining so ffmpeg is not blocked
        logger.debug("Dropping progress, consumer has stopped reading")


def _publish_error(stream: ProgressStream, error: ProgressError) -> None:
    logger.warning("Progress stream error: %s", error)
    stream.publish(error)
    stream.close()
