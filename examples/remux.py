#!/usr/bin/env python3
"""Transcode input.mkv to output.mp4 with x265, printing every progress event.

Usage:
    python examples/remux.py [input.mkv] [output.mp4]
"""

import asyncio
import sys

from ffmpeg_cli import (
    File,
    FfmpegBuilder,
    KeyValue,
    ProgressError,
    Redirect,
    Single,
)


async def main(input_url: str, output_url: str) -> int:
    builder = (
        FfmpegBuilder()
        .stderr(Redirect.PIPE)
        .option(Single("nostdin"))
        .option(Single("y"))
        .input(File(input_url))
        .output(
            File(output_url)
            .option(KeyValue("vcodec", "libx265"))
            .option(KeyValue("crf", "28"))
        )
    )

    job = await builder.run()

    async def print_progress() -> None:
        async for item in job.progress:
            if isinstance(item, ProgressError):
                print(f"progress error: {item}", file=sys.stderr)
                continue
            print(item)

    _, (_, stderr) = await asyncio.gather(print_progress(), job.communicate())

    print(f"exit code: {job.process.returncode}\nstderr:")
    print(stderr.decode("utf-8", errors="replace") if stderr else "")
    return job.process.returncode or 0


if __name__ == "__main__":
    args = sys.argv[1:] or ["input.mkv", "output.mp4"]
    sys.exit(asyncio.run(main(*args[:2])))
