"""FFmpeg command building.

This module provides the value objects used to describe an ffmpeg job
(global options, input files and output files with their own options) and
renders them into an argument list.

Example:
    builder = (
        FfmpegBuilder()
        .option(Single("y"))
        .input(File("in.mkv"))
        .output(File("out.mp4").option(KeyValue("vcodec", "libx265")))
    )
    builder.render()
    # ["-y", "-i", "in.mkv", "-vcodec", "libx265", "out.mp4"]
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from ffmpeg_cli.config.models import RunnerConfig
    from ffmpeg_cli.runner import FfmpegJob

DEFAULT_FFMPEG_COMMAND = "ffmpeg"

# Marker inserted before every input url
INPUT_MARKER = "-i"


@dataclass(frozen=True)
class Single:
    """An option that takes no value, e.g. ``-autorotate``.

    The leading ``-`` is added on render, so ``-autorotate`` is written as
    ``Single("autorotate")``.
    """

    name: str

    def to_args(self) -> list[str]:
        # An empty name renders as one empty argument rather than "-"
        if not self.name:
            return [""]
        return [f"-{self.name}"]


@dataclass(frozen=True)
class KeyValue:
    """An option with a value, e.g. ``-t 10`` is ``KeyValue("t", "10")``."""

    key: str
    value: str

    def to_args(self) -> list[str]:
        return [f"-{self.key}", self.value]


Parameter: TypeAlias = Single | KeyValue


class Redirect(Enum):
    """What to connect one of the subprocess's standard streams to."""

    DISCARD = "discard"  # /dev/null
    PIPE = "pipe"  # Captured, readable from the process handle
    INHERIT = "inherit"  # Shared with the calling process

    def to_subprocess(self) -> int | None:
        """Return the matching ``asyncio.subprocess`` constant."""
        if self is Redirect.DISCARD:
            return asyncio.subprocess.DEVNULL
        if self is Redirect.PIPE:
            return asyncio.subprocess.PIPE
        return None


@dataclass
class File:
    """A file ffmpeg reads from or writes to.

    Whether it is an input or an output depends on which builder method it
    is passed to. Plain paths work, as does anything ffmpeg accepts as a url.
    """

    url: str
    options: list[Parameter] = field(default_factory=list)

    def option(self, option: Parameter) -> File:
        """Add an option scoped to this file."""
        self.options.append(option)
        return self

    def to_args(self, is_input: bool) -> list[str]:
        """Render the file's options followed by its url.

        Args:
            is_input: Insert the ``-i`` marker before the url.

        Returns:
            Argument list for this file.
        """
        args: list[str] = []
        for option in self.options:
            args.extend(option.to_args())
        if is_input:
            args.append(INPUT_MARKER)
        args.append(self.url)
        return args


@dataclass
class FfmpegBuilder:
    """Description of a single ffmpeg invocation.

    Attributes:
        options: Global options, rendered before any file.
        inputs: Input files, each preceded by ``-i``.
        outputs: Output files.
        ffmpeg_command: Executable to run, usually just ``ffmpeg``.
        stdin_policy: Where the subprocess's stdin comes from.
        stdout_policy: Where the subprocess's stdout goes.
        stderr_policy: Where the subprocess's stderr goes.
    """

    options: list[Parameter] = field(default_factory=list)
    inputs: list[File] = field(default_factory=list)
    outputs: list[File] = field(default_factory=list)
    ffmpeg_command: str = DEFAULT_FFMPEG_COMMAND
    stdin_policy: Redirect = Redirect.DISCARD
    stdout_policy: Redirect = Redirect.DISCARD
    stderr_policy: Redirect = Redirect.DISCARD

    def option(self, option: Parameter) -> FfmpegBuilder:
        """Add a global option."""
        self.options.append(option)
        return self

    def input(self, file: File) -> FfmpegBuilder:
        """Add an input file."""
        self.inputs.append(file)
        return self

    def output(self, file: File) -> FfmpegBuilder:
        """Add an output file."""
        self.outputs.append(file)
        return self

    def command(self, ffmpeg_command: str) -> FfmpegBuilder:
        """Set the executable to run."""
        self.ffmpeg_command = ffmpeg_command
        return self

    def stdin(self, policy: Redirect) -> FfmpegBuilder:
        self.stdin_policy = policy
        return self

    def stdout(self, policy: Redirect) -> FfmpegBuilder:
        self.stdout_policy = policy
        return self

    def stderr(self, policy: Redirect) -> FfmpegBuilder:
        self.stderr_policy = policy
        return self

    def with_option(self, option: Parameter) -> FfmpegBuilder:
        """Return a copy with one more global option, leaving self untouched."""
        return replace(self, options=[*self.options, option])

    def render(self) -> list[str]:
        """Render the job into ffmpeg arguments, without the executable.

        Global options come first, then each input (its options, ``-i``,
        its url), then each output (its options, its url). Arguments are
        passed through verbatim; nothing is quoted or validated.

        Returns:
            Ordered argument list.
        """
        args: list[str] = []
        for option in self.options:
            args.extend(option.to_args())
        for file in self.inputs:
            args.extend(file.to_args(is_input=True))
        for file in self.outputs:
            args.extend(file.to_args(is_input=False))
        return args

    def to_command(self) -> list[str]:
        """Return the full argv, executable first."""
        return [self.ffmpeg_command, *self.render()]

    def subprocess_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``asyncio.create_subprocess_exec``."""
        return {
            "stdin": self.stdin_policy.to_subprocess(),
            "stdout": self.stdout_policy.to_subprocess(),
            "stderr": self.stderr_policy.to_subprocess(),
        }

    async def run(self, config: RunnerConfig | None = None) -> FfmpegJob:
        """Spawn ffmpeg and start collecting its progress.

        See :func:`ffmpeg_cli.runner.run`.
        """
        from ffmpeg_cli.runner import run

        return await run(self, config)
