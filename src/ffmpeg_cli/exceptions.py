"""Exception types for ffmpeg-cli.

Errors raised while spawning ffmpeg or loading configuration propagate as
ordinary exceptions. Errors that occur while reading ffmpeg's progress
output are not raised: they are published as items of the progress stream,
so every ``ProgressError`` subclass doubles as a stream value.
"""


class FfmpegCliError(Exception):
    """Base exception for all ffmpeg-cli errors."""


class ProgressError(FfmpegCliError):
    """Base class for errors delivered through a progress stream.

    Exactly one of these is published before the stream ends. The interval
    during which it occurred is never delivered.
    """


class ProgressIOError(ProgressError):
    """Binding, accepting or reading the progress connection failed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"I/O error: {message}")


class KeyValueParseError(ProgressError):
    """ffmpeg sent a line that is not a ``key=value`` pair.

    Attributes:
        line: The offending line as received.
    """

    def __init__(self, line: str) -> None:
        self.line = line
        super().__init__(f"Invalid key=value pair: {line!r}")


class UnknownStatusError(ProgressError):
    """The ``progress`` key carried something other than continue/end.

    Attributes:
        status: The unrecognized status value.
    """

    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__(f"Unknown status: {status!r}")


class ValueParseError(ProgressError):
    """A recognized progress field could not be parsed as a number.

    Attributes:
        key: Progress key whose value failed to parse.
        value: The substring that was handed to the number parser.
        cause: The underlying parse error.
    """

    def __init__(self, key: str, value: str, cause: Exception) -> None:
        self.key = key
        self.value = value
        self.cause = cause
        super().__init__(f"Parse error for {key}: {value!r} ({cause})")


class FfmpegSpawnError(FfmpegCliError):
    """The ffmpeg process could not be started.

    Attributes:
        command: The executable that failed to launch.
    """

    def __init__(self, command: str, message: str) -> None:
        self.command = command
        super().__init__(f"Failed to start {command}: {message}")


class ConfigError(FfmpegCliError):
    """Invalid configuration file or value."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)
