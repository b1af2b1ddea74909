"""Shared test fixtures for ffmpeg-cli."""

import logging
import os
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from ffmpeg_cli.config import clear_config_cache

FAKE_FFMPEG_TEMPLATE = '''#!{python}
"""Scripted stand-in for ffmpeg used by the test suite."""
import socket
import sys
import time

args = sys.argv[1:]
with open({argv_file!r}, "w") as f:
    f.write("\\n".join(args))

sys.stderr.write({stderr!r})
sys.stderr.flush()
time.sleep({delay!r})

if {connect!r}:
    url = args[args.index("-progress") + 1]
    host, port = url.removeprefix("tcp://").rsplit(":", 1)
    with socket.create_connection((host, int(port))) as sock:
        for line in {lines!r}:
            sock.sendall(line.encode())

sys.exit({exit_code!r})
'''

FakeFfmpegFactory = Callable[..., Path]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep tests away from the user's config file and FFMPEG_CLI_* vars."""
    for var in list(os.environ):
        if var.startswith("FFMPEG_CLI_"):
            monkeypatch.delenv(var)
    monkeypatch.setenv("FFMPEG_CLI_CONFIG_PATH", str(tmp_path / "missing.toml"))
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo configure_logging() calls made by a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def argv_file(tmp_path: Path) -> Path:
    """File the fake ffmpeg writes its arguments to, one per line."""
    return tmp_path / "argv.txt"


@pytest.fixture
def fake_ffmpeg(tmp_path: Path, argv_file: Path) -> FakeFfmpegFactory:
    """Factory writing an executable fake ffmpeg.

    The fake records its argv, writes ``stderr``, sleeps ``delay`` seconds,
    connects to the ``-progress`` url (unless ``connect`` is False), sends
    ``lines`` verbatim and exits with ``exit_code``.
    """
    counter = 0

    def factory(
        lines: list[str] | tuple[str, ...] = (),
        exit_code: int = 0,
        connect: bool = True,
        stderr: str = "",
        delay: float = 0.0,
    ) -> Path:
        nonlocal counter
        counter += 1
        script = tmp_path / f"fake_ffmpeg_{counter}"
        script.write_text(
            FAKE_FFMPEG_TEMPLATE.format(
                python=sys.executable,
                argv_file=str(argv_file),
                stderr=stderr,
                delay=delay,
                connect=connect,
                lines=list(lines),
                exit_code=exit_code,
            )
        )
        script.chmod(0o755)
        return script

    return factory
