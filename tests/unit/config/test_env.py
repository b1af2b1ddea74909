"""Tests for reading FFMPEG_CLI_* environment variables."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from ffmpeg_cli.config.env import EnvReader


class TestGetStr:
    def test_value(self) -> None:
        reader = EnvReader(env={"FFMPEG_CLI_FFMPEG_PATH": "/opt/ffmpeg"})
        assert reader.get_str("FFMPEG_CLI_FFMPEG_PATH") == "/opt/ffmpeg"

    def test_missing_uses_default(self) -> None:
        reader = EnvReader(env={})
        assert reader.get_str("FFMPEG_CLI_FFMPEG_PATH", "ffmpeg") == "ffmpeg"

    def test_empty_counts_as_unset(self) -> None:
        """An exported but empty variable falls back to the default."""
        reader = EnvReader(env={"FFMPEG_CLI_FFMPEG_PATH": ""})
        assert reader.get_str("FFMPEG_CLI_FFMPEG_PATH") is None
        assert reader.get_str("FFMPEG_CLI_FFMPEG_PATH", "ffmpeg") == "ffmpeg"


class TestGetFloat:
    @pytest.mark.parametrize("raw,expected", [("2.5", 2.5), ("10", 10.0)])
    def test_numbers(self, raw: str, expected: float) -> None:
        reader = EnvReader(env={"FFMPEG_CLI_CONNECT_TIMEOUT": raw})
        assert reader.get_float("FFMPEG_CLI_CONNECT_TIMEOUT") == expected

    def test_empty_is_not_a_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        reader = EnvReader(env={"FFMPEG_CLI_READ_TIMEOUT": ""})
        with caplog.at_level(logging.WARNING):
            assert reader.get_float("FFMPEG_CLI_READ_TIMEOUT", 5.0) == 5.0
        assert caplog.records == []

    def test_invalid_warns_and_uses_default(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        reader = EnvReader(env={"FFMPEG_CLI_CONNECT_TIMEOUT": "soon"})
        with caplog.at_level(logging.WARNING):
            result = reader.get_float("FFMPEG_CLI_CONNECT_TIMEOUT", 30.0)

        assert result == 30.0
        assert "Ignoring FFMPEG_CLI_CONNECT_TIMEOUT='soon'" in caplog.text


class TestGetBool:
    @pytest.mark.parametrize("raw", ["true", "TRUE", "1", "yes", "On", " on "])
    def test_true_spellings(self, raw: str) -> None:
        reader = EnvReader(env={"FFMPEG_CLI_LOG_INCLUDE_STDERR": raw})
        assert reader.get_bool("FFMPEG_CLI_LOG_INCLUDE_STDERR") is True

    @pytest.mark.parametrize("raw", ["false", "0", "No", "OFF"])
    def test_false_spellings(self, raw: str) -> None:
        reader = EnvReader(env={"FFMPEG_CLI_LOG_INCLUDE_STDERR": raw})
        assert reader.get_bool("FFMPEG_CLI_LOG_INCLUDE_STDERR", True) is False

    def test_unrecognized_warns_and_uses_default(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        reader = EnvReader(env={"FFMPEG_CLI_LOG_INCLUDE_STDERR": "maybe"})
        with caplog.at_level(logging.WARNING):
            result = reader.get_bool("FFMPEG_CLI_LOG_INCLUDE_STDERR")

        assert result is None
        assert "not a boolean" in caplog.text

    def test_missing_uses_default(self) -> None:
        assert EnvReader(env={}).get_bool("FFMPEG_CLI_LOG_INCLUDE_STDERR", True)


class TestGetPath:
    def test_value(self) -> None:
        reader = EnvReader(env={"FFMPEG_CLI_LOG_FILE": "/var/log/ffmpeg-cli.log"})
        assert reader.get_path("FFMPEG_CLI_LOG_FILE") == Path(
            "/var/log/ffmpeg-cli.log"
        )

    def test_expands_user(self) -> None:
        reader = EnvReader(env={"FFMPEG_CLI_LOG_FILE": "~/logs/ffmpeg-cli.log"})
        result = reader.get_path("FFMPEG_CLI_LOG_FILE")

        assert result == Path.home() / "logs" / "ffmpeg-cli.log"

    def test_empty_uses_default(self) -> None:
        reader = EnvReader(env={"FFMPEG_CLI_LOG_FILE": ""})
        assert reader.get_path("FFMPEG_CLI_LOG_FILE", Path("/tmp")) == Path("/tmp")


def test_reads_os_environ_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FFMPEG_CLI_FFMPEG_PATH", "from-environ")
    assert EnvReader().get_str("FFMPEG_CLI_FFMPEG_PATH") == "from-environ"
