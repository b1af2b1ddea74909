"""Typed access to the FFMPEG_CLI_* environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


class EnvReader:
    """Reads environment variables, treating empty values as unset.

    Values that cannot be converted are logged and replaced by the default,
    so a typo in the environment never stops the CLI from starting.

    Args:
        env: Mapping to read instead of os.environ (for tests).
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def _raw(self, var: str) -> str | None:
        return self._env.get(var) or None

    def get_str(self, var: str, default: str | None = None) -> str | None:
        value = self._raw(var)
        return default if value is None else value

    def get_float(self, var: str, default: float | None = None) -> float | None:
        value = self._raw(var)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a number", var, value)
            return default

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Accept true/false, 1/0, yes/no or on/off, in any case."""
        value = self._raw(var)
        if value is None:
            return default
        normalized = value.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        logger.warning("Ignoring %s=%r: not a boolean", var, value)
        return default

    def get_path(self, var: str, default: Path | None = None) -> Path | None:
        """Return the value as a Path with ``~`` expanded."""
        value = self._raw(var)
        return default if value is None else Path(value).expanduser()
