"""Configuration helpers and .env loading for the emulator."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .headers import HeaderMatch

LOGGER = logging.getLogger(__name__)

DEFAULT_ENV_FILES: tuple[Path, ...] = (
    Path(".env"),
    Path("config/.env"),
)

TIMEOUT_ENV = "GREASYSPOON_HTTP_TIMEOUT"
HEADER_MATCH_ENV = "GREASYSPOON_HEADER_MATCH"
USER_AGENT_ENV = "GREASYSPOON_USER_AGENT"


class ConfigError(ValueError):
    """Raised when an environment setting cannot be interpreted."""


@dataclass(frozen=True)
class EmulatorSettings:
    """Values controlling how :class:`HttpMessage` talks to the target."""

    # ``None`` leaves the HTTP library's default (wait indefinitely).
    http_timeout: Optional[float] = None
    header_match: HeaderMatch = HeaderMatch.PATTERN
    user_agent: Optional[str] = None


@lru_cache(maxsize=1)
def load_environment(*, extra_files: tuple[Path, ...] = ()) -> tuple[Path, ...]:
    """Apply ``.env`` files to ``os.environ`` once per process.

    Variables already set in the real environment win. Returns the files that
    contributed at least one variable.
    """

    applied: list[Path] = []
    for path in (*DEFAULT_ENV_FILES, *extra_files):
        if not path.is_file():
            continue
        try:
            if load_dotenv(path, override=False):
                applied.append(path)
        except OSError as exc:
            LOGGER.warning("Skipping unreadable env file %s: %s", path, exc)
    LOGGER.debug("Loaded settings from %s", [str(path) for path in applied] or "environment only")
    return tuple(applied)


def _parse_timeout(raw: str) -> Optional[float]:
    raw = raw.strip()
    if not raw:
        return None
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{TIMEOUT_ENV} must be a number of seconds; received {raw!r}") from exc
    if timeout <= 0:
        raise ConfigError(f"{TIMEOUT_ENV} must be positive; received {raw!r}")
    return timeout


def load_settings(environ: Mapping[str, str] | None = None) -> EmulatorSettings:
    """Build :class:`EmulatorSettings` from ``environ`` (default: ``os.environ``)."""

    env = os.environ if environ is None else environ
    try:
        header_match = HeaderMatch.parse(env.get(HEADER_MATCH_ENV, HeaderMatch.PATTERN.value))
    except ValueError as exc:
        raise ConfigError(f"{HEADER_MATCH_ENV}: {exc}") from exc

    return EmulatorSettings(
        http_timeout=_parse_timeout(env.get(TIMEOUT_ENV, "")),
        header_match=header_match,
        user_agent=env.get(USER_AGENT_ENV) or None,
    )


__all__ = [
    "ConfigError",
    "DEFAULT_ENV_FILES",
    "EmulatorSettings",
    "load_environment",
    "load_settings",
]
