"""Error taxonomy for the emulator.

Helpers in :mod:`greasyspoon_emulator.connection` raise these explicitly.
:class:`~greasyspoon_emulator.message.HttpMessage` catches them, logs them and
keeps them on ``HttpMessage.errors`` so scripts never see an exception.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    MALFORMED_URL = "malformed_url"
    CONNECTION = "connection"
    IO = "io"
    PROTOCOL = "protocol"


class EmulatorError(RuntimeError):
    """Base class for failures while talking to the target URL."""

    kind: ErrorKind = ErrorKind.CONNECTION

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class MalformedUrlError(EmulatorError):
    """Raised when the target string is not an absolute http(s) URL."""

    kind = ErrorKind.MALFORMED_URL


class ConnectionFailedError(EmulatorError):
    """Raised when the GET exchange could not be opened or connected."""

    kind = ErrorKind.CONNECTION


class BodyReadError(EmulatorError):
    """Raised when the response body or header map cannot be read."""

    kind = ErrorKind.IO


class ProtocolError(EmulatorError):
    """Raised when the request cannot be prepared as a plain GET."""

    kind = ErrorKind.PROTOCOL


__all__ = [
    "BodyReadError",
    "ConnectionFailedError",
    "EmulatorError",
    "ErrorKind",
    "MalformedUrlError",
    "ProtocolError",
]
