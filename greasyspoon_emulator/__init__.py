"""Local emulation of GreasySpoon's ``HttpMessage`` scripting object."""

from __future__ import annotations

from .errors import (
    BodyReadError,
    ConnectionFailedError,
    EmulatorError,
    ErrorKind,
    MalformedUrlError,
    ProtocolError,
)
from .headers import HeaderEntry, HeaderMatch, HeaderTable
from .message import HttpMessage, MessageType

__all__ = [
    "BodyReadError",
    "ConnectionFailedError",
    "EmulatorError",
    "ErrorKind",
    "HeaderEntry",
    "HeaderMatch",
    "HeaderTable",
    "HttpMessage",
    "MalformedUrlError",
    "MessageType",
    "ProtocolError",
    "__version__",
]

# Semantic version for package consumers.
__version__ = "0.1.0"
