"""The ``HttpMessage`` object GreasySpoon scripts are written against.

Construct it with a URL and the object fetches that URL once, without
following redirects, and exposes the response the way GreasySpoon would hand
it to a response script::

    with HttpMessage("http://example.com/", MessageType.RESPONSE) as message:
        if message.getResponseHeader("content-type") == "text/html":
            message.rewriteHeader("Cache-Control", "no-store")
        print(message.getResponseHeaders())

Both the emulated camelCase names and snake_case names are available.
Failures never raise out of the object: they are logged, appended to
:attr:`HttpMessage.errors`, and the affected accessor returns its default
(``""`` body, ``"0"`` status, empty header table).
"""

from __future__ import annotations

import logging
import os
import weakref
from enum import Enum
from typing import List, Optional

import requests

from .config import EmulatorSettings, load_settings
from .connection import Connection, open_connection
from .errors import BodyReadError, EmulatorError
from .headers import HeaderTable

LOGGER = logging.getLogger(__name__)


class MessageType(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"

    @classmethod
    def parse(cls, value: "MessageType | str | None") -> "MessageType":
        if value is None:
            return cls.RESPONSE
        if isinstance(value, MessageType):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Message type must be one of: {choices}") from exc


def _release(connection: Optional[Connection]) -> None:
    if connection is not None:
        connection.close()


class HttpMessage:
    """Snapshot of one HTTP response with GreasySpoon's accessor surface."""

    def __init__(
        self,
        url: str,
        message_type: MessageType | str | None = MessageType.RESPONSE,
        *,
        settings: EmulatorSettings | None = None,
        session: requests.Session | None = None,
        line_separator: str = os.linesep,
    ) -> None:
        self.url = url
        self.message_type = MessageType.parse(message_type)
        self.line_separator = line_separator
        self.errors: List[EmulatorError] = []
        self._settings = settings or load_settings()
        self._connection: Optional[Connection] = None
        self.header_table = HeaderTable(match=self._settings.header_match)

        if self.message_type is MessageType.REQUEST:
            LOGGER.warning(
                "Request emulation is not implemented; %s will expose the response",
                url,
            )

        try:
            self._connection = open_connection(
                url,
                session=session,
                timeout=self._settings.http_timeout,
                user_agent=self._settings.user_agent,
            )
            self.header_table = HeaderTable.from_pairs(
                self._connection.header_items(), match=self._settings.header_match
            )
            LOGGER.debug(
                "Response headers: %s", dict(self.header_table.items()), extra={"url": url}
            )
        except EmulatorError as error:
            self._record(error)

        self._finalizer = weakref.finalize(self, _release, self._connection)

    def _record(self, error: EmulatorError) -> None:
        LOGGER.error(
            "%s [%s]: %s",
            self.url,
            error.kind.value,
            error,
            extra={"url": self.url, "error_kind": error.kind.value},
        )
        self.errors.append(error)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def closed(self) -> bool:
        return self._connection is None or self._connection.closed

    def close(self) -> None:
        """Release the underlying connection. Safe to call more than once."""

        self._finalizer()

    def __enter__(self) -> "HttpMessage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        self.close()

    def __repr__(self) -> str:
        return f"HttpMessage(url={self.url!r}, type={self.message_type.value!r}, status={self.get_type()!r})"

    def get_url(self) -> str:
        """Return the URL exactly as passed to the constructor."""

        return self.url

    def get_response_headers(self) -> str:
        return self.header_table.render(self.line_separator)

    def get_response_header(self, name: str) -> Optional[str]:
        """Return the value of the first header whose name matches ``name``, else ``None``.

        ``name`` is matched case-insensitively against the whole header name.
        With the default :attr:`HeaderMatch.PATTERN` mode it is interpreted as
        a regular expression, as GreasySpoon does.
        """

        return self.header_table.get(name)

    def add_header(self, name: str, value: str) -> None:
        """Append a header. Existing headers with the same name are kept."""

        self.header_table.add(name, value)

    def delete_header(self, name: str) -> None:
        """Remove the first header matching ``name``, if any."""

        self.header_table.delete(name)

    def rewrite_header(self, name: str, new_value: str) -> None:
        """Replace the first header matching ``name`` in place, renaming it to ``name``."""

        self.header_table.rewrite(name, new_value)

    def get_body(self) -> str:
        """Read the response body from the live connection.

        Lines are rejoined with :attr:`line_separator`, one after every line.
        The body is not cached: once read, the stream is empty and subsequent
        calls return ``""``.
        """

        if self._connection is None:
            return ""
        try:
            return self._connection.read_body(self.line_separator)
        except BodyReadError as error:
            self._record(error)
            return ""

    def set_body(self, new_body: str) -> None:
        """Print ``new_body``; the fetched response is left untouched."""

        print(new_body)

    def get_type(self) -> str:
        """Return the response status code as a string, ``"0"`` when unavailable."""

        if self._connection is None:
            return "0"
        return str(self._connection.status_code)

    # GreasySpoon's method names, so scripts can be run unchanged.
    getUrl = get_url
    getResponseHeaders = get_response_headers
    getResponseHeader = get_response_header
    addHeader = add_header
    deleteHeader = delete_header
    rewriteHeader = rewrite_header
    getBody = get_body
    setBody = set_body
    getType = get_type


__all__ = ["HttpMessage", "MessageType"]
