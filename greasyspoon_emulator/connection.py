"""Single GET exchange against the target URL.

The emulator mirrors what a proxy sees for one response: the request is sent
once, redirects are not followed, and the body stays on the wire until a
script asks for it. All failures surface as :mod:`greasyspoon_emulator.errors`
exceptions so the caller decides how to degrade.
"""

from __future__ import annotations

import codecs
import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

import requests
from requests import Response

from .errors import BodyReadError, ConnectionFailedError, MalformedUrlError, ProtocolError

LOGGER = logging.getLogger(__name__)

SUPPORTED_SCHEMES: Tuple[str, ...] = ("http", "https")

# Terminators recognised when a body is split into lines.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

_BODY_CHUNK_SIZE = 8192


def validate_url(url: str) -> str:
    """Ensure ``url`` is an absolute http(s) URL with a host."""

    if not isinstance(url, str) or not url.strip():
        raise MalformedUrlError("URL must be a non-empty string", url=url)
    try:
        parts = urlsplit(url)
        # Accessing the port validates it.
        parts.port
    except ValueError as exc:
        raise MalformedUrlError(f"Malformed URL: {exc}", url=url) from exc
    if not parts.scheme:
        raise MalformedUrlError(f"No protocol: {url}", url=url)
    if parts.scheme.lower() not in SUPPORTED_SCHEMES:
        raise MalformedUrlError(f"Unsupported protocol: {parts.scheme}", url=url)
    if not parts.hostname:
        raise MalformedUrlError(f"URL has no host: {url}", url=url)
    return url


def create_http_session(
    timeout: Optional[float] = None,
    user_agent: Optional[str] = None,
) -> requests.Session:
    """Construct a ``requests`` session with consistent timeout handling."""

    session = requests.Session()
    # Headers and body must describe the same, undecoded payload.
    session.headers["Accept-Encoding"] = "identity"
    if user_agent:
        session.headers.update({"User-Agent": user_agent})
    if timeout is not None:
        session.request = _timeout_wrapper(session.request, timeout)  # type: ignore[assignment]
    return session


def _timeout_wrapper(original_request, timeout: float):  # type: ignore[no-untyped-def]
    """Wrap ``Session.request`` to inject a default timeout."""

    def wrapper(method: str, url: str, **kwargs):  # type: ignore[no-untyped-def]
        if "timeout" not in kwargs:
            kwargs["timeout"] = timeout
        return original_request(method, url, **kwargs)

    return wrapper


def split_lines(text: str) -> List[str]:
    """Split ``text`` on ``\\r\\n``, ``\\r`` or ``\\n``; a trailing terminator adds no empty line."""

    lines = _LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _body_encoding(response: Response) -> str:
    content_type = response.headers.get("Content-Type", "")
    # requests falls back to ISO-8859-1 for any text/* response; only trust an
    # explicit charset.
    if not response.encoding or "charset" not in content_type.lower():
        return "utf-8"
    try:
        codecs.lookup(response.encoding)
    except LookupError:
        LOGGER.debug("Unknown charset %r; decoding body as utf-8", response.encoding)
        return "utf-8"
    return response.encoding


class Connection:
    """Open response for one URL, owned by a single :class:`HttpMessage`."""

    def __init__(
        self,
        url: str,
        response: Response,
        session: requests.Session,
        *,
        owns_session: bool = False,
    ) -> None:
        self.url = url
        self.response = response
        self._session = session
        self._owns_session = owns_session
        self._body_consumed = False
        self.closed = False

    @property
    def status_code(self) -> int:
        return int(self.response.status_code)

    def header_items(self) -> List[Tuple[str, str]]:
        """Return response headers in wire order, repeated names folded with ``", "``."""

        try:
            raw_headers = getattr(self.response.raw, "headers", None)
            if raw_headers is not None and hasattr(raw_headers, "getlist"):
                return [(name, ", ".join(raw_headers.getlist(name))) for name in raw_headers]
            return [(str(name), str(value)) for name, value in self.response.headers.items()]
        except (AttributeError, TypeError, ValueError) as exc:
            raise BodyReadError(f"Unable to read response headers: {exc}", url=self.url) from exc

    def read_body(self, line_separator: str) -> str:
        """Read the remaining body and rejoin its lines with ``line_separator``.

        The stream is drained on the first call; later calls return ``""``.
        """

        if self.closed:
            raise BodyReadError("Connection is closed", url=self.url)
        if self._body_consumed:
            LOGGER.debug("Body of %s already consumed", self.url)
            return ""
        try:
            payload = b"".join(self.response.iter_content(chunk_size=_BODY_CHUNK_SIZE))
        except (requests.exceptions.RequestException, OSError) as exc:
            raise BodyReadError(f"Unable to read response body: {exc}", url=self.url) from exc
        finally:
            self._body_consumed = True

        text = payload.decode(_body_encoding(self.response), errors="replace")
        return "".join(line + line_separator for line in split_lines(text))

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.response.close()
        if self._owns_session:
            self._session.close()
        LOGGER.debug("Closed connection to %s", self.url)


def open_connection(
    url: str,
    *,
    session: requests.Session | None = None,
    timeout: Optional[float] = None,
    user_agent: Optional[str] = None,
) -> Connection:
    """Send a single non-redirecting GET to ``url`` and return the open response.

    ``session`` lets callers supply a preconfigured ``requests.Session``; when
    omitted one is created and closed together with the connection.
    """

    validate_url(url)
    owns_session = session is None
    http_session = session if session is not None else create_http_session(timeout, user_agent)

    try:
        response = http_session.get(url, allow_redirects=False, stream=True)
    except (
        requests.exceptions.MissingSchema,
        requests.exceptions.InvalidSchema,
        requests.exceptions.InvalidURL,
    ) as exc:
        _close_owned(http_session, owns_session)
        raise MalformedUrlError(f"Malformed URL: {exc}", url=url) from exc
    except requests.exceptions.InvalidHeader as exc:
        _close_owned(http_session, owns_session)
        raise ProtocolError(f"Unable to prepare GET request: {exc}", url=url) from exc
    except requests.exceptions.Timeout as exc:
        _close_owned(http_session, owns_session)
        raise ConnectionFailedError(f"GET {url} timed out: {exc}", url=url) from exc
    except requests.exceptions.RequestException as exc:
        _close_owned(http_session, owns_session)
        raise ConnectionFailedError(f"GET {url} failed: {exc}", url=url) from exc

    LOGGER.debug("GET %s -> %s", url, response.status_code)
    return Connection(url, response, http_session, owns_session=owns_session)


def _close_owned(session: requests.Session, owns_session: bool) -> None:
    if owns_session:
        session.close()


__all__ = [
    "Connection",
    "SUPPORTED_SCHEMES",
    "create_http_session",
    "open_connection",
    "split_lines",
    "validate_url",
]
