import gzip
import http.server
import socketserver
import sys
import threading
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from greasyspoon_emulator.config import HEADER_MATCH_ENV, TIMEOUT_ENV, USER_AGENT_ENV


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    for name in (TIMEOUT_ENV, HEADER_MATCH_ENV, USER_AGENT_ENV):
        monkeypatch.delenv(name, raising=False)
    yield


COMPRESSIBLE_BODY = b"repeat me\n" * 60


class OriginHandler(http.server.BaseHTTPRequestHandler):
    """Small origin server exposing the cases a proxy script cares about."""

    def do_GET(self) -> None:  # noqa: N802 - required by BaseHTTPRequestHandler
        if self.path == "/redirect":
            self._reply(302, b"", [("Location", "/landing")])
        elif self.path == "/missing":
            self._reply(404, b"not here\n", [("Content-Type", "text/plain")])
        elif self.path == "/tokens":
            self._reply(
                200,
                b"ok",
                [("Content-Type", "text/plain"), ("X-Token", "first"), ("X-Token", "second")],
            )
        elif self.path == "/mixed-lines":
            self._reply(
                200,
                b"line one\r\nline two\rline three\n",
                [("Content-Type", "text/plain; charset=utf-8")],
            )
        elif self.path == "/compressible":
            body = COMPRESSIBLE_BODY
            headers = [("Content-Type", "text/plain")]
            if "gzip" in self.headers.get("Accept-Encoding", ""):
                body = gzip.compress(body)
                headers.append(("Content-Encoding", "gzip"))
            self._reply(200, body, headers)
        elif self.path == "/truncated":
            # Declares more bytes than it sends, then closes the connection.
            self.send_response(200)
            self.send_header("Content-Type", "text/plain")
            self.send_header("Content-Length", "100")
            self.end_headers()
            self.wfile.write(b"partial")
        elif self.path == "/echo-agent":
            agent = self.headers.get("User-Agent", "")
            self._reply(200, agent.encode("utf-8"), [("Content-Type", "text/plain")])
        else:
            self._reply(
                200,
                b"<html>\n<body>hello</body>\n</html>",
                [("Content-Type", "text/html"), ("X-Origin", "mock")],
            )

    def _reply(self, status: int, body: bytes, headers: list[tuple[str, str]]) -> None:
        self.send_response(status)
        for name, value in headers:
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        return


@pytest.fixture(scope="module")
def origin_server() -> str:
    server = socketserver.TCPServer(("127.0.0.1", 0), OriginHandler)
    server.allow_reuse_address = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()
