"""Tests for the single-exchange connection helpers."""

from __future__ import annotations

from unittest import mock

import pytest
import requests
import responses

from greasyspoon_emulator.connection import (
    create_http_session,
    open_connection,
    split_lines,
    validate_url,
)
from greasyspoon_emulator.errors import (
    BodyReadError,
    ConnectionFailedError,
    ErrorKind,
    MalformedUrlError,
    ProtocolError,
)


@pytest.mark.parametrize(
    "url",
    ["", "example.com/path", "ftp://example.com/file", "http://", "http://example.com:port/"],
)
def test_validate_url_rejects_malformed(url):
    with pytest.raises(MalformedUrlError) as exc:
        validate_url(url)

    assert exc.value.kind is ErrorKind.MALFORMED_URL


def test_validate_url_returns_input_unchanged():
    url = "HTTP://Example.com:8080/a b?q=1"

    assert validate_url(url) == url


@pytest.mark.parametrize(
    "text,expected",
    [
        ("", []),
        ("one", ["one"]),
        ("one\n", ["one"]),
        ("one\r\ntwo\rthree\nfour", ["one", "two", "three", "four"]),
        ("one\n\ntwo\n", ["one", "", "two"]),
    ],
)
def test_split_lines_handles_all_terminators(text, expected):
    assert split_lines(text) == expected


def test_create_http_session_injects_timeout_and_agent():
    with mock.patch.object(requests.Session, "request") as request:
        session = create_http_session(timeout=2.5, user_agent="emulator-test")
        session.request("GET", "http://example.com/")
        session.request("GET", "http://example.com/", timeout=9)

    assert request.call_args_list == [
        mock.call("GET", "http://example.com/", timeout=2.5),
        mock.call("GET", "http://example.com/", timeout=9),
    ]
    assert session.headers["User-Agent"] == "emulator-test"


@responses.activate
def test_open_connection_does_not_follow_redirects():
    responses.add(
        responses.GET,
        "http://example.com/old",
        status=301,
        headers={"Location": "http://example.com/new"},
    )

    connection = open_connection("http://example.com/old")
    try:
        assert connection.status_code == 301
        assert ("Location", "http://example.com/new") in connection.header_items()
    finally:
        connection.close()

    assert len(responses.calls) == 1
    assert responses.calls[0].request.method == "GET"


@responses.activate
def test_open_connection_wraps_network_failures():
    responses.add(
        responses.GET,
        "http://example.com/",
        body=requests.exceptions.ConnectionError("refused"),
    )

    with pytest.raises(ConnectionFailedError, match="refused"):
        open_connection("http://example.com/")


@responses.activate
def test_open_connection_maps_timeouts():
    responses.add(
        responses.GET,
        "http://example.com/",
        body=requests.exceptions.ReadTimeout("slow"),
    )

    with pytest.raises(ConnectionFailedError, match="timed out"):
        open_connection("http://example.com/", timeout=0.1)


def test_open_connection_rejects_invalid_user_agent():
    with pytest.raises(ProtocolError):
        open_connection("http://example.com/", user_agent="bad\r\nagent")


@responses.activate
def test_read_body_drains_stream_once():
    responses.add(responses.GET, "http://example.com/", body="a\nb", status=200)

    connection = open_connection("http://example.com/")

    assert connection.read_body("\n") == "a\nb\n"
    assert connection.read_body("\n") == ""
    connection.close()


@responses.activate
def test_read_body_after_close_raises():
    responses.add(responses.GET, "http://example.com/", body="payload")

    connection = open_connection("http://example.com/")
    connection.close()
    connection.close()

    assert connection.closed is True
    with pytest.raises(BodyReadError):
        connection.read_body("\n")
