"""
Tests for deprecheck.io module.

Tests fetching and parsing including:
- Successful and failed HTTP requests
- Request headers and environment expansion
- JSON parsing errors
"""

from __future__ import annotations

import pytest
import requests
import requests_mock

from deprecheck import __version__
from deprecheck.exceptions import ParseError
from deprecheck.io import HttpFetcher, expand_headers, parse_json

from conftest import ENDPOINT


class TestHttpFetcher:
    """Tests for HttpFetcher."""

    def test_success(self):
        with requests_mock.Mocker() as m:
            m.get(ENDPOINT, content=b'{"info": {"state": "ok"}}')
            result = HttpFetcher().fetch(ENDPOINT)

        assert result.success
        assert result.status_code == 200
        assert result.body == b'{"info": {"state": "ok"}}'
        assert result.error is None

    def test_sends_default_headers(self):
        with requests_mock.Mocker() as m:
            m.get(ENDPOINT, json={})
            HttpFetcher().fetch(ENDPOINT)
            headers = m.last_request.headers

        assert headers["User-Agent"] == f"deprecheck/{__version__}"
        assert headers["Accept"] == "application/json"

    def test_extra_headers_with_env_expansion(self, monkeypatch):
        monkeypatch.setenv("DEPRECHECK_TEST_TOKEN", "secret")
        fetcher = HttpFetcher(
            headers={"X-Token": "${DEPRECHECK_TEST_TOKEN}", "X-Client": "myapp"}
        )
        with requests_mock.Mocker() as m:
            m.get(ENDPOINT, json={})
            fetcher.fetch(ENDPOINT)
            headers = m.last_request.headers

        assert headers["X-Token"] == "secret"
        assert headers["X-Client"] == "myapp"

    def test_http_error_is_failure(self):
        with requests_mock.Mocker() as m:
            m.get(ENDPOINT, status_code=503, reason="Service Unavailable")
            result = HttpFetcher().fetch(ENDPOINT)

        assert not result.success
        assert result.status_code == 503
        assert "503" in result.error

    def test_connection_error_is_failure(self):
        with requests_mock.Mocker() as m:
            m.get(ENDPOINT, exc=requests.exceptions.ConnectTimeout)
            result = HttpFetcher().fetch(ENDPOINT)

        assert not result.success
        assert result.status_code is None
        assert result.body == b""

    def test_single_attempt(self):
        """Test that a failure is not retried."""
        with requests_mock.Mocker() as m:
            m.get(ENDPOINT, status_code=500)
            HttpFetcher().fetch(ENDPOINT)
            assert m.call_count == 1

    def test_timeout_passed_through(self):
        with requests_mock.Mocker() as m:
            m.get(ENDPOINT, json={})
            HttpFetcher(timeout=3).fetch(ENDPOINT)
            assert m.last_request.timeout == 3


class TestExpandHeaders:
    """Tests for expand_headers."""

    def test_unset_variable_dropped(self, monkeypatch):
        monkeypatch.delenv("DEPRECHECK_UNSET_VAR", raising=False)
        assert expand_headers({"X-Token": "${DEPRECHECK_UNSET_VAR}"}) == {}

    def test_plain_values_kept(self):
        assert expand_headers({"X-A": "b"}) == {"X-A": "b"}


class TestParseJson:
    """Tests for parse_json."""

    def test_object(self):
        assert parse_json(b'{"info": {"state": "dep"}}') == {"info": {"state": "dep"}}

    def test_non_object_json_is_parsed(self):
        assert parse_json(b"[1, 2]") == [1, 2]

    def test_invalid_json_raises(self):
        with pytest.raises(ParseError, match="Invalid JSON"):
            parse_json(b"<html>maintenance</html>")

    def test_invalid_utf8_raises(self):
        with pytest.raises(ParseError):
            parse_json(b"\xff\xfe{}")
