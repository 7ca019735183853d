"""Tests for the link title fetcher."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from chatbook.exceptions import LinkTitleError
from chatbook.web.titles import LinkTitleFetcher, _validate_url, extract_title


def _response(text="", content_type="text/html; charset=utf-8", is_redirect=False):
    response = MagicMock()
    response.is_redirect = is_redirect
    response.text = text
    response.content = text.encode("utf-8")
    response.headers = {"content-type": content_type}
    response.raise_for_status.return_value = None
    return response


def _client(mock_client_cls):
    return mock_client_cls.return_value.__enter__.return_value


def test_validate_url_blocked_scheme():
    is_safe, error = _validate_url("file:///etc/passwd")
    assert is_safe is False
    assert "Blocked URL scheme" in error


def test_validate_url_localhost():
    is_safe, error = _validate_url("http://localhost:8080")
    assert is_safe is False
    assert "localhost" in error


def test_validate_url_no_hostname():
    is_safe, _ = _validate_url("http://")
    assert is_safe is False


def test_validate_url_private_ip():
    is_safe, error = _validate_url("http://192.168.1.1")
    assert is_safe is False
    assert "private" in error.lower()


def test_extract_title():
    html = "<html><head><title>\n  Hello\n   World </title></head><body></body></html>"
    assert extract_title(html) == "Hello World"
    assert extract_title("<html><body>no title</body></html>") is None
    assert extract_title("<title>   </title>") is None


@patch("chatbook.web.titles._validate_url", return_value=(True, None))
@patch("chatbook.web.titles.httpx.Client")
def test_fetch_title(mock_client_cls, _mock_validate):
    _client(mock_client_cls).get.return_value = _response("<title>Example Domain</title>")
    fetcher = LinkTitleFetcher()
    assert fetcher("https://example.com") == "Example Domain"


@patch("chatbook.web.titles._validate_url", return_value=(True, None))
@patch("chatbook.web.titles.httpx.Client")
def test_fetch_title_is_memoized(mock_client_cls, _mock_validate):
    client = _client(mock_client_cls)
    client.get.return_value = _response("<title>Once</title>")
    fetcher = LinkTitleFetcher()
    assert fetcher("https://example.com/a") == "Once"
    assert fetcher("https://example.com/a") == "Once"
    assert client.get.call_count == 1


@patch("chatbook.web.titles._validate_url", return_value=(True, None))
@patch("chatbook.web.titles.httpx.Client")
def test_non_html_has_no_title(mock_client_cls, _mock_validate):
    _client(mock_client_cls).get.return_value = _response("%PDF-1.4", content_type="application/pdf")
    assert LinkTitleFetcher()("https://example.com/doc.pdf") is None


@patch("chatbook.web.titles._validate_url", return_value=(True, None))
@patch("chatbook.web.titles.httpx.Client")
def test_connection_error_has_no_title(mock_client_cls, _mock_validate):
    _client(mock_client_cls).get.side_effect = httpx.ConnectError("connection refused")
    assert LinkTitleFetcher()("https://example.com") is None


@patch("chatbook.web.titles._validate_url", return_value=(True, None))
@patch("chatbook.web.titles.httpx.Client")
def test_timeout_has_no_title(mock_client_cls, _mock_validate):
    _client(mock_client_cls).get.side_effect = httpx.ReadTimeout("timed out")
    assert LinkTitleFetcher(timeout=0.1)("https://example.com") is None


@patch("chatbook.web.titles._validate_url", return_value=(True, None))
@patch("chatbook.web.titles.httpx.Client")
def test_http_error_raises_from_fetch_title(mock_client_cls, _mock_validate):
    response = _response("<title>Not here</title>")
    response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "404", request=MagicMock(), response=MagicMock()
    )
    _client(mock_client_cls).get.return_value = response
    fetcher = LinkTitleFetcher()
    with pytest.raises(LinkTitleError, match="Fetch failed"):
        fetcher.fetch_title("https://example.com/missing")
    assert fetcher("https://example.com/missing") is None


@patch("chatbook.web.titles._validate_url", return_value=(True, None))
@patch("chatbook.web.titles.httpx.Client")
def test_follows_redirects(mock_client_cls, _mock_validate):
    redirect = _response(is_redirect=True)
    redirect.next_request.url = "https://www.example.com/"
    client = _client(mock_client_cls)
    client.get.side_effect = [redirect, _response("<title>Landed</title>")]
    assert LinkTitleFetcher()("https://example.com") == "Landed"
    assert client.get.call_args_list[1].args[0] == "https://www.example.com/"


@patch("chatbook.web.titles.httpx.Client")
def test_unsafe_url_is_never_fetched(mock_client_cls):
    assert LinkTitleFetcher()("http://127.0.0.1/admin") is None
    mock_client_cls.assert_not_called()


@patch("chatbook.web.titles.httpx.Client")
def test_malformed_hostname_has_no_title(mock_client_cls):
    # An empty label makes the idna codec reject the hostname
    assert LinkTitleFetcher()("http://example..com/x") is None
    is_safe, error = _validate_url("http://example..com/x")
    assert is_safe is False
    assert "Cannot resolve hostname" in error
    mock_client_cls.assert_not_called()


@patch("chatbook.web.titles._validate_url", return_value=(True, None))
@patch("chatbook.web.titles.httpx.Client")
def test_invalid_url_from_client_has_no_title(mock_client_cls, _mock_validate):
    _client(mock_client_cls).get.side_effect = httpx.InvalidURL("bad url")
    fetcher = LinkTitleFetcher()
    with pytest.raises(LinkTitleError, match="Fetch failed"):
        fetcher.fetch_title("https://example.com/a")
    assert fetcher("https://example.com/a") is None
