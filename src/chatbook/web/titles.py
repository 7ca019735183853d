"""Resolve the <title> of pages linked from messages."""

from __future__ import annotations

import ipaddress
import logging
import os
import socket
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from chatbook.exceptions import LinkTitleError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = float(os.environ.get("CHATBOOK_LINK_TIMEOUT", "5.0"))

_ALLOWED_SCHEMES = {"http", "https"}

_BLOCKED_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


def _validate_url(url: str) -> tuple[bool, str | None]:
    """Validate a URL for safety. Returns (is_safe, error_message)."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False, "Invalid URL format"

    if parsed.scheme not in _ALLOWED_SCHEMES:
        return False, f"Blocked URL scheme: {parsed.scheme}. Only http/https allowed."

    hostname = parsed.hostname
    if not hostname:
        return False, "URL has no hostname"

    if hostname in ("localhost", "0.0.0.0"):
        return False, "Blocked: localhost access not allowed"

    try:
        for addr_info in socket.getaddrinfo(hostname, None):
            ip = ipaddress.ip_address(addr_info[4][0])
            for network in _BLOCKED_NETWORKS:
                if ip in network:
                    return False, f"Blocked: URL resolves to private/internal IP ({ip})"
    except (socket.gaierror, UnicodeError):
        return False, f"Cannot resolve hostname: {hostname}"

    return True, None


def extract_title(html: str) -> str | None:
    """Contents of the first <title> element, whitespace collapsed."""
    soup = BeautifulSoup(html, "html.parser")
    if soup.title is None:
        return None
    title = " ".join(soup.title.get_text().split())
    return title or None


class LinkTitleFetcher:
    """Best-effort page title lookup, memoized per URL.

    Calling an instance returns the page title or None. Every failure
    (unsafe URL, timeout, HTTP error, non-HTML body, no <title>) is logged
    at debug level and reported as None.

    Args:
        timeout: Per-request timeout in seconds.
        max_response_bytes: Larger responses are not parsed.
        max_redirects: Maximum number of redirects to follow.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_response_bytes: int = 1_048_576,
        max_redirects: int = 5,
    ):
        self.timeout = timeout
        self.max_response_bytes = max_response_bytes
        self.max_redirects = max_redirects
        self._cache: dict[str, str | None] = {}

    def __call__(self, url: str) -> str | None:
        if url not in self._cache:
            try:
                self._cache[url] = self.fetch_title(url)
            except LinkTitleError as e:
                logger.debug(f"No title for {url}: {e}")
                self._cache[url] = None
        return self._cache[url]

    def fetch_title(self, url: str) -> str | None:
        """Fetch ``url`` and return its title; raises LinkTitleError on failure."""
        is_safe, error = _validate_url(url)
        if not is_safe:
            raise LinkTitleError(error)

        try:
            with httpx.Client(
                timeout=self.timeout,
                follow_redirects=False,
            ) as client:
                current_url = url
                response = None
                for _ in range(self.max_redirects + 1):
                    response = client.get(
                        current_url,
                        headers={"User-Agent": "chat-book/1.0"},
                    )
                    if response.is_redirect and response.next_request is not None:
                        redirect_url = str(response.next_request.url)
                        redir_safe, redir_err = _validate_url(redirect_url)
                        if not redir_safe:
                            raise LinkTitleError(f"Redirect blocked: {redir_err}")
                        current_url = redirect_url
                    else:
                        break

                if response is None or response.is_redirect:
                    raise LinkTitleError("Too many redirects")

                response.raise_for_status()

                if len(response.content) > self.max_response_bytes:
                    raise LinkTitleError(
                        f"Response too large (>{self.max_response_bytes} bytes)"
                    )

                content_type = response.headers.get("content-type", "")
                if "html" not in content_type:
                    raise LinkTitleError(f"Not an HTML page ({content_type or 'no content-type'})")
                html = response.text
        except LinkTitleError:
            raise
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise LinkTitleError(f"Fetch failed: {e}") from e

        return extract_title(html)
