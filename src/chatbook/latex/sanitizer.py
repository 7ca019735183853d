"""Make raw message text safe to drop into a LaTeX document."""

from __future__ import annotations

import re
from typing import Callable, Optional
from urllib.parse import urlparse

from chatbook.exceptions import LinkTitleError

TitleLookup = Callable[[str], Optional[str]]

_SMART_CHARS = {
    "\u2019": "'",
    "\u2018": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2026": "...",
}

URL_RE = re.compile(r"https?://[^\s]+")

_LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "$": r"\$",
    "%": r"\%",
    "&": r"\&",
    "_": r"\_",
    "^": r"\textasciicircum{}",
    "~": r"\textasciitilde{}",
    "#": r"\#",
    "{": r"\{",
    "}": r"\}",
    # A lone newline is just a space to LaTeX
    "\n": "\\newline\n",
}
_LATEX_SPECIALS_RE = re.compile("|".join(re.escape(c) for c in _LATEX_SPECIALS))

VARIATION_SELECTOR = "\ufe0f"

# Unicode Extended_Pictographic property (emoji-data.txt)
_PICTOGRAPHIC = (
    "\u00a9\u00ae\u203c\u2049\u2122\u2139\u2194-\u2199\u21a9\u21aa"
    "\u231a\u231b\u2328\u2388\u23cf\u23e9-\u23f3\u23f8-\u23fa\u24c2"
    "\u25aa\u25ab\u25b6\u25c0\u25fb-\u25fe\u2600-\u2605\u2607-\u2612"
    "\u2614-\u2685\u2690-\u2705\u2708-\u2712\u2714\u2716\u271d\u2721"
    "\u2728\u2733\u2734\u2744\u2747\u274c\u274e\u2753-\u2755\u2757"
    "\u2763-\u2767\u2795-\u2797\u27a1\u27b0\u27bf\u2934\u2935"
    "\u2b05-\u2b07\u2b1b\u2b1c\u2b50\u2b55\u3030\u303d\u3297\u3299"
    "\U0001f000-\U0001f0ff\U0001f10d-\U0001f10f\U0001f12f"
    "\U0001f16c-\U0001f171\U0001f17e\U0001f17f\U0001f18e"
    "\U0001f191-\U0001f19a\U0001f1ad-\U0001f1e5\U0001f201-\U0001f20f"
    "\U0001f21a\U0001f22f\U0001f232-\U0001f23a\U0001f23c-\U0001f23f"
    "\U0001f249-\U0001f3fa\U0001f400-\U0001f53d\U0001f546-\U0001f64f"
    "\U0001f680-\U0001f6ff\U0001f774-\U0001f77f\U0001f7d5-\U0001f7ff"
    "\U0001f80c-\U0001f80f\U0001f848-\U0001f84f\U0001f85a-\U0001f85f"
    "\U0001f888-\U0001f88f\U0001f8ae-\U0001f8ff\U0001f90c-\U0001f93a"
    "\U0001f93c-\U0001f945\U0001f947-\U0001faff\U0001fc00-\U0001fffd"
)
_SKIN_TONE = "\U0001f3fb-\U0001f3ff"
# Skin tones and zero-width joiners stay inside the run so composed emoji are not split
EMOJI_RUN_RE = re.compile(
    f"[{_PICTOGRAPHIC}][{_SKIN_TONE}]?(?:\u200d?[{_PICTOGRAPHIC}][{_SKIN_TONE}]?)*"
)

# Titles that mean the fetch was blocked or failed rather than a real page
EXCLUDED_TITLES = (
    "Page Not Found",
    "Not Found",
    "403 Forbidden",
    "Forbidden",
    "Access Denied",
    "Attention Required",
    "Just a moment",
    "Are you a robot",
    "Too Many Requests",
    "Internal Server Error",
    "Service Unavailable",
    "Bad Gateway",
)
_STATUS_TITLE_RE = re.compile(r"^\s*[1-5]\d\d\b")


def normalize_smart_chars(text: str) -> str:
    text = text.replace("\r\n", "\n")
    for smart, plain in _SMART_CHARS.items():
        text = text.replace(smart, plain)
    return text


def escape_specials(text: str) -> str:
    """Escape LaTeX control characters in one pass."""
    return _LATEX_SPECIALS_RE.sub(lambda m: _LATEX_SPECIALS[m.group(0)], text)


def wrap_emoji(text: str) -> str:
    """Switch each run of emoji to the emoji font."""
    return EMOJI_RUN_RE.sub(lambda m: "{\\emojifont " + m.group(0) + "}", text)


def is_excluded_title(title: str) -> bool:
    lowered = title.lower()
    if any(entry.lower() in lowered for entry in EXCLUDED_TITLES):
        return True
    return bool(_STATUS_TITLE_RE.match(title))


def url_host(url: str) -> str:
    """Host (and port, if given) of a link, without any user:password part."""
    try:
        parsed = urlparse(url)
        host, port = parsed.hostname, parsed.port
    except ValueError:
        # Malformed port or brackets; fall back to the raw netloc
        parts = url.split("/")
        netloc = parts[2] if len(parts) > 2 else ""
        host, port = netloc.rpartition("@")[2], None
    if not host:
        return url
    return f"{host}:{port}" if port is not None else host


def _finish(text: str) -> str:
    text = escape_specials(text)
    text = text.replace(VARIATION_SELECTOR, "")
    return wrap_emoji(text)


class LatexSanitizer:
    """Escapes message text for LaTeX and annotates links.

    Args:
        title_lookup: Called with each URL found in the text; returns the
            page title or None. When omitted links are annotated with their
            host only.
    """

    def __init__(self, title_lookup: TitleLookup | None = None):
        self.title_lookup = title_lookup

    def resolve_title(self, url: str) -> str | None:
        if self.title_lookup is None:
            return None
        try:
            title = self.title_lookup(url)
        except Exception as e:
            raise LinkTitleError(f"Title lookup failed for {url}: {e}") from e
        if not title or is_excluded_title(title):
            return None
        return title

    def annotate(self, url: str) -> str:
        """LaTeX for a link: host plus title when one resolved."""
        host = _finish(url_host(url))
        title = self.resolve_title(url)
        if title is None:
            return f"\\linkhost{{{host}}}"
        return f"\\linktitle{{{host}}}{{{_finish(title)}}}"

    def escape(self, text: str) -> str:
        """Escape ``text``; raises LinkTitleError if the title lookup fails."""
        text = normalize_smart_chars(text)

        # Only the text between links is escaped; annotations are already LaTeX
        pieces: list[str] = []
        pos = 0
        for match in URL_RE.finditer(text):
            pieces.append(_finish(text[pos:match.start()]))
            pieces.append(self.annotate(match.group(0)))
            pos = match.end()
        pieces.append(_finish(text[pos:]))
        return "".join(pieces)


def latex_escape(text: str, title_lookup: TitleLookup | None = None) -> str:
    """Shortcut for ``LatexSanitizer(title_lookup).escape(text)``."""
    return LatexSanitizer(title_lookup).escape(text)
