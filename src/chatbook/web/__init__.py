"""Web lookups used while rendering messages."""

from chatbook.web.titles import LinkTitleFetcher, extract_title

__all__ = ["LinkTitleFetcher", "extract_title"]
