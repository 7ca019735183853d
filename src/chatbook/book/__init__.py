"""Chaptering and manuscript assembly."""

from chatbook.book.assembler import ManuscriptAssembler, ManuscriptAssets
from chatbook.book.chapters import AlternationCursor, Chapter, iter_chapters
from chatbook.book.config import ManuscriptConfig, load_config, resolve_timezone
from chatbook.book.export import export_book

__all__ = [
    "ManuscriptAssembler",
    "ManuscriptAssets",
    "AlternationCursor",
    "Chapter",
    "iter_chapters",
    "ManuscriptConfig",
    "load_config",
    "resolve_timezone",
    "export_book",
]
