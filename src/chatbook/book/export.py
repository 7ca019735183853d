"""End-to-end export: database rows in, manuscript directory out."""

from __future__ import annotations

import logging
from datetime import tzinfo
from pathlib import Path

from chatbook.book.assembler import ManuscriptAssembler, ManuscriptAssets
from chatbook.book.config import ManuscriptConfig
from chatbook.chatdb.filters import filter_messages
from chatbook.chatdb.reader import DEFAULT_MESSAGE_LIMIT, ChatDBReader
from chatbook.chatdb.resolver import resolve_chat_ids
from chatbook.latex.sanitizer import LatexSanitizer

logger = logging.getLogger(__name__)


def export_book(
    reader: ChatDBReader,
    recipient: str,
    output_dir: Path,
    config: ManuscriptConfig,
    assets: ManuscriptAssets | None = None,
    sanitizer: LatexSanitizer | None = None,
    tz: tzinfo | None = None,
    limit: int | None = DEFAULT_MESSAGE_LIMIT,
) -> Path:
    """Export the conversation with ``recipient`` to ``output_dir``; returns main.tex."""
    assets = assets or ManuscriptAssets()
    assets.validate()

    chat_ids = resolve_chat_ids(recipient, reader.fetch_conversations())
    messages = reader.fetch_messages(chat_ids, limit=limit)
    kept = filter_messages(messages)
    logger.info(f"Kept {len(kept)} of {len(messages)} messages after filtering")

    assembler = ManuscriptAssembler(
        config=config,
        output_dir=output_dir,
        assets=assets,
        sanitizer=sanitizer,
        tz=tz,
    )
    return assembler.assemble(kept)
