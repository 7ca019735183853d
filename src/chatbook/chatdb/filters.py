"""Drop messages that do not belong in the book."""

from __future__ import annotations

from collections.abc import Iterable

from chatbook.chatdb.models import MessageRecord


def is_book_worthy(message: MessageRecord) -> bool:
    """False for tapbacks, group announcements and SharePlay markers."""
    return not (message.is_reaction or message.is_announcement or message.is_shareplay)


def filter_messages(messages: Iterable[MessageRecord]) -> list[MessageRecord]:
    """Keep book-worthy messages, preserving their order."""
    return [m for m in messages if is_book_worthy(m)]
