"""Map a conversation identifier to the chat rows that carry it."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from chatbook.chatdb.models import ConversationRecord

logger = logging.getLogger(__name__)


def resolve_chat_ids(
    identifier: str,
    conversations: Iterable[ConversationRecord],
) -> frozenset[int]:
    """Return the ROWIDs of every chat whose ``chat_identifier`` equals ``identifier``.

    The match is exact and case-sensitive. One handle can own several chat
    rows (e.g. an SMS chat and an iMessage chat), so more than one id may
    come back. No match yields an empty set, which simply exports nothing.
    """
    matched: set[int] = set()
    for convo in conversations:
        if convo.chat_identifier != identifier:
            continue
        logger.info(
            f"Found chat {convo.rowid} ({convo.service_name or 'unknown service'}, "
            f"guid={convo.guid!r})"
        )
        matched.add(convo.rowid)

    if not matched:
        logger.warning(f"No chats found for {identifier!r}; the book will be empty")
    return frozenset(matched)
