"""Messages database access (chat.db on macOS, sms.db in iOS backups)."""

from chatbook.chatdb.body import BodySegment, MessageBody, SegmentKind, extract_segments, summarize_body
from chatbook.chatdb.filters import filter_messages, is_book_worthy
from chatbook.chatdb.models import ConversationRecord, MessageRecord
from chatbook.chatdb.reader import ChatDBReader, resolve_db_path
from chatbook.chatdb.resolver import resolve_chat_ids

__all__ = [
    "BodySegment",
    "MessageBody",
    "SegmentKind",
    "extract_segments",
    "summarize_body",
    "filter_messages",
    "is_book_worthy",
    "ConversationRecord",
    "MessageRecord",
    "ChatDBReader",
    "resolve_db_path",
    "resolve_chat_ids",
]
