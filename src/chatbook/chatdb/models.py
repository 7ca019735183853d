"""Data models for the Messages database."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timedelta, timezone, tzinfo

# Apple's Core Data epoch offset (2001-01-01 vs 1970-01-01)
APPLE_EPOCH_OFFSET = 978307200

_APPLE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)

# Newer stores count nanoseconds, older ones seconds
_NANOSECOND_THRESHOLD = 1e12

# associated_message_type values used by tapbacks (added / removed)
_REACTION_TYPES = frozenset(range(2000, 2008)) | frozenset(range(3000, 3008))

# item_type values for membership changes, group renames and group photo actions
_ANNOUNCEMENT_ITEM_TYPES = frozenset({1, 2, 3})

_SHAREPLAY_ITEM_TYPE = 6


def apple_timestamp_to_datetime(apple_ts: int, tz: tzinfo | None = None) -> datetime:
    """Convert an Apple timestamp (seconds or nanoseconds since 2001) to an aware datetime."""
    if abs(apple_ts) > _NANOSECOND_THRESHOLD:
        delta = timedelta(microseconds=apple_ts // 1000)
    else:
        delta = timedelta(seconds=apple_ts)
    dt = _APPLE_EPOCH + delta
    return dt.astimezone(tz) if tz is not None else dt.astimezone()


@dataclass(frozen=True)
class ConversationRecord:
    """A row of the ``chat`` table."""

    rowid: int
    chat_identifier: str
    guid: str = ""
    display_name: str = ""
    service_name: str = ""


@dataclass
class MessageRecord:
    """A row of the ``message`` table plus the counts computed at retrieval."""

    rowid: int
    guid: str
    text: str | None
    service: str | None
    handle_id: int | None
    subject: str | None
    date: int
    date_read: int
    date_delivered: int
    is_from_me: bool
    is_read: bool
    item_type: int
    group_title: str | None
    group_action_type: int
    associated_message_guid: str | None
    associated_message_type: int | None
    balloon_bundle_id: str | None
    expressive_send_style_id: str | None
    thread_originator_guid: str | None
    thread_originator_part: str | None
    date_edited: int
    chat_id: int | None
    num_attachments: int
    deleted_from: int | None
    num_replies: int
    attributed_body: bytes | None = field(default=None, repr=False)

    @property
    def is_reaction(self) -> bool:
        return (self.associated_message_type or 0) in _REACTION_TYPES

    @property
    def is_announcement(self) -> bool:
        return (
            self.group_title is not None
            or self.group_action_type != 0
            or self.item_type in _ANNOUNCEMENT_ITEM_TYPES
        )

    @property
    def is_shareplay(self) -> bool:
        return self.item_type == _SHAREPLAY_ITEM_TYPE

    def local_date(self, tz: tzinfo | None = None) -> datetime:
        return apple_timestamp_to_datetime(self.date, tz)

    def to_snapshot(self) -> dict:
        """Every serializable field, in declaration order."""
        data = asdict(self)
        data.pop("attributed_body")
        return data


SNAPSHOT_FIELDS = tuple(f.name for f in fields(MessageRecord) if f.name != "attributed_body")
