"""Split a message payload into ordered body segments."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from chatbook.chatdb.models import MessageRecord
from chatbook.exceptions import MessageBodyError

# Placeholders Messages leaves in the text where non-text parts sit
ATTACHMENT_CHAR = "\ufffc"
APP_CHAR = "\ufffd"

_SPLIT_RE = re.compile(f"([{ATTACHMENT_CHAR}{APP_CHAR}])")

# typedstream integer tags for lengths that do not fit in one byte
_TAG_INT16 = 0x81
_TAG_INT32 = 0x82


class SegmentKind(enum.Enum):
    TEXT = "text"
    ATTACHMENT = "attachment"
    OTHER = "other"


@dataclass(frozen=True)
class BodySegment:
    kind: SegmentKind
    text: str | None = None


@dataclass(frozen=True)
class MessageBody:
    """What the renderer needs from a message's segments."""

    text: str | None
    attachment_count: int


def decode_attributed_body(blob: bytes) -> str | None:
    """Pull the plain string out of an ``attributedBody`` typedstream blob.

    Returns None if the blob holds no NSString. Raises MessageBodyError when
    the string is there but truncated or not valid UTF-8.
    """
    start = blob.find(b"NSString")
    if start == -1:
        return None
    marker = blob.find(b"+", start + len(b"NSString"))
    if marker == -1 or marker + 1 >= len(blob):
        raise MessageBodyError("attributedBody has an NSString but no string data")

    pos = marker + 1
    tag = blob[pos]
    if tag == _TAG_INT16:
        length = int.from_bytes(blob[pos + 1:pos + 3], "little")
        pos += 3
    elif tag == _TAG_INT32:
        length = int.from_bytes(blob[pos + 1:pos + 5], "little")
        pos += 5
    else:
        length = tag
        pos += 1

    raw = blob[pos:pos + length]
    if len(raw) != length:
        raise MessageBodyError(
            f"attributedBody string is truncated ({len(raw)} of {length} bytes)"
        )
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MessageBodyError(f"attributedBody string is not UTF-8: {e}") from e


def message_text(message: MessageRecord) -> str | None:
    """The message's raw text, falling back to the attributed body.

    Raises MessageBodyError when a message has neither text nor attachments,
    since there is then nothing to show for it.
    """
    if message.text:
        return message.text
    if message.attributed_body:
        decoded = decode_attributed_body(message.attributed_body)
        if decoded:
            return decoded
    if message.num_attachments > 0 or message.balloon_bundle_id:
        return None
    raise MessageBodyError(f"Message {message.guid} has no text or attachments")


def _split_text(text: str) -> list[BodySegment]:
    segments = []
    for part in _SPLIT_RE.split(text):
        if part == ATTACHMENT_CHAR:
            segments.append(BodySegment(SegmentKind.ATTACHMENT))
        elif part == APP_CHAR:
            segments.append(BodySegment(SegmentKind.OTHER))
        elif part.strip():
            segments.append(BodySegment(SegmentKind.TEXT, part.strip()))
    return segments


def extract_segments(message: MessageRecord) -> list[BodySegment]:
    """Decompose ``message`` into segments in payload order."""
    segments: list[BodySegment] = []
    if message.balloon_bundle_id:
        segments.append(BodySegment(SegmentKind.OTHER))

    text = message_text(message)
    if text is not None:
        segments.extend(_split_text(text))

    # Attachment-only messages often carry no placeholder characters at all
    if message.num_attachments > 0 and not any(
        s.kind is SegmentKind.ATTACHMENT for s in segments
    ):
        segments.extend(
            BodySegment(SegmentKind.ATTACHMENT) for _ in range(message.num_attachments)
        )
    return segments


def summarize_body(message: MessageRecord) -> MessageBody:
    """First text segment and the number of attachment segments."""
    text: str | None = None
    attachments = 0
    for segment in extract_segments(message):
        if segment.kind is SegmentKind.TEXT:
            if text is None:
                text = segment.text
        elif segment.kind is SegmentKind.ATTACHMENT:
            attachments += 1
        elif segment.kind is SegmentKind.OTHER:
            pass
        else:
            raise MessageBodyError(f"Unknown segment kind {segment.kind!r}")
    return MessageBody(text=text, attachment_count=attachments)
