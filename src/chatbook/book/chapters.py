"""Split a time-ordered message stream into one chapter per calendar month."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, tzinfo

from chatbook.chatdb.models import MessageRecord
from chatbook.exceptions import ChapterOrderError


def chapter_key(dt: datetime) -> str:
    """File stem for the chapter holding ``dt``; sorts chronologically."""
    return f"ch-{dt:%Y-%m}"


def chapter_heading(dt: datetime) -> str:
    return f"{dt:%B %Y}"


@dataclass
class Chapter:
    key: str
    heading: str
    messages: list[MessageRecord] = field(default_factory=list)


@dataclass
class AlternationCursor:
    """Sender of the last rendered message in the current chapter."""

    last_from_me: bool | None = None

    def needs_space(self, is_from_me: bool) -> bool:
        """True when the previous bubble came from the same side."""
        return self.last_from_me is not None and self.last_from_me == is_from_me

    def advance(self, is_from_me: bool) -> None:
        self.last_from_me = is_from_me


def iter_chapters(
    messages: Iterable[MessageRecord],
    tz: tzinfo | None = None,
) -> Iterator[Chapter]:
    """Yield chapters lazily, each closed when the next month starts.

    Raises ChapterOrderError if a message is older than the one before it,
    since a closed chapter can never be reopened.
    """
    current: Chapter | None = None
    previous: MessageRecord | None = None

    for message in messages:
        if previous is not None and message.date < previous.date:
            raise ChapterOrderError(
                f"Message {message.guid} (date {message.date}) is older than "
                f"message {previous.guid} (date {previous.date})"
            )
        previous = message

        local = message.local_date(tz)
        key = chapter_key(local)
        if current is None or current.key != key:
            if current is not None:
                yield current
            current = Chapter(key=key, heading=chapter_heading(local))
        current.messages.append(message)

    if current is not None:
        yield current
