"""Render one message as a LaTeX chat bubble."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo

from chatbook.chatdb.body import summarize_body
from chatbook.chatdb.models import MessageRecord
from chatbook.latex.sanitizer import LatexSanitizer


def format_long_date(dt: datetime) -> str:
    """e.g. ``January 5, 2023``."""
    return f"{dt:%B} {dt.day}, {dt.year}"


def attachment_badge(count: int) -> str:
    return f"\\fbox{{{count} Attachment{'' if count == 1 else 's'}}}"


@dataclass
class LatexMessage:
    is_from_me: bool
    body_text: str | None
    attachment_count: int
    date: datetime

    def render(self, sanitizer: LatexSanitizer, insert_extra_space: bool = False) -> str:
        content = sanitizer.escape(self.body_text) if self.body_text else ""

        if self.attachment_count > 0:
            if content:
                content += "\\enskip"
            content += attachment_badge(self.attachment_count)

        rendered = f"\\markright{{{format_long_date(self.date)}}}\n"
        if insert_extra_space:
            rendered += "\\insertextraspace\n"

        macro = "leftmsg" if self.is_from_me else "rightmsg"
        rendered += f"\\{macro}{{{content}}}\n\n"
        return rendered


def render_message(
    message: MessageRecord,
    sanitizer: LatexSanitizer,
    insert_extra_space: bool = False,
    tz: tzinfo | None = None,
) -> str:
    """Render ``message``; raises MessageBodyError if its payload cannot be decoded."""
    body = summarize_body(message)
    latex_msg = LatexMessage(
        is_from_me=message.is_from_me,
        body_text=body.text,
        attachment_count=body.attachment_count,
        date=message.local_date(tz),
    )
    return latex_msg.render(sanitizer, insert_extra_space)
