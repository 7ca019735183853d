"""Read-only access to the Messages chat.db / sms.db."""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path

from chatbook.chatdb.models import ConversationRecord, MessageRecord
from chatbook.exceptions import ChatDBReadError

logger = logging.getLogger(__name__)

CHAT_DB_PATH = Path.home() / "Library" / "Messages" / "chat.db"

# sms.db inside an unencrypted iOS backup, relative to the backup root
IOS_BACKUP_DB_PATH = Path("3d") / "3d0d7e5fb2ce288813306e4d4636395e047a3d2"

DEFAULT_MESSAGE_LIMIT = int(os.environ.get("CHATBOOK_MESSAGE_LIMIT", "100000"))

_RECENTLY_DELETED = "chat_recoverable_message_join"


def resolve_db_path(
    ios_backup_dir: Path | None = None,
    chat_database: Path | None = None,
) -> Path:
    """Pick the database location from an iOS backup root, a direct path, or the macOS default."""
    if ios_backup_dir is not None and chat_database is not None:
        raise ValueError("Pass either an iOS backup directory or a chat database, not both")
    if ios_backup_dir is not None:
        return ios_backup_dir / IOS_BACKUP_DB_PATH
    if chat_database is not None:
        return chat_database
    return CHAT_DB_PATH


def _int(data: dict, key: str, default: int | None = 0) -> int | None:
    value = data.get(key)
    if value is None:
        return default
    return int(value)


def _str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _row_to_message(row: sqlite3.Row) -> MessageRecord:
    """Decode one joined message row; raises on malformed data."""
    data = dict(zip(row.keys(), row))
    guid = _str(data, "guid")
    if not guid:
        raise ValueError("message row has no guid")
    if data.get("date") is None:
        raise ValueError(f"message {guid} has no date")
    body = data.get("attributedBody")
    if body is not None and not isinstance(body, bytes):
        raise ValueError(f"message {guid} has a non-blob attributedBody")

    return MessageRecord(
        rowid=int(data["ROWID"]),
        guid=guid,
        text=_str(data, "text"),
        service=_str(data, "service"),
        handle_id=_int(data, "handle_id", None),
        subject=_str(data, "subject"),
        date=int(data["date"]),
        date_read=_int(data, "date_read"),
        date_delivered=_int(data, "date_delivered"),
        is_from_me=bool(_int(data, "is_from_me")),
        is_read=bool(_int(data, "is_read")),
        item_type=_int(data, "item_type"),
        group_title=_str(data, "group_title"),
        group_action_type=_int(data, "group_action_type"),
        associated_message_guid=_str(data, "associated_message_guid"),
        associated_message_type=_int(data, "associated_message_type", None),
        balloon_bundle_id=_str(data, "balloon_bundle_id"),
        expressive_send_style_id=_str(data, "expressive_send_style_id"),
        thread_originator_guid=_str(data, "thread_originator_guid"),
        thread_originator_part=_str(data, "thread_originator_part"),
        date_edited=_int(data, "date_edited"),
        chat_id=_int(data, "chat_id", None),
        num_attachments=_int(data, "num_attachments"),
        deleted_from=_int(data, "deleted_from", None),
        num_replies=_int(data, "num_replies"),
        attributed_body=body,
    )


class ChatDBReader:
    """Read-only connection to a Messages database."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or CHAT_DB_PATH

    def _connect(self) -> sqlite3.Connection:
        """Open a read-only connection to the database."""
        if not self.db_path.exists():
            raise ChatDBReadError(
                f"Messages database not found at {self.db_path}. "
                "Pass --chat-database or --ios-backup-dir if it lives elsewhere."
            )
        conn = None
        try:
            uri = f"file:{self.db_path}?mode=ro"
            conn = sqlite3.connect(uri, uri=True)
            conn.row_factory = sqlite3.Row
            # Fail here rather than on the first query if the file is not a database
            conn.execute("SELECT name FROM sqlite_master LIMIT 1").fetchall()
            return conn
        except (sqlite3.OperationalError, sqlite3.DatabaseError) as e:
            if conn is not None:
                conn.close()
            err = str(e).lower()
            if "unable to open" in err or "authorization denied" in err:
                raise ChatDBReadError(
                    f"Cannot open {self.db_path}. Full Disk Access is required. "
                    "Go to System Settings > Privacy & Security > Full Disk Access "
                    "and enable it for your terminal application."
                ) from e
            raise ChatDBReadError(f"Failed to open {self.db_path}: {e}") from e

    def fetch_conversations(self) -> list[ConversationRecord]:
        """Every row of the chat table."""
        conn = self._connect()
        try:
            rows = conn.execute(
                """
                SELECT ROWID, guid, chat_identifier, display_name, service_name
                FROM chat
                ORDER BY ROWID
                """
            ).fetchall()
        except sqlite3.DatabaseError as e:
            raise ChatDBReadError(f"Failed to read chats: {e}") from e
        finally:
            conn.close()

        return [
            ConversationRecord(
                rowid=row["ROWID"],
                chat_identifier=row["chat_identifier"] or "",
                guid=row["guid"] or "",
                display_name=row["display_name"] or "",
                service_name=row["service_name"] or "",
            )
            for row in rows
        ]

    def fetch_messages(
        self,
        chat_ids: frozenset[int] | set[int],
        limit: int | None = DEFAULT_MESSAGE_LIMIT,
    ) -> list[MessageRecord]:
        """Fetch every message of the given chats, oldest first.

        Attachment count, reply count and the recently-deleted origin are
        computed by the same statement. At most ``limit`` messages are
        returned; a warning is logged when the conversation holds more.
        A message joined to several of the chats is returned once, under the
        lowest chat id. Rows that cannot be decoded are dropped.
        """
        if not chat_ids:
            logger.info("No chats to read messages from")
            return []

        ids = sorted(chat_ids)
        conn = self._connect()
        try:
            query = self._messages_query(conn, len(ids), limit is not None)
            params: list[int] = list(ids)
            if limit is not None:
                params.append(limit + 1)
            rows = conn.execute(query, params).fetchall()
        except sqlite3.DatabaseError as e:
            raise ChatDBReadError(f"Failed to read messages: {e}") from e
        finally:
            conn.close()

        if limit is not None and len(rows) > limit:
            logger.warning(
                f"Conversation has more than {limit} messages; "
                f"only the oldest {limit} are exported. Raise --limit to include the rest."
            )
            rows = rows[:limit]

        messages: list[MessageRecord] = []
        dropped = 0
        for row in rows:
            try:
                messages.append(_row_to_message(row))
            except (KeyError, TypeError, ValueError, UnicodeDecodeError) as e:
                dropped += 1
                logger.debug(f"Dropping malformed message row: {e}")
        if dropped:
            logger.warning(f"Dropped {dropped} message rows that could not be decoded")

        logger.info(f"Read {len(messages)} messages from {len(ids)} chat(s)")
        return messages

    def _messages_query(self, conn: sqlite3.Connection, n_ids: int, limited: bool) -> str:
        tables = {
            row["name"]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        message_columns = {row["name"] for row in conn.execute("PRAGMA table_info(message)")}

        if _RECENTLY_DELETED in tables:
            deleted_from = (
                f"(SELECT d.chat_id FROM {_RECENTLY_DELETED} d WHERE m.ROWID = d.message_id)"
            )
        else:
            deleted_from = "NULL"

        if "thread_originator_guid" in message_columns:
            num_replies = (
                "(SELECT COUNT(*) FROM message m2 WHERE m2.thread_originator_guid = m.guid)"
            )
        else:
            num_replies = "0"

        if "message_attachment_join" in tables:
            num_attachments = (
                "(SELECT COUNT(*) FROM message_attachment_join a WHERE m.ROWID = a.message_id)"
            )
        else:
            num_attachments = "0"

        placeholders = ", ".join("?" for _ in range(n_ids))
        return f"""
            SELECT
                m.*,
                MIN(c.chat_id) AS chat_id,
                {num_attachments} AS num_attachments,
                {deleted_from} AS deleted_from,
                {num_replies} AS num_replies
            FROM message m
            JOIN chat_message_join c ON m.ROWID = c.message_id
            WHERE c.chat_id IN ({placeholders})
            GROUP BY m.ROWID
            ORDER BY m.date ASC, m.ROWID ASC
            {"LIMIT ?" if limited else ""}
        """
