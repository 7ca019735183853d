"""Shared fixtures: a small Messages database and a message factory."""

import sqlite3
from datetime import datetime, timezone

import pytest

from chatbook.chatdb.models import MessageRecord

_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)

ME = "+15551234567"
OTHER = "+15559999999"


def apple_ns(year, month, day, hour=12, minute=0):
    """Apple nanosecond timestamp for a UTC wall-clock time."""
    dt = datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
    return int((dt - _EPOCH).total_seconds()) * 1_000_000_000


def make_message(**overrides):
    fields = dict(
        rowid=1,
        guid="guid-1",
        text="Hello",
        service="iMessage",
        handle_id=1,
        subject=None,
        date=apple_ns(2023, 1, 5),
        date_read=0,
        date_delivered=0,
        is_from_me=True,
        is_read=True,
        item_type=0,
        group_title=None,
        group_action_type=0,
        associated_message_guid=None,
        associated_message_type=0,
        balloon_bundle_id=None,
        expressive_send_style_id=None,
        thread_originator_guid=None,
        thread_originator_part=None,
        date_edited=0,
        chat_id=1,
        num_attachments=0,
        deleted_from=None,
        num_replies=0,
    )
    fields.update(overrides)
    return MessageRecord(**fields)


def insert_message(conn, rowid, chat_id, date, text=None, guid=None, **cols):
    row = dict(
        ROWID=rowid,
        guid=f"msg-{rowid}" if guid is None else guid,
        text=text,
        attributedBody=None,
        service="iMessage",
        handle_id=1,
        subject=None,
        date=date,
        date_read=0,
        date_delivered=0,
        is_from_me=0,
        is_read=1,
        item_type=0,
        group_title=None,
        group_action_type=0,
        associated_message_guid=None,
        associated_message_type=0,
        balloon_bundle_id=None,
        expressive_send_style_id=None,
        thread_originator_guid=None,
        thread_originator_part=None,
        date_edited=0,
    )
    row.update(cols)
    names = ", ".join(row)
    marks = ", ".join("?" for _ in row)
    conn.execute(f"INSERT INTO message ({names}) VALUES ({marks})", list(row.values()))
    conn.execute("INSERT INTO chat_message_join VALUES (?, ?)", (chat_id, rowid))


@pytest.fixture
def chat_db(tmp_path):
    """Create a chat.db with two chats for ME, one for OTHER, and some noise."""
    db_path = tmp_path / "chat.db"
    conn = sqlite3.connect(str(db_path))
    conn.execute("""
        CREATE TABLE message (
            ROWID INTEGER PRIMARY KEY,
            guid TEXT,
            text TEXT,
            attributedBody BLOB,
            service TEXT,
            handle_id INTEGER,
            subject TEXT,
            date INTEGER,
            date_read INTEGER,
            date_delivered INTEGER,
            is_from_me INTEGER DEFAULT 0,
            is_read INTEGER DEFAULT 0,
            item_type INTEGER DEFAULT 0,
            group_title TEXT,
            group_action_type INTEGER DEFAULT 0,
            associated_message_guid TEXT,
            associated_message_type INTEGER DEFAULT 0,
            balloon_bundle_id TEXT,
            expressive_send_style_id TEXT,
            thread_originator_guid TEXT,
            thread_originator_part TEXT,
            date_edited INTEGER DEFAULT 0
        )
    """)
    conn.execute("""
        CREATE TABLE chat (
            ROWID INTEGER PRIMARY KEY,
            guid TEXT,
            chat_identifier TEXT,
            display_name TEXT,
            service_name TEXT
        )
    """)
    conn.execute("CREATE TABLE chat_message_join (chat_id INTEGER, message_id INTEGER)")
    conn.execute("CREATE TABLE message_attachment_join (message_id INTEGER, attachment_id INTEGER)")
    conn.execute(
        "CREATE TABLE chat_recoverable_message_join (chat_id INTEGER, message_id INTEGER, delete_date INTEGER)"
    )

    conn.execute(f"INSERT INTO chat VALUES (1, 'iMessage;-;{ME}', '{ME}', '', 'iMessage')")
    conn.execute(f"INSERT INTO chat VALUES (2, 'SMS;-;{ME}', '{ME}', '', 'SMS')")
    conn.execute(f"INSERT INTO chat VALUES (3, 'iMessage;-;{OTHER}', '{OTHER}', '', 'iMessage')")

    insert_message(conn, 1, 1, apple_ns(2023, 1, 5), "Hello!", is_from_me=1)
    insert_message(conn, 2, 2, apple_ns(2023, 1, 6), "Hi back")
    insert_message(conn, 3, 3, apple_ns(2023, 1, 7), "Someone else")
    insert_message(
        conn, 4, 1, apple_ns(2023, 1, 8), "Loved “Hi back”",
        associated_message_type=2000, associated_message_guid="p:0/msg-2",
    )
    insert_message(conn, 5, 1, apple_ns(2023, 2, 1), "\ufffc\ufffc", is_from_me=1)
    insert_message(conn, 6, 1, apple_ns(2023, 2, 2), "Reply", thread_originator_guid="msg-1")
    insert_message(conn, 7, 1, apple_ns(2023, 2, 3), None, group_action_type=1)
    insert_message(conn, 8, 2, apple_ns(2023, 2, 4), None, item_type=6)
    insert_message(conn, 9, 1, apple_ns(2023, 3, 1), "No guid", guid="")
    insert_message(conn, 10, 1, apple_ns(2022, 12, 31), "Happy new year", is_from_me=1)

    conn.execute("INSERT INTO message_attachment_join VALUES (5, 1)")
    conn.execute("INSERT INTO message_attachment_join VALUES (5, 2)")
    conn.execute("INSERT INTO chat_recoverable_message_join VALUES (1, 2, 0)")
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture(name="make_message")
def make_message_fixture():
    return make_message


@pytest.fixture(name="apple_ns")
def apple_ns_fixture():
    return apple_ns
