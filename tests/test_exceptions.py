"""Tests for exception hierarchy."""

from chatbook.exceptions import (
    AssetMissingError,
    ChapterOrderError,
    ChatBookError,
    ChatDBError,
    ChatDBReadError,
    ConfigError,
    LinkTitleError,
    ManuscriptError,
    MessageBodyError,
)


def test_all_inherit_from_base():
    for exc_class in [
        ChatDBError, ChatDBReadError,
        MessageBodyError,
        ChapterOrderError,
        LinkTitleError,
        ManuscriptError, ConfigError, AssetMissingError,
    ]:
        assert issubclass(exc_class, ChatBookError)


def test_chatdb_hierarchy():
    assert issubclass(ChatDBReadError, ChatDBError)


def test_manuscript_hierarchy():
    assert issubclass(ConfigError, ManuscriptError)
    assert issubclass(AssetMissingError, ManuscriptError)


def test_exception_message():
    e = ChatDBReadError("test error")
    assert str(e) == "test error"
