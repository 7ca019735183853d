"""Unified exception hierarchy for chat-book."""


class ChatBookError(Exception):
    """Base exception for all chat-book errors."""


# Messages database
class ChatDBError(ChatBookError):
    """Base exception for Messages database operations."""


class ChatDBReadError(ChatDBError):
    """Failed to open or read the Messages database."""


# Message content
class MessageBodyError(ChatBookError):
    """A message's payload could not be decoded into body segments."""


class ChapterOrderError(ChatBookError):
    """Messages reached the chapter splitter out of time order."""


# Web
class LinkTitleError(ChatBookError):
    """Failed to resolve the title of a linked page."""


# Manuscript
class ManuscriptError(ChatBookError):
    """Base exception for manuscript assembly."""


class ConfigError(ManuscriptError):
    """The manuscript config is missing, unreadable or invalid."""


class AssetMissingError(ManuscriptError):
    """A template, build file or font needed for the manuscript is missing."""
