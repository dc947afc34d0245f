"""Source platform module."""

from .conversation import get_conversation_entries, get_conversation_identifier, sort_entries
from .session import ISourceSession, SourceSession

__all__ = [
    "ISourceSession",
    "SourceSession",
    "get_conversation_entries",
    "get_conversation_identifier",
    "sort_entries",
]
