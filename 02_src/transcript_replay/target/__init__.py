"""Target platform module."""

from .client import ITargetClient, TargetClient
from .protocol import (
    MessageFragment,
    ParsedReply,
    StateUpdate,
    StreamRecord,
    TokenUpdate,
    UnknownRecord,
    decode_line,
    parse_document,
    parse_stream,
)

__all__ = [
    "ITargetClient",
    "TargetClient",
    "MessageFragment",
    "ParsedReply",
    "StateUpdate",
    "StreamRecord",
    "TokenUpdate",
    "UnknownRecord",
    "decode_line",
    "parse_document",
    "parse_stream",
]
