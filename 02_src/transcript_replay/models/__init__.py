"""Core data models for the replay engine."""

from .conversation import ConversationState, SourceCredentials, TargetReply
from .progress import ProgressCallback, ProgressStatus, ReplayProgressEvent
from .transcript import ConversationEntry, Sender, SenderRole

__all__ = [
    # Transcript
    "ConversationEntry",
    "Sender",
    "SenderRole",
    # Conversation
    "ConversationState",
    "SourceCredentials",
    "TargetReply",
    # Progress
    "ProgressCallback",
    "ProgressStatus",
    "ReplayProgressEvent",
]
