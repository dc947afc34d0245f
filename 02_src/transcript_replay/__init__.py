"""Transcript replay engine."""

from .app import Application, IApplication
from .config import Settings
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    InvalidArgumentError,
    NetworkError,
    ProtocolError,
    ReplayError,
    SourceQueryError,
    TranscriptNotFoundError,
)
from .models import (
    ConversationEntry,
    ConversationState,
    ProgressCallback,
    ProgressStatus,
    ReplayProgressEvent,
    Sender,
    SenderRole,
    SourceCredentials,
    TargetReply,
)
from .replay import IReplayOrchestrator, ReplayOrchestrator
from .source import ISourceSession, SourceSession
from .target import ITargetClient, TargetClient

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Models
    "ConversationEntry",
    "ConversationState",
    "ProgressCallback",
    "ProgressStatus",
    "ReplayProgressEvent",
    "Sender",
    "SenderRole",
    "SourceCredentials",
    "TargetReply",
    # Components
    "ISourceSession",
    "SourceSession",
    "ITargetClient",
    "TargetClient",
    "IReplayOrchestrator",
    "ReplayOrchestrator",
    # Errors
    "AuthenticationError",
    "ConfigurationError",
    "InvalidArgumentError",
    "NetworkError",
    "ProtocolError",
    "ReplayError",
    "SourceQueryError",
    "TranscriptNotFoundError",
]
