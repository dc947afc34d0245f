"""Conversation continuation and credential models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConversationState:
    """Continuation handle for one logical conversation with the target platform."""

    token: str
    state: str | None = None  # issued by the first response, omitted on the first call

    @property
    def has_state(self) -> bool:
        return bool(self.state)


@dataclass(frozen=True)
class TargetReply:
    """Result of sending one message to the target platform."""

    message: str
    token: str | None  # set only when the platform issued a new token
    conversation: ConversationState


@dataclass
class SourceCredentials:
    """OAuth credentials obtained from the source platform."""

    access_token: str
    instance_url: str
    token_issued_at: float  # epoch seconds

    def age(self, now: float) -> float:
        return now - self.token_issued_at
