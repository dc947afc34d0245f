"""Transcript data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class SenderRole(str, Enum):
    """Who produced a conversation entry."""

    END_USER = "EndUser"
    AGENT = "Agent"
    BOT = "Bot"
    SYSTEM = "System"


@dataclass
class Sender:
    """Author of a conversation entry."""

    role: SenderRole | str
    app_type: str | None = None  # distinguishes which bot produced a Bot entry
    subject: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "Sender":
        data = data or {}
        raw_role = data.get("role", "")
        try:
            role: SenderRole | str = SenderRole(raw_role)
        except ValueError:
            role = raw_role
        return cls(role=role, app_type=data.get("appType"), subject=data.get("subject"))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "role": self.role.value if isinstance(self.role, SenderRole) else self.role
        }
        if self.app_type is not None:
            result["appType"] = self.app_type
        if self.subject is not None:
            result["subject"] = self.subject
        return result


@dataclass
class ConversationEntry:
    """A single utterance in a transcript.

    Timestamps are milliseconds since epoch. ``client_timestamp`` defines
    chronological order; entries are not guaranteed to arrive sorted.
    """

    identifier: str
    text: str
    client_timestamp: int
    server_received_timestamp: int
    sender: Sender
    entry_type: str = "Message"

    @property
    def is_end_user(self) -> bool:
        return self.sender.role == SenderRole.END_USER

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ConversationEntry":
        """Decode the source platform's wire shape."""
        return cls(
            identifier=str(data.get("identifier", "")),
            text=data.get("messageText") or "",
            client_timestamp=int(data.get("clientTimestamp") or 0),
            server_received_timestamp=int(data.get("serverReceivedTimestamp") or 0),
            sender=Sender.from_api(data.get("sender")),
            entry_type=data.get("type") or "Message",
        )

    def to_dict(self) -> dict[str, Any]:
        """Encode into the same wire shape the source platform uses."""
        return {
            "identifier": self.identifier,
            "messageText": self.text,
            "clientTimestamp": self.client_timestamp,
            "serverReceivedTimestamp": self.server_received_timestamp,
            "sender": self.sender.to_dict(),
            "type": self.entry_type,
        }
