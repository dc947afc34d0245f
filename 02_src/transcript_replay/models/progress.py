"""Replay progress models."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable


class ProgressStatus(str, Enum):
    """Status carried by a progress event."""

    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ReplayProgressEvent:
    """Informational progress report emitted during a replay."""

    current: int
    total: int
    message: str
    status: ProgressStatus

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "total": self.total,
            "message": self.message,
            "status": self.status.value,
        }


ProgressCallback = Callable[[ReplayProgressEvent], None]
