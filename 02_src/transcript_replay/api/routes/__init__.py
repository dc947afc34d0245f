"""API routers."""

from .control import create_control_router
from .replays import create_replays_router
from .transcripts import create_transcripts_router

__all__ = ["create_control_router", "create_replays_router", "create_transcripts_router"]
