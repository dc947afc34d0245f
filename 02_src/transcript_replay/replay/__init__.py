"""Replay module."""

from .orchestrator import ERROR_MARKER, IReplayOrchestrator, ReplayOrchestrator, ReplayTurn, extract_turns
from .text import decode_html_entities

__all__ = [
    "ERROR_MARKER",
    "IReplayOrchestrator",
    "ReplayOrchestrator",
    "ReplayTurn",
    "decode_html_entities",
    "extract_turns",
]
