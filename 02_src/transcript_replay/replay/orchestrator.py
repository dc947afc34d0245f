"""ReplayOrchestrator implementation."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from ..config import REPLY_OFFSET_MS, TURN_DELAY_SECONDS
from ..exceptions import ReplayError
from ..logging_config import get_logger, preview
from ..models import (
    ConversationEntry,
    ProgressCallback,
    ProgressStatus,
    ReplayProgressEvent,
    Sender,
    SenderRole,
)
from ..target import ITargetClient
from .text import decode_html_entities

logger = get_logger(__name__)

ERROR_MARKER = "[Error: Failed to get target response]"
SERVER_RECEIVED_OFFSET_MS = 100


@dataclass(frozen=True)
class ReplayTurn:
    """A human-authored utterance selected for replay."""

    text: str
    timestamp: int


def extract_turns(entries: list[ConversationEntry]) -> list[ReplayTurn]:
    """Select end-user entries with text, decoded and sorted by client timestamp."""
    turns = []
    for entry in entries:
        if not entry.is_end_user or not isinstance(entry.text, str):
            continue
        # Entities like &nbsp; only become whitespace once decoded
        text = decode_html_entities(entry.text).strip()
        if not text:
            logger.debug(f"Skipping empty message at {entry.client_timestamp}")
            continue
        turns.append(ReplayTurn(text=text, timestamp=entry.client_timestamp))
    return sorted(turns, key=lambda turn: turn.timestamp)


class IReplayOrchestrator(Protocol):
    """Drive a transcript replay turn by turn."""

    async def replay(
        self,
        entries: list[ConversationEntry],
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        conversation_label: str | None = None,
    ) -> list[ConversationEntry]:
        """Replay human turns and return the synthetic transcript."""
        ...


class ReplayOrchestrator:
    """Replays human turns against one target conversation, strictly in order.

    Every turn goes through the same client so the target platform sees a
    single continuous conversation. A failed turn becomes a System entry and
    an error progress event; the replay always carries on to the next turn.
    """

    def __init__(
        self,
        client: ITargetClient,
        *,
        turn_delay: float = TURN_DELAY_SECONDS,
        reply_offset_ms: int = REPLY_OFFSET_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client
        self._turn_delay = turn_delay
        self._reply_offset_ms = reply_offset_ms
        self._sleep = sleep

    async def replay(
        self,
        entries: list[ConversationEntry],
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        conversation_label: str | None = None,
    ) -> list[ConversationEntry]:
        """Replay the end-user turns of ``entries`` and return the synthetic transcript."""
        turns = extract_turns(entries)
        total = len(turns)
        output: list[ConversationEntry] = []
        label = f" ({conversation_label})" if conversation_label else ""

        def emit(current: int, message: str, status: ProgressStatus = ProgressStatus.PROCESSING) -> None:
            self._notify(on_progress, ReplayProgressEvent(current, total, message, status))

        if total:
            logger.info(f"Starting replay of {total} message(s){label}")
            emit(0, f"Starting target transcript generation for {total} messages...")

        for i, turn in enumerate(turns):
            current = i + 1
            if cancel_event is not None and cancel_event.is_set():
                return self._cancelled(output, i, total, on_progress)

            output.append(self._user_entry(i, turn))
            emit(current, f"Sending message {current}/{total} to target...")

            try:
                logger.debug(
                    f"Sending message {current}/{total}{label}, "
                    f"state: {preview(self._client.get_state())}"
                )
                reply = await self._client.send_message(turn.text)
            except ReplayError as e:
                logger.error(f"Error sending message {current}/{total}{label}: {e}")
                output.append(self._error_entry(i, turn))
                emit(
                    current,
                    f"Error processing message {current}/{total}: {e}",
                    ProgressStatus.ERROR,
                )
            else:
                output.append(self._bot_entry(i, turn, reply.message))
                emit(current, f"Completed message {current}/{total}")

            if current < total:
                await self._sleep(self._turn_delay)
                if cancel_event is not None and cancel_event.is_set():
                    return self._cancelled(output, current, total, on_progress)

        logger.info(f"Replay complete{label}. Generated {len(output)} entries from {total} user messages")
        emit(
            total,
            f"Generated target transcript with {len(output)} entries from {total} messages",
            ProgressStatus.COMPLETE,
        )
        return output

    def _cancelled(
        self,
        output: list[ConversationEntry],
        processed: int,
        total: int,
        on_progress: ProgressCallback | None,
    ) -> list[ConversationEntry]:
        logger.warning(f"Replay cancelled after {processed}/{total} messages")
        self._notify(
            on_progress,
            ReplayProgressEvent(
                processed,
                total,
                f"Replay cancelled after {processed}/{total} messages",
                ProgressStatus.ERROR,
            ),
        )
        return output

    @staticmethod
    def _notify(on_progress: ProgressCallback | None, event: ReplayProgressEvent) -> None:
        if on_progress is None:
            return
        try:
            on_progress(event)
        except Exception as e:
            logger.error(f"Progress callback failed: {e}", exc_info=True)

    def _user_entry(self, index: int, turn: ReplayTurn) -> ConversationEntry:
        return ConversationEntry(
            identifier=f"target-user-{index}",
            text=turn.text,
            client_timestamp=turn.timestamp,
            server_received_timestamp=turn.timestamp + SERVER_RECEIVED_OFFSET_MS,
            sender=Sender(role=SenderRole.END_USER),
        )

    def _bot_entry(self, index: int, turn: ReplayTurn, message: str) -> ConversationEntry:
        timestamp = turn.timestamp + self._reply_offset_ms
        return ConversationEntry(
            identifier=f"target-bot-{index}",
            text=message or "",
            client_timestamp=timestamp,
            server_received_timestamp=timestamp + SERVER_RECEIVED_OFFSET_MS,
            sender=Sender(role=SenderRole.BOT, app_type="chatbot"),
        )

    def _error_entry(self, index: int, turn: ReplayTurn) -> ConversationEntry:
        timestamp = turn.timestamp + self._reply_offset_ms
        return ConversationEntry(
            identifier=f"target-error-{index}",
            text=ERROR_MARKER,
            client_timestamp=timestamp,
            server_received_timestamp=timestamp + SERVER_RECEIVED_OFFSET_MS,
            sender=Sender(role=SenderRole.SYSTEM),
        )
