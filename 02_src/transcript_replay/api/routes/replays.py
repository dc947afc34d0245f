"""Replay API routes."""

import asyncio
import json
from typing import Any, AsyncIterator

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from ...app import IApplication
from ...exceptions import ReplayError, TranscriptNotFoundError
from ...logging_config import get_logger
from ...models import ConversationEntry, ReplayProgressEvent

logger = get_logger(__name__)


class ReplayRequest(BaseModel):
    """Request model for starting a replay.

    Either the source transcript itself or a case number to fetch it by.
    """

    entries: list[dict[str, Any]] | None = None
    case_number: str | None = None


def format_sse(data: dict) -> str:
    """Encode one server-sent event."""
    return f"data: {json.dumps(data)}\n\n"


def log_detached_result(task: asyncio.Task) -> None:
    """Retrieve the outcome of a replay nobody is listening to anymore."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Replay failed after client disconnected: {error}", exc_info=error)
    else:
        logger.info("Replay finished after client disconnected")


async def replay_events(app: IApplication, request: ReplayRequest) -> AsyncIterator[str]:
    """Run a replay and stream its progress as server-sent events."""
    yield format_sse({"type": "connected", "message": "Connected to progress stream"})

    try:
        app.settings.require_target()
        if request.entries is not None:
            entries = [ConversationEntry.from_api(item) for item in request.entries]
        else:
            entries = await app.fetch_transcript(request.case_number)
    except TranscriptNotFoundError as e:
        yield format_sse({"type": "error", "message": "Transcript not found", "details": str(e)})
        return
    except ReplayError as e:
        logger.error(f"Replay setup failed: {e}")
        yield format_sse({"type": "error", "message": "Failed to prepare replay", "details": str(e)})
        return

    yield format_sse({"type": "start", "message": "Starting target transcript generation..."})

    queue: asyncio.Queue = asyncio.Queue()
    cancel_event = asyncio.Event()

    def on_progress(event: ReplayProgressEvent) -> None:
        queue.put_nowait({"type": "progress", **event.to_dict()})

    task = asyncio.create_task(
        app.replay(entries, on_progress=on_progress, cancel_event=cancel_event, label=request.case_number)
    )
    task.add_done_callback(lambda _: queue.put_nowait(None))

    try:
        while True:
            item = await queue.get()
            if item is None:
                break
            yield format_sse(item)

        transcript = task.result()
        yield format_sse(
            {
                "type": "complete",
                "message": "Target transcript generated successfully",
                "transcript": [entry.to_dict() for entry in transcript],
                "target_version": app.settings.target_version,
            }
        )
    except Exception as e:
        logger.error(f"Error in replay stream: {e}", exc_info=True)
        yield format_sse({"type": "error", "message": "Failed to generate target transcript", "details": str(e)})
    finally:
        if not task.done():
            # Stream closed early; no further turns start
            cancel_event.set()
            task.add_done_callback(log_detached_result)


def create_replays_router(app: IApplication) -> APIRouter:
    """Create replays router."""
    router = APIRouter(prefix="/api", tags=["replays"])

    @router.post("/replays")
    async def start_replay(request: ReplayRequest) -> StreamingResponse:
        """Replay a transcript and stream progress events."""
        if request.entries is None and not request.case_number:
            raise HTTPException(status_code=400, detail="Either entries or case_number is required")

        return StreamingResponse(
            replay_events(app, request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    return router
