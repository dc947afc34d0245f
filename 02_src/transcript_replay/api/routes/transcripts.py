"""Transcript API routes."""

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ...app import IApplication
from ...exceptions import ConfigurationError, ReplayError, TranscriptNotFoundError


class FetchTranscriptRequest(BaseModel):
    """Request model for fetching a source transcript."""

    case_number: str


class TranscriptResponse(BaseModel):
    """Response model for a source transcript."""

    case_number: str
    entries: list[dict[str, Any]]


def create_transcripts_router(app: IApplication) -> APIRouter:
    """Create transcripts router."""
    router = APIRouter(prefix="/api/transcripts", tags=["transcripts"])

    @router.post("/fetch", response_model=TranscriptResponse)
    async def fetch_transcript(request: FetchTranscriptRequest) -> dict:
        """Fetch a source transcript by case number, sorted by client timestamp."""
        try:
            entries = await app.fetch_transcript(request.case_number)
        except TranscriptNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ConfigurationError as e:
            raise HTTPException(status_code=500, detail=str(e))
        except ReplayError as e:
            raise HTTPException(status_code=502, detail=str(e))

        return {
            "case_number": request.case_number,
            "entries": [entry.to_dict() for entry in entries],
        }

    return router
