"""Control API routes."""

from fastapi import APIRouter
from pydantic import BaseModel

from ...app import IApplication


class HealthResponse(BaseModel):
    """Response model for health."""

    status: str
    source_configured: bool
    target_configured: bool


def create_control_router(app: IApplication) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api", tags=["control"])

    @router.get("/health", response_model=HealthResponse)
    async def health() -> dict:
        """Report liveness and which platforms are configured."""
        return {
            "status": "ok",
            "source_configured": not app.settings.missing_source(),
            "target_configured": not app.settings.missing_target(),
        }

    return router
