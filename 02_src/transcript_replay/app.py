"""Application bootstrap and lifecycle management."""

import asyncio
from typing import Protocol

import httpx

from .config import REQUEST_TIMEOUT_SECONDS, TURN_DELAY_SECONDS, Settings
from .logging_config import get_logger
from .models import ConversationEntry, ProgressCallback
from .replay import ReplayOrchestrator
from .source import (
    SourceSession,
    get_conversation_entries,
    get_conversation_identifier,
    sort_entries,
)
from .target import TargetClient

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Create shared HTTP resources."""
        ...

    async def stop(self) -> None:
        """Release shared HTTP resources."""
        ...

    async def fetch_transcript(self, case_number: str) -> list[ConversationEntry]:
        """Fetch the source transcript for a case, sorted by client timestamp."""
        ...

    async def replay(
        self,
        entries: list[ConversationEntry],
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        label: str | None = None,
    ) -> list[ConversationEntry]:
        """Replay a transcript against a fresh target conversation."""
        ...

    @property
    def settings(self) -> Settings:
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        turn_delay: float = TURN_DELAY_SECONDS,
    ):
        self._settings = settings or Settings.from_env()
        self._turn_delay = turn_delay
        self._external_client = http_client

        # Components (will be initialized in start())
        self._http: httpx.AsyncClient | None = None
        self._source_session: SourceSession | None = None

    async def start(self) -> None:
        """Create the shared HTTP client and the source session."""
        logger.info("Starting application")
        self._http = self._external_client or httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS)

        missing = self._settings.missing_source()
        if missing:
            logger.warning(f"Source platform not configured, missing: {', '.join(missing)}")
        else:
            self._source_session = SourceSession(
                self._settings.source_client_id,
                self._settings.source_client_secret,
                self._settings.source_oauth_url,
                http_client=self._http,
            )
            logger.info("Source session initialized")

        missing = self._settings.missing_target()
        if missing:
            logger.warning(f"Target platform not configured, missing: {', '.join(missing)}")

    async def stop(self) -> None:
        """Close the HTTP client if this application created it."""
        if self._http and self._external_client is None:
            await self._http.aclose()
            logger.info("HTTP client closed")
        self._http = None
        self._source_session = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def http(self) -> httpx.AsyncClient:
        """Get shared HTTP client."""
        if not self._http:
            raise RuntimeError("Application not started")
        return self._http

    @property
    def source_session(self) -> SourceSession:
        """Get source session instance."""
        if not self._http:
            raise RuntimeError("Application not started")
        if not self._source_session:
            self._settings.require_source()
        return self._source_session

    async def fetch_entries(self, conversation_identifier: str) -> list[ConversationEntry]:
        session = self.source_session
        await session.get_token()
        return await get_conversation_entries(
            session, conversation_identifier, self._settings.source_api_version
        )

    async def fetch_transcript(self, case_number: str) -> list[ConversationEntry]:
        session = self.source_session
        await session.get_token()
        conversation_identifier = await get_conversation_identifier(
            session, case_number, self._settings.source_api_version
        )
        entries = await self.fetch_entries(conversation_identifier)
        return sort_entries(entries)

    def create_target_client(self) -> TargetClient:
        """New client with no conversation state; one per replay."""
        self._settings.require_target()
        return TargetClient(
            self._settings.target_api_url,
            self._settings.target_api_key,
            self._settings.target_api_token,
            self._settings.target_compatibility_date,
            http_client=self.http,
        )

    async def replay(
        self,
        entries: list[ConversationEntry],
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        label: str | None = None,
    ) -> list[ConversationEntry]:
        client = self.create_target_client()
        orchestrator = ReplayOrchestrator(client, turn_delay=self._turn_delay)
        try:
            return await orchestrator.replay(
                entries,
                on_progress=on_progress,
                cancel_event=cancel_event,
                conversation_label=label,
            )
        finally:
            await client.aclose()
