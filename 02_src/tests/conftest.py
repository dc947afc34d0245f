"""Pytest configuration and fixtures."""

import json
import sys
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def ndjson(*records) -> str:
    """Encode records as a newline-delimited stream; strings are passed through."""
    return "\n".join(r if isinstance(r, str) else json.dumps(r) for r in records) + "\n"


def fragment(text: str) -> dict:
    return {"type": "message", "message": {"role": "assistant", "text": text}}


def wire_entry(identifier, text, timestamp, role="EndUser", app_type=None) -> dict:
    sender = {"role": role}
    if app_type:
        sender["appType"] = app_type
    return {
        "identifier": identifier,
        "messageText": text,
        "clientTimestamp": timestamp,
        "serverReceivedTimestamp": timestamp + 50,
        "sender": sender,
        "type": "Message",
    }


@pytest.fixture
def make_entry():
    """Factory for ConversationEntry objects."""
    from transcript_replay.models import ConversationEntry

    def _make(identifier, text, timestamp, role="EndUser", app_type=None):
        return ConversationEntry.from_api(wire_entry(identifier, text, timestamp, role, app_type))

    return _make


@pytest.fixture
def source_transcript(make_entry):
    """A short unsorted source transcript with bot and system noise."""
    return [
        make_entry("e3", "And my order number is 42", 3000),
        make_entry("e1", "Hello there", 1000),
        make_entry("b1", "Hi! How can I help?", 1500, role="Bot", app_type="agentforce"),
        make_entry("s1", "Session started", 500, role="System"),
        make_entry("e2", "I can&#39;t log in", 2000),
        make_entry("e4", "   ", 4000),
    ]


@pytest.fixture
def recorder():
    """Collect requests and answer them from a list of responses or a callable."""

    class Recorder:
        def __init__(self):
            self.requests: list[httpx.Request] = []
            self.responses: list = []

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            response = self.responses.pop(0) if self.responses else httpx.Response(200, text="")
            if callable(response):
                return response(request)
            if isinstance(response, Exception):
                raise response
            return response

        def bodies(self) -> list[dict]:
            return [json.loads(r.content) for r in self.requests]

    return Recorder()


@pytest_asyncio.fixture
async def http_client(recorder):
    """AsyncClient routed to the recorder."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    yield client
    await client.aclose()


@pytest.fixture
def target_client(http_client):
    """TargetClient with no conversation state."""
    from transcript_replay.target import TargetClient

    return TargetClient(
        "https://target.test",
        "api-key",
        "tok-1",
        "2025-02-01",
        http_client=http_client,
    )


@pytest.fixture
def settings():
    """Fully configured settings."""
    from transcript_replay.config import Settings

    return Settings(
        source_client_id="client-id",
        source_client_secret="client-secret",
        source_oauth_url="https://login.source.test/oauth2/token",
        target_api_url="https://target.test",
        target_api_key="api-key",
        target_api_token="tok-1",
    )
