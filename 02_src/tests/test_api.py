"""Tests for the HTTP API."""

import asyncio
import json
from unittest.mock import patch

import httpx
import pytest

from conftest import fragment, ndjson, wire_entry
from transcript_replay.api import create_fastapi_app
from transcript_replay.api.routes.replays import ReplayRequest, log_detached_result, replay_events
from transcript_replay.app import Application
from transcript_replay.config import Settings


def parse_sse(body: str) -> list[dict]:
    return [json.loads(chunk[len("data: "):]) for chunk in body.split("\n\n") if chunk.startswith("data: ")]


async def make_api(settings, http_client):
    application = Application(settings=settings, http_client=http_client, turn_delay=0)
    await application.start()
    api = create_fastapi_app(application)
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=api), base_url="http://testserver")
    return application, client


@pytest.fixture
async def api_client(settings, http_client):
    application, client = await make_api(settings, http_client)
    yield client
    await client.aclose()
    await application.stop()


class TestHealth:
    """Tests for GET /api/health."""

    @pytest.mark.asyncio
    async def test_health(self, api_client):
        response = await api_client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "source_configured": True, "target_configured": True}


class TestReplayStream:
    """Tests for POST /api/replays."""

    @pytest.mark.asyncio
    async def test_requires_entries_or_case(self, api_client):
        response = await api_client.post("/api/replays", json={})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_streams_progress_and_transcript(self, api_client, recorder):
        """Test the event sequence for a successful replay."""
        recorder.responses = [
            httpx.Response(200, text=ndjson({"state": "blob"}, fragment("Hello!"))),
        ]

        response = await api_client.post(
            "/api/replays",
            json={"entries": [wire_entry("e1", "Hi", 1000), wire_entry("b1", "Bot says", 1500, role="Bot")]},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = parse_sse(response.text)
        assert [e["type"] for e in events] == [
            "connected",
            "start",
            "progress",
            "progress",
            "progress",
            "progress",
            "complete",
        ]
        assert events[-2]["status"] == "complete"
        transcript = events[-1]["transcript"]
        assert [e["identifier"] for e in transcript] == ["target-user-0", "target-bot-0"]
        assert transcript[1]["messageText"] == "Hello!"
        assert events[-1]["target_version"] == "v2.1.0"

    @pytest.mark.asyncio
    async def test_turn_errors_are_reported_in_stream(self, api_client, recorder):
        recorder.responses = [httpx.Response(500, text="boom")]

        response = await api_client.post("/api/replays", json={"entries": [wire_entry("e1", "Hi", 1000)]})

        events = parse_sse(response.text)
        assert any(e.get("status") == "error" for e in events)
        assert events[-1]["type"] == "complete"
        assert events[-1]["transcript"][1]["sender"]["role"] == "System"

    @pytest.mark.asyncio
    async def test_missing_target_configuration(self, http_client):
        """Test that missing credentials produce an error event, not a crash."""
        application, client = await make_api(Settings(), http_client)
        try:
            response = await client.post("/api/replays", json={"entries": []})
        finally:
            await client.aclose()
            await application.stop()

        events = parse_sse(response.text)
        assert [e["type"] for e in events] == ["connected", "error"]
        assert "SIERRA_API_KEY" in events[-1]["details"]

    @pytest.mark.asyncio
    async def test_case_not_found(self, api_client, recorder):
        recorder.responses = [
            httpx.Response(200, json={"access_token": "sf", "instance_url": "https://acme.source.test"}),
            httpx.Response(200, json={"records": []}),
        ]

        response = await api_client.post("/api/replays", json={"case_number": "404"})

        events = parse_sse(response.text)
        assert events[-1]["type"] == "error"
        assert events[-1]["message"] == "Transcript not found"

    @pytest.mark.asyncio
    async def test_unreadable_source_body_is_error_event(self, api_client, recorder):
        """Test that a non-JSON source page ends the stream with an error event."""
        recorder.responses = [
            httpx.Response(200, json={"access_token": "sf", "instance_url": "https://acme.source.test"}),
            httpx.Response(200, text="<html>maintenance</html>"),
        ]

        response = await api_client.post("/api/replays", json={"case_number": "1"})

        events = parse_sse(response.text)
        assert [e["type"] for e in events] == ["connected", "error"]
        assert events[-1]["message"] == "Failed to prepare replay"


class TestDetachedReplay:
    """Tests for replays that outlive their progress stream."""

    @pytest.mark.asyncio
    async def test_failure_is_retrieved_and_logged(self):
        async def fail():
            raise RuntimeError("target gone")

        task = asyncio.create_task(fail())
        await asyncio.wait([task])

        with patch("transcript_replay.api.routes.replays.logger") as logger:
            log_detached_result(task)

        logger.error.assert_called_once()
        assert "target gone" in logger.error.call_args.args[0]

    @pytest.mark.asyncio
    async def test_closed_stream_logs_late_failure(self, settings, http_client):
        """Test that closing the stream mid-replay cancels further turns and logs the outcome."""
        application = Application(settings=settings, http_client=http_client, turn_delay=0)
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_replay(entries, on_progress=None, cancel_event=None, label=None):
            started.set()
            await release.wait()
            raise RuntimeError("late failure")

        application.replay = slow_replay
        stream = replay_events(application, ReplayRequest(entries=[wire_entry("e1", "Hi", 1000)]))

        assert json.loads((await stream.__anext__())[len("data: "):])["type"] == "connected"
        assert json.loads((await stream.__anext__())[len("data: "):])["type"] == "start"

        async def next_event():
            return await stream.__anext__()

        waiter = asyncio.create_task(next_event())
        await started.wait()

        with patch("transcript_replay.api.routes.replays.logger") as logger:
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter
            await stream.aclose()
            release.set()
            for _ in range(5):
                await asyncio.sleep(0)

        logger.error.assert_called_once()
        assert "late failure" in logger.error.call_args.args[0]


class TestFetchTranscript:
    """Tests for POST /api/transcripts/fetch."""

    @pytest.mark.asyncio
    async def test_not_found(self, api_client, recorder):
        recorder.responses = [
            httpx.Response(200, json={"access_token": "sf", "instance_url": "https://acme.source.test"}),
            httpx.Response(200, json={"records": []}),
        ]

        response = await api_client.post("/api/transcripts/fetch", json={"case_number": "404"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_source_failure_is_bad_gateway(self, api_client, recorder):
        recorder.responses = [
            httpx.Response(200, json={"access_token": "sf", "instance_url": "https://acme.source.test"}),
            httpx.Response(500, text="down"),
        ]

        response = await api_client.post("/api/transcripts/fetch", json={"case_number": "1"})

        assert response.status_code == 502
