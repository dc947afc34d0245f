"""Stateful client for one conversation with the target platform."""

import json
from typing import Protocol

import httpx

from ..config import DEFAULT_COMPATIBILITY_DATE, REQUEST_TIMEOUT_SECONDS
from ..exceptions import InvalidArgumentError, NetworkError, ProtocolError
from ..logging_config import get_logger, preview
from ..models import ConversationState, TargetReply
from .protocol import ParsedReply, parse_document, parse_stream

logger = get_logger(__name__)

ERROR_EXCERPT_LENGTH = 200


class ITargetClient(Protocol):
    """Send one human utterance at a time into a single conversation."""

    async def send_message(self, text: str, *, timeout: float | None = None) -> TargetReply:
        """Send a message and return the platform's reply."""
        ...

    def get_token(self) -> str:
        ...

    def get_state(self) -> str | None:
        ...


class TargetClient:
    """Client for the target platform's chat endpoint.

    The conversation is threaded through a rotating token and an opaque
    state blob. No state is sent on the first call; the first response
    supplies it and every later call carries it.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        token: str,
        compatibility_date: str = DEFAULT_COMPATIBILITY_DATE,
        state: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._token = token
        self._compatibility_date = compatibility_date
        self._state = state
        self._timeout = timeout

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()

    @property
    def chat_url(self) -> str:
        return f"{self._api_url}/chat"

    @property
    def conversation(self) -> ConversationState:
        return ConversationState(token=self._token, state=self._state)

    def get_token(self) -> str:
        return self._token

    def get_state(self) -> str | None:
        return self._state

    def set_state(self, state: str | None) -> None:
        self._state = state

    def _headers(self) -> dict[str, str]:
        return {
            "Sierra-API-Compatibility-Date": self._compatibility_date,
            "Content-Type": "application/json",
            "X-Sierra-Force-Headless-API-Authorization": "true",
            "Authorization": f"Bearer {self._api_key}",
        }

    def build_request_body(self, text: str) -> dict:
        body: dict = {
            "token": self._token,
            "clientEvent": {
                "type": "message",
                "message": {"content": text},
            },
        }
        if self._state:
            body["state"] = self._state
        return body

    async def send_message(self, text: str, *, timeout: float | None = None) -> TargetReply:
        """Send one message and return the combined reply.

        Raises:
            InvalidArgumentError: text is not a non-empty string.
            NetworkError: no HTTP response (timeout, unreachable host, other).
            ProtocolError: non-2xx response.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidArgumentError("Message must be a non-empty string")

        body = self.build_request_body(text.strip())
        deadline = self._timeout if timeout is None else timeout

        logger.debug(
            "Target request",
            extra={
                "context": {
                    "url": self.chat_url,
                    "continuing": bool(self._state),
                    "message_length": len(body["clientEvent"]["message"]["content"]),
                }
            },
        )

        try:
            response = await self._client.post(
                self.chat_url,
                content=json.dumps(body),
                headers=self._headers(),
                timeout=deadline,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Target API request timed out after {deadline:g} seconds. "
                "Check your network connection and target API availability.",
                kind="timeout",
                url=self.chat_url,
            ) from e
        except httpx.ConnectError as e:
            raise NetworkError(
                f"Cannot connect to target API at {self._api_url}. Check that the API URL "
                f"is correct and the host is reachable. Error: {e}",
                kind="unreachable",
                url=self.chat_url,
            ) from e
        except httpx.HTTPError as e:
            # Transport failures plus undecodable bodies and redirect loops
            raise NetworkError(
                f"Target API network error: {e}", kind="other", url=self.chat_url
            ) from e

        if not response.is_success:
            excerpt = response.text[:ERROR_EXCERPT_LENGTH]
            raise ProtocolError(
                f"Target API request failed: {response.status_code} "
                f"{response.reason_phrase}. {excerpt}",
                status_code=response.status_code,
                body_excerpt=excerpt,
            )

        parsed = self._parse(response.text)
        self._apply(parsed)

        return TargetReply(
            message=parsed.message,
            token=parsed.token,
            conversation=self.conversation,
        )

    def _parse(self, body: str) -> ParsedReply:
        parsed = parse_stream(body)
        if parsed.unknown_count:
            logger.debug(f"Skipped {parsed.unknown_count} unrecognized record(s) in target response")
        if parsed.has_message:
            logger.debug(f"Combined {len(parsed.fragments)} message fragment(s)")
            return parsed

        logger.warning("No message fragments found in target response, attempting fallback parsing")
        fallback = parse_document(body)
        if fallback.has_message:
            return fallback

        logger.error(f"Could not extract message content from target response: {body[:500]}")
        # Keep whatever continuation data the stream carried
        fallback.token = fallback.token or parsed.token
        fallback.state = fallback.state or parsed.state
        return fallback

    def _apply(self, parsed: ParsedReply) -> None:
        if parsed.token:
            self._token = parsed.token
            logger.debug("Target issued an updated conversation token")
        if parsed.state:
            if not self._state:
                logger.info(f"Conversation state established: {preview(parsed.state)}")
            self._state = parsed.state

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
