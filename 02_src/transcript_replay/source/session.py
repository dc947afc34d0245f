"""Authenticated session against the source platform's REST API."""

import asyncio
import time
from typing import Any, Callable, Protocol

import httpx

from ..config import REQUEST_TIMEOUT_SECONDS, TOKEN_LIFETIME_SECONDS
from ..exceptions import AuthenticationError
from ..logging_config import get_logger
from ..models import SourceCredentials

logger = get_logger(__name__)


class ISourceSession(Protocol):
    """Token lifecycle and authenticated request execution."""

    async def get_token(self, force_refresh: bool = False) -> str:
        """Return a valid access token, re-authenticating when needed."""
        ...

    async def make_request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue a bearer-authenticated request, retrying once on 401."""
        ...

    @property
    def instance_url(self) -> str:
        """Base URL of the authenticated instance."""
        ...


class SourceSession:
    """OAuth client-credentials session with transparent re-authentication.

    One session is meant to be reused for the process lifetime. Token
    refresh is serialized with a lock so concurrent callers sharing a
    session trigger a single re-authentication.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        oauth_url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        token_lifetime: float = TOKEN_LIFETIME_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._oauth_url = oauth_url
        self._token_lifetime = token_lifetime
        self._clock = clock

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS)
        self._credentials: SourceCredentials | None = None
        self._lock = asyncio.Lock()

    @property
    def credentials(self) -> SourceCredentials | None:
        return self._credentials

    @property
    def instance_url(self) -> str:
        if not self._credentials or not self._credentials.instance_url:
            raise AuthenticationError("Instance URL not available. Authenticate first.")
        return self._credentials.instance_url

    async def authenticate(self) -> None:
        """Exchange client credentials for an access token."""
        try:
            response = await self._client.post(
                self._oauth_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Source authentication request failed: {e}") from e

        if not response.is_success:
            raise AuthenticationError(
                f"Source authentication failed: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthenticationError(
                f"Source authentication returned a non-JSON body: {response.text[:200]}",
                status_code=response.status_code,
                body=response.text,
            ) from e
        if not isinstance(payload, dict):
            raise AuthenticationError(
                "Source authentication returned an unexpected payload",
                status_code=response.status_code,
                body=response.text,
            )

        self._credentials = SourceCredentials(
            access_token=payload.get("access_token", ""),
            instance_url=payload.get("instance_url", ""),
            token_issued_at=self._clock(),
        )
        logger.info("Authenticated against source platform")

    def _is_stale(self) -> bool:
        if not self._credentials:
            return True
        return self._credentials.age(self._clock()) > self._token_lifetime

    async def get_token(self, force_refresh: bool = False) -> str:
        """Return the cached token, refreshing it when forced or stale."""
        async with self._lock:
            if force_refresh or not self._credentials or not self._credentials.access_token or self._is_stale():
                if self._credentials and self._is_stale():
                    age_minutes = int(self._credentials.age(self._clock()) // 60)
                    logger.info(f"Token expired ({age_minutes} minutes old), refreshing...")
                await self.authenticate()

            if not self._credentials or not self._credentials.access_token:
                raise AuthenticationError("Failed to obtain access token")

            return self._credentials.access_token

    async def make_request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue an authenticated request; on 401 refresh the token and retry once.

        The response is returned as-is, successful or not.
        """
        extra_headers = kwargs.pop("headers", None) or {}
        token = await self.get_token()

        headers = {"Content-Type": "application/json", **extra_headers}
        headers["Authorization"] = f"Bearer {token}"
        response = await self._client.request(method, url, headers=headers, **kwargs)

        if response.status_code == 401:
            logger.info("Received 401 from source platform, refreshing token and retrying")
            token = await self.get_token(force_refresh=True)
            headers["Authorization"] = f"Bearer {token}"
            response = await self._client.request(method, url, headers=headers, **kwargs)

        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
