"""Exception types raised by the replay engine."""


class ReplayError(Exception):
    """Base class for all replay engine errors."""

    pass


class ConfigurationError(ReplayError):
    """Required settings are missing or invalid.

    Attributes:
        missing: Names of the environment variables that were not set.
    """

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class AuthenticationError(ReplayError):
    """The source platform OAuth exchange failed.

    Attributes:
        status_code: HTTP status of the token endpoint, if a response arrived.
        body: Raw response body, if any.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class InvalidArgumentError(ReplayError, ValueError):
    """The caller passed an empty or non-string message."""

    pass


class NetworkError(ReplayError):
    """A request to the target platform never got an HTTP response.

    Attributes:
        kind: "timeout", "unreachable" or "other".
        url: The endpoint that was being called.
    """

    def __init__(self, message: str, kind: str = "other", url: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.url = url


class ProtocolError(ReplayError):
    """The target platform answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int, body_excerpt: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body_excerpt = body_excerpt


class SourceQueryError(ReplayError):
    """A query against the source platform returned a non-2xx status or an unreadable body."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TranscriptNotFoundError(SourceQueryError):
    """A lookup step on the source platform returned no records."""

    pass
