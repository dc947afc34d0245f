"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Union

from .exceptions import ConfigurationError

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

TOKEN_LIFETIME_SECONDS = 3600
REQUEST_TIMEOUT_SECONDS = 30.0
TURN_DELAY_SECONDS = 0.5
REPLY_OFFSET_MS = 2000

DEFAULT_SOURCE_API_VERSION = "v65.0"
DEFAULT_TARGET_API_URL = "https://api.sierra.chat"
DEFAULT_COMPATIBILITY_DATE = "2025-02-01"
DEFAULT_TARGET_VERSION = "v2.1.0"


PathLike = Union[str, Path]


def resolve_log_path(env_value: PathLike | None = None) -> Path:
    """Resolve LOG_FILE to an absolute path."""
    if not env_value:
        return DEFAULT_LOG_PATH

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


@dataclass
class Settings:
    """Credentials and endpoints for both platforms."""

    source_client_id: str | None = None
    source_client_secret: str | None = None
    source_oauth_url: str | None = None
    source_api_version: str = DEFAULT_SOURCE_API_VERSION

    target_api_url: str = DEFAULT_TARGET_API_URL
    target_api_key: str | None = None
    target_api_token: str | None = None
    target_compatibility_date: str = DEFAULT_COMPATIBILITY_DATE
    target_version: str = DEFAULT_TARGET_VERSION

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables."""
        env = os.environ if env is None else env
        return cls(
            source_client_id=env.get("SALESFORCE_CLIENT_ID") or None,
            source_client_secret=env.get("SALESFORCE_CLIENT_SECRET") or None,
            source_oauth_url=env.get("SALESFORCE_OAUTH_URL") or None,
            source_api_version=env.get("SALESFORCE_API_VERSION")
            or DEFAULT_SOURCE_API_VERSION,
            target_api_url=(env.get("SIERRA_API_URL") or DEFAULT_TARGET_API_URL).rstrip("/"),
            target_api_key=env.get("SIERRA_API_KEY") or None,
            target_api_token=env.get("SIERRA_API_TOKEN") or None,
            target_compatibility_date=env.get("SIERRA_COMPATIBILITY_DATE")
            or DEFAULT_COMPATIBILITY_DATE,
            target_version=env.get("SIERRA_VERSION") or DEFAULT_TARGET_VERSION,
        )

    def missing_source(self) -> list[str]:
        """Names of unset source platform variables."""
        required = {
            "SALESFORCE_CLIENT_ID": self.source_client_id,
            "SALESFORCE_CLIENT_SECRET": self.source_client_secret,
            "SALESFORCE_OAUTH_URL": self.source_oauth_url,
        }
        return [name for name, value in required.items() if not value]

    def missing_target(self) -> list[str]:
        """Names of unset target platform variables."""
        required = {
            "SIERRA_API_KEY": self.target_api_key,
            "SIERRA_API_TOKEN": self.target_api_token,
        }
        return [name for name, value in required.items() if not value]

    def require_source(self) -> None:
        missing = self.missing_source()
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )

    def require_target(self) -> None:
        missing = self.missing_target()
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )
