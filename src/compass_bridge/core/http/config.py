"""Outbound HTTP client configuration."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from compass_bridge.core.config.settings import PLACEHOLDER_CREDENTIALS


@dataclass
class RetryPolicy:
    """Bounded retry with exponential backoff."""

    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    total_timeout: float | None = None  # seconds, whole call including backoff

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


@dataclass
class FetchConfig:
    """Configuration for one external API."""

    base_url: str
    credential: str | None = None
    auth_header: str = "Authorization"
    auth_scheme: str | None = "Bearer"
    default_headers: dict[str, str] | None = None
    timeout: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    placeholder_credentials: frozenset[str] = PLACEHOLDER_CREDENTIALS

    # Returned instead of calling the network when no credential is configured.
    # A callable receives (method, path, params) and must be deterministic.
    mock_payload: Any | Callable[[str, str, dict[str, Any] | None], Any] = None

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        if self.default_headers is None:
            self.default_headers = {}

    @property
    def has_credential(self) -> bool:
        return bool(self.credential) and (
            self.credential not in self.placeholder_credentials
        )

    def auth_headers(self) -> dict[str, str]:
        if not self.has_credential:
            return {}
        value = (
            f"{self.auth_scheme} {self.credential}"
            if self.auth_scheme
            else str(self.credential)
        )
        return {self.auth_header: value}
