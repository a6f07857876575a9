"""Resilient client for calls to a single external HTTP API."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from compass_bridge.core.mcp.exceptions import (
    AccessDeniedError,
    NetworkError,
    RateLimitedError,
    UpstreamNotFoundError,
    UpstreamTimeoutError,
)

from .config import FetchConfig, RetryPolicy

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class RetryableFailure(Exception):
    """One failed attempt that the retry policy may repeat.

    Never leaves the client: once attempts run out it is converted into
    ``RateLimitedError`` or ``NetworkError``.
    """

    def __init__(
        self,
        detail: str,
        status_code: int | None = None,
        retry_after: float | None = None,
    ):
        self.detail = detail
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(f"HTTP {status_code}: {detail}" if status_code else detail)


class wait_retry_after(wait_base):
    """Wait for the server's ``retry-after`` when given, else defer to ``fallback``.

    Either delay is capped at ``max_delay``.
    """

    def __init__(self, fallback: wait_base, max_delay: float):
        self.fallback = fallback
        self.max_delay = max_delay

    def __call__(self, retry_state: RetryCallState) -> float:
        failure = retry_state.outcome.exception() if retry_state.outcome else None
        retry_after = getattr(failure, "retry_after", None)
        if retry_after is not None:
            return min(retry_after, self.max_delay)
        return min(self.fallback(retry_state), self.max_delay)


def retry_strategy(
    policy: RetryPolicy, sleep: Callable[[float], Awaitable[Any]]
) -> AsyncRetrying:
    """Tenacity controller for one call under ``policy``."""
    return AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_retry_after(
            wait_exponential(multiplier=policy.base_delay, max=policy.max_delay),
            policy.max_delay,
        ),
        retry=retry_if_exception_type(RetryableFailure),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


class ResilientFetchClient:
    """HTTP client with bounded retry, failure classification and mock fallback.

    Status handling:
        - 429: retried, honouring ``retry-after`` when present
        - 403, 404, 504: raised immediately, never retried
        - other non-2xx and transport errors: retried with exponential backoff

    When no usable credential is configured the network is never touched and
    the configured mock payload is returned instead.
    """

    def __init__(
        self,
        config: FetchConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the client.

        Args:
            config: API base URL, credential, retry policy and mock payload
            transport: Optional httpx transport (tests inject a MockTransport)
            sleep: Awaitable used for backoff waits; must be cancellable
        """
        self._config = config
        self._transport = transport
        self._sleep = sleep

    @property
    def config(self) -> FetchConfig:
        """Access to current configuration."""
        return self._config

    @property
    def uses_mock(self) -> bool:
        """True when calls are answered from mock data."""
        return not self._config.has_credential

    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        mock: Any = _UNSET,
    ) -> Any:
        return await self.request("GET", path, params=params, mock=mock)

    async def post(
        self,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        mock: Any = _UNSET,
    ) -> Any:
        return await self.request("POST", path, params=params, json=json, mock=mock)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        mock: Any = _UNSET,
    ) -> Any:
        """Perform a request and return the decoded body.

        Args:
            method: HTTP method
            path: Path relative to the configured base URL
            params: Query parameters
            json: JSON request body
            headers: Extra headers for this call
            mock: Per-call mock payload used instead of the configured one

        Returns:
            Decoded JSON body (or text when the body is not JSON)

        Raises:
            RateLimitedError: 429 persisted after all retries
            AccessDeniedError: 403 response
            UpstreamNotFoundError: 404 response
            UpstreamTimeoutError: 504 response or ``total_timeout`` exceeded
            NetworkError: Other failures after all retries
        """
        if self.uses_mock:
            logger.info(
                f"No credential configured for {self._config.base_url}, "
                f"using mock data for {method} {path}"
            )
            return self._mock_payload(method, path, params, mock)

        total_timeout = self._config.retry.total_timeout
        if total_timeout is None:
            return await self._request_with_retry(method, path, params, json, headers)

        try:
            async with asyncio.timeout(total_timeout):
                return await self._request_with_retry(
                    method, path, params, json, headers
                )
        except TimeoutError as e:
            raise UpstreamTimeoutError(
                f"{method} {path} exceeded the total timeout of {total_timeout}s"
            ) from e

    async def validate_credential(self, path: str = "/me") -> bool:
        """Check the credential against a cheap authenticated endpoint.

        Never raises; placeholder credentials are reported as invalid.
        """
        if self.uses_mock:
            return False
        try:
            await self.get(path)
            return True
        except Exception as e:
            logger.info(f"Credential validation against {path} failed: {e}")
            return False

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        json: Any,
        headers: dict[str, str] | None,
    ) -> Any:
        client_headers = dict(self._config.default_headers or {})
        client_headers.update(self._config.auth_headers())

        client_config: dict[str, Any] = {
            "base_url": self._config.base_url,
            "timeout": self._config.timeout,
            "headers": client_headers,
        }
        if self._transport is not None:
            client_config["transport"] = self._transport

        async with httpx.AsyncClient(**client_config) as client:
            try:
                async for attempt in retry_strategy(self._config.retry, self._sleep):
                    with attempt:
                        response = await self._attempt(
                            client,
                            method,
                            path,
                            params,
                            json,
                            headers,
                            attempt.retry_state.attempt_number,
                        )
                        return self._decode(response)
            except RetryError as e:
                failure = e.last_attempt.exception()
                raise self._exhausted(
                    method, path, failure, e.last_attempt.attempt_number
                ) from failure

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        json: Any,
        headers: dict[str, str] | None,
        attempt_number: int,
    ) -> httpx.Response:
        """Send once and classify the outcome.

        Raises:
            RetryableFailure: 429, other non-2xx statuses and transport errors
            AccessDeniedError: 403 response
            UpstreamNotFoundError: 404 response
            UpstreamTimeoutError: 504 response
        """
        try:
            response = await client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise RetryableFailure(str(e) or type(e).__name__) from e

        status = response.status_code
        if 200 <= status < 300:
            return response

        detail = self._error_detail(response)
        if status == 429:
            raise RetryableFailure(
                detail, status_code=status, retry_after=self._retry_after(response)
            )
        if status == 403:
            raise AccessDeniedError(
                f"Access denied for {method} {path}: {detail}. "
                "Check that the API key is valid and has access to this resource.",
                status_code=status,
                attempts=attempt_number,
            )
        if status == 404:
            raise UpstreamNotFoundError(
                f"Not found: {method} {path}: {detail}",
                status_code=status,
                attempts=attempt_number,
            )
        if status == 504:
            raise UpstreamTimeoutError(
                f"Upstream timed out for {method} {path}. "
                "Request a smaller payload (lower depth or fewer node ids).",
                status_code=status,
                attempts=attempt_number,
            )
        raise RetryableFailure(detail, status_code=status)

    def _exhausted(
        self, method: str, path: str, failure: BaseException | None, attempts: int
    ) -> NetworkError | RateLimitedError:
        status = getattr(failure, "status_code", None)
        detail = getattr(failure, "detail", str(failure))
        if status == 429:
            return RateLimitedError(
                f"Rate limited by {self._config.base_url} after "
                f"{attempts} attempts: {detail}",
                status_code=status,
                attempts=attempts,
            )
        if status is not None:
            return NetworkError(
                f"{method} {path} failed with HTTP {status} after "
                f"{attempts} attempts: {detail}",
                status_code=status,
                attempts=attempts,
            )
        return NetworkError(
            f"{method} {path} failed after {attempts} attempts: {detail}",
            attempts=attempts,
        )

    def _mock_payload(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        override: Any,
    ) -> Any:
        payload = self._config.mock_payload if override is _UNSET else override
        if callable(payload):
            return payload(method, path, params)
        return payload

    @staticmethod
    def _retry_after(response: httpx.Response) -> float | None:
        value = response.headers.get("retry-after")
        if value is None:
            return None
        try:
            seconds = float(value)
        except ValueError:
            return None
        return max(seconds, 0.0)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or response.reason_phrase
        if isinstance(body, dict):
            for key in ("message", "err", "error"):
                value = body.get(key)
                if isinstance(value, str):
                    return value
                if isinstance(value, dict) and isinstance(value.get("message"), str):
                    return value["message"]
        return str(body)[:200]
