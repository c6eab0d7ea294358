"""
Request execution with bounded, fixed-delay retries.

Only transient HTTP statuses are retried. Any other status, successful or
not, is handed back to the caller, which turns it into an operation-specific
error. Transport failures are never retried.
"""

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Awaitable, Callable, Dict, Mapping, Optional, Union
import asyncio
import logging

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from .exceptions import MaxRetriesExceeded, NetworkError
from .types import RetryPolicy

logger = logging.getLogger(__name__)

TRANSIENT_STATUSES = frozenset({
    HTTPStatus.TOO_MANY_REQUESTS,
    HTTPStatus.SERVICE_UNAVAILABLE,
    HTTPStatus.GATEWAY_TIMEOUT,
})


@dataclass
class RawResponse:
    """A fully read HTTP response."""
    status: int
    reason: str
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


async def execute_with_retry(
    attempt: Callable[[], Awaitable[RawResponse]],
    policy: RetryPolicy,
) -> RawResponse:
    """
    Run ``attempt`` until it returns a non-transient response.

    At most ``policy.max_retries`` attempts are made, with
    ``policy.retry_interval_ms`` slept between consecutive attempts.

    Raises:
        MaxRetriesExceeded: if every attempt returned a transient status,
            or immediately when ``max_retries`` is 0.
    """
    last_status: Optional[int] = None
    for number in range(1, policy.max_retries + 1):
        response = await attempt()
        if response.status not in TRANSIENT_STATUSES:
            return response

        last_status = response.status
        logger.warning(
            "Transient status %s on attempt %d/%d",
            response.status,
            number,
            policy.max_retries,
        )
        if number < policy.max_retries:
            await asyncio.sleep(policy.retry_interval_ms / 1000)

    logger.error("Giving up after %d attempt(s)", policy.max_retries)
    raise MaxRetriesExceeded(
        f"Request failed after {policy.max_retries} attempt(s)",
        attempts=policy.max_retries,
        status=last_status,
    )


class RequestExecutor:
    """Issues HTTP requests through an aiohttp session under a RetryPolicy."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession],
        policy: RetryPolicy,
        timeout_ms: int = 10000,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._policy = policy
        self._timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
        self._default_headers: Dict[str, str] = dict(headers or {})

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def session(self) -> aiohttp.ClientSession:
        """The underlying session, created on first use when none was given."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def _attempt(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[Union[str, bytes]],
    ) -> RawResponse:
        logger.debug("%s %s", method, url)
        try:
            async with self.session.request(
                method,
                URL(url, encoded=True),
                headers=headers,
                data=body,
                timeout=self._timeout,
            ) as response:
                payload = await response.read()
                return RawResponse(
                    status=response.status,
                    reason=response.reason or "",
                    headers=CIMultiDict(response.headers),
                    body=payload,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"{method} {url} failed: {str(e) or type(e).__name__}") from e

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Union[str, bytes]] = None,
    ) -> RawResponse:
        """
        Send a request, retrying transient statuses.

        ``url`` must already be percent-encoded; it is sent as is.

        Raises:
            MaxRetriesExceeded: transient statuses exhausted the policy.
            NetworkError: the transport failed on any attempt.
        """
        merged = {**self._default_headers, **(headers or {})}
        return await execute_with_retry(
            lambda: self._attempt(method.upper(), url, merged, body),
            self._policy,
        )

    async def close(self) -> None:
        """Close the session if this executor created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
