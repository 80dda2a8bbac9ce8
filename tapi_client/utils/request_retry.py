"""Opt-in HTTP request retry utilities using tenacity."""

from dataclasses import dataclass

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


@dataclass(frozen=True)
class RequestRetryConfig:
    """Configuration for network-error retries with exponential backoff.

    Only transport failures are retried; a response with a non-success
    status is an answer from the server and is never retried.
    """

    max_attempts: int = 3
    min_wait: float = 1.0
    max_wait: float = 10.0
    multiplier: float = 1.0


def get_request_retrying(config: RequestRetryConfig | None = None) -> AsyncRetrying:
    """Get configured AsyncRetrying for httpx.TransportError (network errors).

    Usage:
        async for attempt in get_request_retrying(config):
            with attempt:
                response = await client.send(request)

    Args:
        config: Retry configuration. ``None`` means a single attempt.

    Returns:
        AsyncRetrying instance configured for httpx.TransportError retries.
    """
    if config is None:
        return AsyncRetrying(stop=stop_after_attempt(1), reraise=True)

    return AsyncRetrying(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.multiplier,
            min=config.min_wait,
            max=config.max_wait,
        ),
        reraise=True,
    )
