"""Per-call options and the process-wide base URL."""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from tapi_client.config import settings
from tapi_client.utils.request_retry import RequestRetryConfig

_global_api_base: str = settings.api_base


@dataclass(frozen=True)
class ApiOptions:
    """Options accepted by every generated endpoint call.

    An instance can be built once (e.g. per tenant) and passed to every call
    instead of relying on the process-wide base URL.

    Attributes:
        api_base: Base URL for this call; ``None`` falls back to the global one
        http_client: Client to send through instead of a per-call one.
            The library never closes a client it did not create.
        headers: Extra headers merged over the ones the encoding sets
        retry: Network-error retry policy for requests; ``None`` disables retries
        reconnect_delay: Initial stream reconnection delay in seconds
    """

    api_base: str | None = None
    http_client: httpx.AsyncClient | None = None
    headers: Mapping[str, str] | None = None
    retry: RequestRetryConfig | None = None
    reconnect_delay: float | None = None


def get_api_base(options: ApiOptions | None = None) -> str:
    """Return the base URL a call made with ``options`` should use."""
    if options is not None and options.api_base is not None:
        return options.api_base
    return _global_api_base


def set_global_api_base(api_base: str) -> str:
    """Replace the process-wide base URL. Calls already issued are unaffected."""
    global _global_api_base
    _global_api_base = api_base
    return _global_api_base


def merge_headers(base: Mapping[str, str] | None, options: ApiOptions | None) -> dict[str, str]:
    """Combine encoding headers with caller headers (caller wins)."""
    merged = dict(base or {})
    if options is not None and options.headers:
        merged.update(options.headers)
    return merged


@asynccontextmanager
async def open_client(options: ApiOptions | None) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or a fresh one closed on exit."""
    if options is not None and options.http_client is not None:
        yield options.http_client
        return

    async with httpx.AsyncClient(timeout=settings.timeout) as client:
        yield client
