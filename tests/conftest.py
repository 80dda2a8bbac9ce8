"""Shared pytest fixtures for tapi-client tests."""

from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import pytest
import structlog

from tapi_client.options import ApiOptions, get_api_base, set_global_api_base

Handler = Callable[[httpx.Request], Any]


@pytest.fixture(autouse=True)
def restore_api_base() -> Iterator[None]:
    """Undo any set_global_api_base() a test performs."""
    previous = get_api_base()
    yield
    set_global_api_base(previous)


@pytest.fixture
def mock_options() -> Callable[..., ApiOptions]:
    """Build ApiOptions whose http_client answers from a MockTransport handler."""

    def build(handler: Handler, **kwargs: Any) -> ApiOptions:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ApiOptions(http_client=client, **kwargs)

    return build


@pytest.fixture
def mock_transport(monkeypatch: pytest.MonkeyPatch) -> Callable[[Handler], None]:
    """Route clients the library opens itself through a MockTransport handler."""

    def install(handler: Handler) -> None:
        @asynccontextmanager
        async def fake_open_client(options: ApiOptions | None) -> AsyncIterator[httpx.AsyncClient]:
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                yield client

        monkeypatch.setattr("tapi_client.request.open_client", fake_open_client)
        monkeypatch.setattr("tapi_client.stream.open_client", fake_open_client)

    return install


@pytest.fixture
def quiet_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Silence structlog output and skip the CLI's console logging setup."""
    monkeypatch.setattr("tapi_client.cli.configure_logging", lambda level=None: None)
    structlog.configure(logger_factory=structlog.ReturnLoggerFactory())
    yield
    structlog.reset_defaults()


def sse_response(
    body: Any,
    status_code: int = 200,
    content_type: str = "text/event-stream",
) -> httpx.Response:
    """Event-stream response; ``body`` may be text or an async byte iterator."""
    return httpx.Response(status_code, headers={"content-type": content_type}, content=body)


@pytest.fixture
def make_sse_response() -> Callable[..., httpx.Response]:
    return sse_response
