"""Event records delivered to stream listeners."""

from collections.abc import Awaitable, Callable
from typing import Any, Generic, Literal, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class BaseStreamEvent(BaseModel):
    """Base class for all stream events, discriminated by ``type``."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class MessageEvent(BaseStreamEvent, Generic[T]):
    """A message from the server, decoded per the stream's response type."""

    type: Literal["message"] = "message"
    data: T
    last_event_id: str = ""


class OpenEvent(BaseStreamEvent):
    """The connection was (re)established.

    Sent once per successful connection, before that connection's messages.
    """

    type: Literal["open"] = "open"
    response: httpx.Response


class ErrorEvent(BaseStreamEvent):
    """A stream-level failure.

    ``closed`` is False when the stream will reconnect on its own and True when
    it has given up (non-200 status or wrong content type). Either way the
    listener decides whether to call ``cancel()``.
    """

    type: Literal["error"] = "error"
    error: Exception | None = None
    response: httpx.Response | None = None
    closed: bool = False


StreamEvent = MessageEvent[Any] | OpenEvent | ErrorEvent

# Listener callback; coroutine functions are awaited before the next event
StreamHandler = Callable[[StreamEvent], Awaitable[None] | None]
