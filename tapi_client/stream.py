"""Stream factory for generated server-sent-events endpoints.

A generated client declares each stream endpoint once::

    room_events = make_stream("/rooms/:room/events", "json")

and every call opens one connection immediately::

    stream = room_events({"room": "lobby"})
    stream.listen(print)        # single listener slot, last one wins
    ...
    stream.cancel()             # idempotent

or, consumed as an async iterator::

    async with room_events({"room": "lobby"}) as stream:
        async for event in stream.events():
            ...
"""

import asyncio
import inspect
import json
from collections.abc import AsyncIterator, Callable
from types import TracebackType
from typing import Any, Generic, Self, TypeVar

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type

from tapi_client.config import settings
from tapi_client.events import ErrorEvent, MessageEvent, OpenEvent, StreamEvent, StreamHandler
from tapi_client.exceptions import UnknownResponseTypeError
from tapi_client.options import ApiOptions, get_api_base, merge_headers, open_client
from tapi_client.paths import UrlBuilder, path_template
from tapi_client.sse import SSEDecoder
from tapi_client.types import STREAM_RESPONSE_TYPES, ResponseType, parse_response_type

logger = structlog.get_logger(__name__)

T = TypeVar("T")

STREAM_HEADERS = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}

# Marks the end of an events() iteration
_CLOSED = object()


class _ConnectionLost(Exception):
    """Connection dropped or ended; the reader reconnects after a delay."""

    pass


class _ListenerFailed(Exception):
    """Wraps an exception raised by the listener so it is not reported to it."""

    def __init__(self, error: Exception) -> None:
        super().__init__(str(error))
        self.error = error


def _is_event_stream(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return content_type.split(";")[0].strip().lower() == "text/event-stream"


def decode_message(
    data: str,
    response_type: ResponseType,
    adapter: TypeAdapter[Any] | None = None,
) -> Any:
    """Convert one message payload according to ``response_type``."""
    if response_type is ResponseType.TEXT:
        return data
    if response_type is ResponseType.JSON:
        if adapter is not None:
            return adapter.validate_json(data)
        return json.loads(data)
    raise UnknownResponseTypeError(f"Unknown response type: {response_type!r}")


class EventStream(Generic[T]):
    """One open event-stream connection.

    The connection is opened as soon as the stream is created. Events are
    handed to the current listener, if any; events arriving while no listener
    is registered are dropped. Stream-level failures are delivered as
    ``ErrorEvent`` and do not close the stream; only ``cancel()`` does. The
    exceptions are a server refusing the connection and a request that cannot
    be made at all (such as a malformed URL): both deliver an ``ErrorEvent``
    with ``closed=True`` and stop the reader.
    """

    def __init__(
        self,
        url: str,
        response_type: ResponseType,
        adapter: TypeAdapter[Any] | None = None,
        options: ApiOptions | None = None,
    ) -> None:
        self.url = url
        self._response_type = response_type
        self._adapter = adapter
        self._options = options
        self._handler: StreamHandler | None = None
        self._queue: asyncio.Queue[Any] | None = None
        self._cancelled = False
        self._decoder = SSEDecoder()

        if options is not None and options.reconnect_delay is not None:
            self._reconnect_delay = options.reconnect_delay
        else:
            self._reconnect_delay = settings.reconnect_delay

        logger.debug("Opening event stream", url=url)
        self._task = asyncio.get_running_loop().create_task(self._run())

    @property
    def closed(self) -> bool:
        """True once cancelled or once the reader has stopped for good."""
        return self._cancelled or self._task.done()

    @property
    def last_event_id(self) -> str:
        return self._decoder.last_event_id

    def listen(self, handler: StreamHandler) -> None:
        """Register ``handler`` as the only listener, replacing any previous one."""
        self._release_iterator()
        self._handler = handler

    def cancel(self) -> None:
        """Close the connection. Safe to call any number of times."""
        if self._cancelled:
            return
        self._cancelled = True
        self._handler = None
        self._release_iterator()
        self._task.cancel()
        logger.debug("Event stream cancelled", url=self.url)

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Iterate over events from the moment iteration starts.

        Iteration occupies the listener slot. It ends when the stream is
        cancelled, gives up reconnecting, or another listener is registered.
        """
        if self.closed:
            return

        queue: asyncio.Queue[Any] = asyncio.Queue()
        self.listen(queue.put_nowait)
        self._queue = queue

        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            # Consumer stopped early: free the slot so nothing piles up
            if self._queue is queue:
                self._queue = None
                self._handler = None

    async def wait_closed(self) -> None:
        """Wait until the reader stops; re-raises a listener failure."""
        await asyncio.wait({self._task})
        if not self._task.cancelled():
            self._task.result()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.cancel()
        await self.wait_closed()

    def _release_iterator(self) -> None:
        if self._queue is not None:
            self._queue.put_nowait(_CLOSED)
            self._queue = None

    async def _emit(self, event: StreamEvent) -> None:
        handler = self._handler
        if handler is None or self._cancelled:
            return
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            raise _ListenerFailed(e) from e

    def _wait_before_reconnect(self, retry_state: RetryCallState) -> float:
        return self._reconnect_delay

    async def _run(self) -> None:
        try:
            try:
                await self._read()
            except _ListenerFailed:
                raise
            except Exception as e:
                # Anything but a lost connection (bad URL, client setup) fails the stream
                logger.exception("Event stream failed", url=self.url)
                await self._emit(ErrorEvent(error=e, closed=True))
        except _ListenerFailed as e:
            logger.error("Event stream listener failed", url=self.url, exc_info=e.error)
            raise e.error from None
        finally:
            self._release_iterator()

    async def _read(self) -> None:
        async with open_client(self._options) as client:
            retrying = AsyncRetrying(
                retry=retry_if_exception_type(_ConnectionLost),
                wait=self._wait_before_reconnect,
                reraise=True,
            )
            async for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.info(
                            "Reconnecting event stream",
                            url=self.url,
                            attempt=attempt.retry_state.attempt_number,
                        )
                    await self._connect(client)

    async def _connect(self, client: httpx.AsyncClient) -> None:
        headers = dict(STREAM_HEADERS)
        if self._decoder.last_event_id:
            headers["Last-Event-ID"] = self._decoder.last_event_id
        self._decoder.reset()

        try:
            async with client.stream(
                "GET", self.url, headers=merge_headers(headers, self._options)
            ) as response:
                if response.status_code != 200 or not _is_event_stream(response):
                    logger.warning(
                        "Event stream refused",
                        url=self.url,
                        status_code=response.status_code,
                        content_type=response.headers.get("content-type"),
                    )
                    await self._emit(ErrorEvent(response=response, closed=True))
                    return

                await self._emit(OpenEvent(response=response))

                async for line in response.aiter_lines():
                    event = self._decoder.decode(line)
                    if self._decoder.retry is not None:
                        self._reconnect_delay = self._decoder.retry / 1000
                    if event is None or event.event != "message":
                        continue
                    await self._deliver(event.data, event.id)
        except httpx.RequestError as e:
            logger.warning("Event stream connection lost", url=self.url, error=str(e))
            await self._emit(ErrorEvent(error=e))
            raise _ConnectionLost(str(e)) from e

        logger.info("Event stream ended by server", url=self.url)
        await self._emit(ErrorEvent())
        raise _ConnectionLost("stream ended")

    async def _deliver(self, data: str, event_id: str) -> None:
        try:
            decoded = decode_message(data, self._response_type, self._adapter)
        except (json.JSONDecodeError, ValidationError) as e:
            # Malformed payload: report it, keep the connection
            logger.warning("Undecodable event stream message", url=self.url, error=str(e))
            await self._emit(ErrorEvent(error=e))
            return
        await self._emit(MessageEvent(data=decoded, last_event_id=event_id))


StreamFn = Callable[..., EventStream[Any]]


def make_stream(
    url_builder: UrlBuilder | str,
    response_type: str,
    *,
    response_model: Any = None,
) -> StreamFn:
    """Create the function behind one generated stream endpoint.

    Args:
        url_builder: ``params -> path`` callable, or a ``/path/:param`` template
        response_type: ``"text"`` or ``"json"``
        response_model: Optional type each JSON message is validated into

    Returns:
        ``fn(params=None, options=None) -> EventStream``. Must be called from
        a running event loop.

    Raises:
        UnknownResponseTypeError: If ``response_type`` is not supported for streams.
    """
    build = path_template(url_builder) if isinstance(url_builder, str) else url_builder
    res_ty = parse_response_type(response_type)
    if res_ty not in STREAM_RESPONSE_TYPES:
        raise UnknownResponseTypeError(f"Unknown response type: {response_type!r}")
    adapter: TypeAdapter[Any] | None = (
        TypeAdapter(response_model) if response_model is not None else None
    )

    def call(params: Any = None, options: ApiOptions | None = None) -> EventStream[Any]:
        url = f"{get_api_base(options)}{build(params)}"
        return EventStream(url, res_ty, adapter, options)

    return call
