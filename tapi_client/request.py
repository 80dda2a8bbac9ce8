"""Request factory for generated endpoint functions.

A generated client declares each endpoint once::

    get_user = make_request("none", "GET", "/users/me", "json", response_model=User)

and every call issues exactly one HTTP request::

    pending = get_user({})
    user = await pending.data   # or: await pending
    pending.abort()             # no-op once settled
"""

import asyncio
from collections.abc import Callable, Generator, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx
import structlog
from pydantic import TypeAdapter
from pydantic_core import to_json, to_jsonable_python

from tapi_client.exceptions import ResponseError, UnknownResponseTypeError
from tapi_client.options import ApiOptions, get_api_base, merge_headers, open_client
from tapi_client.types import (
    Method,
    RequestType,
    ResponseType,
    parse_method,
    parse_request_type,
    parse_response_type,
)
from tapi_client.utils.request_retry import get_request_retrying

logger = structlog.get_logger(__name__)

T = TypeVar("T")

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class PendingResponse(Generic[T]):
    """Result of one endpoint call: a future for the decoded body plus abort.

    ``data`` settles exactly once. ``abort()`` cancels the in-flight call; once
    ``data`` has settled it does nothing, so it is safe to call at any time.
    """

    data: "asyncio.Future[T]"

    def abort(self) -> None:
        self.data.cancel()

    def __await__(self) -> Generator[Any, None, T]:
        return self.data.__await__()


RequestFn = Callable[..., PendingResponse[Any]]


def _query_params(request: Any) -> dict[str, Any] | None:
    if request is None:
        return None
    params = to_jsonable_python(request)
    if not isinstance(params, Mapping):
        raise TypeError(f"Query request must encode to a mapping, got {type(params).__name__}")
    return {key: value for key, value in params.items() if value is not None}


def build_request(
    request_type: RequestType,
    method: Method,
    path: str,
    request: Any,
    options: ApiOptions | None = None,
) -> httpx.Request:
    """Build the httpx request for one call without sending it.

    Raises whatever serialization or URL validation raises; the caller turns
    that into an already-failed result.
    """
    url = f"{get_api_base(options)}{path}"
    headers: dict[str, str] | None = None
    content: bytes | None = None
    params: dict[str, Any] | None = None

    if request_type is RequestType.JSON:
        headers = JSON_HEADERS
        content = to_json(request)
    elif request_type is RequestType.QUERY:
        params = _query_params(request)

    merged = merge_headers(headers, options)

    # A caller-supplied client contributes its base_url, default headers and cookies
    if options is not None and options.http_client is not None:
        return options.http_client.build_request(
            method.value, url, params=params, headers=merged, content=content
        )
    return httpx.Request(method.value, url, params=params, headers=merged, content=content)


def decode_response(
    response: httpx.Response,
    response_type: ResponseType,
    adapter: TypeAdapter[Any] | None = None,
) -> Any:
    """Convert a successful response body according to ``response_type``."""
    if response_type is ResponseType.NONE:
        return ""
    if response_type is ResponseType.JSON:
        if adapter is not None:
            return adapter.validate_json(response.content)
        return response.json()
    if response_type in (ResponseType.TEXT, ResponseType.HTML):
        return response.text
    if response_type is ResponseType.BYTES:
        return response.content
    raise UnknownResponseTypeError(f"Unknown response type {response_type!r}")


async def _send(
    http_request: httpx.Request,
    response_type: ResponseType,
    adapter: TypeAdapter[Any] | None,
    options: ApiOptions | None,
) -> Any:
    retry = options.retry if options is not None else None

    async with open_client(options) as client:
        async for attempt in get_request_retrying(retry):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "Retrying request",
                        method=http_request.method,
                        url=str(http_request.url),
                        attempt=attempt.retry_state.attempt_number,
                    )
                response = await client.send(http_request)

    if not response.is_success:
        logger.warning(
            "Request returned error status",
            method=http_request.method,
            url=str(http_request.url),
            status_code=response.status_code,
        )
        raise ResponseError(response.text, response)

    return decode_response(response, response_type, adapter)


def make_request(
    request_type: str,
    method: str,
    path: str,
    response_type: str,
    *,
    response_model: Any = None,
) -> RequestFn:
    """Create the function behind one generated endpoint.

    Args:
        request_type: ``"none"``, ``"json"`` or ``"query"``
        method: HTTP verb
        path: Path appended to the base URL
        response_type: ``"none"``, ``"text"``, ``"json"``, ``"html"`` or ``"bytes"``
        response_model: Optional type the JSON body is validated into

    Returns:
        ``fn(request, options=None) -> PendingResponse``. Must be called
        from a running event loop.

    Raises:
        UnknownRequestTypeError, UnknownMethodError, UnknownResponseTypeError:
            If a tag is not supported.
    """
    req_ty = parse_request_type(request_type)
    verb = parse_method(method)
    res_ty = parse_response_type(response_type)
    adapter: TypeAdapter[Any] | None = (
        TypeAdapter(response_model) if response_model is not None else None
    )

    def call(request: Any, options: ApiOptions | None = None) -> PendingResponse[Any]:
        loop = asyncio.get_running_loop()
        try:
            http_request = build_request(req_ty, verb, path, request, options)
        except Exception as e:
            logger.exception("Failed to construct request", method=verb.value, path=path)
            failed: asyncio.Future[Any] = loop.create_future()
            failed.set_exception(e)
            return PendingResponse(failed)

        logger.debug("Issuing request", method=verb.value, url=str(http_request.url))
        task = loop.create_task(_send(http_request, res_ty, adapter, options))
        return PendingResponse(task)

    return call
