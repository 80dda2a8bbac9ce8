"""Tags shared between generated clients and the runtime."""

from enum import StrEnum
from typing import TypeVar

from tapi_client.exceptions import (
    UnknownMethodError,
    UnknownRequestTypeError,
    UnknownResponseTypeError,
)


class RequestType(StrEnum):
    """How the outgoing request value is encoded."""

    NONE = "none"
    JSON = "json"
    QUERY = "query"


class ResponseType(StrEnum):
    """How a successful response body is decoded."""

    NONE = "none"
    TEXT = "text"
    JSON = "json"
    HTML = "html"
    BYTES = "bytes"


class Method(StrEnum):
    """HTTP verbs a generated endpoint may use."""

    DELETE = "DELETE"
    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    HEAD = "HEAD"
    TRACE = "TRACE"
    PATCH = "PATCH"


# Response decodings accepted by event streams
STREAM_RESPONSE_TYPES = frozenset({ResponseType.TEXT, ResponseType.JSON})

_E = TypeVar("_E", RequestType, ResponseType, Method)


def _coerce(enum_cls: type[_E], value: str, error_cls: type[Exception], label: str) -> _E:
    try:
        return enum_cls(value)
    except ValueError:
        raise error_cls(f"Unknown {label} {value!r}") from None


def parse_request_type(value: str) -> RequestType:
    return _coerce(RequestType, value, UnknownRequestTypeError, "request type")


def parse_response_type(value: str) -> ResponseType:
    return _coerce(ResponseType, value, UnknownResponseTypeError, "response type")


def parse_method(value: str) -> Method:
    return _coerce(Method, value.upper(), UnknownMethodError, "method")
