"""Runtime support for generated HTTP and server-sent-events API clients.

- options: per-call options and the process-wide base URL
- request: request factory (one HTTP call per invocation)
- stream: stream factory (one event-stream connection per invocation)
- events: event records delivered to stream listeners
- exceptions: client runtime exceptions
"""

from tapi_client.events import ErrorEvent, MessageEvent, OpenEvent, StreamEvent, StreamHandler
from tapi_client.exceptions import (
    ApiError,
    MissingPathParamError,
    ResponseError,
    UnknownMethodError,
    UnknownRequestTypeError,
    UnknownResponseTypeError,
)
from tapi_client.options import ApiOptions, get_api_base, set_global_api_base
from tapi_client.paths import path_template
from tapi_client.request import PendingResponse, make_request
from tapi_client.stream import EventStream, make_stream
from tapi_client.types import Method, RequestType, ResponseType
from tapi_client.utils.request_retry import RequestRetryConfig

__all__ = [
    "ApiError",
    "ApiOptions",
    "ErrorEvent",
    "EventStream",
    "MessageEvent",
    "Method",
    "MissingPathParamError",
    "OpenEvent",
    "PendingResponse",
    "RequestRetryConfig",
    "RequestType",
    "ResponseError",
    "ResponseType",
    "StreamEvent",
    "StreamHandler",
    "UnknownMethodError",
    "UnknownRequestTypeError",
    "UnknownResponseTypeError",
    "get_api_base",
    "make_request",
    "make_stream",
    "path_template",
    "set_global_api_base",
]
