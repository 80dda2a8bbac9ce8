"""Client runtime exceptions.

Raised by the request and stream factories. Errors from the HTTP transport
(``httpx.TransportError`` and friends) are not wrapped and reach the caller
unchanged.
"""

import httpx


class ApiError(Exception):
    """Base client runtime exception."""

    pass


class ResponseError(ApiError):
    """Server answered with a non-success status.

    The message is the response body text, so ``str(err)`` is exactly what
    the server sent.
    """

    def __init__(self, body: str, response: httpx.Response):
        self.body = body
        self.response = response
        self.status_code = response.status_code
        super().__init__(body)


class UnknownRequestTypeError(ApiError, ValueError):
    """Request encoding is not one of the supported tags."""

    pass


class UnknownResponseTypeError(ApiError, ValueError):
    """Response decoding is not one of the supported tags."""

    pass


class UnknownMethodError(ApiError, ValueError):
    """HTTP method is not one of the supported verbs."""

    pass


class MissingPathParamError(ApiError, ValueError):
    """URL builder was called without a value for a path parameter."""

    def __init__(self, name: str, template: str):
        self.name = name
        self.template = template
        super().__init__(f"Missing path parameter {name!r} for {template}")
