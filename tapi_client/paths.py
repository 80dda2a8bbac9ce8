"""Path templates with ``:name`` parameters, e.g. ``/rooms/:room/events``."""

from collections.abc import Callable, Mapping, Sequence
from typing import Any
from urllib.parse import quote

from tapi_client.exceptions import MissingPathParamError

UrlBuilder = Callable[[Any], str]


def _lookup(params: Any, name: str, index: int) -> Any:
    if params is None:
        return None
    if isinstance(params, Mapping):
        return params.get(name)
    # Bare value for a single-parameter path
    if isinstance(params, str | int | float):
        return params if index == 0 else None
    if isinstance(params, Sequence):
        return params[index] if index < len(params) else None
    return getattr(params, name, None)


def path_template(template: str) -> UrlBuilder:
    """Return a URL builder that fills ``:name`` segments from params.

    Params can be a mapping, an object (pydantic model, dataclass) with
    matching attributes, a sequence matched by position, or a bare value for
    a template with a single parameter. Values are percent-encoded.

    >>> path_template("/api2/:a/:b")({"a": 1, "b": "x y"})
    '/api2/1/x%20y'
    """
    segments = [segment for segment in template.split("/") if segment]

    def build(params: Any = None) -> str:
        parts: list[str] = []
        position = 0
        for segment in segments:
            if not segment.startswith(":"):
                parts.append(segment)
                continue
            value = _lookup(params, segment[1:], position)
            position += 1
            if value is None:
                raise MissingPathParamError(segment[1:], template)
            parts.append(quote(str(value), safe=""))
        path = "/" + "/".join(parts)
        # Keep a trailing slash the template asked for
        if template.endswith("/") and parts:
            path += "/"
        return path

    return build
