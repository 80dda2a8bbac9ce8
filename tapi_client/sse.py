"""Server-Sent Events decoding.

Implements the line-oriented event-stream interpretation from the HTML
EventSource processing model: ``data``/``event``/``id``/``retry`` fields,
``:`` comments, and dispatch on a blank line.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ServerSentEvent:
    """One dispatched event from an event stream."""

    data: str
    event: str = "message"
    id: str = ""


class SSEDecoder:
    """Incremental decoder fed one line at a time (without line terminator).

    ``last_event_id`` survives dispatches and is what a reconnecting client
    sends as ``Last-Event-ID``. ``retry`` holds the latest reconnection time
    (milliseconds) announced by the server, or ``None``.
    """

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []
        self._seen_first_line = False
        self.last_event_id = ""
        self.retry: int | None = None

    def decode(self, line: str) -> ServerSentEvent | None:
        """Process one line; return an event when the line completes one."""
        if not self._seen_first_line:
            self._seen_first_line = True
            line = line.removeprefix("\ufeff")

        if not line:
            return self._dispatch()

        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "data":
            self._data.append(value)
        elif name == "event":
            self._event = value
        elif name == "id":
            # Ids containing NULL are ignored
            if "\0" not in value:
                self.last_event_id = value
        elif name == "retry":
            if value.isascii() and value.isdigit():
                self.retry = int(value)
        # Unknown fields are ignored
        return None

    def _dispatch(self) -> ServerSentEvent | None:
        if not self._data:
            self._event = ""
            return None

        event = ServerSentEvent(
            data="\n".join(self._data),
            event=self._event or "message",
            id=self.last_event_id,
        )
        self._event = ""
        self._data = []
        return event

    def reset(self) -> None:
        """Drop a partially received event (used when a connection is lost)."""
        self._event = ""
        self._data = []
        self._seen_first_line = False
