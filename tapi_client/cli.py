"""Command-line access to endpoints through the client runtime."""

import asyncio
import json
from typing import Any

import click
import httpx
import structlog

from tapi_client.events import ErrorEvent, MessageEvent, OpenEvent
from tapi_client.exceptions import ApiError, ResponseError
from tapi_client.logging import configure_logging
from tapi_client.options import ApiOptions
from tapi_client.request import RequestFn, make_request
from tapi_client.stream import StreamFn, make_stream
from tapi_client.types import STREAM_RESPONSE_TYPES, ResponseType

logger = structlog.get_logger(__name__)


def _parse_pairs(values: tuple[str, ...], separator: str, label: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, rest = value.partition(separator)
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected 'name{separator}value', got {value!r}", param_hint=label)
        pairs[key.strip()] = rest.strip()
    return pairs


def _echo_result(result: Any, response_type: str) -> None:
    if response_type == ResponseType.BYTES:
        click.get_binary_stream("stdout").write(result)
    elif response_type == ResponseType.JSON:
        click.echo(json.dumps(result, indent=2, ensure_ascii=False))
    else:
        click.echo(result)


async def _run_request(fn: RequestFn, body: Any, options: ApiOptions) -> Any:
    return await fn(body, options)


async def _run_stream(fn: StreamFn, params: dict[str, str], options: ApiOptions, limit: int | None) -> None:
    received = 0
    async with fn(params, options) as stream:
        async for event in stream.events():
            if isinstance(event, OpenEvent):
                logger.info("Event stream connected", url=stream.url, status_code=event.response.status_code)
            elif isinstance(event, ErrorEvent):
                if event.closed:
                    if event.response is None:
                        raise click.ClickException(f"Event stream failed: {event.error}")
                    raise click.ClickException(f"Event stream refused (status {event.response.status_code})")
                logger.warning("Event stream error", url=stream.url, error=str(event.error))
            elif isinstance(event, MessageEvent):
                if isinstance(event.data, str):
                    click.echo(event.data)
                else:
                    click.echo(json.dumps(event.data, ensure_ascii=False))
                received += 1
                if limit is not None and received >= limit:
                    return


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Diagnostics written to stderr (default: TAPI_LOG_LEVEL)",
)
def cli(log_level: str | None) -> None:
    """Call API endpoints through the tapi client runtime."""
    configure_logging(log_level)


@cli.command("request")
@click.argument("method")
@click.argument("path")
@click.option("--base", help="Base URL (default: TAPI_API_BASE)")
@click.option("--json", "json_body", help="JSON request body")
@click.option(
    "--response",
    "response_type",
    type=click.Choice([t.value for t in ResponseType]),
    default=ResponseType.TEXT.value,
    show_default=True,
    help="How to decode the response body",
)
@click.option("-H", "--header", "headers", multiple=True, help="Extra header as 'Name: value'")
def request_command(
    method: str,
    path: str,
    base: str | None,
    json_body: str | None,
    response_type: str,
    headers: tuple[str, ...],
) -> None:
    """Send one METHOD request to PATH and print the decoded response."""
    body: Any = None
    if json_body is not None:
        try:
            body = json.loads(json_body)
        except json.JSONDecodeError as e:
            raise click.BadParameter(str(e), param_hint="--json") from e

    try:
        fn = make_request("json" if json_body is not None else "none", method, path, response_type)
    except ApiError as e:
        raise click.ClickException(str(e)) from e

    options = ApiOptions(api_base=base, headers=_parse_pairs(headers, ":", "--header"))
    try:
        result = asyncio.run(_run_request(fn, body, options))
    except ResponseError as e:
        raise click.ClickException(f"HTTP {e.status_code}: {e}") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise click.ClickException(f"Request failed: {e}") from e

    _echo_result(result, response_type)


@cli.command("stream")
@click.argument("path")
@click.option("--base", help="Base URL (default: TAPI_API_BASE)")
@click.option("-p", "--param", "params", multiple=True, help="Path parameter as 'name=value'")
@click.option(
    "--response",
    "response_type",
    type=click.Choice(sorted(t.value for t in STREAM_RESPONSE_TYPES)),
    default=ResponseType.TEXT.value,
    show_default=True,
    help="How to decode each message",
)
@click.option("--limit", type=click.IntRange(min=1), help="Stop after this many messages")
@click.option("-H", "--header", "headers", multiple=True, help="Extra header as 'Name: value'")
def stream_command(
    path: str,
    base: str | None,
    params: tuple[str, ...],
    response_type: str,
    limit: int | None,
    headers: tuple[str, ...],
) -> None:
    """Open an event stream on PATH (``:name`` segments filled from --param)."""
    fn = make_stream(path, response_type)
    options = ApiOptions(api_base=base, headers=_parse_pairs(headers, ":", "--header"))
    try:
        asyncio.run(_run_stream(fn, _parse_pairs(params, "=", "--param"), options, limit))
    except ApiError as e:
        raise click.ClickException(str(e)) from e
    except KeyboardInterrupt:
        pass
