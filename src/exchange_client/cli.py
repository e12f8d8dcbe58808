"""Exchange Client CLI.

Thin command-line wrapper over ExchangeClient for scripting and debugging.

Usage:
    exchange-client actions                               # List known actions
    exchange-client call public.bitcoin-price             # One request, JSON result
    exchange-client call user.buy --payload '{"amount": 500}'
    exchange-client listen price_update balance_update    # Print push events
    exchange-client listen --duration 60                  # All known events for 60s

The token is read from --token or the EXCHANGE_TOKEN environment variable.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import click

from .client import ExchangeClient
from .config import ClientConfig, static_token
from .errors import ExchangeClientError, TransportError
from .protocol.actions import ActionType
from .protocol.events import LifecycleEvent, PushEvent

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


@click.group()
@click.option("--url", envvar="EXCHANGE_URL", default=None, help="Server WebSocket URL")
@click.option("--token", envvar="EXCHANGE_TOKEN", default=None, help="Auth token")
@click.option("--timeout", type=float, default=None, help="Request timeout in seconds")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(
    ctx: click.Context,
    url: str | None,
    token: str | None,
    timeout: float | None,
    verbose: bool,
) -> None:
    """Exchange Client - talk to the trading server from the shell."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["token"] = token
    try:
        ctx.obj["config"] = ClientConfig.from_env(url=url, request_timeout=timeout)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _make_client(ctx: click.Context) -> ExchangeClient:
    token = ctx.obj["token"]
    if not token:
        click.echo("No auth token: pass --token or set EXCHANGE_TOKEN", err=True)
        sys.exit(1)
    return ExchangeClient(ctx.obj["config"], token_provider=static_token(token))


# =============================================================================
# Commands
# =============================================================================


@main.command("actions")
def list_actions() -> None:
    """List the actions the server understands."""
    for action in ActionType:
        click.echo(action.value)


@main.command("call")
@click.argument("action")
@click.option("--payload", "-p", default="{}", help="JSON object sent as the request payload")
@click.pass_context
def call(ctx: click.Context, action: str, payload: str) -> None:
    """Invoke one action and print the result as JSON.

    Examples:

        exchange-client call user.balances

        exchange-client call user.limit-buy -p '{"amount": 500, "targetPrice": 60000}'
    """
    try:
        body = json.loads(payload)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Invalid JSON: {e}", param_hint="--payload") from e
    if not isinstance(body, dict):
        raise click.BadParameter("Payload must be a JSON object", param_hint="--payload")

    client = _make_client(ctx)

    async def execute() -> Any:
        gave_up: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def on_give_up(payload: Any) -> None:
            if not gave_up.done():
                message = (payload or {}).get("message") or "Could not connect to server"
                gave_up.set_exception(TransportError(message))

        # A queued request would otherwise wait forever once retries run out
        client.subscribe(LifecycleEvent.CONNECTION_LOST, on_give_up)
        client.subscribe(LifecycleEvent.AUTH_ERROR, on_give_up)

        async with client:
            result = asyncio.ensure_future(client.invoke(action, body))
            await asyncio.wait({result, gave_up}, return_when=asyncio.FIRST_COMPLETED)
            if result.done():
                gave_up.cancel()
                return result.result()
            result.cancel()
            return gave_up.result()

    try:
        result = asyncio.run(execute())
    except ExchangeClientError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(_dump(result))


@main.command("listen")
@click.argument("events", nargs=-1)
@click.option("--duration", "-d", type=float, default=None, help="Stop after N seconds")
@click.pass_context
def listen(ctx: click.Context, events: tuple[str, ...], duration: float | None) -> None:
    """Print push events as they arrive.

    With no EVENTS, every known push and lifecycle event is printed.

    Examples:

        exchange-client listen price_update

        exchange-client listen --duration 30
    """
    names = list(events) or [e.value for e in PushEvent] + [e.value for e in LifecycleEvent]
    client = _make_client(ctx)

    async def execute() -> None:
        stop = asyncio.Event()

        def printer(name: str):
            def on_event(data: Any) -> None:
                click.echo(json.dumps({"event": name, "data": data}, default=str))

            return on_event

        for name in names:
            client.subscribe(name, printer(name))
        # Retries exhausted: nothing more will arrive
        client.subscribe(LifecycleEvent.CONNECTION_LOST, lambda _: stop.set())
        client.subscribe(LifecycleEvent.AUTH_ERROR, lambda _: stop.set())

        async with client:
            try:
                await asyncio.wait_for(stop.wait(), timeout=duration)
            except TimeoutError:
                pass

    try:
        asyncio.run(execute())
    except KeyboardInterrupt:
        click.echo("\nStopped", err=True)


if __name__ == "__main__":
    main()
