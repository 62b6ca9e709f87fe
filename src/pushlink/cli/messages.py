"""CLI: pushlink listen, pushlink send, pushlink broadcast"""

import asyncio
import json
from typing import Optional

import click
from rich.console import Console

from pushlink.errors import PushLinkError
from pushlink.models.message import Message

console = Console()


def _get_client():
    from pushlink.cli.main import _get_client
    return _get_client()


def _run(coro):
    from pushlink.cli.main import _run
    return _run(coro)


def _payload(pairs):
    from pushlink.cli.main import parse_payload
    return parse_payload(pairs)


# Give scheduled sends a moment to leave before the connection closes
SEND_GRACE_S = 0.5


@click.command("listen")
@click.option("--echo", is_flag=True, help="Answer ECHO actions by sending the payload back")
def listen_cmd(echo: bool):
    """Connect and process upstream messages until interrupted."""

    async def _listen():
        client = _get_client()
        if echo:
            client.enable_echo()
        try:
            await client.connect()
        except PushLinkError as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(1)
        console.print(f"[cyan]Listening as {client.config.identity} (Ctrl+C to exit)[/cyan]")
        try:
            await client.wait()
        finally:
            await client.close()

    try:
        _run(_listen())
    except KeyboardInterrupt:
        pass


@click.command("send")
@click.argument("to")
@click.argument("payload", nargs=-1)
@click.option("--collapse-key", default=None)
@click.option("--ttl", "time_to_live", type=int, default=None, help="time_to_live in seconds")
@click.option("--delay-while-idle", is_flag=True)
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(to: str, payload: tuple[str, ...], collapse_key: Optional[str], time_to_live: Optional[int],
             delay_while_idle: bool, json_output: bool):
    """Send one downstream message with KEY=VALUE payload entries."""
    data = _payload(payload)

    async def _send():
        client = _get_client()
        await client.connect()
        try:
            message_id = client.send_message(Message(
                to=to, payload=data, collapse_key=collapse_key,
                time_to_live=time_to_live, delay_while_idle=delay_while_idle or None,
            ))
            await asyncio.sleep(SEND_GRACE_S)
        finally:
            await client.close()
        if json_output:
            click.echo(json.dumps({"to": to, "message_id": message_id}))
        else:
            console.print(f"[green]Sent[/green] {message_id} → {to}")

    try:
        _run(_send())
    except PushLinkError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


@click.command("broadcast")
@click.option("-r", "--recipient", "recipients", multiple=True, required=True, help="Recipient (repeatable)")
@click.argument("payload", nargs=-1)
@click.option("--collapse-key", default=None)
@click.option("--ttl", "time_to_live", type=int, default=None, help="time_to_live in seconds")
@click.option("--delay-while-idle", is_flag=True)
@click.option("--json-output", "--json", is_flag=True)
def broadcast_cmd(recipients: tuple[str, ...], payload: tuple[str, ...], collapse_key: Optional[str],
                  time_to_live: Optional[int], delay_while_idle: bool, json_output: bool):
    """Send the same payload to every recipient as separate messages."""
    data = _payload(payload)

    async def _broadcast():
        client = _get_client()
        await client.connect()
        try:
            deliveries = client.send_broadcast(
                data, list(recipients), collapse_key=collapse_key,
                time_to_live=time_to_live, delay_while_idle=delay_while_idle or None,
            )
            await asyncio.sleep(SEND_GRACE_S)
        finally:
            await client.close()
        for d in deliveries:
            if json_output:
                click.echo(d.model_dump_json())
            elif d.sent:
                console.print(f"[green]Sent[/green] {d.message_id} → {d.to}")
            else:
                console.print(f"[red]Failed[/red] {d.message_id} → {d.to}: {d.error}")

    try:
        _run(_broadcast())
    except PushLinkError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
