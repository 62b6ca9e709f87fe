"""
pushlink CLI — `pushlink` command.

Commands:
  pushlink auth login|status|logout   Store relay credentials
  pushlink listen [--echo]            Process upstream messages until Ctrl+C
  pushlink send TO KEY=VALUE...       Send one downstream message
  pushlink broadcast -r TO ... KEY=VALUE...
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install pushlink[cli]")

from pushlink.client import AsyncPushClient
from pushlink.config import ClientConfig, load_config_file
from pushlink.errors import ConfigError

console = Console()


def _get_client() -> AsyncPushClient:
    cfg = load_config_file()
    try:
        config = ClientConfig.from_env(defaults=cfg)
    except ConfigError:
        console.print("[red]No credentials. Run `pushlink auth login` or set PUSHLINK_PROJECT_ID / PUSHLINK_API_KEY.[/red]")
        raise SystemExit(1)
    return AsyncPushClient(config)


def _run(coro):
    return asyncio.run(coro)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


def parse_payload(pairs: tuple[str, ...]) -> dict[str, str]:
    """Turn KEY=VALUE arguments into a payload mapping."""
    payload: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="PAYLOAD")
        payload[key] = value
    return payload


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """pushlink — push-messaging relay client."""
    _setup_logging(verbose)


# Register subcommands from separate modules
from pushlink.cli.auth import auth
from pushlink.cli.messages import broadcast_cmd, listen_cmd, send_cmd

main.add_command(auth)
main.add_command(listen_cmd)
main.add_command(send_cmd)
main.add_command(broadcast_cmd)


if __name__ == "__main__":
    main()
