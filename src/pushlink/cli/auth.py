"""CLI: pushlink auth login|status|logout"""

import click
from rich.console import Console

from pushlink.config import DEFAULT_HOST, DEFAULT_PORT, load_config_file, save_config_file

console = Console()


@click.group()
def auth():
    """Relay credential commands."""


@auth.command("login")
@click.option("--host", default=None, help="Relay host")
@click.option("--port", type=int, default=None, help="Relay port")
def auth_login(host, port):
    """Store a project id and API key."""
    cfg = load_config_file()
    project_id = click.prompt("Project id", default=cfg.get("project_id"))
    api_key = click.prompt("API key", hide_input=True)
    save_config_file({
        **cfg,
        "project_id": project_id,
        "api_key": api_key,
        "host": host or cfg.get("host", DEFAULT_HOST),
        "port": port or cfg.get("port", DEFAULT_PORT),
    })
    console.print(f"[green]Saved credentials for project {project_id}[/green]")
    console.print("[dim]Stored in ~/.pushlink/config.json[/dim]")


@auth.command("status")
def auth_status():
    """Show stored credentials."""
    cfg = load_config_file()
    if cfg.get("project_id") and cfg.get("api_key"):
        console.print(
            f"[green]Configured[/green] project {cfg['project_id']} "
            f"→ {cfg.get('host', DEFAULT_HOST)}:{cfg.get('port', DEFAULT_PORT)}"
        )
    else:
        console.print("[yellow]No credentials. Run `pushlink auth login`.[/yellow]")


@auth.command("logout")
def auth_logout():
    """Clear stored credentials."""
    save_config_file({})
    console.print("[green]Credentials cleared.[/green]")
