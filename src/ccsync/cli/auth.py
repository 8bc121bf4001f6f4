"""
Credential and configuration commands.

login, logout, status, config and set all operate on the user config file
(~/.config/claude-code-sync/config.json). CLAUDE_SYNC_* environment
variables take precedence over that file when both URL and key are set.
"""

import asyncio
import json

import typer
from rich.console import Console
from rich.table import Table

from ccsync.core.config.loader import clear_config, get_config_path, load_config, save_config
from ccsync.core.config.models import SETTABLE_KEYS, ConfigError, SyncConfig, apply_setting
from ccsync.core.state.store import JsonSessionStateStore
from ccsync.core.sync.client import CollectorClient

console = Console()


def check_connection(config: SyncConfig) -> bool:
    """Run the collector health check synchronously."""

    async def _check() -> bool:
        async with CollectorClient(config) as client:
            return await client.health_check()

    return asyncio.run(_check())


def _flag(value: bool) -> str:
    return "[green]enabled[/green]" if value else "[dim]disabled[/dim]"


def _config_table(config: SyncConfig) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Convex URL", config.convex_url)
    table.add_row("API Key", config.masked_api_key)
    table.add_row("Auto Sync", _flag(config.auto_sync))
    table.add_row("Tool Calls", _flag(config.sync_tool_calls))
    table.add_row("Thinking", _flag(config.sync_thinking))
    return table


def login(
    convex_url: str = typer.Option(
        ...,
        "--url",
        prompt="Convex URL (e.g., https://your-project.convex.cloud)",
        help="Convex deployment URL",
    ),
    api_key: str = typer.Option(
        ...,
        "--api-key",
        prompt="API Key (osk_...)",
        hide_input=True,
        help="OpenSync API key from the Settings page",
    ),
) -> None:
    """
    Configure Convex URL and API key.

    Get your API key from the OpenSync Settings page ("Generate API Key").
    The connection is tested before anything is saved.

    Examples:
        claude-code-sync login
        claude-code-sync login --url https://happy-fox-123.convex.cloud --api-key osk_...
    """
    convex_url = convex_url.strip()
    api_key = api_key.strip()

    if not convex_url:
        console.print("[red]Error: Convex URL is required[/red]")
        raise typer.Exit(1)
    if "convex.cloud" not in convex_url and "convex.site" not in convex_url:
        console.print(
            "[red]Error: Invalid Convex URL. Must contain convex.cloud or convex.site[/red]"
        )
        raise typer.Exit(1)
    if not api_key:
        console.print("[red]Error: API Key is required[/red]")
        raise typer.Exit(1)
    if not api_key.startswith("osk_"):
        console.print("[red]Error: Invalid API Key. Must start with osk_[/red]")
        raise typer.Exit(1)

    config = SyncConfig(convex_url=convex_url, api_key=api_key)

    console.print("\nTesting connection...")
    if not check_connection(config):
        console.print("[red]Error: Could not connect to Convex backend[/red]")
        console.print("  Check your URL and try again")
        raise typer.Exit(1)

    path = save_config(config)
    console.print("\n[green]✓[/green] Configuration saved")
    console.print(f"  URL: {config.convex_url}")
    console.print(f"  Key: {config.masked_api_key}")
    console.print(f"  File: {path}")
    console.print("\nNext step: register the Claude Code hooks with")
    console.print("  [bold]claude-code-sync setup[/bold]")


def logout() -> None:
    """Clear stored credentials."""
    if clear_config():
        console.print("[green]✓[/green] Credentials cleared")
    else:
        console.print("[dim]No stored credentials[/dim]")


def status() -> None:
    """
    Show configuration and test the connection.

    Exits with status 1 when not configured or when the collector is
    unreachable.
    """
    config = load_config()
    if config is None:
        console.print("[yellow]Not configured[/yellow]")
        console.print("  Run 'claude-code-sync login' to set up")
        raise typer.Exit(1)

    console.print("[bold]Configuration[/bold]")
    console.print(_config_table(config))
    console.print(f"Tracked sessions: {len(JsonSessionStateStore().session_ids())}")

    console.print("\nTesting connection...")
    if check_connection(config):
        console.print("[green]✓[/green] Connected to Convex backend")
    else:
        console.print("[red]✗[/red] Could not connect to Convex backend")
        raise typer.Exit(1)


def show_config(
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Show current configuration (API key masked).

    Examples:
        claude-code-sync config
        claude-code-sync config --json
    """
    config = load_config()

    if config is None:
        if json_output:
            print(json.dumps({"configured": False}))
        else:
            console.print("Not configured. Run 'claude-code-sync login' to set up.")
        return

    if json_output:
        data = {
            "configured": True,
            "convexUrl": config.convex_url,
            "apiKey": config.masked_api_key,
            "autoSync": config.auto_sync,
            "syncToolCalls": config.sync_tool_calls,
            "syncThinking": config.sync_thinking,
        }
        print(json.dumps(data, indent=2))
        return

    console.print(_config_table(config))
    console.print(f"\n[dim]Config file: {get_config_path()}[/dim]")


def set_value(
    key: str = typer.Argument(..., help="autoSync, syncToolCalls or syncThinking"),
    value: str = typer.Argument(..., help="true, 1 or yes to enable; anything else disables"),
) -> None:
    """
    Set a configuration flag.

    Examples:
        claude-code-sync set syncThinking true
        claude-code-sync set autoSync false
    """
    config = load_config()
    if config is None:
        console.print("[red]Not configured. Run 'claude-code-sync login' first.[/red]")
        raise typer.Exit(1)

    try:
        updated = apply_setting(config, key, value)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    save_config(updated)
    enabled = getattr(updated, SETTABLE_KEYS[key])
    console.print(f"Set {key} = {str(enabled).lower()}")