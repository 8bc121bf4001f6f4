"""
Claude Code integration commands: setup, verify and synctest.
"""

import asyncio
import json
from datetime import datetime, timezone

import typer
from rich.console import Console

from ccsync.cli.auth import check_connection
from ccsync.core.config.loader import load_config
from ccsync.core.config.models import SyncConfig
from ccsync.core.hooks.installer import (
    build_hooks_config,
    get_claude_settings_path,
    install_hooks,
    missing_hooks,
)
from ccsync.core.sync.client import CollectorClient, CollectorError
from ccsync.core.sync.models import SessionRecord

console = Console()


def setup(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing hooks configuration",
    ),
) -> None:
    """
    Register claude-code-sync hooks in ~/.claude/settings.json.

    Other settings are preserved. If the file already has a hooks section
    without these commands, nothing is written unless --force is given.

    Examples:
        claude-code-sync setup
        claude-code-sync setup --force
    """
    if load_config() is None:
        console.print("[yellow]⚠[/yellow] Plugin not configured yet.")
        console.print("  Run 'claude-code-sync login' first to set up credentials.")

    result = install_hooks(get_claude_settings_path(), force=force)

    for issue in result.issues:
        if issue.severity == "error":
            console.print(f"[red]Error:[/red] {issue.message}")
        elif issue.severity == "warning":
            console.print(f"[yellow]⚠[/yellow] {issue.message}")
        else:
            console.print(f"[blue]ℹ[/blue] {issue.message}")

    if result.conflict:
        console.print("\n[yellow]Existing hooks configuration found.[/yellow]")
        console.print("  Use --force to overwrite, or manually merge the hooks.")
        console.print("\nTo add them manually, include these hooks in your settings.json:")
        console.print_json(json.dumps(build_hooks_config()))
        raise typer.Exit(1)

    if not result.success:
        console.print(f"[red]✗[/red] {result.message}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {result.message}")
    if result.hooks_installed:
        console.print(f"  Installed hooks: {', '.join(result.hooks_installed)}")
    if result.settings_file:
        console.print(f"  Settings file: {result.settings_file}")
    console.print("\nSetup complete. Sessions will sync automatically.")


def verify() -> None:
    """
    Verify credentials, hook registration and the collector connection.

    Exits with status 1 unless everything is in place.
    """
    config = load_config()
    if config is not None:
        console.print("[green]✓[/green] Credentials: OK")
        console.print(f"  Convex URL: {config.convex_url}")
        console.print(f"  API Key: {config.masked_api_key}")
    else:
        console.print("[red]✗[/red] Credentials: NOT CONFIGURED")
        console.print("  Run 'claude-code-sync login' to set up")

    settings_path = get_claude_settings_path()
    missing = missing_hooks(settings_path)
    console.print()
    if not missing:
        console.print("[green]✓[/green] Claude Code Config: OK")
        console.print(f"  Config file: {settings_path}")
    else:
        console.print("[red]✗[/red] Claude Code Config: NOT CONFIGURED")
        console.print(f"  Missing hooks: {', '.join(missing)}")
        console.print("  Run 'claude-code-sync setup' to configure hooks")

    if config is not None:
        console.print("\nTesting connection...")
        if check_connection(config):
            console.print("[green]✓[/green] Connection: OK")
        else:
            console.print("[red]✗[/red] Connection: FAILED")
            raise typer.Exit(1)

    if config is None or missing:
        raise typer.Exit(1)

    console.print("\nReady! Start Claude Code and sessions will sync automatically.")


async def _run_synctest(config: SyncConfig) -> bool:
    async with CollectorClient(config) as client:
        if not await client.health_check():
            console.print("[red]✗[/red] Connection: FAILED")
            console.print("\nCheck your Convex URL and API key.")
            return False
        console.print("[green]✓[/green] Connection: OK")

        now = datetime.now(timezone.utc)
        stamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        session = SessionRecord(
            session_id=f"test-{int(now.timestamp() * 1000)}",
            title="Connection Test",
            project_name="synctest",
            started_at=stamp,
            ended_at=stamp,
        )

        console.print("\nCreating test session...")
        try:
            await client.sync_session(session)
        except CollectorError as e:
            console.print(f"[red]✗[/red] Test session failed: {e}")
            console.print("\nConnection works but sync may have issues.")
            return False

    console.print("[green]✓[/green] Test session created successfully")
    return True


def synctest() -> None:
    """Test connectivity and create a test session."""
    config = load_config()
    if config is None:
        console.print("[yellow]Not configured[/yellow]")
        console.print("  Run 'claude-code-sync login' to set up")
        raise typer.Exit(1)

    console.print(f"Convex URL: {config.convex_url}")
    console.print(f"API Key:    {config.masked_api_key}")
    console.print("\nTesting connection...")

    if not asyncio.run(_run_synctest(config)):
        raise typer.Exit(1)

    console.print("\nSync test passed. Ready to sync Claude Code sessions.")
