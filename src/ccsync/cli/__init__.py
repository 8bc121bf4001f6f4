"""
claude-code-sync CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import typer
from rich.console import Console

from ccsync import __version__
from ccsync.cli import auth, hook, setup
from ccsync.core.config.env import load_layered_env

# Help panel names for command grouping
PANEL_ACCOUNT = "Account"
PANEL_CLAUDE = "Claude Code Integration"

app = typer.Typer(
    name="claude-code-sync",
    help="Sync Claude Code sessions to the OpenSync dashboard",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging on stderr",
    ),
) -> None:
    """
    Claude Code Sync - send Claude Code sessions to OpenSync.

    Quick Start:
        1. claude-code-sync login      # Store Convex URL and API key
        2. claude-code-sync setup      # Register hooks in ~/.claude/settings.json
        3. claude-code-sync verify     # Check everything is wired up
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()

    ctx.obj = {"debug": debug}


app.command(name="login", rich_help_panel=PANEL_ACCOUNT)(auth.login)
app.command(name="logout", rich_help_panel=PANEL_ACCOUNT)(auth.logout)
app.command(name="status", rich_help_panel=PANEL_ACCOUNT)(auth.status)
app.command(name="config", rich_help_panel=PANEL_ACCOUNT)(auth.show_config)
app.command(name="set", rich_help_panel=PANEL_ACCOUNT)(auth.set_value)

app.command(name="setup", rich_help_panel=PANEL_CLAUDE)(setup.setup)
app.command(name="verify", rich_help_panel=PANEL_CLAUDE)(setup.verify)
app.command(name="synctest", rich_help_panel=PANEL_CLAUDE)(setup.synctest)
app.command(name="hook", rich_help_panel=PANEL_CLAUDE)(hook.hook)


@app.command(name="version")
def version() -> None:
    """Show claude-code-sync version and exit."""
    console.print(f"claude-code-sync version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
