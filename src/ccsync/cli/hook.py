"""
Hook command invoked by Claude Code.

Registered in ~/.claude/settings.json as ``claude-code-sync hook <Event>``.
Reads the event payload from stdin and always exits 0 so Claude Code is
never blocked; problems are reported on stderr.
"""

import asyncio

import typer

from ccsync.core.hooks.runner import main as run_hook_main


def hook(
    ctx: typer.Context,
    event: str = typer.Argument(
        ...,
        help="Hook event name (SessionStart, UserPromptSubmit, PostToolUse, Stop, SessionEnd)",
    ),
) -> None:
    """
    Handle a Claude Code hook event (reads JSON from stdin).

    Examples:
        echo '{"session_id": "abc", "prompt": "fix bug"}' | claude-code-sync hook UserPromptSubmit
    """
    debug = bool(ctx.obj and ctx.obj.get("debug"))
    exit_code = asyncio.run(run_hook_main(event, debug=debug))
    raise typer.Exit(exit_code)
