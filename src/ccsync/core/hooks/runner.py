"""
Hook invocation handler.

Claude Code runs ``claude-code-sync hook <Event>`` for every registered event
and pipes the event payload to stdin. One invocation handles one event:

    load config -> read stdin -> parse event -> reconcile -> flush state

The handler must never block or fail the host: whatever happens it returns
exit code 0 and writes diagnostics to stderr only. Session state is flushed
even when forwarding to the collector fails.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import TextIO

from ccsync.core.config.loader import load_config
from ccsync.core.config.models import SyncConfig
from ccsync.core.events.models import HookEvent, parse_hook_event
from ccsync.core.reconcile.reconciler import ReconcileResult, RecordSink, SessionReconciler
from ccsync.core.state.store import JsonSessionStateStore, SessionStateStore
from ccsync.core.sync.client import CollectorClient

logger = logging.getLogger(__name__)

LOG_FORMAT = "[claude-code-sync] %(levelname)s: %(message)s"


def debug_enabled(debug: bool = False) -> bool:
    """True when --debug was given or CLAUDE_SYNC_DEBUG=1."""
    return debug or os.environ.get("CLAUDE_SYNC_DEBUG") == "1"


def configure_logging(debug: bool = False) -> None:
    """Send log records to stderr so stdout stays clean for the host."""
    logging.basicConfig(
        level=logging.DEBUG if debug_enabled(debug) else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


async def run_hook(
    event_name: str,
    raw_input: str,
    *,
    config: SyncConfig,
    store: SessionStateStore,
    sink: RecordSink | None = None,
) -> ReconcileResult | None:
    """
    Handle one hook event.

    The store is flushed before returning, also when reconciliation raises.

    Args:
        event_name: Hook event name from the command line
        raw_input: Raw stdin payload
        config: Sync configuration
        store: Session state store
        sink: Record destination (defaults to a CollectorClient for config)

    Returns:
        ReconcileResult, or None when the input was empty or not JSON

    Raises:
        CollectorError: If forwarding failed
    """
    if not raw_input.strip():
        logger.debug(f"Empty {event_name} payload, nothing to do")
        return None

    try:
        payload = json.loads(raw_input)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse {event_name} payload: {e}")
        return None

    event = parse_hook_event(event_name, payload)

    try:
        if sink is not None:
            return await _reconcile(event, config, store, sink)
        async with CollectorClient(config) as client:
            return await _reconcile(event, config, store, client)
    finally:
        store.flush()


async def _reconcile(
    event: HookEvent,
    config: SyncConfig,
    store: SessionStateStore,
    sink: RecordSink,
) -> ReconcileResult:
    reconciler = SessionReconciler(
        store,
        sink,
        sync_tool_calls=config.sync_tool_calls,
        sync_thinking=config.sync_thinking,
    )
    result = await reconciler.handle(event)
    logger.debug(
        f"{result.event_name} for {result.session_id}: "
        f"{len(result.sessions)} session and {len(result.messages)} message records"
    )
    return result


async def main(event_name: str, stdin: TextIO | None = None, debug: bool = False) -> int:
    """
    Entry point for ``claude-code-sync hook <Event>``.

    Returns:
        Always 0
    """
    configure_logging(debug)

    try:
        config = load_config()
        if config is None:
            logger.debug("Not configured, skipping hook")
            return 0
        if not config.auto_sync:
            logger.debug("Auto sync disabled, skipping hook")
            return 0

        raw_input = (stdin or sys.stdin).read()
        await run_hook(event_name, raw_input, config=config, store=JsonSessionStateStore())
    except Exception as e:
        # Never block Claude Code
        logger.error(f"Error: {e}")
        logger.debug("Hook failure details", exc_info=True)
    return 0
