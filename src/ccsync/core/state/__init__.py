"""
Session state persistence.

Holds per-session accumulators (first prompt, token totals, message count,
forwarded transcript ids) between independent hook invocations.
"""

from ccsync.core.state.models import SessionAccumulator, TokenTotals
from ccsync.core.state.store import (
    JsonSessionStateStore,
    MemorySessionStateStore,
    SessionStateStore,
    get_state_file,
)

__all__ = [
    "SessionAccumulator",
    "TokenTotals",
    "SessionStateStore",
    "JsonSessionStateStore",
    "MemorySessionStateStore",
    "get_state_file",
]
