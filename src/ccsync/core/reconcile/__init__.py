"""
Session reconciliation: hook events in, accumulator updates and sync records out.
"""

from ccsync.core.reconcile.reconciler import (
    ReconcileResult,
    RecordSink,
    SessionReconciler,
    utc_now,
)
from ccsync.core.reconcile.title import generate_title

__all__ = [
    "ReconcileResult",
    "RecordSink",
    "SessionReconciler",
    "generate_title",
    "utc_now",
]
