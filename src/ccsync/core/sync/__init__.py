"""
Collector sync: normalized records and the HTTP client.

Example:
    >>> from ccsync.core.sync import CollectorClient, SessionRecord
    >>> async with CollectorClient(config) as client:
    ...     await client.sync_session(SessionRecord(session_id="abc", title="Fix bug"))
"""

from ccsync.core.sync.client import CollectorClient, CollectorError
from ccsync.core.sync.models import SOURCE, MessageRecord, SessionRecord, SyncRecord

__all__ = [
    "CollectorClient",
    "CollectorError",
    "MessageRecord",
    "SessionRecord",
    "SyncRecord",
    "SOURCE",
]
