"""
claude-code-sync - Claude Code session sync.

Reconstructs per-session records from Claude Code hook events and transcripts
and forwards them to an OpenSync collector.
"""

__version__ = "0.3.0"

# Re-export core models for convenience
from ccsync.core.config.models import SyncConfig
from ccsync.core.state.models import SessionAccumulator

__all__ = ["SyncConfig", "SessionAccumulator", "__version__"]
