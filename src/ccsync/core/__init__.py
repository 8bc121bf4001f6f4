"""Core session reconciliation engine for claude-code-sync."""
