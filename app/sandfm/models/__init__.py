"""Data models for sandfm.

This package contains the journal models shared between the core
state manager and the CLI.
"""

from sandfm.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)

__all__ = [
    "HistoryActionType",
    "HistoryEntry",
    "HistoryItem",
    "create_history_entry",
]
