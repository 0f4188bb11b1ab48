"""Operation journal persistence.

This module provides the StateManager class for appending and reading
journal entries in a JSONL file.
"""

import json
import logging
from pathlib import Path

from sandfm.core.paths import ensure_state_dir, get_state_dir
from sandfm.filesystem.models import BatchResult
from sandfm.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)

logger = logging.getLogger(__name__)


class StateManager:
    """Manages the operation journal in a JSONL file.

    Storage location: ~/.local/state/sandfm/history.jsonl

    Each line is a complete JSON object representing a HistoryEntry,
    which keeps writes append-only.
    """

    HISTORY_FILENAME = "history.jsonl"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize StateManager.

        Args:
            state_dir: Optional override for the state directory.
                      Default: ~/.local/state/sandfm
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def history_path(self) -> Path:
        """Path to the history.jsonl file."""
        return self._state_dir / self.HISTORY_FILENAME

    def record_action(self, entry: HistoryEntry) -> None:
        """Append an entry to the journal.

        Creates the file and parent directories if they don't exist.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the file cannot be written.
        """
        if self._state_dir == get_state_dir():
            ensure_state_dir()
        else:
            self._state_dir.mkdir(parents=True, exist_ok=True)

        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(entry.to_json_line() + "\n")
            f.flush()

    def record_batch(
        self,
        action_type: HistoryActionType,
        result: BatchResult,
        metadata: dict[str, str] | None = None,
    ) -> HistoryEntry | None:
        """Record the successful items of a batch.

        Dry-run results and failed items are not recorded.

        Returns:
            The recorded entry, or None if nothing succeeded.
        """
        items = [
            HistoryItem(name=r.item.name, kind=r.item.kind)
            for r in result
            if r.success and not r.dry_run
        ]
        if not items:
            return None
        entry = create_history_entry(action_type, items, metadata=metadata)
        self.record_action(entry)
        return entry

    def get_history(self, limit: int | None = None) -> list[HistoryEntry]:
        """Read journal entries, newest first.

        Corrupt lines are skipped with a warning.

        Args:
            limit: Maximum number of entries to return. None returns all.

        Returns:
            List of HistoryEntry, newest first. Empty if the file doesn't exist.
        """
        if not self.history_path.exists():
            return []

        entries: list[HistoryEntry] = []
        with self.history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(HistoryEntry.from_json_line(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, str(e))
                    continue

        entries.reverse()
        if limit is not None:
            return entries[:limit]
        return entries
