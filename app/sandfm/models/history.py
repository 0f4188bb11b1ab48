"""Journal entry model for recording file operations.

This module defines data structures for recording successful
mutations in the operation journal, giving an audit trail of what was
changed, where and when.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sandfm.filesystem.models import ItemKind


class HistoryActionType(str, Enum):
    """Type of operation recorded in the journal.

    Attributes:
        DELETE: Items deleted.
        MOVE: Items moved to another folder.
        COPY: Items copied to another folder.
        RENAME: One entry renamed.
        MKDIR: Folder created.
        UPLOAD: Files uploaded.
    """

    DELETE = "delete"
    MOVE = "move"
    COPY = "copy"
    RENAME = "rename"
    MKDIR = "mkdir"
    UPLOAD = "upload"


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """Single entry affected by an operation.

    Attributes:
        name: Entry name within the operation's base folder.
        kind: Whether the entry is a file or a folder.
    """

    name: str
    kind: ItemKind

    def __post_init__(self) -> None:
        """Validate item data after initialization."""
        if not self.name:
            msg = "Item name cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {"name": self.name, "kind": self.kind.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryItem":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If kind is invalid.
        """
        return cls(name=data["name"], kind=ItemKind(data["kind"]))


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record of a single operation in the journal.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the operation ran (ISO 8601 format with timezone).
        action_type: Type of operation.
        items: Entries affected by this operation.
        metadata: Additional context (root-relative paths, command).
    """

    id: str
    timestamp: str
    action_type: HistoryActionType
    items: tuple[HistoryItem, ...]
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)
        if not self.items:
            msg = "History entry must have at least one item"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action_type": self.action_type.value,
            "items": [item.to_dict() for item in self.items],
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If action_type or item data is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            action_type=HistoryActionType(data["action_type"]),
            items=tuple(HistoryItem.from_dict(item) for item in data["items"]),
            metadata=data.get("metadata", {}),
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> "HistoryEntry":
        """Deserialize from a JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))


def create_history_entry(
    action_type: HistoryActionType,
    items: list[HistoryItem],
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Create a new HistoryEntry with a generated ID and current timestamp.

    Raises:
        ValueError: If items list is empty.
    """
    if not items:
        msg = "Cannot create history entry with no items"
        raise ValueError(msg)

    return HistoryEntry(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        action_type=action_type,
        items=tuple(items),
        metadata=metadata or {},
    )
