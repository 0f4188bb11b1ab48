"""Filesystem domain models for batch operations, listings and search.

This module defines the immutable data structures exchanged between
the engine and its transports: items named in batch requests, per-item
results, directory listing entries and search hits.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, NewType

from sandfm.core.errors import ErrorKind

# An absolute path proven by the sandbox to lie within the root.
# Only ResolvedPath values are handed to filesystem primitives.
ResolvedPath = NewType("ResolvedPath", Path)


class ItemKind(str, Enum):
    """Caller-asserted kind of a batch item.

    Attributes:
        FILE: Regular file.
        FOLDER: Directory.
    """

    FILE = "file"
    FOLDER = "folder"


@dataclass(frozen=True, slots=True)
class Item:
    """A single target named relative to a base directory.

    The name is checked to be a single path segment by the sandbox
    when it is resolved, not here, so that a bad name rejects the
    whole request instead of failing at construction time.

    Attributes:
        name: Entry name within the base directory.
        kind: Whether the caller expects a file or a folder.
    """

    name: str
    kind: ItemKind

    def __post_init__(self) -> None:
        """Validate item data after initialization."""
        if not self.name:
            msg = "Item name cannot be empty"
            raise ValueError(msg)

    @property
    def is_folder(self) -> bool:
        """Check if the item is asserted to be a folder."""
        return self.kind == ItemKind.FOLDER

    def to_dict(self) -> dict[str, str]:
        """Serialize to dictionary for JSON output."""
        return {"name": self.name, "kind": self.kind.value}


@dataclass(frozen=True, slots=True)
class ItemResult:
    """Outcome of one item in a batch operation.

    Attributes:
        item: The item that was processed.
        success: Whether the operation completed for this item.
        error_kind: Classification of the failure, None on success.
        error: Human-readable failure reason, None on success.
        dry_run: Whether this was a dry-run (no modification).
    """

    item: Item
    success: bool
    error_kind: ErrorKind | None = None
    error: str | None = None
    dry_run: bool = False

    @property
    def failed(self) -> bool:
        """Check if the item failed."""
        return not self.success

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "item": self.item.to_dict(),
            "outcome": "success" if self.success else "failed",
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error": self.error,
            "dry_run": self.dry_run,
        }


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Ordered per-item outcomes of a batch operation.

    Holds exactly one result per requested item, in request order.
    A batch is never atomic, so mixed outcomes are normal.

    Attributes:
        results: One ItemResult per requested item.
    """

    results: tuple[ItemResult, ...]

    def __iter__(self) -> Iterator[ItemResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, index: int) -> ItemResult:
        return self.results[index]

    @property
    def succeeded(self) -> list[ItemResult]:
        """Results that completed successfully."""
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[ItemResult]:
        """Results that failed."""
        return [r for r in self.results if r.failed]

    @property
    def all_succeeded(self) -> bool:
        """Check if every item succeeded."""
        return all(r.success for r in self.results)

    def to_list(self) -> list[dict[str, Any]]:
        """Serialize all results for JSON output."""
        return [r.to_dict() for r in self.results]


@dataclass(frozen=True, slots=True)
class ListingEntry:
    """One child of a listed directory.

    Folders carry ``child_count`` (number of direct file children),
    files carry ``size``.

    Attributes:
        name: Entry name.
        last_modified: Modification time (timezone-aware, UTC).
        size: Size in bytes for files, None for folders.
        child_count: Direct file count for folders, None for files.
    """

    name: str
    last_modified: datetime
    size: int | None = None
    child_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        result: dict[str, Any] = {
            "name": self.name,
            "last_modified": self.last_modified.isoformat(),
        }
        if self.size is not None:
            result["size"] = self.size
        if self.child_count is not None:
            result["child_count"] = self.child_count
        return result


@dataclass(frozen=True, slots=True)
class Listing:
    """Snapshot of a directory's immediate children.

    Attributes:
        folders: Subfolders, sorted case-insensitively by name.
        files: Files, sorted case-insensitively by name.
    """

    folders: tuple[ListingEntry, ...]
    files: tuple[ListingEntry, ...]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "folders": [f.to_dict() for f in self.folders],
            "files": [f.to_dict() for f in self.files],
        }


@dataclass(frozen=True, slots=True)
class SearchHit:
    """A file matched by a search.

    Attributes:
        name: File name.
        path: Root-relative path using forward slashes.
        size: Size in bytes.
    """

    name: str
    path: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {"name": self.name, "path": self.path, "size": self.size}
