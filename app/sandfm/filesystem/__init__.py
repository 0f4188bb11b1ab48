"""Sandboxed filesystem operation engine.

This package provides path sandboxing, directory listing, wildcard
search, batch structural operations, recursive tree primitives and
zip archive building, all confined to one root directory.
"""

from sandfm.filesystem.archive import ArchiveBuilder
from sandfm.filesystem.batch import BatchExecutor
from sandfm.filesystem.lister import list_directory
from sandfm.filesystem.models import (
    BatchResult,
    Item,
    ItemKind,
    ItemResult,
    Listing,
    ListingEntry,
    ResolvedPath,
    SearchHit,
)
from sandfm.filesystem.sandbox import PathSandbox
from sandfm.filesystem.search import search_files
from sandfm.filesystem.tree import copy_tree, delete_tree

__all__ = [
    "ArchiveBuilder",
    "BatchExecutor",
    "BatchResult",
    "Item",
    "ItemKind",
    "ItemResult",
    "Listing",
    "ListingEntry",
    "PathSandbox",
    "ResolvedPath",
    "SearchHit",
    "copy_tree",
    "delete_tree",
    "list_directory",
    "search_files",
]
