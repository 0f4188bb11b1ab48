"""File manager facade used by transports.

Every entry point takes client-supplied relative paths, resolves them
through the sandbox first, and only then hands resolved paths to the
lister, search, batch executor or archive builder.
"""

from collections.abc import Sequence
from typing import BinaryIO

from sandfm.core.cancel import CancelToken
from sandfm.core.context import RootContext
from sandfm.filesystem.archive import ArchiveBuilder
from sandfm.filesystem.batch import BatchExecutor
from sandfm.filesystem.lister import list_directory
from sandfm.filesystem.models import BatchResult, Item, ItemKind, Listing, ResolvedPath, SearchHit
from sandfm.filesystem.sandbox import PathSandbox
from sandfm.filesystem.search import search_files


class FileManager:
    """Sandboxed file operations over one root directory.

    The manager holds no mutable state beyond its configuration, so a
    transport can share one instance across requests or build one per
    request (e.g. to attach a per-request CancelToken).

    Args:
        context: Immutable root context.
        compress_archives: Deflate zip entries.
        dry_run: Simulate batch and single-target mutations.
        cancel: Optional cancellation token for long-running calls.
    """

    def __init__(
        self,
        context: RootContext,
        *,
        compress_archives: bool = True,
        dry_run: bool = False,
        cancel: CancelToken | None = None,
    ) -> None:
        self._context = context
        self._sandbox = PathSandbox(context)
        self._cancel = cancel
        self._executor = BatchExecutor(self._sandbox, dry_run=dry_run, cancel=cancel)
        self._archiver = ArchiveBuilder(self._sandbox, compress=compress_archives, cancel=cancel)

    @property
    def context(self) -> RootContext:
        """The root context this manager is confined to."""
        return self._context

    @property
    def sandbox(self) -> PathSandbox:
        """The sandbox used for every path resolution."""
        return self._sandbox

    def resolve(self, path: str) -> ResolvedPath:
        """Resolve a client relative path (see PathSandbox.resolve)."""
        return self._sandbox.resolve(path)

    def browse(self, path: str = "") -> Listing:
        """List the folders and files directly inside ``path``."""
        return list_directory(self._sandbox.resolve(path))

    def search(self, pattern: str, path: str = "") -> list[SearchHit]:
        """Search for files under ``path`` (the root by default).

        Hit paths are relative to the root.
        """
        base = self._sandbox.resolve(path)
        if not base.is_dir():
            return []
        return search_files(base, pattern, root=self._sandbox.root, cancel=self._cancel)

    def create_folder(self, path: str, name: str) -> ResolvedPath:
        """Create folder ``name`` inside ``path``."""
        return self._executor.create_folder(self._sandbox.resolve(path), name)

    def upload(self, path: str, files: Sequence[tuple[str, BinaryIO]]) -> BatchResult:
        """Store uploaded ``(filename, stream)`` pairs in ``path``."""
        return self._executor.upload_all(self._sandbox.resolve(path), files)

    def rename(
        self,
        path: str,
        old_name: str,
        new_name: str,
        kind: ItemKind,
        *,
        overwrite: bool = False,
    ) -> ResolvedPath:
        """Rename ``old_name`` to ``new_name`` inside ``path``."""
        return self._executor.rename(
            self._sandbox.resolve(path), old_name, new_name, kind, overwrite=overwrite
        )

    def delete(self, path: str, items: Sequence[Item]) -> BatchResult:
        """Delete ``items`` inside ``path``."""
        return self._executor.delete_all(self._sandbox.resolve(path), items)

    def move(self, source: str, destination: str, items: Sequence[Item]) -> BatchResult:
        """Move ``items`` from ``source`` to ``destination``."""
        src = self._sandbox.resolve(source)
        dst = self._sandbox.resolve(destination)
        return self._executor.move_all(src, dst, items)

    def copy(self, source: str, destination: str, items: Sequence[Item]) -> BatchResult:
        """Copy ``items`` from ``source`` to ``destination``."""
        src = self._sandbox.resolve(source)
        dst = self._sandbox.resolve(destination)
        return self._executor.copy_all(src, dst, items)

    def download(self, path: str, items: Sequence[Item]) -> bytes:
        """Build a zip of ``items`` inside ``path``.

        Missing items produce no entry, not an error.
        """
        return self._archiver.build(self._sandbox.resolve(path), items)

    def write_archive(self, path: str, items: Sequence[Item], out: BinaryIO) -> int:
        """Stream a zip of ``items`` inside ``path`` into ``out``.

        Returns:
            Number of entries written.
        """
        return self._archiver.write(self._sandbox.resolve(path), items, out)
