"""Batch executor for delete, move, copy, rename, mkdir and upload.

Batch operations process items independently: a failure on one item
is recorded in its ItemResult and processing continues with the next,
so a batch is never rolled back and never stops early. Before anything
is touched, every source and destination of the batch is resolved
through the sandbox; a traversal attempt in any item rejects the whole
batch with TraversalError.

Single-target operations (rename, create_folder, save_upload) raise
on the first error instead.
"""

import errno
import logging
import os
import shutil
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, BinaryIO

from sandfm.core.cancel import CancelToken, check_cancelled
from sandfm.core.errors import (
    AlreadyExistsError,
    ErrorKind,
    FileManagerError,
    InvalidTargetError,
    IOFailure,
    NotFoundError,
    TypeMismatchError,
)
from sandfm.filesystem.models import BatchResult, Item, ItemKind, ItemResult, ResolvedPath
from sandfm.filesystem.sandbox import PathSandbox
from sandfm.filesystem.tree import copy_tree, delete_tree, is_same_or_inside

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def _exists(path: Path) -> bool:
    """Check existence without following a final symlink."""
    return path.exists() or path.is_symlink()


def _is_real_dir(path: Path) -> bool:
    return path.is_dir() and not path.is_symlink()


def require_kind(path: Path, item: Item) -> None:
    """Verify that ``path`` exists and matches the item's asserted kind.

    A dangling symlink exists and counts as a file.

    Raises:
        NotFoundError: If nothing exists at ``path``.
        TypeMismatchError: If the entry is a folder but a file was
            asserted, or vice versa.
    """
    if not _exists(path):
        label = "Folder" if item.is_folder else "File"
        msg = f"{label} does not exist: {item.name}"
        raise NotFoundError(msg)
    if item.is_folder and not path.is_dir():
        msg = f"Not a folder: {item.name}"
        raise TypeMismatchError(msg)
    if not item.is_folder and path.is_dir():
        msg = f"Not a file: {item.name}"
        raise TypeMismatchError(msg)


def _move_path(src: Path, dst: Path) -> None:
    try:
        os.replace(src, dst)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        shutil.move(src, dst)


class BatchExecutor:
    """Applies structural operations to items within the sandbox.

    Supports dry-run mode, where every check runs but nothing is
    modified, and cooperative cancellation between items.

    Args:
        sandbox: Sandbox used to resolve every item path.
        dry_run: If True, report what would happen without modifying anything.
        cancel: Optional token checked between items and tree steps.
    """

    def __init__(
        self,
        sandbox: PathSandbox,
        *,
        dry_run: bool = False,
        cancel: CancelToken | None = None,
    ) -> None:
        self._sandbox = sandbox
        self._dry_run = dry_run
        self._cancel = cancel

    @property
    def dry_run(self) -> bool:
        """Whether this executor only simulates operations."""
        return self._dry_run

    # === Batch operations ===

    def delete_all(self, base: ResolvedPath, items: Sequence[Item]) -> BatchResult:
        """Delete every item in ``base``.

        FILE items are unlinked, FOLDER items are removed with all
        their contents. A symlink is removed as a link.

        Args:
            base: Directory holding the items.
            items: Items to delete.

        Returns:
            BatchResult with one entry per item.

        Raises:
            TraversalError: If any item name is invalid or escapes the root.
        """
        plan = [(item, self._sandbox.resolve_child(base, item.name)) for item in items]

        def delete_one(item: Item, path: ResolvedPath) -> None:
            require_kind(path, item)
            if self._dry_run:
                return
            if item.is_folder and not path.is_symlink():
                delete_tree(path, cancel=self._cancel)
            else:
                path.unlink()
            logger.info("Deleted %s %s", item.kind.value, path)

        return self._run(plan, delete_one, "delete")

    def move_all(
        self,
        source_base: ResolvedPath,
        dest_base: ResolvedPath,
        items: Sequence[Item],
    ) -> BatchResult:
        """Move items from ``source_base`` into ``dest_base``.

        A FILE replaces an existing destination file. A FOLDER replaces
        an existing destination folder entirely: the old folder is
        deleted first, its contents are not merged. The destination
        base is created if missing.

        Raises:
            TraversalError: If any item name is invalid or escapes the root.
            IOFailure: If the destination base cannot be created.
        """
        plan = self._plan_pairs(source_base, dest_base, items)
        self._ensure_dest_base(dest_base)
        return self._run(plan, lambda item, paths: self._move_one(item, *paths), "move")

    def copy_all(
        self,
        source_base: ResolvedPath,
        dest_base: ResolvedPath,
        items: Sequence[Item],
    ) -> BatchResult:
        """Copy items from ``source_base`` into ``dest_base``.

        A FILE replaces an existing destination file. A FOLDER is merged
        file by file into an existing destination folder: same-named
        files are replaced, unrelated files stay. The destination base
        is created if missing.

        Raises:
            TraversalError: If any item name is invalid or escapes the root.
            IOFailure: If the destination base cannot be created.
        """
        plan = self._plan_pairs(source_base, dest_base, items)
        self._ensure_dest_base(dest_base)
        return self._run(plan, lambda item, paths: self._copy_one(item, *paths), "copy")

    def upload_all(
        self,
        base: ResolvedPath,
        files: Sequence[tuple[str, BinaryIO]],
    ) -> BatchResult:
        """Store uploaded files in ``base``, isolating failures per file.

        Args:
            base: Target directory, created if missing.
            files: ``(filename, stream)`` pairs decoded by the transport.

        Raises:
            TraversalError: If any filename is invalid or escapes the root.
        """
        plan: list[tuple[Item, tuple[ResolvedPath, BinaryIO]]] = []
        for name, stream in files:
            path = self._sandbox.resolve_child(base, name)
            plan.append((Item(name=name, kind=ItemKind.FILE), (path, stream)))

        def upload_one(item: Item, path: ResolvedPath, stream: BinaryIO) -> None:
            self._write_upload(Path(base), path, stream)

        return self._run(plan, lambda item, args: upload_one(item, *args), "upload")

    # === Single-target operations ===

    def rename(
        self,
        base: ResolvedPath,
        old_name: str,
        new_name: str,
        kind: ItemKind,
        *,
        overwrite: bool = False,
    ) -> ResolvedPath:
        """Rename an entry within ``base``.

        Renaming to the same name is a no-op. A case-only rename of the
        same entry is allowed on case-insensitive filesystems. A FOLDER
        never replaces an existing entry; a FILE replaces an existing
        file only when ``overwrite`` is True.

        Returns:
            The path of the renamed entry.

        Raises:
            TraversalError: If either name is invalid or escapes the root.
            NotFoundError: If the source does not exist.
            TypeMismatchError: If the source kind differs from ``kind``.
            AlreadyExistsError: If the destination is occupied.
            IOFailure: If the rename fails.
        """
        item = Item(name=old_name, kind=kind)
        src = self._sandbox.resolve_child(base, old_name)
        dst = self._sandbox.resolve_child(base, new_name)
        require_kind(src, item)

        if old_name == new_name:
            return dst

        if _exists(dst) and not self._is_same_entry(src, dst):
            if kind == ItemKind.FOLDER:
                msg = f"Destination folder already exists: {new_name}"
                raise AlreadyExistsError(msg)
            if dst.is_dir():
                msg = f"A folder with that name already exists: {new_name}"
                raise AlreadyExistsError(msg)
            if not overwrite:
                msg = f"Destination file already exists: {new_name}"
                raise AlreadyExistsError(msg)

        if self._dry_run:
            return dst

        try:
            os.replace(src, dst)
        except OSError as e:
            msg = f"Cannot rename {old_name} to {new_name}: {e.strerror or e}"
            raise IOFailure(msg) from e
        logger.info("Renamed %s %s -> %s", kind.value, src, dst)
        return dst

    def create_folder(self, base: ResolvedPath, name: str) -> ResolvedPath:
        """Create a new folder named ``name`` inside ``base``.

        Raises:
            TraversalError: If the name is invalid or escapes the root.
            NotFoundError: If ``base`` is not an existing directory.
            AlreadyExistsError: If an entry with that name exists.
            IOFailure: If the folder cannot be created.
        """
        if not base.is_dir():
            msg = "Parent directory not found"
            raise NotFoundError(msg)
        path = self._sandbox.resolve_child(base, name)
        if _exists(path):
            msg = f"Folder already exists: {name}"
            raise AlreadyExistsError(msg)
        if self._dry_run:
            return path
        try:
            path.mkdir()
        except FileExistsError as e:
            msg = f"Folder already exists: {name}"
            raise AlreadyExistsError(msg) from e
        except OSError as e:
            msg = f"Cannot create folder {name}: {e.strerror or e}"
            raise IOFailure(msg) from e
        logger.info("Created folder %s", path)
        return path

    def save_upload(self, base: ResolvedPath, filename: str, stream: BinaryIO) -> int:
        """Store one uploaded file in ``base``.

        Returns:
            Number of bytes written (0 in dry-run mode).

        Raises:
            TraversalError: If the filename is invalid or escapes the root.
            AlreadyExistsError: If a folder with that name exists.
            IOFailure: If the file cannot be written.
        """
        path = self._sandbox.resolve_child(base, filename)
        try:
            return self._write_upload(Path(base), path, stream)
        except OSError as e:
            msg = f"Cannot store {filename}: {e.strerror or e}"
            raise IOFailure(msg) from e

    # === Private helpers ===

    def _plan_pairs(
        self,
        source_base: ResolvedPath,
        dest_base: ResolvedPath,
        items: Sequence[Item],
    ) -> list[tuple[Item, tuple[ResolvedPath, ResolvedPath]]]:
        """Resolve source and destination of every item before any mutation."""
        return [
            (
                item,
                (
                    self._sandbox.resolve_child(source_base, item.name),
                    self._sandbox.resolve_child(dest_base, item.name),
                ),
            )
            for item in items
        ]

    def _ensure_dest_base(self, dest_base: ResolvedPath) -> None:
        if self._dry_run or dest_base.is_dir():
            return
        try:
            dest_base.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Cannot create destination directory: {e.strerror or e}"
            raise IOFailure(msg) from e

    def _run(
        self,
        plan: Sequence[tuple[Item, Any]],
        action: Callable[[Item, Any], None],
        label: str,
    ) -> BatchResult:
        """Apply ``action`` to every planned item, recording each outcome."""
        results: list[ItemResult] = []

        for item, args in plan:
            if self._cancel is not None and self._cancel.cancelled:
                results.append(self._failure(item, ErrorKind.CANCELLED, "Operation cancelled"))
                continue
            try:
                action(item, args)
            except FileManagerError as e:
                results.append(self._failure(item, e.kind, str(e)))
                logger.warning("%s failed for %s: %s", label, item.name, e)
                continue
            except OSError as e:
                reason = e.strerror or str(e)
                results.append(self._failure(item, ErrorKind.IO_FAILURE, reason))
                logger.warning("%s failed for %s: %s", label, item.name, reason)
                continue
            results.append(ItemResult(item=item, success=True, dry_run=self._dry_run))

        return BatchResult(results=tuple(results))

    @staticmethod
    def _failure(item: Item, kind: ErrorKind, reason: str) -> ItemResult:
        return ItemResult(item=item, success=False, error_kind=kind, error=reason)

    def _check_not_self(self, item: Item, src: Path, dst: Path) -> None:
        if is_same_or_inside(dst, src):
            if item.is_folder and not is_same_or_inside(src, dst):
                msg = f"Cannot place a folder inside itself: {item.name}"
            else:
                msg = f"Source and destination are the same: {item.name}"
            raise InvalidTargetError(msg)

    def _move_one(self, item: Item, src: ResolvedPath, dst: ResolvedPath) -> None:
        require_kind(src, item)
        self._check_not_self(item, src, dst)

        if item.is_folder:
            if _exists(dst) and not _is_real_dir(dst):
                msg = f"A file with that name exists at the destination: {item.name}"
                raise AlreadyExistsError(msg)
            if _exists(dst) and is_same_or_inside(Path(os.path.realpath(src)), dst):
                msg = f"Destination folder contains the source: {item.name}"
                raise InvalidTargetError(msg)
            if self._dry_run:
                return
            if _exists(dst):
                # Destroy-then-move: folders are replaced, never merged
                delete_tree(dst, cancel=self._cancel)
            check_cancelled(self._cancel)
            shutil.move(src, dst)
        else:
            if _is_real_dir(dst):
                msg = f"A folder with that name exists at the destination: {item.name}"
                raise AlreadyExistsError(msg)
            if self._dry_run:
                return
            _move_path(src, dst)
        logger.info("Moved %s %s -> %s", item.kind.value, src, dst)

    def _copy_one(self, item: Item, src: ResolvedPath, dst: ResolvedPath) -> None:
        require_kind(src, item)
        self._check_not_self(item, src, dst)

        if item.is_folder:
            if _exists(dst) and not _is_real_dir(dst):
                msg = f"A file with that name exists at the destination: {item.name}"
                raise AlreadyExistsError(msg)
            if self._dry_run:
                return
            copy_tree(src, dst, cancel=self._cancel)
        else:
            if _is_real_dir(dst):
                msg = f"A folder with that name exists at the destination: {item.name}"
                raise AlreadyExistsError(msg)
            if self._dry_run:
                return
            if dst.is_symlink():
                dst.unlink()
            shutil.copy2(src, dst)
        logger.info("Copied %s %s -> %s", item.kind.value, src, dst)

    def _write_upload(self, base: Path, path: Path, stream: BinaryIO) -> int:
        """Write ``stream`` to ``path`` via a temporary file and atomic replace."""
        if _is_real_dir(path):
            msg = f"A folder with that name already exists: {path.name}"
            raise AlreadyExistsError(msg)
        if self._dry_run:
            return 0

        base.mkdir(parents=True, exist_ok=True)
        written = 0
        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=base,
                prefix=".upload-",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                while chunk := stream.read(_CHUNK_SIZE):
                    check_cancelled(self._cancel)
                    f.write(chunk)
                    written += len(chunk)
            os.replace(tmp_path, path)
        except BaseException:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise
        logger.info("Stored upload %s (%d bytes)", path, written)
        return written

    @staticmethod
    def _is_same_entry(src: Path, dst: Path) -> bool:
        try:
            return os.path.samefile(src, dst)
        except OSError:
            return False
