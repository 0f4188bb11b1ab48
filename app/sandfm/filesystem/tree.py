"""Recursive tree primitives: copy-tree and delete-tree.

Neither operation is transactional. A failure part-way leaves a
partially copied or partially deleted tree and the error propagates
to the caller, which reports it without cleanup or retry.
"""

import logging
import os
import shutil
from pathlib import Path

from sandfm.core.cancel import CancelToken, check_cancelled
from sandfm.filesystem.models import ResolvedPath

logger = logging.getLogger(__name__)


def copy_tree(
    src: ResolvedPath,
    dst: ResolvedPath,
    *,
    cancel: CancelToken | None = None,
) -> int:
    """Copy a folder into ``dst``, merging with anything already there.

    For each folder, depth-first and pre-order: create the destination
    folder if absent, copy every direct file (replacing same-named
    files), then continue with its subfolders. Files already present in
    the destination but absent from the source are left untouched.
    Symlinks are skipped. Uses an explicit stack, so depth is not
    bounded by the interpreter's recursion limit.

    Args:
        src: Existing source folder.
        dst: Destination folder, created if missing.
        cancel: Optional cancellation token checked per file.

    Returns:
        Number of files copied.

    Raises:
        OSError: If any directory creation or file copy fails.
        OperationCancelledError: If cancelled between files.
    """
    copied = 0
    # Reversed push keeps sibling order equal to the recursive version
    stack: list[tuple[Path, Path]] = [(Path(src), Path(dst))]

    while stack:
        source_dir, dest_dir = stack.pop()
        _unlink_if_symlink(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)

        with os.scandir(source_dir) as it:
            entries = sorted(it, key=lambda e: e.name)

        subdirs: list[tuple[Path, Path]] = []
        for entry in entries:
            if entry.is_symlink():
                logger.debug("Skipping symlink during copy: %s", entry.path)
                continue
            if entry.is_dir():
                subdirs.append((Path(entry.path), dest_dir / entry.name))
            elif entry.is_file():
                check_cancelled(cancel)
                target = dest_dir / entry.name
                _unlink_if_symlink(target)
                shutil.copy2(entry.path, target)
                copied += 1

        stack.extend(reversed(subdirs))

    logger.debug("Copied %d file(s) from %s to %s", copied, src, dst)
    return copied


def _unlink_if_symlink(path: Path) -> None:
    # Never write through a destination symlink
    if path.is_symlink():
        path.unlink()


def delete_tree(directory: ResolvedPath, *, cancel: CancelToken | None = None) -> None:
    """Remove a folder and everything beneath it.

    Symlinks inside the tree are unlinked, never followed.

    Args:
        directory: Folder to remove.
        cancel: Optional cancellation token checked per directory.

    Raises:
        OSError: If any entry cannot be removed.
        OperationCancelledError: If cancelled between directories.
    """
    if cancel is None:
        shutil.rmtree(directory)
        return

    for dirpath, dirnames, filenames in os.walk(directory, topdown=False):
        check_cancelled(cancel)
        for name in filenames:
            os.unlink(os.path.join(dirpath, name))
        for name in dirnames:
            path = os.path.join(dirpath, name)
            if os.path.islink(path):
                os.unlink(path)
            else:
                os.rmdir(path)
    os.rmdir(directory)


def is_same_or_inside(path: Path, ancestor: Path) -> bool:
    """Check whether ``path`` is ``ancestor`` or one of its descendants.

    The comparison is lexical; both paths are expected to come from the
    sandbox, whose parents are already canonical.
    """
    a = os.path.normcase(os.path.abspath(ancestor))
    p = os.path.normcase(os.path.abspath(path))
    try:
        return os.path.commonpath([a, p]) == a
    except ValueError:
        return False
