"""Directory lister producing folder and file snapshots."""

import logging
import os
from datetime import UTC, datetime

from sandfm.core.errors import IOFailure, NotFoundError
from sandfm.filesystem.models import Listing, ListingEntry, ResolvedPath

logger = logging.getLogger(__name__)


def _mtime(st: os.stat_result) -> datetime:
    return datetime.fromtimestamp(st.st_mtime, tz=UTC)


def count_files(directory: str | os.PathLike[str]) -> int:
    """Count the direct file children of a directory.

    Symlinks are not counted. Unreadable directories count as zero;
    the listing that asked for the count still succeeds.
    """
    try:
        with os.scandir(directory) as it:
            return sum(1 for entry in it if entry.is_file(follow_symlinks=False))
    except OSError as e:
        logger.debug("Cannot count files in %s: %s", directory, e)
        return 0


def list_directory(directory: ResolvedPath) -> Listing:
    """List the immediate children of a directory.

    Folders report their direct file count, files their size. Both
    lists are sorted case-insensitively by name. Symlinks are left out,
    as are entries that vanish or cannot be stat'ed during enumeration.

    Args:
        directory: Directory resolved by the sandbox.

    Returns:
        Listing of folders and files.

    Raises:
        NotFoundError: If the directory does not exist or is not a directory.
        IOFailure: If the directory cannot be enumerated.
    """
    if not directory.is_dir():
        msg = f"Directory not found: {directory.name or directory}"
        raise NotFoundError(msg)

    folders: list[ListingEntry] = []
    files: list[ListingEntry] = []

    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        msg = f"Cannot list directory: {e}"
        raise IOFailure(msg) from e

    for entry in entries:
        try:
            if entry.is_symlink():
                continue
            st = entry.stat(follow_symlinks=False)
            if entry.is_dir(follow_symlinks=False):
                folders.append(
                    ListingEntry(
                        name=entry.name,
                        last_modified=_mtime(st),
                        child_count=count_files(entry.path),
                    )
                )
            elif entry.is_file(follow_symlinks=False):
                files.append(
                    ListingEntry(name=entry.name, last_modified=_mtime(st), size=st.st_size)
                )
        except OSError as e:
            logger.debug("Skipping unreadable entry %s: %s", entry.path, e)
            continue

    folders.sort(key=lambda e: (e.name.casefold(), e.name))
    files.sort(key=lambda e: (e.name.casefold(), e.name))
    return Listing(folders=tuple(folders), files=tuple(files))
