"""Archive builder bundling selected files and folders into a zip.

Each FILE item becomes one entry named by its bare name. Each FOLDER
item contributes one entry per file beneath it, named
``<item>/<path relative to the folder>``, so the nested layout is
preserved. Folders themselves get no entries.

Items that do not exist, or whose kind differs from the entry on disk,
produce no entry and no error; callers wanting strict validation must
check existence first.
"""

import io
import logging
import os
import zipfile
from collections.abc import Iterator, Sequence
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from sandfm.core.cancel import CancelToken, check_cancelled
from sandfm.filesystem.models import Item, ResolvedPath
from sandfm.filesystem.sandbox import PathSandbox

logger = logging.getLogger(__name__)


def iter_folder_files(folder: Path) -> Iterator[tuple[Path, str]]:
    """Yield every regular file under ``folder`` with its relative arc path.

    Walks with an explicit stack in sorted, depth-first order. Symlinks
    are skipped and never followed.

    Yields:
        ``(absolute_path, relative_posix_path)`` pairs.
    """
    stack: list[Path] = [folder]
    while stack:
        current = stack.pop()
        with os.scandir(current) as it:
            entries = sorted(it, key=lambda e: e.name)

        subdirs: list[Path] = []
        for entry in entries:
            if entry.is_symlink():
                logger.debug("Skipping symlink in archive: %s", entry.path)
                continue
            if entry.is_dir():
                subdirs.append(Path(entry.path))
            elif entry.is_file():
                path = Path(entry.path)
                yield path, PurePosixPath(*path.relative_to(folder).parts).as_posix()
        stack.extend(reversed(subdirs))


class ArchiveBuilder:
    """Writes a zip archive of items selected within one base directory.

    Args:
        sandbox: Sandbox used to resolve every item name.
        compress: Use deflate compression (stored entries otherwise).
        cancel: Optional cancellation token checked per file.
    """

    def __init__(
        self,
        sandbox: PathSandbox,
        *,
        compress: bool = True,
        cancel: CancelToken | None = None,
    ) -> None:
        self._sandbox = sandbox
        self._compression = zipfile.ZIP_DEFLATED if compress else zipfile.ZIP_STORED
        self._cancel = cancel

    def write(self, base: ResolvedPath, items: Sequence[Item], out: BinaryIO) -> int:
        """Stream the archive for ``items`` into ``out``.

        Every item name is resolved before the archive is opened, so a
        traversal attempt fails the whole call without output.

        Args:
            base: Directory holding the items.
            items: Items to include.
            out: Writable binary file object (seekable or not).

        Returns:
            Number of entries written.

        Raises:
            TraversalError: If any item name is invalid or escapes the root.
            OSError: If a file cannot be read or the output cannot be written.
        """
        resolved = [(item, self._sandbox.resolve_child(base, item.name)) for item in items]
        count = 0

        with zipfile.ZipFile(out, "w", compression=self._compression, allowZip64=True) as zf:
            for item, path in resolved:
                if item.is_folder:
                    if not path.is_dir() or path.is_symlink():
                        logger.debug("Skipping missing folder in archive: %s", item.name)
                        continue
                    for file_path, rel in iter_folder_files(path):
                        check_cancelled(self._cancel)
                        zf.write(file_path, f"{item.name}/{rel}")
                        count += 1
                else:
                    if not path.is_file() or path.is_symlink():
                        logger.debug("Skipping missing file in archive: %s", item.name)
                        continue
                    check_cancelled(self._cancel)
                    zf.write(path, item.name)
                    count += 1

        logger.info("Archived %d file(s) from %d item(s)", count, len(items))
        return count

    def build(self, base: ResolvedPath, items: Sequence[Item]) -> bytes:
        """Build the complete archive in memory.

        Returns:
            The zip file as bytes.
        """
        buffer = io.BytesIO()
        self.write(base, items, buffer)
        return buffer.getvalue()
