"""Recursive wildcard file search.

Patterns support ``*`` (any run of characters) and ``?`` (a single
character) and match file names case-insensitively. A pattern without
either wildcard is a substring search.
"""

import fnmatch
import logging
import os
import re
from pathlib import Path, PurePosixPath

from sandfm.core.cancel import CancelToken, check_cancelled
from sandfm.filesystem.models import ResolvedPath, SearchHit

logger = logging.getLogger(__name__)

_WILDCARDS = ("*", "?")


def compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Build a case-insensitive matcher for a search pattern.

    Args:
        pattern: User pattern, possibly without wildcards.

    Returns:
        Compiled regex matching whole file names, or None for an
        empty or whitespace-only pattern.
    """
    pattern = pattern.strip()
    if not pattern:
        return None
    if not any(w in pattern for w in _WILDCARDS):
        pattern = f"*{pattern}*"
    # Only * and ? are wildcards; brackets match literally
    pattern = pattern.replace("[", "[[]")
    return re.compile(fnmatch.translate(pattern), re.IGNORECASE)


def search_files(
    base: ResolvedPath,
    pattern: str,
    *,
    root: ResolvedPath | None = None,
    cancel: CancelToken | None = None,
) -> list[SearchHit]:
    """Search the subtree under ``base`` for files whose names match.

    Directories are walked with an explicit stack; symlinked
    directories are not descended into and symlinked files are not
    reported. Unreadable directories are skipped. Results are sorted
    by path, case-insensitively.

    Args:
        base: Directory to search from.
        pattern: Wildcard pattern or plain substring.
        root: Directory that hit paths are made relative to
            (defaults to ``base``).
        cancel: Optional cancellation token checked per directory.

    Returns:
        Matching files. Empty for an empty pattern.
    """
    matcher = compile_pattern(pattern)
    if matcher is None:
        return []

    anchor = Path(root if root is not None else base)
    hits: list[SearchHit] = []
    stack: list[Path] = [Path(base)]

    while stack:
        check_cancelled(cancel)
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", current, e)
            continue

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    stack.append(Path(entry.path))
                elif entry.is_file(follow_symlinks=False) and matcher.match(entry.name):
                    rel = Path(entry.path).relative_to(anchor)
                    hits.append(
                        SearchHit(
                            name=entry.name,
                            path=PurePosixPath(*rel.parts).as_posix(),
                            size=entry.stat(follow_symlinks=False).st_size,
                        )
                    )
            except OSError as e:
                logger.debug("Skipping unreadable entry %s: %s", entry.path, e)
                continue

    hits.sort(key=lambda h: (h.path.casefold(), h.path))
    return hits
