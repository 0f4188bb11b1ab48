"""Path sandbox confining client paths to the root directory.

Client-supplied relative paths and item names are untrusted. Every
path the engine touches, source and destination alike, is produced
here: joined onto the root, canonicalized with symlinks resolved, and
accepted only if the result is the root or lies beneath it.
"""

import logging
import os
import re
from pathlib import Path, PurePosixPath

from sandfm.core.context import RootContext
from sandfm.core.errors import TraversalError
from sandfm.filesystem.models import ResolvedPath

logger = logging.getLogger(__name__)

# Drive-letter (C:) or UNC (//server) prefixes after separator normalization
_DRIVE_RE = re.compile(r"^[A-Za-z]:")

# Relative paths that name the root itself
_ROOT_ALIASES: frozenset[str] = frozenset({"", ".", "/"})


def normalize_relative(relative: str) -> str:
    """Normalize a client relative path to ``/``-separated segments.

    Backslashes are treated as separators and leading ``./`` segments
    are dropped. The root is returned as an empty string.

    Args:
        relative: Client-supplied path relative to the root.

    Returns:
        Normalized path without leading or trailing separators.

    Raises:
        TraversalError: If the path is absolute, carries a drive or UNC
            prefix, contains a ``..`` segment or a NUL byte.
    """
    value = relative.replace("\\", "/")
    if value in _ROOT_ALIASES:
        return ""

    if "\x00" in value:
        msg = "Path must not contain NUL bytes"
        raise TraversalError(msg)
    if value.startswith("/"):
        msg = f"Path must be relative to the root: {relative!r}"
        raise TraversalError(msg)
    if _DRIVE_RE.match(value):
        msg = f"Path must not include a drive prefix: {relative!r}"
        raise TraversalError(msg)

    parts = [p for p in value.split("/") if p not in ("", ".")]
    if ".." in parts:
        msg = f"Path must not contain '..': {relative!r}"
        raise TraversalError(msg)
    return "/".join(parts)


def validate_name(name: str) -> str:
    """Check that ``name`` is a single path segment.

    Args:
        name: Entry name supplied by the client.

    Returns:
        The unchanged name.

    Raises:
        TraversalError: If the name is empty, a dot name, or contains a
            separator, drive prefix or NUL byte.
    """
    if not name or name in (".", ".."):
        msg = f"Invalid entry name: {name!r}"
        raise TraversalError(msg)
    if "/" in name or "\\" in name or "\x00" in name:
        msg = f"Entry name must be a single path segment: {name!r}"
        raise TraversalError(msg)
    if _DRIVE_RE.match(name):
        msg = f"Entry name must not include a drive prefix: {name!r}"
        raise TraversalError(msg)
    return name


class PathSandbox:
    """Resolves untrusted paths against a RootContext.

    Resolution is a pure function of the root and the input plus the
    current filesystem state (symlinks are followed). It never creates
    or modifies anything.

    Args:
        context: The immutable root context.
    """

    def __init__(self, context: RootContext) -> None:
        self._context = context

    @property
    def root(self) -> ResolvedPath:
        """The root directory itself, as a resolved path."""
        return ResolvedPath(self._context.root)

    def resolve(self, relative: str) -> ResolvedPath:
        """Resolve a client relative path to a path inside the root.

        Args:
            relative: Path relative to the root.

        Returns:
            Canonical absolute path equal to or beneath the root.

        Raises:
            TraversalError: If the path is malformed or escapes the root.
        """
        normalized = normalize_relative(relative)
        if not normalized:
            return self.root
        joined = self._context.root.joinpath(*normalized.split("/"))
        return self._contain(joined, relative)

    def resolve_child(self, base: ResolvedPath, name: str) -> ResolvedPath:
        """Resolve a single entry name within an already resolved base.

        Args:
            base: Directory previously returned by this sandbox.
            name: Single-segment entry name.

        The entry itself is not dereferenced in the returned path, so an
        operation on a symlink acts on the link rather than its target.
        The link target is still required to stay within the root.

        Returns:
            Absolute path of the entry inside ``base``.

        Raises:
            TraversalError: If the name is not a single segment or the
                entry resolves outside the root (e.g. via a symlink).
        """
        validate_name(name)
        entry = Path(base) / name
        self._contain(entry, name)
        return ResolvedPath(entry)

    def is_within(self, path: str | os.PathLike[str]) -> bool:
        """Check whether a canonical path is the root or beneath it.

        The comparison is component-wise and uses ``os.path.normcase`` so
        it follows the host filesystem's case sensitivity.
        """
        root = self._context.normcased
        candidate = os.path.normcase(os.fspath(path))
        try:
            return os.path.commonpath([root, candidate]) == root
        except ValueError:
            # Different drives on Windows
            return False

    def to_relative(self, path: ResolvedPath) -> str:
        """Express a resolved path relative to the root with ``/`` separators.

        Returns:
            Root-relative path, empty string for the root itself.
        """
        rel = Path(path).relative_to(self._context.root)
        posix = PurePosixPath(*rel.parts).as_posix()
        return "" if posix == "." else posix

    def _contain(self, joined: Path, original: str) -> ResolvedPath:
        """Canonicalize ``joined`` and reject it unless it stays in the root."""
        canonical = Path(os.path.realpath(joined))
        if not self.is_within(canonical):
            logger.warning("Rejected path escaping root: %r -> %s", original, canonical)
            msg = f"Path escapes the root directory: {original!r}"
            raise TraversalError(msg)
        return ResolvedPath(canonical)
