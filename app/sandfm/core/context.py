"""Root directory context shared by every engine call."""

import os
from dataclasses import dataclass
from pathlib import Path

from sandfm.core.errors import NotFoundError


@dataclass(frozen=True, slots=True)
class RootContext:
    """Immutable holder of the canonical absolute root directory.

    Created once at startup with :meth:`create` and passed explicitly
    to the sandbox and every component built on it.

    Attributes:
        root: Canonical (symlink-free, absolute) root directory.
    """

    root: Path

    def __post_init__(self) -> None:
        """Validate the root after initialization."""
        if not self.root.is_absolute():
            msg = f"Root directory must be absolute: {self.root}"
            raise ValueError(msg)

    @classmethod
    def create(cls, path: str | os.PathLike[str]) -> "RootContext":
        """Canonicalize ``path`` and build a context for it.

        Args:
            path: Root directory, absolute or relative to the working directory.

        Returns:
            RootContext holding the canonical path.

        Raises:
            NotFoundError: If the path does not exist or is not a directory.
        """
        canonical = Path(os.path.realpath(os.fspath(path)))
        if not canonical.is_dir():
            msg = f"Root directory not found: {path}"
            raise NotFoundError(msg)
        return cls(root=canonical)

    @property
    def normcased(self) -> str:
        """Root as a string normalized for case-aware comparison."""
        return os.path.normcase(str(self.root))
