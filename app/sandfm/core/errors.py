"""Error kinds raised by the sandboxed filesystem engine.

Single-target operations raise these exceptions directly. Batch
operations catch them per item and report the ``kind`` in an
``ItemResult`` instead, so no exception crosses the item loop.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable classification of a failure.

    Attributes:
        TRAVERSAL: A path resolved outside the root directory.
        NOT_FOUND: The target does not exist.
        ALREADY_EXISTS: The destination is occupied and may not be replaced.
        TYPE_MISMATCH: The asserted item kind does not match the entry on disk.
        INVALID_TARGET: Source and destination overlap (self or descendant).
        IO_FAILURE: Permission, disk or other OS-level failure.
        CANCELLED: The caller cancelled the operation.
    """

    TRAVERSAL = "traversal"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    TYPE_MISMATCH = "type_mismatch"
    INVALID_TARGET = "invalid_target"
    IO_FAILURE = "io_failure"
    CANCELLED = "cancelled"


class FileManagerError(Exception):
    """Base exception for all engine errors."""

    kind: ErrorKind = ErrorKind.IO_FAILURE


class TraversalError(FileManagerError):
    """Raised when a path escapes the root or a name is not a single segment."""

    kind = ErrorKind.TRAVERSAL


class NotFoundError(FileManagerError):
    """Raised when a target file or folder does not exist."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(FileManagerError):
    """Raised when a destination is occupied and overwriting is not allowed."""

    kind = ErrorKind.ALREADY_EXISTS


class TypeMismatchError(FileManagerError):
    """Raised when an item's asserted kind differs from the entry on disk."""

    kind = ErrorKind.TYPE_MISMATCH


class InvalidTargetError(FileManagerError):
    """Raised when a destination is the source itself or lies inside it."""

    kind = ErrorKind.INVALID_TARGET


class IOFailure(FileManagerError):
    """Raised when the underlying filesystem call fails."""

    kind = ErrorKind.IO_FAILURE


class OperationCancelledError(FileManagerError):
    """Raised between steps once the caller has requested cancellation."""

    kind = ErrorKind.CANCELLED
