"""Cooperative cancellation for long-running operations."""

import threading

from sandfm.core.errors import OperationCancelledError


class CancelToken:
    """Flag a transport sets when the client abandons a request.

    Engine loops call :meth:`raise_if_cancelled` between items, files
    and directories, which bounds the work done after cancellation.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self._event.is_set():
            msg = "Operation cancelled"
            raise OperationCancelledError(msg)


def check_cancelled(token: CancelToken | None) -> None:
    """Raise if ``token`` is set; a missing token never cancels."""
    if token is not None:
        token.raise_if_cancelled()
