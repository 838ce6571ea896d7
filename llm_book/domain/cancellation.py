"""Caller-supplied cancellation signal."""

from __future__ import annotations

import threading
from typing import Optional

from .exceptions import OperationCancelled


class CancellationToken:
    """Thread-safe flag shared between the caller and a long-running operation."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled()


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """Raise OperationCancelled when *token* is set; ``None`` never cancels."""

    if token is not None:
        token.raise_if_cancelled()
