"""Per-invocation exclusion for vault entry points."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from vault_engine.core.domain.errors import ReentrantCallError


class ReentrancyGuard:
    """Serializes calls across threads and rejects nested calls.

    A second thread entering while a call is running blocks until the first
    call finishes. The same thread entering again (for example from a pool
    callback made in the middle of a withdrawal) is rejected immediately,
    so a nested call can never observe or mutate half-applied state.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: int | None = None

    @property
    def entered(self) -> bool:
        return self._owner is not None

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        ident = threading.get_ident()
        if self._owner == ident:
            raise ReentrantCallError(f"reentrant call into {operation}", operation=operation)

        with self._lock:
            self._owner = ident
            try:
                yield
            finally:
                self._owner = None
