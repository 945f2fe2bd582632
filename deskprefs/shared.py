"""Lock-guarded documents shared between copies of the preferences store."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Generic, Iterator, Optional, Tuple, TypeVar

from .parse import DocumentHolder

T = TypeVar("T")
R = TypeVar("R")


class ReentrancyError(RuntimeError):
    """Raised when a thread tries to lock a document it already holds."""


class SharedDocument(Generic[T]):
    """Owns a :class:`DocumentHolder` and the only lock allowed to touch it.

    Access is scoped: :meth:`read` and :meth:`edit` hold the lock for the
    duration of the callback and nothing else.  The lock is not reentrant;
    trying to take it again from the owning thread raises
    :class:`ReentrancyError` instead of deadlocking.
    """

    def __init__(self, name: str, holder: DocumentHolder[T]) -> None:
        self._name = name
        self._holder = holder
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self._generation = 0
        self._save_lock = threading.Lock()
        self._saved_generation = -1

    @property
    def name(self) -> str:
        return self._name

    @contextmanager
    def _locked(self) -> Iterator[DocumentHolder[T]]:
        me = threading.get_ident()
        if self._owner == me:
            raise ReentrancyError(f"{self._name} is not reentrant")
        with self._lock:
            self._owner = me
            try:
                yield self._holder
            finally:
                self._owner = None

    def read(self, fun: Callable[[T], R]) -> R:
        with self._locked() as holder:
            return fun(holder.value)

    def edit(self, fun: Callable[[DocumentHolder[T]], R]) -> Tuple[R, int]:
        """Run ``fun`` under the lock.

        Returns ``fun``'s result and a generation number that orders it
        against every other edit of this document, for use with :meth:`save`.
        """

        with self._locked() as holder:
            result = fun(holder)
            self._generation += 1
            return result, self._generation

    def save(self, generation: int, writer: Callable[[], None]) -> bool:
        """Call ``writer`` unless a newer snapshot was already saved."""

        with self._save_lock:
            if generation < self._saved_generation:
                return False
            writer()
            self._saved_generation = generation
            return True


__all__ = ["ReentrancyError", "SharedDocument"]
