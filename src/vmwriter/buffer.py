"""In-memory buffer of series waiting to be sent."""

from __future__ import annotations

import threading

from .series import Series


class SeriesBuffer:
    """Ordered, append-only collection of :class:`Series`.

    All access goes through a lock so ``add`` may be called from other
    threads while a send is in flight. A send works on a :meth:`snapshot`
    and afterwards passes that snapshot to :meth:`discard`, which removes
    exactly those objects; anything appended in the meantime stays, and an
    overlapping send cannot drop a series it never transmitted.
    """

    def __init__(self) -> None:
        self._items: list[Series] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def append(self, series: Series) -> None:
        with self._lock:
            self._items.append(series)

    def snapshot(self) -> list[Series]:
        """Return a copy of the buffered series in insertion order."""
        with self._lock:
            return list(self._items)

    def discard(self, sent: list[Series]) -> None:
        """Drop the series in *sent*, matched by identity."""
        sent_ids = {id(s) for s in sent}
        with self._lock:
            self._items = [s for s in self._items if id(s) not in sent_ids]
