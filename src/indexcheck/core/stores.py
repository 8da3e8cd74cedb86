from __future__ import annotations

import threading
from typing import Dict, Generic, Hashable, Iterator, Optional, Tuple, TypeVar

from .labels import IndexLabel, LabelSequence

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class _InsertOnceStore(Generic[K, V]):
    """Mapping whose entries are set by the first claim and never overwritten."""

    def __init__(self) -> None:
        self._entries: Dict[K, V] = {}
        self._lock = threading.Lock()

    def claim(self, key: K, value: V) -> Tuple[V, bool]:
        """Return ``(recorded, inserted)``; ``value`` is stored only if ``key`` is new."""
        with self._lock:
            existing = self._entries.get(key)
            if existing is None:
                self._entries[key] = value
                return value, True
            return existing, False

    def get(self, key: K) -> Optional[V]:
        return self._entries.get(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self) -> Dict[K, V]:
        with self._lock:
            return dict(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return iter(self.snapshot())


class LabelStore(_InsertOnceStore[str, LabelSequence]):
    """First-seen label sequence per tensor name."""


class SizeStore(_InsertOnceStore[IndexLabel, int]):
    """First-seen extent per index label."""
