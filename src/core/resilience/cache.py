"""Cache LRU acotado con TTL por entrada.

Reglas:
- La expiración solo se comprueba al leer (sin barrido proactivo): una entrada
  caducada ocupa sitio hasta que se lee o la desaloja la presión LRU.
- El orden del `OrderedDict` es el orden de uso: el más reciente al final.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[K, V]):
    def __init__(
        self,
        max_size: int = 100,
        ttl_seconds: float = 3600.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = int(max_size)
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._data: OrderedDict[K, CacheEntry[V]] = OrderedDict()

    def get(self, key: K) -> V | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._data[key]
            return None
        self._data.move_to_end(key, last=True)
        return entry.value

    def set(self, key: K, value: V, ttl_seconds: float | None = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._data.pop(key, None)
        while len(self._data) >= self.max_size:
            self._data.popitem(last=False)
        self._data[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def has(self, key: K) -> bool:
        """Como `get`, pero sin tocar el orden LRU; vale también para valores `None`."""

        entry = self._data.get(key)
        if entry is None:
            return False
        if self._clock() > entry.expires_at:
            del self._data[key]
            return False
        return True

    def delete(self, key: K) -> bool:
        return self._data.pop(key, None) is not None

    def clear(self) -> None:
        self._data.clear()

    @property
    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return self.has(key)  # type: ignore[arg-type]

    def stats(self) -> dict[str, Any]:
        now = self._clock()
        expired = sum(1 for entry in self._data.values() if now > entry.expires_at)
        return {
            "size": len(self._data),
            "max_size": self.max_size,
            "expired": expired,
            "ttl_seconds": self.ttl_seconds,
        }
