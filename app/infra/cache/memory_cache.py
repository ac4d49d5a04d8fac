# app/infra/cache/memory_cache.py
from __future__ import annotations

import os
import threading
from collections import OrderedDict
from typing import Callable, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_CAPACITY = int(os.getenv("CACHE_CAPACITY", "1000"))


class BoundedCache(Generic[K, V]):
    """
    Memo in-process dengan kapasitas tetap.
    - entry tertua (urutan insert) dibuang saat penuh
    - hit TIDAK menggeser urutan; nilai yang sudah ada tidak pernah ditimpa,
      jadi lookup berulang selalu mengembalikan objek yang sama
    - satu lock per instance; tidak ada I/O di dalam lock
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._data: "OrderedDict[K, V]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            return self._data.get(key)

    def __contains__(self, key: K) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def put_if_absent(self, key: K, value: V) -> V:
        """Simpan jika belum ada; kembalikan nilai yang akhirnya tersimpan."""
        with self._lock:
            existing = self._data.get(key)
            if existing is not None:
                return existing
            while len(self._data) >= self.capacity:
                self._data.popitem(last=False)
            self._data[key] = value
            return value

    def get_or_create(self, key: K, factory: Callable[[], V]) -> V:
        hit = self.get(key)
        if hit is not None:
            return hit
        # factory dipanggil di luar lock; kalau balapan, pemenang pertama yang dipakai
        return self.put_if_absent(key, factory())

    def discard(self, key: K) -> None:
        with self._lock:
            self._data.pop(key, None)
