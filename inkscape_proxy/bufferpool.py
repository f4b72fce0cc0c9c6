"""Bounded pool of reusable byte buffers for command serialization."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager


class SizedBufferPool:
    """Free list of at most ``size`` buffers, each kept under ``alloc`` bytes.

    ``get`` never blocks: an empty free list allocates a new buffer.
    ``put`` drops buffers once the free list is full, and replaces buffers
    that grew past ``alloc`` with a fresh one.
    """

    def __init__(self, size: int, alloc: int) -> None:
        if size < 1 or alloc < 1:
            raise ValueError("pool size and buffer allocation must be positive")
        self.size = size
        self.alloc = alloc
        self._free: deque[bytearray] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._free)

    def get(self) -> bytearray:
        with self._lock:
            if self._free:
                return self._free.pop()
        return bytearray()

    def put(self, buf: bytearray) -> None:
        if len(buf) > self.alloc:
            buf = bytearray()
        else:
            buf.clear()
        with self._lock:
            if len(self._free) < self.size:
                self._free.append(buf)

    @contextmanager
    def borrow(self) -> Iterator[bytearray]:
        """Check a buffer out for the duration of the ``with`` block."""
        buf = self.get()
        try:
            yield buf
        finally:
            self.put(buf)
