"""
Unit tests for the sized buffer pool.
"""

import threading

import pytest

from inkscape_proxy.bufferpool import SizedBufferPool


class TestSizedBufferPool:
    def test_get_allocates_on_miss(self):
        pool = SizedBufferPool(2, 64)
        buf = pool.get()
        assert isinstance(buf, bytearray)
        assert len(buf) == 0
        assert len(pool) == 0

    def test_put_recycles_cleared_buffer(self):
        pool = SizedBufferPool(2, 64)
        buf = pool.get()
        buf.extend(b"file-open:a.svg")
        pool.put(buf)
        again = pool.get()
        assert again is buf
        assert again == b""

    def test_free_list_is_bounded(self):
        pool = SizedBufferPool(2, 64)
        for _ in range(5):
            pool.put(bytearray())
        assert len(pool) == 2

    def test_oversized_buffer_is_replaced(self):
        pool = SizedBufferPool(2, 8)
        big = bytearray(b"x" * 32)
        pool.put(big)
        assert len(pool) == 1
        assert pool.get() is not big

    def test_borrow_returns_on_error(self):
        pool = SizedBufferPool(1, 64)
        with pytest.raises(RuntimeError):
            with pool.borrow() as buf:
                buf.extend(b"partial")
                raise RuntimeError("boom")
        assert len(pool) == 1
        assert pool.get() == b""

    def test_concurrent_checkout(self):
        pool = SizedBufferPool(4, 1024)
        errors = []

        def worker():
            try:
                for _ in range(200):
                    with pool.borrow() as buf:
                        assert buf == b""
                        buf.extend(b"abc")
            except AssertionError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(pool) <= 4

    def test_invalid_sizes(self):
        with pytest.raises(ValueError):
            SizedBufferPool(0, 10)
        with pytest.raises(ValueError):
            SizedBufferPool(1, 0)
