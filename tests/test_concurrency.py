"""Tests for the read/write lock and expiry scheduler.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import threading
import time

import pytest

from cacheit_core.concurrency.lock import ReadWriteLock
from cacheit_core.concurrency.scheduler import ExpiryScheduler


class TestReadWriteLock:
    """Tests for ReadWriteLock."""

    def test_readers_share(self):
        """Test two readers can hold the lock at once."""
        lock = ReadWriteLock()
        inside = threading.Barrier(2, timeout=2.0)
        errors = []

        def reader():
            try:
                with lock.read():
                    inside.wait()
            except threading.BrokenBarrierError as e:
                errors.append(e)

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors

    def test_writer_excludes_readers(self):
        """Test a reader waits while a writer holds the lock."""
        lock = ReadWriteLock()
        events = []

        lock.acquire_write()

        def reader():
            with lock.read():
                events.append("read")

        t = threading.Thread(target=reader)
        t.start()
        time.sleep(0.1)
        events.append("write-done")
        lock.release_write()
        t.join(timeout=2.0)

        assert events == ["write-done", "read"]

    def test_writer_reentrant(self):
        """Test the writing thread can re-enter both sides."""
        lock = ReadWriteLock()

        with lock.write():
            with lock.write():
                with lock.read():
                    assert lock.is_write_locked
            assert lock.is_write_locked
        assert not lock.is_write_locked

    def test_release_by_other_thread(self):
        """Test releasing a write lock not held raises."""
        lock = ReadWriteLock()
        with pytest.raises(RuntimeError):
            lock.release_write()

    def test_counter_under_contention(self):
        """Test writes are mutually exclusive."""
        lock = ReadWriteLock()
        counter = [0]

        def worker():
            for _ in range(500):
                with lock.write():
                    value = counter[0]
                    counter[0] = value + 1

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counter[0] == 4000


class TestExpiryScheduler:
    """Tests for ExpiryScheduler."""

    def test_fires_once(self):
        """Test a timer fires after its delay."""
        scheduler = ExpiryScheduler(name="test")
        fired = threading.Event()
        calls = []

        def callback():
            calls.append(time.monotonic())
            fired.set()

        start = time.monotonic()
        handle = scheduler.schedule(0.1, callback)

        assert fired.wait(2.0)
        assert calls[0] - start >= 0.09
        assert handle.fired
        time.sleep(0.1)
        assert len(calls) == 1
        scheduler.stop()

    def test_order_by_deadline(self):
        """Test timers fire in deadline order, not scheduling order."""
        scheduler = ExpiryScheduler(name="test")
        order = []
        done = threading.Event()

        scheduler.schedule(0.2, lambda: (order.append("late"), done.set()))
        scheduler.schedule(0.05, lambda: order.append("early"))

        assert done.wait(2.0)
        assert order == ["early", "late"]
        scheduler.stop()

    def test_cancel(self):
        """Test a cancelled timer never fires."""
        scheduler = ExpiryScheduler(name="test")
        calls = []

        handle = scheduler.schedule(0.05, lambda: calls.append(1))
        handle.cancel()
        time.sleep(0.2)

        assert calls == []
        assert handle.cancelled
        assert scheduler.pending() == 0
        scheduler.stop()

    def test_negative_delay_runs_immediately(self):
        """Test past deadlines run as soon as possible."""
        scheduler = ExpiryScheduler(name="test")
        fired = threading.Event()

        scheduler.schedule(-5, fired.set)

        assert fired.wait(1.0)
        scheduler.stop()

    def test_failing_callback_keeps_worker(self):
        """Test an exception in one callback does not stop later ones."""
        scheduler = ExpiryScheduler(name="test")
        fired = threading.Event()

        def boom():
            raise RuntimeError("boom")

        scheduler.schedule(0.01, boom)
        scheduler.schedule(0.05, fired.set)

        assert fired.wait(2.0)
        scheduler.stop()

    def test_stop_drops_pending(self):
        """Test stop cancels pending timers and refuses new ones."""
        scheduler = ExpiryScheduler(name="test")
        calls = []

        handle = scheduler.schedule(0.1, lambda: calls.append(1))
        scheduler.stop()
        late = scheduler.schedule(0.01, lambda: calls.append(2))
        time.sleep(0.2)

        assert calls == []
        assert handle.cancelled
        assert late.cancelled
        assert not scheduler.is_running


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
