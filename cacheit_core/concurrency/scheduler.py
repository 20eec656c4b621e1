"""CacheIt Expiry Scheduler - One-Shot Deadline Timers.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Longest single sleep; far deadlines are re-checked at this interval
MAX_WAIT_SECONDS = 3600.0


class ScheduledExpiry:
    """Handle for a scheduled one-shot callback.

    Attributes:
        deadline: Monotonic time the callback is due
        callback: Function to run
    """

    __slots__ = ("deadline", "callback", "_cancelled", "_fired")

    def __init__(self, deadline: float, callback: Callable[[], None]):
        self.deadline = deadline
        self.callback: Optional[Callable[[], None]] = callback
        self._cancelled = False
        self._fired = False

    def cancel(self) -> None:
        """Prevent the callback from running if it has not started."""
        self._cancelled = True
        self.callback = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def remaining(self) -> float:
        """Seconds until the deadline."""
        return max(0.0, self.deadline - time.monotonic())

    def __repr__(self) -> str:
        return (
            f"ScheduledExpiry(remaining={self.remaining:.3f}s, "
            f"cancelled={self._cancelled}, fired={self._fired})"
        )


class ExpiryScheduler:
    """Monotonic-deadline heap serviced by one background worker.

    Callbacks run on the worker thread, outside the scheduler's own lock,
    so they are free to take any other lock. A callback that raises is
    logged and does not stop the worker.

    The worker is started lazily on the first ``schedule`` call and is a
    daemon thread, so an unclosed scheduler never keeps the process alive.

    Example:
        scheduler = ExpiryScheduler(name="transient")
        handle = scheduler.schedule(30.0, entry.expire)
        handle.cancel()
        scheduler.stop()
    """

    def __init__(self, name: str = "cacheit"):
        """Initialize scheduler.

        Args:
            name: Name used for the worker thread
        """
        self.name = name
        self._heap: List[Tuple[float, int, ScheduledExpiry]] = []
        self._counter = itertools.count()
        self._cond = threading.Condition()
        self._worker: Optional[threading.Thread] = None
        self._stopped = False

    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledExpiry:
        """Run a callback once after a delay.

        Args:
            delay: Seconds from now; negative values run as soon as possible
            callback: Function to run

        Returns:
            Cancellable handle
        """
        handle = ScheduledExpiry(time.monotonic() + max(delay, 0.0), callback)

        with self._cond:
            if self._stopped:
                logger.debug(f"Scheduler {self.name} is stopped; dropping timer")
                handle.cancel()
                return handle

            heapq.heappush(self._heap, (handle.deadline, next(self._counter), handle))
            self._ensure_worker()
            self._cond.notify()

        return handle

    def pending(self) -> int:
        """Get number of timers not yet fired or cancelled."""
        with self._cond:
            return sum(1 for _, _, h in self._heap if not h.cancelled)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the worker and drop all pending timers.

        Args:
            timeout: Seconds to wait for the worker to exit
        """
        with self._cond:
            self._stopped = True
            for _, _, handle in self._heap:
                handle.cancel()
            self._heap.clear()
            self._cond.notify_all()
            worker = self._worker
            self._worker = None

        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout=timeout)

    @property
    def is_running(self) -> bool:
        """Check if the worker thread is alive."""
        return self._worker is not None and self._worker.is_alive()

    def _ensure_worker(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(
            target=self._run,
            daemon=True,
            name=f"CacheIt-{self.name}-expiry",
        )
        self._worker.start()

    def _next_due(self) -> Optional[Callable[[], None]]:
        """Wait for and pop the next due callback. Returns None once stopped."""
        with self._cond:
            while not self._stopped:
                while self._heap and self._heap[0][2].cancelled:
                    heapq.heappop(self._heap)

                if not self._heap:
                    self._cond.wait()
                    continue

                wait = self._heap[0][0] - time.monotonic()
                if wait <= 0:
                    _, _, handle = heapq.heappop(self._heap)
                    callback = handle.callback
                    if callback is None:
                        continue
                    handle._fired = True
                    return callback

                self._cond.wait(min(wait, MAX_WAIT_SECONDS))
            return None

    def _run(self) -> None:
        """Worker loop."""
        while True:
            callback = self._next_due()
            if callback is None:
                return
            try:
                callback()
            except Exception as e:
                logger.error(f"Expiry callback failed in scheduler {self.name}: {e}")

    def __repr__(self) -> str:
        return f"ExpiryScheduler(name={self.name!r}, pending={len(self._heap)})"


__all__ = ["ExpiryScheduler", "ScheduledExpiry"]
