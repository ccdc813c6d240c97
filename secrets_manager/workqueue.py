# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Deduplicating work queue with delayed and rate-limited re-adds.

Guarantees shared by every queue in this module:

- a key is handed to at most one worker at a time;
- adding a key that is already pending is a no-op;
- adding a key while it is being processed marks it dirty, and it is
  re-queued exactly once when the worker calls :meth:`WorkQueue.done`.
"""

import heapq
import itertools
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Hashable


@dataclass
class RetryConfig:
    """Configuration for per-key exponential backoff.

    Attributes:
        base_delay_ms: Delay before the first retry (default: 5)
        backoff_factor: Exponential backoff multiplier (default: 2.0)
        max_delay_ms: Maximum delay cap in milliseconds (default: 1000000)
    """
    base_delay_ms: int = 5
    backoff_factor: float = 2.0
    max_delay_ms: int = 1_000_000


class ItemExponentialFailureRateLimiter:
    """Per-key exponential backoff without jitter.

    Each call to :meth:`when` returns ``base * factor ** failures`` (capped)
    and then counts one more failure, so successive delays for a key never
    decrease until :meth:`forget` is called.
    """

    def __init__(self, config: RetryConfig | None = None):
        self.config = config or RetryConfig()
        self._failures: dict[Hashable, int] = {}
        self._lock = threading.Lock()

    def when(self, key: Hashable) -> float:
        """Return the delay in seconds before ``key`` should be retried."""
        with self._lock:
            failures = self._failures.get(key, 0)
            self._failures[key] = failures + 1

        max_delay_ms = self.config.max_delay_ms
        try:
            delay_ms = self.config.base_delay_ms * (self.config.backoff_factor ** failures)
        except OverflowError:
            delay_ms = max_delay_ms
        return min(delay_ms, max_delay_ms) / 1000.0

    def num_requeues(self, key: Hashable) -> int:
        with self._lock:
            return self._failures.get(key, 0)

    def forget(self, key: Hashable) -> None:
        with self._lock:
            self._failures.pop(key, None)


class WorkQueue:
    """FIFO of keys with dedup and per-key exclusivity."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._queue: deque = deque()
        self._dirty: set = set()
        self._processing: set = set()
        self._shutting_down = False

    def add(self, key: Hashable) -> None:
        """Mark ``key`` as needing processing."""
        with self._cond:
            if self._shutting_down or key in self._dirty:
                return
            self._dirty.add(key)
            if key in self._processing:
                return
            self._queue.append(key)
            self._cond.notify()

    def get(self) -> tuple[Hashable | None, bool]:
        """Block until a key is available.

        Returns:
            ``(key, False)`` for work, or ``(None, True)`` once the queue is
            shut down and empty
        """
        with self._cond:
            while not self._queue and not self._shutting_down:
                self._cond.wait()
            if not self._queue:
                return None, True

            key = self._queue.popleft()
            self._processing.add(key)
            self._dirty.discard(key)
            return key, False

    def done(self, key: Hashable) -> None:
        """Mark processing of ``key`` finished, re-queueing it if it was added meanwhile."""
        with self._cond:
            self._processing.discard(key)
            if key in self._dirty:
                self._queue.append(key)
                self._cond.notify()

    def shut_down(self) -> None:
        """Stop accepting keys and wake every blocked :meth:`get`."""
        with self._cond:
            self._shutting_down = True
            self._cond.notify_all()

    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)


class DelayingQueue(WorkQueue):
    """WorkQueue that can add keys after a delay.

    Waiting keys live in a min-heap ordered by ready time and are moved onto
    the queue by a single background thread. Re-adding a key that is already
    waiting keeps the earlier ready time.
    """

    def __init__(self, clock=time.monotonic):
        super().__init__()
        self._clock = clock
        self._waiting_cond = threading.Condition(threading.Lock())
        self._waiting: list = []
        self._ready_at: dict[Hashable, float] = {}
        self._sequence = itertools.count()
        self._stopped = False
        self._waiting_thread = threading.Thread(
            target=self._waiting_loop, name="delaying-queue", daemon=True
        )
        self._waiting_thread.start()

    def add_after(self, key: Hashable, delay_seconds: float) -> None:
        """Add ``key`` once ``delay_seconds`` have elapsed."""
        if self.shutting_down():
            return
        if delay_seconds <= 0:
            self.add(key)
            return

        ready_at = self._clock() + delay_seconds
        with self._waiting_cond:
            current = self._ready_at.get(key)
            if current is not None and current <= ready_at:
                return
            self._ready_at[key] = ready_at
            heapq.heappush(self._waiting, (ready_at, next(self._sequence), key))
            self._waiting_cond.notify()

    def shut_down(self) -> None:
        """Stop accepting keys, drop waiting keys and join the timer thread."""
        super().shut_down()
        with self._waiting_cond:
            self._stopped = True
            self._waiting_cond.notify_all()
        if threading.current_thread() is not self._waiting_thread:
            self._waiting_thread.join()

    def _waiting_loop(self) -> None:
        while True:
            ready = []
            with self._waiting_cond:
                if self._stopped:
                    return
                now = self._clock()
                while self._waiting and self._waiting[0][0] <= now:
                    ready_at, _, key = heapq.heappop(self._waiting)
                    # Superseded entries left behind by an earlier re-add
                    if self._ready_at.get(key) != ready_at:
                        continue
                    del self._ready_at[key]
                    ready.append(key)

                if not ready:
                    timeout = self._waiting[0][0] - now if self._waiting else None
                    self._waiting_cond.wait(timeout)
                    continue

            for key in ready:
                self.add(key)


class RateLimitingQueue(DelayingQueue):
    """DelayingQueue whose re-add delay comes from a per-key rate limiter."""

    def __init__(self, rate_limiter: ItemExponentialFailureRateLimiter | None = None, **kwargs):
        super().__init__(**kwargs)
        self.rate_limiter = rate_limiter or ItemExponentialFailureRateLimiter()

    def add_rate_limited(self, key: Hashable) -> None:
        """Re-add ``key`` after its next backoff delay."""
        self.add_after(key, self.rate_limiter.when(key))

    def forget(self, key: Hashable) -> None:
        """Clear the retry history of ``key``."""
        self.rate_limiter.forget(key)

    def num_requeues(self, key: Hashable) -> int:
        return self.rate_limiter.num_requeues(key)
