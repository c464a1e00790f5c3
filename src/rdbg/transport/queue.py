"""Bounded outbound message queue with a drop-oldest policy.

Design Patterns:
- Multi-producer, single-consumer: any thread may put, only the delivery
  worker gets, requeues and marks entries done
- One condition variable guards all state; every producer-side operation is
  O(1) under the lock and never waits for the consumer
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Optional

from ..models.message import Message


class DroppedCounter:
    """Thread-safe, monotonically increasing count of discarded messages."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def increment(self, amount: int = 1) -> int:
        """Add amount and return the new total."""
        if amount < 0:
            raise ValueError(f"amount must be >= 0, got {amount}")
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


# Process-wide counter shared by every queue that isn't given its own
DROPPED = DroppedCounter()


@dataclass
class PendingMessage:
    """A queued message plus the number of failed send attempts it has had."""

    message: Message
    failed_attempts: int = 0


class OutboundQueue:
    """Bounded FIFO of pending messages owned by one transport.

    Send order equals put order for every message that gets sent. When the
    queue is full, ``put`` evicts the oldest pending message instead of
    blocking or failing.

    Example:
        >>> queue = OutboundQueue(capacity=2, counter=DroppedCounter())
        >>> queue.put(m1), queue.put(m2), queue.put(m3)
        (False, False, True)
        >>> queue.get(timeout=0).message is m2
        True
    """

    def __init__(self, capacity: int, counter: Optional[DroppedCounter] = None) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be > 0, got {capacity}")

        self.capacity = capacity
        self.counter = counter if counter is not None else DROPPED
        self._entries: deque[PendingMessage] = deque()
        self._cond = threading.Condition(threading.Lock())
        # Entries handed to the consumer and not yet marked done
        self._in_flight = 0

    def put(self, message: Message) -> bool:
        """Append a message, evicting the oldest pending one if full.

        Never blocks on the consumer.

        Returns:
            True if a message was evicted to make room
        """
        with self._cond:
            evicted = len(self._entries) >= self.capacity
            if evicted:
                self._entries.popleft()
            self._entries.append(PendingMessage(message))
            self._cond.notify_all()

        if evicted:
            self.counter.increment()
        return evicted

    def get(self, timeout: Optional[float] = None) -> Optional[PendingMessage]:
        """Remove and return the oldest pending entry.

        The caller must later call ``task_done()`` or ``requeue()`` for it.

        Args:
            timeout: Seconds to wait for an entry; None waits forever

        Returns:
            The entry, or None if the timeout elapsed with the queue empty
        """
        with self._cond:
            if not self._cond.wait_for(lambda: bool(self._entries), timeout):
                return None
            self._in_flight += 1
            return self._entries.popleft()

    def requeue(self, entry: PendingMessage) -> bool:
        """Put an in-flight entry back at the front of the queue.

        If producers filled the queue in the meantime, the requeued entry is
        the oldest one and is dropped instead.

        Returns:
            True if the entry was requeued, False if it was dropped
        """
        with self._cond:
            self._in_flight -= 1
            requeued = len(self._entries) < self.capacity
            if requeued:
                self._entries.appendleft(entry)
            self._cond.notify_all()

        if not requeued:
            self.counter.increment()
        return requeued

    def task_done(self, dropped: bool = False) -> None:
        """Finish an entry returned by ``get``.

        Args:
            dropped: The entry was discarded rather than sent
        """
        with self._cond:
            if self._in_flight <= 0:
                raise ValueError("task_done() called more times than get()")
            self._in_flight -= 1
            self._cond.notify_all()

        if dropped:
            self.counter.increment()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait until nothing is pending or in flight.

        Returns:
            True if the queue became idle, False on timeout
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._entries or self._in_flight:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    def drain(self) -> int:
        """Discard every pending entry and count them as dropped.

        Returns:
            Number of entries discarded
        """
        with self._cond:
            count = len(self._entries)
            self._entries.clear()
            self._cond.notify_all()

        if count:
            self.counter.increment(count)
        return count

    def wake(self) -> None:
        """Wake any thread blocked in ``get`` or ``join``."""
        with self._cond:
            self._cond.notify_all()

    def __len__(self) -> int:
        with self._cond:
            return len(self._entries)

    @property
    def in_flight(self) -> int:
        with self._cond:
            return self._in_flight
