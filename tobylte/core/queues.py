"""
Thread-safe FIFO queues shared between the I/O pump and the state machine.
"""

import threading
from collections import deque
from typing import Deque, Optional


class LineQueue:
    """
    Unbounded FIFO of strings guarded by a mutex.

    The transmit queue holds commands waiting for the pump; the receive
    queue holds framed lines waiting for the correlator.
    """

    def __init__(self, name: str = "queue") -> None:
        self.name = name
        self._items: Deque[str] = deque()
        self._lock = threading.Lock()

    def put(self, item: str) -> None:
        """Append an item at the back."""
        with self._lock:
            self._items.append(item)

    def put_front(self, item: str) -> None:
        """Return an item to the front, ahead of everything queued."""
        with self._lock:
            self._items.appendleft(item)

    def pop(self) -> Optional[str]:
        """
        Remove and return the oldest item.

        Returns:
            Oldest item or None if the queue is empty
        """
        with self._lock:
            if self._items:
                return self._items.popleft()
            return None

    def drain(self) -> list[str]:
        """
        Atomically remove every queued item.

        Returns:
            Items oldest first
        """
        with self._lock:
            items = list(self._items)
            self._items.clear()
            return items

    def clear(self) -> int:
        """
        Drop every queued item.

        Returns:
            Number of items dropped
        """
        with self._lock:
            count = len(self._items)
            self._items.clear()
            return count

    def snapshot(self) -> list[str]:
        """Copy of the queued items without removing them."""
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __repr__(self) -> str:
        return f"<LineQueue {self.name} size={len(self)}>"
