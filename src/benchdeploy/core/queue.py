#!/usr/bin/env python3
"""
Candidate queue for bench-deploy.

Holds the fixed set of configurations to benchmark. Workers take from it
concurrently; each configuration is handed to exactly one worker.
"""

import threading
from collections import deque
from typing import Deque, Iterable, Optional

from ..errors import QueueClosedError
from ..models.instance import InstanceConfig


class CandidateQueue:
    """Internally locked, single-pass FIFO of InstanceConfigs."""

    def __init__(self, configs: Optional[Iterable[InstanceConfig]] = None):
        self._items: Deque[InstanceConfig] = deque()
        self._closed = False
        self._lock = threading.Lock()
        for config in configs or ():
            self.enqueue(config)

    def enqueue(self, config: InstanceConfig) -> None:
        """
        Add one configuration.

        Raises:
            QueueClosedError: If the queue has been closed
        """
        with self._lock:
            if self._closed:
                raise QueueClosedError(f"Cannot enqueue {config}: queue is closed")
            self._items.append(config)

    def try_dequeue(self) -> Optional[InstanceConfig]:
        """Remove and return the next configuration, or None if empty. Never blocks."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def close(self) -> None:
        """Refuse further enqueues. Closing twice is a no-op."""
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def drain(self) -> list:
        """Remove and return everything still queued."""
        with self._lock:
            items = list(self._items)
            self._items.clear()
            return items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
