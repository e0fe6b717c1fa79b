# statequeue/runtime/invocation_queue.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Hashable, Optional, Tuple

if TYPE_CHECKING:
    from statequeue.runtime.rendezvous import Rendezvous


@dataclass(frozen=True)
class QueuedInvocation:
    """A fire request waiting for the dispatcher."""

    trigger: Hashable
    args: Tuple
    sequence: int
    rendezvous: Optional["Rendezvous"] = None


class _InvocationQueueLock:
    """
    Internal context manager ensuring thread-safe access to the invocation queue.
    """

    def __init__(self, lock: threading.Lock) -> None:
        self._lock = lock

    def __enter__(self) -> None:
        self._lock.acquire()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._lock.release()


class InvocationQueue:
    """
    FIFO queue of fire requests shared between any number of producers and a
    single consumer. Sequence numbers are assigned under the same lock as the
    append, so sequence order always equals queue order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._queue = deque()
        self._next_sequence = 1

    def enqueue(
        self,
        trigger: Hashable,
        args: Tuple = (),
        rendezvous: Optional["Rendezvous"] = None,
    ) -> QueuedInvocation:
        """
        Number and append a fire request.

        :param trigger: The trigger being fired.
        :param args: Positional fire arguments.
        :param rendezvous: Optional handle for fire-and-rendezvous callers.
        :return: The queued invocation, carrying its sequence number.
        """
        with _InvocationQueueLock(self._lock):
            invocation = QueuedInvocation(trigger, tuple(args), self._next_sequence, rendezvous)
            self._next_sequence += 1
            self._queue.append(invocation)
            return invocation

    def dequeue(self) -> Optional[QueuedInvocation]:
        """
        Remove and return the oldest invocation, or None if the queue is empty.
        """
        with _InvocationQueueLock(self._lock):
            if self._queue:
                return self._queue.popleft()
            return None

    def __len__(self) -> int:
        with _InvocationQueueLock(self._lock):
            return len(self._queue)
