# statequeue/runtime/rendezvous.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import threading
from typing import Any, Optional

from statequeue.core.errors import RendezvousTimeoutError


class Rendezvous:
    """
    Hand-off between a caller that fired a trigger and the dispatcher that
    processes it.

    The dispatcher publishes the result (or the exception) of exactly one
    invocation and signals the handle. It then holds off the next queued
    invocation until the caller releases the handle, so the caller can read
    the outcome before any further state change happens.

    Usage::

        with Rendezvous() as handle:
            machine.fire("Pause", rendezvous=handle)
            result = handle.wait(timeout=1.0)
    """

    def __init__(self) -> None:
        self._completed = threading.Event()
        self._released = threading.Event()
        self._result: Any = None
        self._error: Optional[BaseException] = None
        self._sequence: Optional[int] = None

    @property
    def sequence(self) -> Optional[int]:
        """Sequence number of the invocation this handle is attached to."""
        return self._sequence

    @property
    def completed(self) -> bool:
        return self._completed.is_set()

    @property
    def released(self) -> bool:
        return self._released.is_set()

    def attach(self, sequence: int) -> None:
        self._sequence = sequence

    def set_result(self, result: Any) -> None:
        """Publish the outcome of the invocation and wake the caller."""
        self._result = result
        self._completed.set()

    def set_exception(self, error: BaseException) -> None:
        """Publish the failure of the invocation and wake the caller."""
        self._error = error
        self._completed.set()

    def wait(self, timeout: Optional[float] = None) -> Any:
        """
        Block until the dispatcher has processed the invocation.

        :param timeout: Seconds to wait, or None to wait indefinitely.
        :return: The value returned by the destination's entry action.
        :raises RendezvousTimeoutError: If the timeout elapses first.
        :raises Exception: The failure raised while processing the invocation.
        """
        if not self._completed.wait(timeout):
            raise RendezvousTimeoutError(f"Invocation {self._sequence} was not processed within {timeout} seconds")
        if self._error is not None:
            raise self._error
        return self._result

    def release(self) -> None:
        """Allow the dispatcher to move on to the next queued invocation."""
        self._released.set()

    def wait_released(self, timeout: Optional[float] = None) -> bool:
        return self._released.wait(timeout)

    def __enter__(self) -> "Rendezvous":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
