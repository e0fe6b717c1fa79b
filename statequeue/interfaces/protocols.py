# statequeue/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Hashable, Protocol, runtime_checkable

from statequeue.core.transitions import Transition
from statequeue.interfaces.types import TriggerRejected


@runtime_checkable
class StateStore(Protocol):
    """
    Capability through which the machine reads and writes the current state.

    Methods:
        read(): Returns the current state value.
        write(state): Replaces the current state value.

    Runtime Invariants:
    - The store is the single source of truth for the current state; the
      machine keeps no copy of its own.
    - write() is only called from the dispatcher's worker thread.

    Error Handling:
    - Exceptions raised by read() or write() are treated as fatal dispatch
      failures.
    """

    def read(self) -> Hashable:
        """Return the current state."""
        ...

    def write(self, state: Hashable) -> None:
        """Store a new current state."""
        ...


@runtime_checkable
class TransitionObserver(Protocol):
    """
    Callback invoked by the worker after each completed transition, in
    registration order, before the next invocation is dequeued.
    """

    def __call__(self, transition: Transition, sequence: int) -> None:
        ...


@runtime_checkable
class RejectionObserver(Protocol):
    """
    Callback invoked by the worker when a trigger is rejected in the current
    state.
    """

    def __call__(self, rejection: TriggerRejected) -> None:
        ...
