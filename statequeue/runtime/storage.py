# statequeue/runtime/storage.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Callable, Hashable

from statequeue.core.errors import ConfigurationError


class StateReference:
    """
    In-memory state store used when the machine is created with an initial
    state rather than an external store.
    """

    def __init__(self, initial_state: Hashable) -> None:
        self._state = initial_state

    def read(self) -> Hashable:
        return self._state

    def write(self, state: Hashable) -> None:
        self._state = state


class AccessorStateStore:
    """
    Adapts an accessor/mutator pair owned by the embedding application to the
    StateStore protocol.
    """

    def __init__(self, accessor: Callable[[], Hashable], mutator: Callable[[Hashable], None]) -> None:
        """
        :param accessor: Called to read the current state.
        :param mutator: Called with the new state to write it.
        """
        if not callable(accessor) or not callable(mutator):
            raise ConfigurationError("State accessor and mutator must both be callable")
        self._accessor = accessor
        self._mutator = mutator

    def read(self) -> Hashable:
        return self._accessor()

    def write(self, state: Hashable) -> None:
        self._mutator(state)
