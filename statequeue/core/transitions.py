# statequeue/core/transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Hashable


class Transition:
    """
    Describes one executed hop from a source state to a destination state,
    caused by a trigger. Created and discarded within a single dispatch cycle.
    """

    __slots__ = ("_source", "_destination", "_trigger")

    def __init__(self, source: Hashable, destination: Hashable, trigger: Hashable) -> None:
        """
        :param source: The state the machine was in before the transition.
        :param destination: The state the machine is in after the transition.
        :param trigger: The trigger that caused the transition.
        """
        self._source = source
        self._destination = destination
        self._trigger = trigger

    @property
    def source(self) -> Hashable:
        """The state transitioned from."""
        return self._source

    @property
    def destination(self) -> Hashable:
        """The state transitioned to."""
        return self._destination

    @property
    def trigger(self) -> Hashable:
        """The trigger that caused the transition."""
        return self._trigger

    @property
    def is_reentry(self) -> bool:
        """True if the transition is a re-entry, i.e. the identity transition."""
        return self._source == self._destination

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transition):
            return NotImplemented
        return (self._source, self._destination, self._trigger) == (
            other._source,
            other._destination,
            other._trigger,
        )

    def __hash__(self) -> int:
        return hash((self._source, self._destination, self._trigger))

    def __repr__(self) -> str:
        return f"Transition(source={self._source!r}, destination={self._destination!r}, trigger={self._trigger!r})"
