# statequeue/core/triggers.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Callable, Hashable, Optional, Sequence, Tuple

from statequeue.core.errors import ConfigurationError


def _always(*args) -> bool:
    return True


class TriggerBehavior:
    """
    Describes one candidate transition for a trigger from the state that owns
    it. The guard is evaluated against the fire arguments; the destination is
    resolved by `results_in_transition_from`. Instances are immutable once
    added to a state.
    """

    def __init__(
        self,
        trigger: Hashable,
        guard: Optional[Callable[..., bool]] = None,
        guard_description: Optional[str] = None,
    ) -> None:
        """
        :param trigger: The trigger this behavior responds to.
        :param guard: Predicate called with the fire arguments; defaults to always True.
        :param guard_description: Human-readable description used in error messages.
        """
        if guard is not None and not callable(guard):
            raise ConfigurationError(f"Guard for trigger '{trigger}' must be callable")
        self._trigger = trigger
        self._guard = guard or _always
        self._guard_description = guard_description or getattr(self._guard, "__name__", "Function")

    @property
    def trigger(self) -> Hashable:
        return self._trigger

    @property
    def guard_description(self) -> str:
        return self._guard_description

    def is_guard_condition_met(self, args: Sequence = ()) -> bool:
        """
        Evaluate the guard with the fire arguments.

        :param args: Positional arguments supplied when the trigger was fired.
        :return: True if the guard passes.
        """
        return bool(self._guard(*args))

    def results_in_transition_from(self, source: Hashable, args: Sequence = ()) -> Tuple[bool, Optional[Hashable]]:
        """
        Resolve the destination of this behavior.

        :param source: The current state.
        :param args: Positional fire arguments.
        :return: A ``(transitions, destination)`` pair.
        """
        raise NotImplementedError()


class TransitioningTriggerBehavior(TriggerBehavior):
    """Moves the machine to a fixed destination."""

    def __init__(
        self,
        trigger: Hashable,
        destination: Hashable,
        guard: Optional[Callable[..., bool]] = None,
        guard_description: Optional[str] = None,
    ) -> None:
        super().__init__(trigger, guard, guard_description)
        self._destination = destination

    @property
    def destination(self) -> Hashable:
        return self._destination

    def results_in_transition_from(self, source: Hashable, args: Sequence = ()) -> Tuple[bool, Optional[Hashable]]:
        return True, self._destination


class DynamicTriggerBehavior(TriggerBehavior):
    """
    Computes the destination from the fire arguments at dispatch time.
    """

    def __init__(
        self,
        trigger: Hashable,
        destination_resolver: Callable[..., Hashable],
        guard: Optional[Callable[..., bool]] = None,
        guard_description: Optional[str] = None,
    ) -> None:
        if not callable(destination_resolver):
            raise ConfigurationError(f"Destination resolver for trigger '{trigger}' must be callable")
        super().__init__(trigger, guard, guard_description)
        self._destination_resolver = destination_resolver

    def results_in_transition_from(self, source: Hashable, args: Sequence = ()) -> Tuple[bool, Optional[Hashable]]:
        return True, self._destination_resolver(*args)


class IgnoredTriggerBehavior(TriggerBehavior):
    """Accepts the trigger without leaving the current state or running actions."""

    def results_in_transition_from(self, source: Hashable, args: Sequence = ()) -> Tuple[bool, Optional[Hashable]]:
        return False, None
