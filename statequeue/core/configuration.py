# statequeue/core/configuration.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Callable, Hashable, Optional

from statequeue.core.errors import ConfigurationError
from statequeue.core.parameters import unwrap_trigger
from statequeue.core.states import StateNode
from statequeue.core.triggers import (
    DynamicTriggerBehavior,
    IgnoredTriggerBehavior,
    TransitioningTriggerBehavior,
)
from statequeue.interfaces.types import DestinationFunc, EntryActionFunc, ExitActionFunc, GuardFunc


class StateConfiguration:
    """
    Configures the transitions, actions and superstate of one state. Returned
    by `StateMachine.configure`; every method returns the configuration so calls
    can be chained. Configuration must be complete before the machine is started.
    """

    def __init__(self, node: StateNode, lookup: Callable[[Hashable], StateNode]) -> None:
        """
        :param node: The node being configured.
        :param lookup: Returns (creating if needed) the node for a state value.
        """
        self._node = node
        self._lookup = lookup

    @property
    def state(self) -> Hashable:
        return self._node.underlying_state

    def permit(self, trigger: Hashable, destination: Hashable) -> "StateConfiguration":
        """Accept the trigger and transition to `destination`."""
        return self.permit_if(trigger, destination)

    def permit_if(
        self,
        trigger: Hashable,
        destination: Hashable,
        guard: Optional[GuardFunc] = None,
        guard_description: Optional[str] = None,
    ) -> "StateConfiguration":
        """
        Accept the trigger and transition to `destination` when `guard` holds.

        :raises ConfigurationError: If `destination` is the configured state itself.
        """
        if destination == self.state:
            raise ConfigurationError(
                f"Permitting '{trigger}' from '{self.state}' to itself requires permit_reentry; "
                "use ignore to accept a trigger without changing state."
            )
        self._node.add_trigger_behavior(
            TransitioningTriggerBehavior(unwrap_trigger(trigger), destination, guard, guard_description)
        )
        return self

    def permit_reentry(self, trigger: Hashable) -> "StateConfiguration":
        """Accept the trigger and re-enter the configured state."""
        return self.permit_reentry_if(trigger)

    def permit_reentry_if(
        self,
        trigger: Hashable,
        guard: Optional[GuardFunc] = None,
        guard_description: Optional[str] = None,
    ) -> "StateConfiguration":
        self._node.add_trigger_behavior(
            TransitioningTriggerBehavior(unwrap_trigger(trigger), self.state, guard, guard_description)
        )
        return self

    def permit_dynamic(self, trigger: Hashable, destination_resolver: DestinationFunc) -> "StateConfiguration":
        """Accept the trigger and transition to the state computed from the fire arguments."""
        return self.permit_dynamic_if(trigger, destination_resolver)

    def permit_dynamic_if(
        self,
        trigger: Hashable,
        destination_resolver: DestinationFunc,
        guard: Optional[GuardFunc] = None,
        guard_description: Optional[str] = None,
    ) -> "StateConfiguration":
        self._node.add_trigger_behavior(
            DynamicTriggerBehavior(unwrap_trigger(trigger), destination_resolver, guard, guard_description)
        )
        return self

    def ignore(self, trigger: Hashable) -> "StateConfiguration":
        """Accept the trigger without leaving the state or running any action."""
        return self.ignore_if(trigger)

    def ignore_if(
        self,
        trigger: Hashable,
        guard: Optional[GuardFunc] = None,
        guard_description: Optional[str] = None,
    ) -> "StateConfiguration":
        self._node.add_trigger_behavior(IgnoredTriggerBehavior(unwrap_trigger(trigger), guard, guard_description))
        return self

    def on_entry(self, action: EntryActionFunc, description: Optional[str] = None) -> "StateConfiguration":
        """
        Run `action(transition, *args)` whenever the state is entered. Its
        return value is handed to rendezvous callers.
        """
        self._node.add_entry_action(action, description)
        return self

    def on_entry_from(
        self, trigger: Hashable, action: EntryActionFunc, description: Optional[str] = None
    ) -> "StateConfiguration":
        """Run `action(transition, *args)` when the state is entered via `trigger`."""
        self._node.add_entry_action(action, description, trigger=unwrap_trigger(trigger))
        return self

    def on_exit(self, action: ExitActionFunc, description: Optional[str] = None) -> "StateConfiguration":
        """Run `action(transition)` whenever the state is exited."""
        self._node.add_exit_action(action, description)
        return self

    def substate_of(self, superstate: Hashable) -> "StateConfiguration":
        """
        Nest the configured state inside `superstate`. The substate inherits
        every trigger its superstate permits.
        """
        parent = self._lookup(superstate)
        self._node.superstate = parent
        parent.add_substate(self._node)
        return self
