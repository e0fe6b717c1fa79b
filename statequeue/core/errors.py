# statequeue/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Hashable, Optional


class StateQueueError(Exception):
    """
    Base exception class for errors within the state machine library.
    """


class ConfigurationError(StateQueueError):
    """
    Raised when the machine is configured in a way that cannot be honored,
    e.g. registering parameters twice for a trigger or creating a cycle in the
    state hierarchy.
    """


class AmbiguousTransitionError(ConfigurationError):
    """
    Raised at resolution time when more than one trigger behavior of a state
    has its guard satisfied for the same trigger.
    """

    def __init__(self, trigger: Hashable, state: Hashable) -> None:
        super().__init__(
            f"Multiple permitted exit transitions are configured from state '{state}' for trigger "
            f"'{trigger}'. Guard clauses must be mutually exclusive."
        )
        self.trigger = trigger
        self.state = state


class InvalidTriggerError(StateQueueError):
    """
    Raised by the default unhandled-trigger policy when no transition is
    permitted for a trigger in the current state.

    :param trigger: The trigger that was fired.
    :param state: The state the machine was in.
    :param guard_unmet: True if the trigger is configured but its guard was not satisfied.
    :param guard_description: Description of the unmet guard, if any.
    """

    def __init__(
        self,
        trigger: Hashable,
        state: Hashable,
        guard_unmet: bool = False,
        guard_description: Optional[str] = None,
    ) -> None:
        if guard_unmet:
            message = (
                f"Trigger '{trigger}' is valid for transition from state '{state}' "
                f"but a guard condition is not met. Guard description: '{guard_description}'."
            )
        else:
            message = f"No valid leaving transitions are permitted from state '{state}' for trigger '{trigger}'."
        super().__init__(message)
        self.trigger = trigger
        self.state = state
        self.guard_unmet = guard_unmet
        self.guard_description = guard_description


class ArgumentShapeError(StateQueueError):
    """
    Raised when the arguments supplied to a fire call do not match the
    parameters registered for the trigger.
    """


class FatalDispatchError(StateQueueError):
    """
    Raised by the dispatcher when processing an invocation fails unexpectedly.
    The original exception is chained as ``__cause__``.
    """

    def __init__(self, trigger: Hashable, sequence: int, error: Exception) -> None:
        super().__init__(f"Dispatch of trigger '{trigger}' (sequence {sequence}) failed: {error}")
        self.trigger = trigger
        self.sequence = sequence


class RendezvousTimeoutError(StateQueueError):
    """
    Raised when a caller waiting on a rendezvous handle times out before the
    dispatcher has processed the invocation.
    """
