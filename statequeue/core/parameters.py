# statequeue/core/parameters.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Hashable, Sequence, Tuple, Type

from statequeue.core.errors import ArgumentShapeError, ConfigurationError


class TriggerWithParameters:
    """
    Associates a trigger with the types of the arguments that must be supplied
    when it is fired. Registered once per trigger on a state machine and checked
    when a queued invocation of that trigger is processed.
    """

    def __init__(self, trigger: Hashable, *argument_types: Type) -> None:
        """
        :param trigger: The underlying trigger value.
        :param argument_types: Expected type of each positional argument.
        """
        for argument_type in argument_types:
            if not isinstance(argument_type, type):
                raise ConfigurationError(f"Parameter type for trigger '{trigger}' must be a type, got {argument_type!r}")
        self._trigger = trigger
        self._argument_types = tuple(argument_types)

    @property
    def trigger(self) -> Hashable:
        return self._trigger

    @property
    def argument_types(self) -> Tuple[Type, ...]:
        return self._argument_types

    @property
    def arity(self) -> int:
        return len(self._argument_types)

    def validate_parameters(self, args: Sequence) -> None:
        """
        Ensure that the supplied arguments match the registered shape.

        :param args: Positional arguments supplied to fire.
        :raises ArgumentShapeError: If the count or any argument type does not match.
        """
        if len(args) > self.arity:
            raise ArgumentShapeError(
                f"Too many parameters have been supplied for trigger '{self._trigger}'. "
                f"Expecting {self.arity} but got {len(args)}."
            )
        for index, argument_type in enumerate(self._argument_types):
            if index >= len(args):
                raise ArgumentShapeError(
                    f"An argument of type {argument_type.__name__} is required in position {index} "
                    f"for trigger '{self._trigger}'."
                )
            if not isinstance(args[index], argument_type):
                raise ArgumentShapeError(
                    f"The argument in position {index} of trigger '{self._trigger}' is of type "
                    f"{type(args[index]).__name__} but must be of type {argument_type.__name__}."
                )

    def __repr__(self) -> str:
        names = ", ".join(t.__name__ for t in self._argument_types)
        return f"TriggerWithParameters({self._trigger!r}, [{names}])"


def unwrap_trigger(trigger: Hashable) -> Hashable:
    """Return the underlying trigger value of a parameterised trigger."""
    if isinstance(trigger, TriggerWithParameters):
        return trigger.trigger
    return trigger
