# statequeue/core/states.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import weakref
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence

from statequeue.core.errors import AmbiguousTransitionError, ConfigurationError
from statequeue.core.transitions import Transition
from statequeue.core.triggers import TriggerBehavior

logger = logging.getLogger(__name__)


class _EntryActionBehavior:
    """
    Internal wrapper pairing an entry action with its description. When a
    trigger is given the action only runs for transitions caused by it.
    """

    def __init__(self, action: Callable[..., Any], description: str, trigger: Optional[Hashable] = None) -> None:
        self._action = action
        self._trigger = trigger
        self._scoped = trigger is not None
        self.description = description

    def run(self, transition: Transition, args: Sequence) -> Any:
        if self._scoped and transition.trigger != self._trigger:
            return None
        return self._action(transition, *args)


class _ExitActionBehavior:
    """
    Internal wrapper pairing an exit action with its description.
    """

    def __init__(self, action: Callable[[Transition], Any], description: str) -> None:
        self._action = action
        self.description = description

    def run(self, transition: Transition) -> Any:
        return self._action(transition)


def _describe(action: Callable, description: Optional[str]) -> str:
    return description or getattr(action, "__name__", None) or repr(action)


def _guard_met(behavior: TriggerBehavior, args: Sequence, skip_unevaluable: bool) -> bool:
    if not skip_unevaluable:
        return behavior.is_guard_condition_met(args)
    try:
        return behavior.is_guard_condition_met(args)
    except TypeError:
        return False


class StateNode:
    """
    A node in the state hierarchy. Holds the trigger behaviors permitted from
    the state, its entry and exit actions and its links to the superstate and
    substates. Nodes are created lazily by the state machine and live as long
    as the machine does.

    The superstate is held as a weak reference; the machine's node map owns
    every node.
    """

    def __init__(self, state: Hashable, log: Optional[logging.Logger] = None) -> None:
        """
        :param state: The state value this node represents.
        :param log: Logger used when running actions.
        """
        self._state = state
        self._logger = log or logger
        self._trigger_behaviors: Dict[Hashable, List[TriggerBehavior]] = {}
        self._entry_action: Optional[_EntryActionBehavior] = None
        self._exit_action: Optional[_ExitActionBehavior] = None
        self._superstate: Optional[weakref.ReferenceType] = None
        self._substates: List[StateNode] = []

    @property
    def underlying_state(self) -> Hashable:
        """The state value represented by this node."""
        return self._state

    @property
    def trigger_behaviors(self) -> Dict[Hashable, List[TriggerBehavior]]:
        """A copy of the trigger -> behaviors mapping."""
        return {trigger: list(behaviors) for trigger, behaviors in self._trigger_behaviors.items()}

    @property
    def substates(self) -> List["StateNode"]:
        return list(self._substates)

    @property
    def superstate(self) -> Optional["StateNode"]:
        return self._superstate() if self._superstate is not None else None

    @superstate.setter
    def superstate(self, node: "StateNode") -> None:
        """
        Assign the superstate. The assignment happens once; re-assigning the
        same node is a no-op.

        :raises ConfigurationError: If the node is already nested under a different
            superstate, or if the assignment would make the node its own ancestor.
        """
        current = self.superstate
        if current is node:
            return
        if current is not None:
            raise ConfigurationError(
                f"State '{self._state}' is already a substate of '{current.underlying_state}'"
            )
        if node.is_included_in(self._state):
            raise ConfigurationError(
                f"State '{self._state}' cannot be a substate of '{node.underlying_state}': "
                "the hierarchy would contain a cycle"
            )
        self._superstate = weakref.ref(node)

    def add_substate(self, node: "StateNode") -> None:
        if node not in self._substates:
            self._substates.append(node)

    def add_trigger_behavior(self, behavior: TriggerBehavior) -> None:
        self._trigger_behaviors.setdefault(behavior.trigger, []).append(behavior)

    def add_entry_action(
        self,
        action: Callable[..., Any],
        description: Optional[str] = None,
        trigger: Optional[Hashable] = None,
    ) -> None:
        """
        Set the entry action, replacing any previous one. The action is called
        as ``action(transition, *args)`` and its return value is handed back to
        rendezvous callers.

        :param action: The action to run on entry.
        :param description: Description used in log output.
        :param trigger: When given, the action only runs for this trigger.
        """
        if not callable(action):
            raise ConfigurationError(f"Entry action for state '{self._state}' must be callable")
        self._entry_action = _EntryActionBehavior(action, _describe(action, description), trigger)

    def add_exit_action(self, action: Callable[[Transition], Any], description: Optional[str] = None) -> None:
        """
        Set the exit action, replacing any previous one. The action is called
        as ``action(transition)``.
        """
        if not callable(action):
            raise ConfigurationError(f"Exit action for state '{self._state}' must be callable")
        self._exit_action = _ExitActionBehavior(action, _describe(action, description))

    def can_handle(self, trigger: Hashable, args: Sequence = ()) -> bool:
        return self.try_find_handler(trigger, args) is not None

    def try_find_handler(self, trigger: Hashable, args: Sequence = ()) -> Optional[TriggerBehavior]:
        """
        Find the behavior whose guard is satisfied for the trigger, looking in
        this node first and then up the superstate chain.

        :return: The matching behavior, or None if there is none.
        :raises AmbiguousTransitionError: If more than one local behavior is satisfied.
        """
        handler = self._try_find_local_handler(trigger, lambda b: b.is_guard_condition_met(args))
        if handler is None and self.superstate is not None:
            return self.superstate.try_find_handler(trigger, args)
        return handler

    def try_find_handler_with_unmet_guard_condition(
        self, trigger: Hashable, args: Sequence = ()
    ) -> Optional[TriggerBehavior]:
        """
        Mirror of `try_find_handler` that looks for behaviors whose guard is
        NOT satisfied. Used to explain why a trigger was rejected. Several unmet
        behaviors are not ambiguous; the first one configured is returned.
        """
        handler = self._try_find_local_handler(
            trigger, lambda b: not b.is_guard_condition_met(args), ambiguity_check=False
        )
        if handler is None and self.superstate is not None:
            return self.superstate.try_find_handler_with_unmet_guard_condition(trigger, args)
        return handler

    def _try_find_local_handler(
        self, trigger: Hashable, condition: Callable[[TriggerBehavior], bool], ambiguity_check: bool = True
    ) -> Optional[TriggerBehavior]:
        possible = self._trigger_behaviors.get(trigger)
        if not possible:
            return None
        actual = [behavior for behavior in possible if condition(behavior)]
        if ambiguity_check and len(actual) > 1:
            raise AmbiguousTransitionError(trigger, self._state)
        return actual[0] if actual else None

    def includes(self, state: Hashable) -> bool:
        """True if `state` is this node's state or lies anywhere in its subtree."""
        return self._state == state or any(sub.includes(state) for sub in self._substates)

    def is_included_in(self, state: Hashable) -> bool:
        """True if `state` is this node's state or one of its ancestors."""
        if self._state == state:
            return True
        parent = self.superstate
        return parent is not None and parent.is_included_in(state)

    def permitted_triggers(self, args: Sequence = (), skip_unevaluable: bool = False) -> List[Hashable]:
        """
        Triggers with at least one satisfied local behavior, followed by those
        permitted by the superstate. Duplicates are dropped.

        :param skip_unevaluable: Treat guards that cannot be called with `args`
            (TypeError) as unmet instead of raising.
        """
        result = [
            trigger
            for trigger, behaviors in self._trigger_behaviors.items()
            if any(_guard_met(b, args, skip_unevaluable) for b in behaviors)
        ]
        parent = self.superstate
        if parent is not None:
            for trigger in parent.permitted_triggers(args, skip_unevaluable):
                if trigger not in result:
                    result.append(trigger)
        return result

    def enter(self, transition: Transition, args: Sequence = ()) -> Any:
        """
        Run entry actions for the transition. Outer states are entered before
        inner ones; states that already contain the source are not re-entered.

        :return: The result of this node's entry action, if it ran.
        """
        if transition.is_reentry:
            return self._execute_entry_action(transition, args)
        if not self.includes(transition.source):
            parent = self.superstate
            if parent is not None:
                parent.enter(transition, args)
            return self._execute_entry_action(transition, args)
        return None

    def exit(self, transition: Transition) -> None:
        """
        Run exit actions for the transition, from this node upward, stopping at
        the first node whose subtree contains the destination.
        """
        if transition.is_reentry:
            self._execute_exit_action(transition)
        elif not self.includes(transition.destination):
            self._execute_exit_action(transition)
            parent = self.superstate
            if parent is not None:
                parent.exit(transition)

    def _execute_entry_action(self, transition: Transition, args: Sequence) -> Any:
        if self._entry_action is None:
            return None
        if args:
            values = "".join(f"[{arg}]" for arg in args)
            self._logger.info("[%s] values [%s]", self._entry_action.description, values)
        else:
            self._logger.info("[%s]", self._entry_action.description)
        return self._entry_action.run(transition, args)

    def _execute_exit_action(self, transition: Transition) -> Any:
        if self._exit_action is None:
            return None
        self._logger.info("[%s]", self._exit_action.description)
        return self._exit_action.run(transition)

    def __repr__(self) -> str:
        return f"StateNode({self._state!r})"
