# statequeue/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import Executor, Future
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Type

from statequeue.core.configuration import StateConfiguration
from statequeue.core.errors import ConfigurationError, InvalidTriggerError, StateQueueError
from statequeue.core.parameters import TriggerWithParameters, unwrap_trigger
from statequeue.core.states import StateNode
from statequeue.core.transitions import Transition
from statequeue.interfaces.protocols import RejectionObserver, StateStore, TransitionObserver
from statequeue.interfaces.types import TriggerRejected, UnhandledTriggerFunc
from statequeue.runtime.dispatcher import DEFAULT_IDLE_INTERVAL, Dispatcher, DispatcherStatus
from statequeue.runtime.invocation_queue import QueuedInvocation
from statequeue.runtime.rendezvous import Rendezvous
from statequeue.runtime.storage import AccessorStateStore, StateReference

logger = logging.getLogger(__name__)

_NO_STATE = object()


class StateMachine:
    """
    Models behavior as transitions between a finite, hierarchical set of states.

    The current state lives in a StateStore owned by the embedding
    application (or an in-memory reference when an initial state is given).
    Triggers are fired from any thread and queued; a single dispatcher worker
    resolves and executes them one at a time, in the order they were fired.
    """

    def __init__(
        self,
        initial_state: Hashable = _NO_STATE,
        store: Optional[StateStore] = None,
        name: str = "",
        log: Optional[logging.Logger] = None,
        idle_interval: float = DEFAULT_IDLE_INTERVAL,
    ) -> None:
        """
        :param initial_state: Initial state for an in-memory store.
        :param store: External state store; takes precedence over `initial_state`.
        :param name: Name of the machine, used in log output.
        :param log: Logger to use instead of the module logger.
        :param idle_interval: Seconds the dispatcher backs off when its queue is empty.
        :raises ConfigurationError: If neither a store nor an initial state is given.
        """
        if store is None:
            if initial_state is _NO_STATE:
                raise ConfigurationError("A state machine needs either an initial state or a state store")
            store = StateReference(initial_state)
        elif not isinstance(store, StateStore):
            raise ConfigurationError("State store must provide read() and write(state)")

        self._store = store
        self._name = name
        self._logger = log or logger
        self._state_configuration: Dict[Hashable, StateNode] = {}
        self._trigger_configuration: Dict[Hashable, TriggerWithParameters] = {}
        self._unhandled_trigger_action: Optional[UnhandledTriggerFunc] = None
        self._transition_observers: List[TransitionObserver] = []
        self._rejection_observers: List[RejectionObserver] = []
        self._dispatcher = Dispatcher(
            self._process,
            rejection_handler=self._notify_rejected,
            name=name,
            log=self._logger,
            idle_interval=idle_interval,
        )

    @classmethod
    def from_accessors(
        cls,
        accessor: Callable[[], Hashable],
        mutator: Callable[[Hashable], None],
        **kwargs: Any,
    ) -> "StateMachine":
        """
        Construct a state machine with external state storage.

        :param accessor: Called to read the current state value.
        :param mutator: Called to write new state values.
        """
        return cls(store=AccessorStateStore(accessor, mutator), **kwargs)

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> Hashable:
        """The current state, read from the store."""
        return self._store.read()

    @property
    def status(self) -> DispatcherStatus:
        return self._dispatcher.status

    @property
    def pending(self) -> int:
        """Number of fired triggers not yet processed."""
        return self._dispatcher.pending

    @property
    def future(self) -> Optional[Future]:
        """Future of the dispatcher's current (or last) run."""
        return self._dispatcher.future

    def configure(self, state: Hashable) -> StateConfiguration:
        """
        Begin configuration of the entry/exit actions and allowed transitions
        when the machine is in a particular state.
        """
        return StateConfiguration(self._get_node(state), self._get_node)

    def _get_node(self, state: Hashable) -> StateNode:
        node = self._state_configuration.get(state)
        if node is None:
            node = StateNode(state, self._logger)
            self._state_configuration[state] = node
        return node

    def set_trigger_parameters(self, trigger: Hashable, *argument_types: Type) -> TriggerWithParameters:
        """
        Specify the arguments that must be supplied when a trigger is fired.

        :return: A parameterised trigger that can be passed to `fire`.
        :raises ConfigurationError: If parameters are already registered for the trigger.
        """
        configuration = TriggerWithParameters(trigger, *argument_types)
        if trigger in self._trigger_configuration:
            raise ConfigurationError(f"Parameters for the trigger '{trigger}' have already been configured.")
        self._trigger_configuration[trigger] = configuration
        return configuration

    def on_unhandled_trigger(self, action: UnhandledTriggerFunc) -> None:
        """
        Replace the default policy of rejecting unhandled triggers. The action
        is called as ``action(state, trigger)`` and need not raise.
        """
        if not callable(action):
            raise ConfigurationError("Unhandled trigger action must be callable")
        self._unhandled_trigger_action = action

    def on_transitioned(self, observer: TransitionObserver) -> None:
        """Register ``observer(transition, sequence)`` for every completed transition."""
        if not callable(observer):
            raise ConfigurationError("Transition observer must be callable")
        self._transition_observers.append(observer)

    def on_trigger_rejected(self, observer: RejectionObserver) -> None:
        """Register ``observer(rejection)`` for every rejected trigger."""
        if not callable(observer):
            raise ConfigurationError("Rejection observer must be callable")
        self._rejection_observers.append(observer)

    def start(self, executor: Optional[Executor] = None) -> Future:
        """
        Start dispatching queued triggers.

        :param executor: Where to run the worker loop; a dedicated thread if None.
        :return: A future completing when dispatch ends, carrying any fatal error.
        :raises StateQueueError: If called from an action running on the dispatcher thread.
        """
        return self._dispatcher.start(executor)

    def stop(self) -> None:
        """Stop dispatching after the invocation in progress, if any."""
        self._dispatcher.stop()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker loop to end; True if it has."""
        return self._dispatcher.join(timeout)

    def fire(self, trigger: Hashable, *args: Any, rendezvous: Optional[Rendezvous] = None) -> int:
        """
        Queue a trigger. The destination is determined by the configuration of
        the state the machine is in when the trigger is dispatched. Arguments
        are checked against registered parameters at dispatch time.

        :param trigger: Trigger value or parameterised trigger.
        :param args: Arguments passed to guards, destination resolvers and entry actions.
        :param rendezvous: Optional handle to receive the outcome synchronously.
        :return: The sequence number of the queued invocation.
        """
        return self._dispatcher.submit(unwrap_trigger(trigger), args, rendezvous)

    def fire_and_wait(self, trigger: Hashable, *args: Any, timeout: Optional[float] = None) -> Any:
        """
        Fire a trigger and block until it has been processed.

        :return: The value returned by the destination's entry action.
        :raises InvalidTriggerError: If the trigger was rejected.
        :raises RendezvousTimeoutError: If not processed within `timeout`.
        """
        if self._dispatcher.in_worker():
            raise StateQueueError("fire_and_wait cannot be called from the dispatcher's worker thread")
        with Rendezvous() as handle:
            self.fire(trigger, *args, rendezvous=handle)
            return handle.wait(timeout)

    async def fire_async(self, trigger: Hashable, *args: Any, timeout: Optional[float] = None) -> Any:
        """Awaitable form of `fire_and_wait`."""
        loop = asyncio.get_running_loop()
        call = functools.partial(self.fire_and_wait, trigger, *args, timeout=timeout)
        return await loop.run_in_executor(None, call)

    def is_in_state(self, state: Hashable) -> bool:
        """True if the current state is `state` or one of its substates."""
        return self._get_node(self.state).is_included_in(state)

    def can_fire(self, trigger: Hashable, *args: Any) -> bool:
        """True if `trigger` would be handled in the current state with these arguments."""
        return self._get_node(self.state).can_handle(unwrap_trigger(trigger), args)

    def permitted_triggers(self, *args: Any) -> List[Hashable]:
        """Triggers whose guards are satisfied in the current state."""
        return self._get_node(self.state).permitted_triggers(args)

    def _process(self, invocation: QueuedInvocation) -> Any:
        trigger, args = invocation.trigger, invocation.args
        configuration = self._trigger_configuration.get(trigger)
        if configuration is not None:
            configuration.validate_parameters(args)

        source = self.state
        representation = self._get_node(source)
        behavior = representation.try_find_handler(trigger, args)
        if behavior is None:
            if self._unhandled_trigger_action is not None:
                self._unhandled_trigger_action(source, trigger)
            else:
                self._reject(representation, trigger, args)
            return None

        transitions, destination = behavior.results_in_transition_from(source, args)
        if not transitions:
            return None

        transition = Transition(source, destination, trigger)
        representation.exit(transition)
        self._store.write(destination)
        result = self._get_node(destination).enter(transition, args)

        for observer in self._transition_observers:
            observer(transition, invocation.sequence)
        return result

    def _reject(self, representation: StateNode, trigger: Hashable, args: Sequence) -> None:
        unmet = representation.try_find_handler_with_unmet_guard_condition(trigger, args)
        if unmet is not None:
            raise InvalidTriggerError(
                trigger, representation.underlying_state, guard_unmet=True, guard_description=unmet.guard_description
            )
        raise InvalidTriggerError(trigger, representation.underlying_state)

    def _notify_rejected(self, invocation: QueuedInvocation, error: InvalidTriggerError) -> None:
        rejection = TriggerRejected(invocation.trigger, error.state, invocation.sequence, error.guard_unmet)
        for observer in self._rejection_observers:
            observer(rejection)

    def __repr__(self) -> str:
        node = self._get_node(self.state)
        triggers = ", ".join(str(t) for t in node.permitted_triggers(skip_unevaluable=True))
        return f"StateMachine {{ State = {self.state}, PermittedTriggers = {{ {triggers} }}}}"
