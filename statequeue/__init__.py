"""statequeue: embeddable hierarchical state machine with queued trigger dispatch

This package models an entity's behavior as a hierarchical finite state
machine whose triggers are fired from any thread and executed, one at a time
and in order, by a single dispatcher worker.

Responsibilities:
    - State hierarchy and guarded trigger resolution
    - Entry/exit action chains across nested states
    - Ordered, single-consumer trigger dispatch
    - Fire-and-forget and fire-and-rendezvous firing modes

Interactions:
    - Client code configures states and fires triggers
    - A StateStore owned by the client holds the current state
    - A thread or executor supplied by the client hosts the worker loop
    - Logging system for diagnostics

Cross-cutting Concerns:
    Thread Safety:
        - fire() may be called from any thread
        - State, hierarchy and actions are only touched by the worker
        - Configuration must complete before start()

    Error Handling:
        - Structured error hierarchy rooted at StateQueueError
        - Rejected triggers are reported, not raised, by the worker
        - Any other failure stops dispatch and surfaces through the worker future
"""

from .core.errors import (
    AmbiguousTransitionError,
    ArgumentShapeError,
    ConfigurationError,
    FatalDispatchError,
    InvalidTriggerError,
    RendezvousTimeoutError,
    StateQueueError,
)
from .core.parameters import TriggerWithParameters
from .core.state_machine import StateMachine
from .core.transitions import Transition
from .interfaces.protocols import StateStore
from .interfaces.types import TriggerRejected
from .runtime.dispatcher import DispatcherStatus
from .runtime.rendezvous import Rendezvous
from .runtime.storage import AccessorStateStore, StateReference

__version__ = "0.1.0"

__all__ = [
    "StateMachine",
    "Transition",
    "TriggerWithParameters",
    "TriggerRejected",
    "Rendezvous",
    "DispatcherStatus",
    "StateStore",
    "StateReference",
    "AccessorStateStore",
    # Errors
    "StateQueueError",
    "ConfigurationError",
    "AmbiguousTransitionError",
    "InvalidTriggerError",
    "ArgumentShapeError",
    "FatalDispatchError",
    "RendezvousTimeoutError",
]
