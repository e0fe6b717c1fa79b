"""
Core package: state hierarchy, trigger resolution and the state machine.

Architecture:
- StateNode holds the hierarchy and resolves guarded trigger behaviors
- Transition describes one executed hop
- StateMachine owns the node map and drives the dispatcher
"""

# Import order matters to avoid circular dependencies
from .errors import (
    AmbiguousTransitionError,
    ArgumentShapeError,
    ConfigurationError,
    FatalDispatchError,
    InvalidTriggerError,
    RendezvousTimeoutError,
    StateQueueError,
)
from .transitions import Transition
from .triggers import DynamicTriggerBehavior, IgnoredTriggerBehavior, TransitioningTriggerBehavior, TriggerBehavior
from .parameters import TriggerWithParameters
from .states import StateNode
from .configuration import StateConfiguration
from .state_machine import StateMachine

__all__ = [
    "AmbiguousTransitionError",
    "ArgumentShapeError",
    "ConfigurationError",
    "FatalDispatchError",
    "InvalidTriggerError",
    "RendezvousTimeoutError",
    "StateQueueError",
    "Transition",
    "TriggerBehavior",
    "TransitioningTriggerBehavior",
    "DynamicTriggerBehavior",
    "IgnoredTriggerBehavior",
    "TriggerWithParameters",
    "StateNode",
    "StateConfiguration",
    "StateMachine",
]
