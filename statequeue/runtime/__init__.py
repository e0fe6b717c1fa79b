"""
Runtime package for queued, single-consumer dispatch.

Architecture:
- InvocationQueue numbers and orders fire requests from any thread
- Dispatcher drains the queue on one worker, one invocation at a time
- Rendezvous hands the outcome of one invocation back to its caller
- StateReference and AccessorStateStore hold the current state
"""

from .invocation_queue import InvocationQueue, QueuedInvocation
from .rendezvous import Rendezvous
from .storage import AccessorStateStore, StateReference
from .dispatcher import DEFAULT_IDLE_INTERVAL, Dispatcher, DispatcherStatus

__all__ = [
    "InvocationQueue",
    "QueuedInvocation",
    "Rendezvous",
    "AccessorStateStore",
    "StateReference",
    "DEFAULT_IDLE_INTERVAL",
    "Dispatcher",
    "DispatcherStatus",
]
