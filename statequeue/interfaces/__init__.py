"""
Interfaces package: protocols and type aliases shared across the library.
"""

from .types import TriggerRejected
from .protocols import RejectionObserver, StateStore, TransitionObserver

__all__ = ["TriggerRejected", "StateStore", "TransitionObserver", "RejectionObserver"]
