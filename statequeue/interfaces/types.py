# statequeue/interfaces/types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Callable, Hashable, NamedTuple


class TriggerRejected(NamedTuple):
    trigger: Hashable
    state: Hashable
    sequence: int
    guard_unmet: bool


# Callback Types
GuardFunc = Callable[..., bool]
EntryActionFunc = Callable[..., Any]
ExitActionFunc = Callable[[Any], Any]
DestinationFunc = Callable[..., Hashable]
UnhandledTriggerFunc = Callable[[Hashable, Hashable], None]
