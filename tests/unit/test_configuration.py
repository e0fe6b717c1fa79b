"""Unit tests for StateConfiguration."""

import pytest

from statequeue.core.configuration import StateConfiguration
from statequeue.core.errors import ConfigurationError
from statequeue.core.states import StateNode
from statequeue.core.transitions import Transition
from statequeue.core.triggers import DynamicTriggerBehavior, IgnoredTriggerBehavior, TransitioningTriggerBehavior


@pytest.fixture
def nodes():
    return {}


@pytest.fixture
def configure(nodes):
    def lookup(state):
        return nodes.setdefault(state, StateNode(state))

    def _configure(state):
        return StateConfiguration(lookup(state), lookup)

    return _configure


def behaviors(nodes, state, trigger):
    return nodes[state].trigger_behaviors[trigger]


def test_methods_chain(configure):
    config = configure("A")
    assert config.permit("go", "B") is config
    assert config.state == "A"


def test_permit_adds_transitioning_behavior(configure, nodes):
    configure("A").permit("go", "B")
    (behavior,) = behaviors(nodes, "A", "go")
    assert isinstance(behavior, TransitioningTriggerBehavior)
    assert behavior.destination == "B"


def test_permit_to_self_is_rejected(configure):
    with pytest.raises(ConfigurationError):
        configure("A").permit("go", "A")


def test_permit_reentry_targets_own_state(configure, nodes):
    configure("A").permit_reentry("again")
    (behavior,) = behaviors(nodes, "A", "again")
    assert behavior.results_in_transition_from("A") == (True, "A")


def test_permit_if_records_guard(configure, nodes):
    configure("A").permit_if("go", "B", lambda: False, "never")
    (behavior,) = behaviors(nodes, "A", "go")
    assert behavior.guard_description == "never"
    assert not behavior.is_guard_condition_met()


def test_permit_dynamic(configure, nodes):
    configure("A").permit_dynamic("goto", lambda name: name)
    (behavior,) = behaviors(nodes, "A", "goto")
    assert isinstance(behavior, DynamicTriggerBehavior)
    assert behavior.results_in_transition_from("A", ("C",)) == (True, "C")


def test_ignore(configure, nodes):
    configure("A").ignore("noise").ignore_if("maybe", lambda: True)
    assert isinstance(behaviors(nodes, "A", "noise")[0], IgnoredTriggerBehavior)
    assert isinstance(behaviors(nodes, "A", "maybe")[0], IgnoredTriggerBehavior)


def test_substate_of_links_both_nodes(configure, nodes):
    configure("Child").substate_of("Parent")
    assert nodes["Child"].superstate is nodes["Parent"]
    assert nodes["Parent"].substates == [nodes["Child"]]


def test_substate_of_rejects_cycle(configure):
    configure("Child").substate_of("Parent")
    with pytest.raises(ConfigurationError):
        configure("Parent").substate_of("Child")


def test_on_entry_from_is_scoped(configure, nodes, trace):
    configure("B").on_entry_from("go", lambda t, *args: trace.append("entered"))
    nodes["B"].enter(Transition("A", "B", "other"))
    nodes["B"].enter(Transition("A", "B", "go"))
    assert trace == ["entered"]


def test_on_entry_and_on_exit(configure, nodes, trace):
    configure("B").on_entry(lambda t, *args: trace.append("in")).on_exit(lambda t: trace.append("out"))
    nodes["B"].enter(Transition("A", "B", "go"))
    nodes["B"].exit(Transition("B", "A", "back"))
    assert trace == ["in", "out"]
