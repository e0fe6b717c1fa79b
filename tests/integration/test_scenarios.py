# tests/integration/test_scenarios.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import logging
import time

import pytest

from statequeue import (
    ArgumentShapeError,
    DispatcherStatus,
    FatalDispatchError,
    InvalidTriggerError,
    StateMachine,
    StateQueueError,
    TriggerRejected,
)


def test_pause_from_idle_is_rejected(player_machine, running, wait_until):
    rejections = []
    transitions = []
    player_machine.on_trigger_rejected(rejections.append)
    player_machine.on_transitioned(lambda t, seq: transitions.append(t))
    running(player_machine)

    sequence = player_machine.fire("Pause")

    assert wait_until(lambda: rejections)
    assert rejections == [TriggerRejected("Pause", "Idle", sequence, False)]
    assert transitions == []
    assert player_machine.state == "Idle"
    assert player_machine.status is DispatcherStatus.RUNNING


def test_exit_then_entry_between_sibling_states(trace, running):
    machine = StateMachine("Running", idle_interval=0.01)
    machine.configure("Running").permit("Pause", "Paused").on_exit(lambda t: trace.append("E1"))
    machine.configure("Paused").on_entry(lambda t, *args: trace.append("E2"))
    running(machine)

    machine.fire_and_wait("Pause", timeout=2.0)

    assert trace == ["E1", "E2"]
    assert machine.state == "Paused"


def test_entering_substate_keeps_superstate_active(player_machine, trace, running):
    running(player_machine)
    player_machine.fire_and_wait("Start", timeout=2.0)
    player_machine.fire_and_wait("Pause", timeout=2.0)

    assert trace == ["enter:Running", "enter:Paused"]
    assert player_machine.state == "Paused"
    assert player_machine.is_in_state("Running")


def test_reentry_runs_only_own_actions(player_machine, trace, running):
    running(player_machine)
    player_machine.fire_and_wait("Start", timeout=2.0)
    player_machine.fire_and_wait("Pause", timeout=2.0)
    del trace[:]

    player_machine.fire_and_wait("Refresh", timeout=2.0)

    assert trace == ["exit:Paused", "enter:Paused"]
    assert player_machine.state == "Paused"


def test_substate_inherits_superstate_trigger(player_machine, trace, running):
    running(player_machine)
    player_machine.fire_and_wait("Start", timeout=2.0)
    player_machine.fire_and_wait("Pause", timeout=2.0)
    del trace[:]

    player_machine.fire_and_wait("Stop", timeout=2.0)

    assert trace == ["exit:Paused", "exit:Running"]
    assert player_machine.state == "Idle"


def test_transition_observers_run_in_order_after_entry(player_machine, trace, running):
    seen = []
    player_machine.on_transitioned(lambda t, seq: seen.append(("first", t.source, t.destination, seq, list(trace))))
    player_machine.on_transitioned(lambda t, seq: seen.append(("second", t.trigger, seq)))
    running(player_machine)

    sequence = player_machine.fire("Start")
    player_machine.fire_and_wait("Pause", timeout=2.0)

    assert seen[0] == ("first", "Idle", "Running", sequence, ["enter:Running"])
    assert seen[1] == ("second", "Start", sequence)
    assert [entry[0] for entry in seen] == ["first", "second", "first", "second"]


def test_rendezvous_returns_entry_result(running):
    machine = StateMachine("Idle", idle_interval=0.01)
    machine.configure("Idle").permit("Load", "Loaded")
    machine.configure("Loaded").on_entry(lambda t, name, size: f"{name}:{size}")
    machine.set_trigger_parameters("Load", str, int)
    running(machine)

    assert machine.fire_and_wait("Load", "disk", 3, timeout=2.0) == "disk:3"


def test_rendezvous_surfaces_unmet_guard(running):
    machine = StateMachine("Idle", idle_interval=0.01)
    machine.configure("Idle").permit_if("Start", "Running", lambda: False, "has power")
    rejections = []
    machine.on_trigger_rejected(rejections.append)
    running(machine)

    with pytest.raises(InvalidTriggerError) as excinfo:
        machine.fire_and_wait("Start", timeout=2.0)

    assert excinfo.value.guard_unmet
    assert "has power" in str(excinfo.value)
    assert rejections[0].guard_unmet


def test_custom_unhandled_policy_does_not_reject(running):
    machine = StateMachine("Idle", idle_interval=0.01)
    unhandled = []
    rejections = []
    machine.on_unhandled_trigger(lambda state, trigger: unhandled.append((state, trigger)))
    machine.on_trigger_rejected(rejections.append)
    running(machine)

    assert machine.fire_and_wait("Nope", timeout=2.0) is None
    assert unhandled == [("Idle", "Nope")]
    assert rejections == []


def test_dynamic_destination_from_arguments(running):
    machine = StateMachine("Lobby", idle_interval=0.01)
    machine.configure("Lobby").permit_dynamic("Goto", lambda room: room)
    running(machine)

    machine.fire_and_wait("Goto", "Kitchen", timeout=2.0)

    assert machine.state == "Kitchen"


def test_ignored_trigger_changes_nothing(running):
    machine = StateMachine("Idle", idle_interval=0.01)
    calls = []
    machine.configure("Idle").ignore("Noise").on_exit(lambda t: calls.append("exit"))
    machine.on_transitioned(lambda t, seq: calls.append("transition"))
    running(machine)

    assert machine.fire_and_wait("Noise", timeout=2.0) is None
    assert machine.state == "Idle"
    assert calls == []


def test_malformed_arguments_stop_dispatch(player_machine, running, caplog):
    player_machine.set_trigger_parameters("Start", int)
    future = running(player_machine)

    with caplog.at_level(logging.ERROR):
        sequence = player_machine.fire("Start", 1, 2)
        assert sequence == 1
        error = future.exception(timeout=2.0)

    assert isinstance(error, FatalDispatchError)
    assert isinstance(error.__cause__, ArgumentShapeError)
    assert error.sequence == sequence
    assert player_machine.state == "Idle"
    assert player_machine.status is DispatcherStatus.STOPPED
    assert "An unexpected error occurs" in caplog.text


def test_ambiguous_guards_stop_dispatch(running):
    machine = StateMachine("Idle", idle_interval=0.01)
    machine.configure("Idle").permit("Go", "Left").permit("Go", "Right")
    future = running(machine)

    machine.fire("Go")
    machine.fire("Go")

    error = future.exception(timeout=2.0)
    assert isinstance(error, FatalDispatchError)
    assert type(error.__cause__).__name__ == "AmbiguousTransitionError"
    assert machine.pending == 1
    assert machine.state == "Idle"


def test_fire_and_wait_from_an_action_is_fatal(running):
    machine = StateMachine("Idle", idle_interval=0.01)
    machine.configure("Idle").permit("Start", "Running")
    machine.configure("Running").on_entry(lambda t: machine.fire_and_wait("Other"))
    future = running(machine)

    machine.fire("Start")

    assert isinstance(future.exception(timeout=2.0), FatalDispatchError)


def test_external_store_receives_writes(running):
    writes = []
    cell = {"state": "Idle"}

    def mutate(state):
        writes.append(state)
        cell["state"] = state

    machine = StateMachine.from_accessors(lambda: cell["state"], mutate, idle_interval=0.01)
    machine.configure("Idle").permit("Start", "Running")
    machine.configure("Running").permit("Stop", "Idle")
    running(machine)

    machine.fire("Start")
    machine.fire_and_wait("Stop", timeout=2.0)

    assert writes == ["Running", "Idle"]


def test_start_and_stop_are_logged(caplog):
    machine = StateMachine("Idle", name="logged", idle_interval=0.01)
    with caplog.at_level(logging.INFO):
        machine.start()
        machine.stop()
        assert machine.join(2.0)
    assert "State machine named [logged] is started" in caplog.text
    assert "State machine named [logged] is stopped" in caplog.text


def test_all_guards_unmet_is_a_rejection(running, wait_until):
    machine = StateMachine("Idle", idle_interval=0.01)
    machine.configure("Idle").permit_if("Go", "Left", lambda: False).permit_if("Go", "Right", lambda: False)
    rejections = []
    machine.on_trigger_rejected(rejections.append)
    running(machine)

    sequence = machine.fire("Go")

    assert wait_until(lambda: rejections)
    assert rejections == [TriggerRejected("Go", "Idle", sequence, True)]
    assert machine.state == "Idle"
    assert machine.status is DispatcherStatus.RUNNING


def test_restart_from_an_action_does_not_add_a_consumer(running, wait_until):
    machine = StateMachine("A", idle_interval=0.01)
    active = []
    overlaps = []

    def enter_b(transition, *args):
        active.append(transition)
        try:
            machine.start()
        finally:
            time.sleep(0.1)
            active.remove(transition)

    def enter_c(transition, *args):
        if active:
            overlaps.append(transition)

    machine.configure("A").permit("Next", "B")
    machine.configure("B").permit("Next", "C").on_entry(enter_b)
    machine.configure("C").on_entry(enter_c)
    future = running(machine)

    machine.fire("Next")
    machine.fire("Next")

    error = future.exception(timeout=2.0)
    assert isinstance(error, FatalDispatchError)
    assert isinstance(error.__cause__, StateQueueError)
    assert overlaps == []
    assert machine.state == "B"
    assert machine.pending == 1
