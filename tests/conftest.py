# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import time

import pytest

from statequeue import StateMachine


def pytest_configure(config):
    """Register custom marks."""
    config.addinivalue_line("markers", "stress: mark test as a stress test")


@pytest.fixture
def wait_until():
    """Returns a helper polling a predicate until it holds or the timeout expires."""

    def _wait(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait


@pytest.fixture
def trace():
    """A list collecting action names in call order."""
    return []


@pytest.fixture
def player_machine(trace):
    """
    States Idle, Running and Paused, with Paused nested in Running.
    Start: Idle -> Running, Pause: Running -> Paused, Stop: Running -> Idle.
    """
    machine = StateMachine("Idle", name="player", idle_interval=0.01)

    machine.configure("Idle").permit("Start", "Running")
    machine.configure("Running").permit("Pause", "Paused").permit("Stop", "Idle").on_entry(
        lambda t, *args: trace.append("enter:Running")
    ).on_exit(lambda t: trace.append("exit:Running"))
    machine.configure("Paused").substate_of("Running").permit_reentry("Refresh").on_entry(
        lambda t, *args: trace.append("enter:Paused")
    ).on_exit(lambda t: trace.append("exit:Paused"))

    return machine


@pytest.fixture
def running():
    """
    Returns a function starting a machine's dispatcher; every machine started
    through it is stopped and joined at teardown.
    """
    started = []

    def _start(machine, executor=None):
        future = machine.start(executor)
        started.append(machine)
        return future

    yield _start

    for machine in started:
        machine.stop()
        machine.join(timeout=2.0)
