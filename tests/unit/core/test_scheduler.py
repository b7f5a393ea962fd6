"""Unit tests for core/scheduler.py"""

import threading

import pytest

from infopub.core.scheduler import BackgroundTimers


@pytest.fixture(name="timers")
def timers_fixture():
    timers = BackgroundTimers()
    yield timers
    timers.shutdown()


def test_call_later_runs_action(timers):
    fired = threading.Event()
    timers.call_later(0.05, fired.set)
    assert fired.wait(5)


def test_cancel_before_fire(timers):
    fired = threading.Event()
    timer = timers.call_later(30, fired.set)
    assert timer.cancel()
    assert not timer.cancel()
    assert not fired.is_set()
