"""Root test configuration: runtime artifact cleanup and a manual clock scheduler"""

import shutil
from pathlib import Path
from typing import Callable

import pytest

from infopub.core.scheduler import Scheduler, Timer


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["infopub.db", "test.db"]
_CLEANUP_DIRS = ["dist"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files and export directories created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if p.exists():
            shutil.rmtree(p)


class ManualTimer(Timer):
    def __init__(self, scheduler: "ManualScheduler", due: float, fn: Callable[[], None]):
        self.scheduler = scheduler
        self.due = due
        self.fn = fn
        self.active = True

    def cancel(self) -> bool:
        was_active = self.active
        self.active = False
        return was_active


class ManualScheduler(Scheduler):
    """Deterministic scheduler: actions run only when the test advances the clock."""

    def __init__(self):
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def clock(self) -> float:
        return self.now

    def call_later(self, delay: float, fn: Callable[[], None]) -> Timer:
        timer = ManualTimer(self, self.now + delay, fn)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if t.active]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        self.now += seconds
        for timer in sorted(self.pending, key=lambda t: t.due):
            if timer.active and timer.due <= self.now:
                timer.active = False
                timer.fn()

    def shutdown(self) -> None:
        for timer in self.timers:
            timer.active = False


@pytest.fixture(name="scheduler")
def scheduler_fixture():
    return ManualScheduler()
