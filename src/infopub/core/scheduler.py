"""Cancellable delayed actions backed by an APScheduler background scheduler"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler


logger = logging.getLogger(__name__)


class Timer(ABC):
    """Handle for one pending delayed action."""

    @abstractmethod
    def cancel(self) -> bool:
        """Cancel the action. Returns False if it already ran or was cancelled."""
        raise NotImplementedError


class Scheduler(ABC):
    @abstractmethod
    def call_later(self, delay: float, fn: Callable[[], None]) -> Timer:
        raise NotImplementedError

    def shutdown(self) -> None:
        """Drop every pending action. Actions already running are not interrupted."""


class _JobTimer(Timer):
    def __init__(self, job):
        self._job = job

    def cancel(self) -> bool:
        try:
            self._job.remove()
        except JobLookupError:
            return False
        return True


class BackgroundTimers(Scheduler):
    """Runs delayed actions on a lazily started BackgroundScheduler thread pool."""

    def __init__(self, scheduler: Optional[BackgroundScheduler] = None):
        self._scheduler = scheduler or BackgroundScheduler()

    def call_later(self, delay: float, fn: Callable[[], None]) -> Timer:
        if not self._scheduler.running:
            self._scheduler.start()
        job = self._scheduler.add_job(
            fn, "date",
            run_date=datetime.now() + timedelta(seconds=max(delay, 0)),
            misfire_grace_time=None,
        )
        logger.debug("Scheduled %s in %.2fs", getattr(fn, "__name__", fn), delay)
        return _JobTimer(job)

    def shutdown(self, wait: bool = False) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
