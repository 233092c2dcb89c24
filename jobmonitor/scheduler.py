"""Timer scheduling for status polls.

The monitor only ever talks to the ``Scheduler`` interface, so tests can
drive time by hand. ``EventLoopScheduler`` is the real thing: a
single-threaded cooperative loop on top of the standard ``sched`` module.
"""

from abc import ABC, abstractmethod
import logging
import sched
import time
from typing import Any, Callable

LOG = logging.getLogger(__name__)


class Scheduler(ABC):
    @abstractmethod
    def schedule(self, delay: float, fn: Callable[[], None]) -> Any:
        """Run fn after delay seconds; return a token for cancel()."""

    @abstractmethod
    def cancel(self, token: Any) -> None:
        """Cancel a scheduled call. Unknown or already-run tokens are ignored."""


class EventLoopScheduler(Scheduler):
    def __init__(self, timefunc=time.monotonic, delayfunc=time.sleep):
        self._sched = sched.scheduler(timefunc, delayfunc)

    def schedule(self, delay, fn):
        LOG.debug("schedule %r in %.1fs", fn, delay)
        return self._sched.enter(max(delay, 0), 0, fn)

    def cancel(self, token):
        try:
            self._sched.cancel(token)
        except ValueError:
            pass

    def empty(self):
        return self._sched.empty()

    def run(self):
        """Run scheduled calls until none remain."""
        self._sched.run()
