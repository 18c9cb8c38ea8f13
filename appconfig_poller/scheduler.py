"""
Cancellable delayed tasks.

The poller never sleeps or creates timers itself. It asks a Scheduler to run
the next refresh later and keeps the returned ScheduledTask so stop() can
cancel it. Two implementations:
- ThreadingScheduler: real delays on daemon threading.Timer threads
- ManualScheduler: virtual clock, tasks only run when advance() is called
"""
import heapq
import itertools
import logging
import threading
import time
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger("appconfig_poller.scheduler")


class ScheduledTask:
    """Handle to a callback scheduled to run once after a delay."""

    def __init__(self, fn: Callable[[], None], due: float):
        self.fn = fn
        self.due = due
        self._cancelled = False
        self._timer: Optional[threading.Timer] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call more than once."""
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def run(self) -> None:
        if self._cancelled:
            return
        self.fn()


class Scheduler(Protocol):
    """Anything that can run a callback once after a delay."""

    def call_later(self, delay_seconds: float, fn: Callable[[], None]) -> ScheduledTask:
        ...


class ThreadingScheduler:
    """
    Runs each task on its own daemon timer thread.

    Daemon threads keep a forgotten poller from holding the interpreter open
    at exit.
    """

    def __init__(self, thread_name_prefix: str = "config-poller"):
        self._thread_name_prefix = thread_name_prefix
        self._counter = itertools.count(1)

    def call_later(self, delay_seconds: float, fn: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(fn, due=time.monotonic() + delay_seconds)

        def _run() -> None:
            try:
                task.run()
            except Exception as e:
                logger.exception(f"Scheduled task raised: {e}")

        timer = threading.Timer(delay_seconds, _run)
        timer.daemon = True
        timer.name = f"{self._thread_name_prefix}-{next(self._counter)}"
        task._timer = timer
        timer.start()
        return task


class ManualScheduler:
    """
    Scheduler driven by a virtual clock.

    Nothing runs until advance() or run_next() is called, and tasks run on
    the calling thread. Tasks scheduled by a running task are picked up in
    the same advance() call if they fall due inside the window.

    Usage:
        scheduler = ManualScheduler()
        poller = Poller(client, params, scheduler=scheduler)
        poller.start()
        scheduler.advance(30)   # runs the next refresh
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, ScheduledTask]] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        """Current virtual time in seconds."""
        return self._now

    @property
    def pending(self) -> List[ScheduledTask]:
        """Tasks still waiting to run, earliest first."""
        return [task for _, _, task in sorted(self._queue) if not task.cancelled]

    def call_later(self, delay_seconds: float, fn: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(fn, due=self._now + delay_seconds)
        heapq.heappush(self._queue, (task.due, next(self._seq), task))
        return task

    def _pop_due(self, until: float) -> Optional[ScheduledTask]:
        while self._queue:
            due, _, task = self._queue[0]
            if task.cancelled:
                heapq.heappop(self._queue)
                continue
            if due > until:
                return None
            heapq.heappop(self._queue)
            return task
        return None

    def run_next(self) -> bool:
        """
        Jump the clock to the earliest pending task and run it.

        Returns:
            False if nothing was pending
        """
        task = self._pop_due(float("inf"))
        if task is None:
            return False
        self._now = max(self._now, task.due)
        task.run()
        return True

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running every task that falls due.

        Returns:
            Number of tasks run
        """
        target = self._now + seconds
        ran = 0
        while True:
            task = self._pop_due(target)
            if task is None:
                break
            self._now = max(self._now, task.due)
            task.run()
            ran += 1
        self._now = target
        return ran
