import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


@dataclass(eq=False)
class ScheduledTask:
    deadline: float
    callback: Callable[..., Any]
    args: Tuple[Any, ...]


class TaskScheduler:
    """Cancellable one-shot timers keyed by (room_code, purpose).

    Scheduling a key replaces whatever was pending under it. Each timer runs
    in a background task that sleeps until its deadline and then checks that
    it is still the current task for its key; a cancelled or replaced timer
    wakes up to find itself gone and does nothing.

    With ``spawn=None`` no background work is started and due tasks only run
    when ``run_due()`` is called. Tests use that with a fake clock.
    """

    def __init__(self, spawn=None, sleep=time.sleep, clock=time.monotonic, logger=None):
        self._spawn = spawn
        self._sleep = sleep
        self._clock = clock
        self._tasks: Dict[Hashable, ScheduledTask] = {}
        self._periodic: Dict[Hashable, float] = {}
        self._lock = threading.Lock()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def background(self) -> bool:
        return self._spawn is not None

    def schedule(self, key: Hashable, delay: float, callback: Callable[..., Any], *args) -> ScheduledTask:
        task = ScheduledTask(deadline=self._clock() + delay, callback=callback, args=args)
        with self._lock:
            self._tasks[key] = task
        self.logger.info(f"[timer-set] key={key} delay={delay}s")
        if self._spawn is not None:
            self._spawn(self._worker, key, task)
        return task

    def cancel(self, key: Hashable) -> bool:
        with self._lock:
            return self._tasks.pop(key, None) is not None

    def cancel_room(self, code: str) -> int:
        with self._lock:
            keys = [k for k in self._tasks if isinstance(k, tuple) and k and k[0] == code]
            for k in keys:
                del self._tasks[k]
        return len(keys)

    def is_pending(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._tasks

    def deadline(self, key: Hashable) -> Optional[float]:
        with self._lock:
            task = self._tasks.get(key)
        return task.deadline if task else None

    def run_due(self) -> int:
        """Fire every task whose deadline has passed. Returns how many ran."""
        now = self._clock()
        with self._lock:
            due = [(k, t) for k, t in self._tasks.items() if t.deadline <= now]
        fired = 0
        for key, task in due:
            if self._fire(key, task):
                fired += 1
        return fired

    def _claim(self, key: Hashable, task: ScheduledTask) -> bool:
        with self._lock:
            if self._tasks.get(key) is not task:
                return False
            del self._tasks[key]
            return True

    def _fire(self, key: Hashable, task: ScheduledTask) -> bool:
        # Callbacks run outside our lock: they take the store lock, and the
        # store calls back into cancel() while holding it.
        if not self._claim(key, task):
            self.logger.info(f"[timer-abort] key={key} cancelled or replaced")
            return False
        self.logger.info(f"[timer-fire] key={key}")
        task.callback(*task.args)
        return True

    def _worker(self, key: Hashable, task: ScheduledTask) -> None:
        remaining = task.deadline - self._clock()
        if remaining > 0:
            self._sleep(remaining)
        try:
            self._fire(key, task)
        except Exception:
            self.logger.exception(f"[timer-error] key={key}")

    # ---- periodic ----

    def start_periodic(self, key: Hashable, interval: float, callback: Callable[[], Any]) -> bool:
        """Run ``callback`` every ``interval`` seconds until ``stop_periodic``."""
        if self._spawn is None:
            return False
        with self._lock:
            if key in self._periodic:
                return False
            self._periodic[key] = interval
        self._spawn(self._periodic_worker, key, interval, callback)
        return True

    def stop_periodic(self, key: Hashable) -> None:
        with self._lock:
            self._periodic.pop(key, None)

    def _periodic_worker(self, key: Hashable, interval: float, callback: Callable[[], Any]) -> None:
        while True:
            self._sleep(interval)
            with self._lock:
                if key not in self._periodic:
                    return
            try:
                callback()
            except Exception:
                self.logger.exception(f"[periodic-error] key={key}")
