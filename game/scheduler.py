"""
Cooperative scheduler: the single tick source the host drives.

Nothing here starts threads or sleeps. The host calls ``run_pending()``
(on every request, from the ``run_game_loop`` command, or from a test with a
fake clock) and due callbacks run one at a time in due order. A periodic
task is rescheduled only after its callback returned, so two runs of the
same task can never overlap.
"""
import heapq
import itertools
import logging
import threading
import time

logger = logging.getLogger(__name__)

# A periodic task that is more than this many intervals late skips ahead
MAX_LAG_INTERVALS = 100


class Task:
    def __init__(self, due, callback, args=(), interval=None, key=None):
        self.due = due
        self.callback = callback
        self.args = args
        self.interval = interval
        self.key = key
        self.cancelled = False

    def __repr__(self):
        return f"Task(key={self.key!r}, due={self.due:.3f}, interval={self.interval})"


class Scheduler:
    def __init__(self, clock=time.time):
        self.clock = clock
        self._queue = []
        self._counter = itertools.count()
        self._keyed = {}
        self._lock = threading.Lock()

    def __len__(self):
        return sum(1 for _, _, task in self._queue if not task.cancelled)

    def _push(self, task):
        with self._lock:
            if task.key is not None:
                old = self._keyed.get(task.key)
                if old is not None:
                    old.cancelled = True
                self._keyed[task.key] = task
            heapq.heappush(self._queue, (task.due, next(self._counter), task))
        return task

    def call_later(self, delay, callback, *args, key=None) -> Task:
        """Run ``callback(*args)`` once, ``delay`` seconds from now."""
        return self._push(Task(self.clock() + delay, callback, args, key=key))

    def call_every(self, interval, callback, *args, key=None) -> Task:
        """Run ``callback(*args)`` every ``interval`` seconds, first run one interval from now."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        return self._push(Task(self.clock() + interval, callback, args, interval=interval, key=key))

    def cancel(self, key_or_task) -> bool:
        with self._lock:
            if isinstance(key_or_task, Task):
                task = key_or_task
                if task.key is not None and self._keyed.get(task.key) is task:
                    del self._keyed[task.key]
            else:
                task = self._keyed.pop(key_or_task, None)
            if task is None or task.cancelled:
                return False
            task.cancelled = True
            return True

    def scheduled(self, key) -> bool:
        task = self._keyed.get(key)
        return task is not None and not task.cancelled

    def next_due(self):
        with self._lock:
            for due, _, task in sorted(self._queue):
                if not task.cancelled:
                    return due
        return None

    def _pop_due(self, now):
        with self._lock:
            while self._queue:
                due, _, task = self._queue[0]
                if task.cancelled:
                    heapq.heappop(self._queue)
                    continue
                if due > now:
                    return None
                heapq.heappop(self._queue)
                if task.interval is None and self._keyed.get(task.key) is task:
                    del self._keyed[task.key]
                return task
        return None

    def _reschedule(self, task, now):
        if task.cancelled:
            return
        next_due = task.due + task.interval
        if now - next_due > task.interval * MAX_LAG_INTERVALS:
            skipped = int((now - next_due) // task.interval)
            logger.info("Task %r is %d intervals behind, skipping ahead", task.key, skipped)
            next_due += skipped * task.interval
        task.due = next_due
        with self._lock:
            if task.cancelled:
                return
            heapq.heappush(self._queue, (task.due, next(self._counter), task))

    def run_pending(self, now=None, limit=None) -> int:
        """
        Run every task due at ``now`` (default: the clock), oldest first.
        Callbacks run outside the scheduler lock so they may schedule or
        cancel tasks. Returns how many callbacks ran.
        """
        now = self.clock() if now is None else now
        ran = 0
        while limit is None or ran < limit:
            task = self._pop_due(now)
            if task is None:
                break
            try:
                task.callback(*task.args)
            except Exception:
                logger.exception("Scheduled task %r failed", task.key)
            ran += 1
            if task.interval is not None:
                self._reschedule(task, now)
        return ran
