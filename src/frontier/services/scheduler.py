"""Delayed follow-up tasks (store refills, banner clears, effect flashes)."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScheduledTask:
    key: str
    due: float
    run_id: str
    callback: Callable[[], None]


class TaskScheduler:
    """Keyed one-shot timers driven by explicit ``run_due`` calls.

    Scheduling a key that is already pending replaces the earlier task. Callbacks receive no
    arguments and are expected to check that their run is still current before acting.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._tasks: Dict[str, ScheduledTask] = {}

    def schedule(self, key: str, delay: float, run_id: str, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(key=key, due=self._clock() + max(0.0, delay), run_id=run_id, callback=callback)
        self._tasks[key] = task
        return task

    def cancel(self, key: str) -> bool:
        return self._tasks.pop(key, None) is not None

    def cancel_run(self, run_id: str) -> int:
        """Drop every pending task belonging to ``run_id``."""
        stale = [key for key, task in self._tasks.items() if task.run_id == run_id]
        for key in stale:
            del self._tasks[key]
        return len(stale)

    def pending(self) -> List[ScheduledTask]:
        return sorted(self._tasks.values(), key=lambda task: task.due)

    def is_pending(self, key: str) -> bool:
        return key in self._tasks

    def run_due(self, now: float | None = None) -> int:
        """Run every task whose due time has passed, earliest first; return how many ran."""
        current = self._clock() if now is None else now
        ran = 0
        for task in [task for task in self.pending() if task.due <= current]:
            # An earlier callback may have cancelled or replaced this key.
            if self._tasks.get(task.key) is not task:
                continue
            del self._tasks[task.key]
            logger.debug("Running scheduled task %s for run %s", task.key, task.run_id)
            task.callback()
            ran += 1
        return ran
