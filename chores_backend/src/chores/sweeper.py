"""Periodic sweep that advances overdue recurring tasks."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Set

from .clock import Clock, SystemClock
from .frequency import next_due, parse_frequency
from .repositories import Repository, TaskQuery


@dataclass
class SweepResult:
    """Outcome of one sweep tick."""

    ran_at: datetime
    advanced: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)


class DueDateSweeper:
    """
    Finds tasks whose next_due has passed and moves them to their next occurrence.

    Each tick stamps last_completed with the tick time and recomputes next_due
    from it. is_done is left alone. A failure on one task is logged and the
    remaining tasks are still processed.
    """

    def __init__(self, repo: Repository, clock: Optional[Clock] = None, interval_seconds: float = 3600.0):
        """
        Initialize the sweeper.

        Args:
            repo: Task store shared with the request handlers
            clock: Time source; defaults to the system clock
            interval_seconds: Delay between ticks once started
        """
        self.repo = repo
        self.clock = clock or SystemClock()
        self.interval_seconds = max(1.0, float(interval_seconds))
        self.logger = logging.getLogger("chores.sweeper")
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._unknown_labels: Set[int] = set()

    @property
    def running(self) -> bool:
        return self._running

    def sweep_once(self) -> SweepResult:
        """Run a single tick synchronously and report what happened."""
        now = self.clock.now()
        result = SweepResult(ran_at=now)

        try:
            due_tasks = self.repo.find_many(TaskQuery(next_due_before=now))
        except Exception:
            self.logger.exception("Failed to fetch due tasks")
            return result

        if not due_tasks:
            self.logger.debug("No due tasks at %s", now.isoformat())
            return result

        for task in due_tasks:
            task_id = task["id"]
            try:
                if parse_frequency(task["frequency"]) is None:
                    level = logging.DEBUG if task_id in self._unknown_labels else logging.WARNING
                    self._unknown_labels.add(task_id)
                    self.logger.log(
                        level,
                        "Task %s has unrecognized frequency %r; next_due stays at tick time",
                        task_id,
                        task["frequency"],
                    )
                task["last_completed"] = now
                task["next_due"] = next_due(task["frequency"], now)
                self.repo.save(task)
            except Exception:
                self.logger.exception("Failed to advance task %s", task_id)
                result.failed.append(task_id)
                continue
            self.logger.info("Task %s advanced, next due %s", task_id, task["next_due"].isoformat())
            result.advanced.append(task_id)

        return result

    async def run(self) -> None:
        """Main loop: sweep, then sleep for the configured interval."""
        self.logger.info("Sweeper started (interval=%ss)", self.interval_seconds)
        while self._running:
            try:
                await asyncio.to_thread(self.sweep_once)
            except Exception:
                self.logger.exception("Error in sweeper loop")
            await asyncio.sleep(self.interval_seconds)

    async def start(self) -> None:
        """Start the background loop."""
        if self._running:
            self.logger.warning("Sweeper already running")
            return

        self._running = True
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Stop the background loop and wait for it to finish."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.logger.info("Sweeper stopped")
