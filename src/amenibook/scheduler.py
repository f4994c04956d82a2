"""
In-process scheduler for booking job processing.

Runs the processing pass on a fixed interval plus an hourly health log.
Every pass, timed or manual, goes through one lock so two passes never
overlap: a timer tick that finds a pass in flight skips itself, a manual
trigger waits its turn.
"""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

BOOKING_TASK = "booking-processor"
HEALTH_TASK = "health-check"

DEFAULT_INTERVAL_MINUTES = 15
DEFAULT_HEALTH_INTERVAL_MINUTES = 60
STOP_TIMEOUT_SECONDS = 30


class ScheduledTask:
    """Calls ``action`` every ``interval_seconds`` on a daemon thread."""

    def __init__(self, name: str, interval_seconds: float, action: Callable[[], object]):
        self.name = name
        self.interval_seconds = interval_seconds
        self.action = action
        self._stop = threading.Event()
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=f"amenibook-{self.name}", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.action()
            except Exception as e:
                logger.error(f"Error in scheduled task {self.name}: {e}", exc_info=True)

    def stop(self, timeout: float = STOP_TIMEOUT_SECONDS) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning(f"Task {self.name} still running after {timeout}s, abandoning it")


class Scheduler:
    def __init__(
        self,
        process_pass: Callable[[], object],
        interval_minutes: float = DEFAULT_INTERVAL_MINUTES,
        health_interval_minutes: float = DEFAULT_HEALTH_INTERVAL_MINUTES,
    ):
        self._process_pass = process_pass
        self.interval_minutes = interval_minutes
        self.health_interval_minutes = health_interval_minutes
        self._pass_lock = threading.Lock()
        self._tasks: dict[str, ScheduledTask] = {}

    def start(self) -> None:
        if self._tasks:
            logger.warning("Scheduler already running, ignoring start")
            return

        logger.info("Starting scheduler service...")

        self._tasks[BOOKING_TASK] = ScheduledTask(BOOKING_TASK, self.interval_minutes * 60, self._tick)
        self._tasks[HEALTH_TASK] = ScheduledTask(HEALTH_TASK, self.health_interval_minutes * 60, self._health_check)

        for task in self._tasks.values():
            task.start()

        logger.info(f"Scheduler started: booking pass every {self.interval_minutes} minutes")

    def stop(self, timeout: float = STOP_TIMEOUT_SECONDS) -> None:
        logger.info("Stopping scheduler service...")
        for name, task in self._tasks.items():
            task.stop(timeout)
            logger.debug(f"Stopped task: {name}")
        self._tasks.clear()
        logger.info("Scheduler service stopped")

    def _tick(self):
        if not self._pass_lock.acquire(blocking=False):
            logger.warning("Previous booking pass still running, skipping this tick")
            return None
        try:
            logger.debug("Running scheduled booking job processing...")
            return self._process_pass()
        finally:
            self._pass_lock.release()

    def trigger(self):
        """Run one full processing pass now, after any pass already in flight."""
        logger.info("Manually triggering booking job processing...")
        with self._pass_lock:
            result = self._process_pass()
        logger.info("Manual booking processing completed")
        return result

    def _health_check(self) -> None:
        logger.info(f"Scheduler health check - Active tasks: {len(self._tasks)}")

    def get_task_status(self) -> dict[str, bool]:
        return {name: task.is_running for name, task in self._tasks.items()}
