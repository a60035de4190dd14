"""Thread-pool supervisor for background job tasks."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
import logging
import threading
from typing import Callable

from .interfaces import TaskSupervisorPort

logger = logging.getLogger(__name__)


class ThreadPoolTaskSupervisor(TaskSupervisorPort):
    """Run submitted tasks on a bounded worker pool and log their failures.

    The executor queue is unbounded so submission never blocks; the worker
    count bounds how many tasks run at once.
    """

    def __init__(self, max_workers: int = 8):
        """Initialize supervisor worker pool.

        Args:
            max_workers: Number of worker threads.

        Raises:
            ValueError: Raised when max_workers is not positive.
        """

        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="analysis-job")
        self._lock = threading.Lock()
        self._in_flight = 0
        self._is_shut_down = False

    def supervisor_submit(self, task_name: str, task: Callable[[], None]) -> None:
        """Schedule one task; see `TaskSupervisorPort`."""

        with self._lock:
            if self._is_shut_down:
                raise RuntimeError("supervisor is shut down")
            self._in_flight += 1
        try:
            future = self._executor.submit(self._supervisor_run, task_name, task)
        except RuntimeError:
            self._supervisor_release(None)
            raise
        future.add_done_callback(self._supervisor_release)

    def supervisor_in_flight_count(self) -> int:
        """Return the number of queued or running tasks."""

        with self._lock:
            return self._in_flight

    def supervisor_shutdown(self, drain: bool = True) -> None:
        """Stop accepting tasks.

        Args:
            drain: When True wait for queued and running tasks; otherwise cancel
                queued tasks and return immediately.

        Returns:
            None: Pool is shut down as side effect.
        """

        with self._lock:
            self._is_shut_down = True
            pending_count = self._in_flight
        logger.info("supervisor shutting down drain=%s in_flight=%s", drain, pending_count)
        self._executor.shutdown(wait=drain, cancel_futures=not drain)

    def _supervisor_run(self, task_name: str, task: Callable[[], None]) -> None:
        """Execute one task and log any exception it raises."""

        try:
            task()
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("background task failed task_name=%s", task_name)

    def _supervisor_release(self, _future: Future | None) -> None:
        """Decrement the in-flight counter once a task finished or was cancelled."""

        with self._lock:
            self._in_flight -= 1
