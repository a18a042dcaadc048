"""Schedulers decide where and when each test method runs."""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Optional

from selectrunner.config import ExecutionConfig
from selectrunner.errors import MultipleFailureException

logger = logging.getLogger(__name__)


class RunnerScheduler(ABC):
    """Dispatches per-method work units."""

    @abstractmethod
    def schedule(self, child_statement: Callable[[], None]) -> None:
        """Run (or arrange to run) one work unit."""
        pass

    @abstractmethod
    def finished(self) -> None:
        """Block until every scheduled work unit has completed."""
        pass


class SynchronousScheduler(RunnerScheduler):
    """Runs each work unit immediately on the calling thread."""

    def schedule(self, child_statement: Callable[[], None]) -> None:
        child_statement()

    def finished(self) -> None:
        pass


class ThreadPoolScheduler(RunnerScheduler):
    """Runs work units on a pool of worker threads.

    ``finished`` waits for everything scheduled since the previous call, so
    one scheduler can serve several classes in turn. Errors raised by work
    units are re-raised from ``finished``, wrapped together when there are
    several.
    """

    def __init__(self, max_workers: int = 4):
        self.max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: list[Future] = []
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="selectrunner"
            )
        return self._executor

    def schedule(self, child_statement: Callable[[], None]) -> None:
        with self._lock:
            self._pending.append(self._get_executor().submit(child_statement))

    def finished(self) -> None:
        with self._lock:
            pending, self._pending = self._pending, []
        if not pending:
            return
        logger.debug("Waiting for %d scheduled test(s)", len(pending))
        wait(pending)
        errors = [f.exception() for f in pending if f.exception() is not None]
        MultipleFailureException.assert_empty(errors)

    def shutdown(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def __enter__(self) -> "ThreadPoolScheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()


def create_scheduler(config: ExecutionConfig) -> RunnerScheduler:
    """Build the scheduler named by the execution config."""
    if config.scheduler == "parallel":
        return ThreadPoolScheduler(max_workers=config.max_workers)
    return SynchronousScheduler()
