"""Run events: listeners, the notifier that fans events out, and results."""

import logging
import threading
import time
import traceback
from dataclasses import dataclass
from typing import Callable, Optional

from selectrunner.errors import MultipleFailureException, StoppedByUserException
from selectrunner.framework.description import Description

logger = logging.getLogger(__name__)


@dataclass
class Failure:
    """A test (or the machinery around it) raised an exception."""

    description: Description
    exception: BaseException

    @property
    def test_header(self) -> str:
        return self.description.display_name

    @property
    def message(self) -> str:
        return str(self.exception)

    @property
    def trace(self) -> str:
        return "".join(
            traceback.format_exception(
                type(self.exception), self.exception, self.exception.__traceback__
            )
        )

    def __str__(self) -> str:
        return f"{self.test_header}: {self.message}"


class RunListener:
    """Receives run events. Override what you need; every hook defaults to a no-op."""

    def test_run_started(self, description: Description) -> None:
        pass

    def test_run_finished(self, result: "Result") -> None:
        pass

    def test_started(self, description: Description) -> None:
        pass

    def test_finished(self, description: Description) -> None:
        pass

    def test_failure(self, failure: Failure) -> None:
        pass

    def test_assumption_failure(self, failure: Failure) -> None:
        pass

    def test_ignored(self, description: Description) -> None:
        pass


class RunNotifier:
    """Fans run events out to listeners.

    Safe to use from several worker threads. A listener that raises is
    removed, and the failure is reported to the remaining listeners.
    """

    def __init__(self):
        self._listeners: list[RunListener] = []
        self._lock = threading.Lock()
        self._please_stop = False

    def add_listener(self, listener: RunListener) -> None:
        with self._lock:
            self._listeners = self._listeners + [listener]

    def add_first_listener(self, listener: RunListener) -> None:
        with self._lock:
            self._listeners = [listener] + self._listeners

    def remove_listener(self, listener: RunListener) -> None:
        with self._lock:
            self._listeners = [each for each in self._listeners if each is not listener]

    @property
    def listeners(self) -> list[RunListener]:
        return list(self._listeners)

    def _fire(self, notify: Callable[[RunListener], None]) -> None:
        failures = []
        for listener in self._listeners:
            try:
                notify(listener)
            except Exception as e:
                logger.exception("Run listener %r failed; removing it", listener)
                failures.append(Failure(Description.TEST_MECHANISM, e))
                self.remove_listener(listener)
        for failure in failures:
            self.fire_test_failure(failure)

    def fire_test_run_started(self, description: Description) -> None:
        self._fire(lambda listener: listener.test_run_started(description))

    def fire_test_run_finished(self, result: "Result") -> None:
        self._fire(lambda listener: listener.test_run_finished(result))

    def fire_test_started(self, description: Description) -> None:
        """Announce a test. Raises StoppedByUserException once a stop was requested."""
        if self._please_stop:
            raise StoppedByUserException()
        self._fire(lambda listener: listener.test_started(description))

    def fire_test_failure(self, failure: Failure) -> None:
        self._fire(lambda listener: listener.test_failure(failure))

    def fire_test_assumption_failed(self, failure: Failure) -> None:
        self._fire(lambda listener: listener.test_assumption_failure(failure))

    def fire_test_ignored(self, description: Description) -> None:
        self._fire(lambda listener: listener.test_ignored(description))

    def fire_test_finished(self, description: Description) -> None:
        self._fire(lambda listener: listener.test_finished(description))

    def please_stop(self) -> None:
        """Ask the run to stop before the next test starts."""
        self._please_stop = True


class EachTestNotifier:
    """Notifier bound to one description."""

    def __init__(self, notifier: RunNotifier, description: Description):
        self.notifier = notifier
        self.description = description

    def add_failure(self, exception: BaseException) -> None:
        if isinstance(exception, MultipleFailureException):
            for each in exception.failures:
                self.add_failure(each)
            return
        self.notifier.fire_test_failure(Failure(self.description, exception))

    def add_failed_assumption(self, exception: BaseException) -> None:
        self.notifier.fire_test_assumption_failed(Failure(self.description, exception))

    def fire_test_started(self) -> None:
        self.notifier.fire_test_started(self.description)

    def fire_test_finished(self) -> None:
        self.notifier.fire_test_finished(self.description)

    def fire_test_ignored(self) -> None:
        self.notifier.fire_test_ignored(self.description)


class Result:
    """Counts collected over a run. Safe to update from several worker threads."""

    def __init__(self):
        self.run_count = 0
        self.ignore_count = 0
        self.assumption_failure_count = 0
        self.failures: list[Failure] = []
        self.run_time_ms = 0
        self._start_time: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    def was_successful(self) -> bool:
        return self.failure_count == 0

    def create_listener(self) -> RunListener:
        return _ResultListener(self)

    def start_clock(self) -> None:
        self._start_time = time.monotonic()

    def stop_clock(self) -> None:
        if self._start_time is not None:
            self.run_time_ms = int((time.monotonic() - self._start_time) * 1000)

    def count_run(self) -> None:
        with self._lock:
            self.run_count += 1

    def add_failure(self, failure: Failure) -> None:
        with self._lock:
            self.failures.append(failure)

    def count_assumption_failure(self) -> None:
        with self._lock:
            self.assumption_failure_count += 1

    def count_ignored(self) -> None:
        with self._lock:
            self.ignore_count += 1

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "run_count": self.run_count,
            "failure_count": self.failure_count,
            "ignore_count": self.ignore_count,
            "assumption_failure_count": self.assumption_failure_count,
            "run_time_ms": self.run_time_ms,
            "failures": [str(f) for f in self.failures],
        }


class _ResultListener(RunListener):
    def __init__(self, result: Result):
        self.result = result

    def test_run_started(self, description: Description) -> None:
        self.result.start_clock()

    def test_run_finished(self, result: Result) -> None:
        self.result.stop_clock()

    def test_finished(self, description: Description) -> None:
        self.result.count_run()

    def test_failure(self, failure: Failure) -> None:
        self.result.add_failure(failure)

    def test_assumption_failure(self, failure: Failure) -> None:
        self.result.count_assumption_failure()

    def test_ignored(self, description: Description) -> None:
        self.result.count_ignored()
