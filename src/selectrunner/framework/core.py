"""Entry points that run a runner with listeners attached."""

from abc import ABC, abstractmethod
from typing import Optional

from selectrunner.framework.description import Description
from selectrunner.framework.notification import Result, RunListener, RunNotifier


class Runner(ABC):
    """Something that can describe and run a tree of tests."""

    @abstractmethod
    def describe(self) -> Description:
        pass

    @abstractmethod
    def run(self, notifier: RunNotifier) -> None:
        pass

    def test_count(self) -> int:
        return self.describe().test_count()


class RunnerCore:
    """Runs a runner, wiring a Result and any extra listeners to one notifier."""

    def __init__(self, notifier: Optional[RunNotifier] = None):
        self.notifier = notifier or RunNotifier()

    def add_listener(self, listener: RunListener) -> None:
        self.notifier.add_listener(listener)

    def remove_listener(self, listener: RunListener) -> None:
        self.notifier.remove_listener(listener)

    def run(self, runner: Runner) -> Result:
        result = Result()
        listener = result.create_listener()
        self.notifier.add_first_listener(listener)
        try:
            self.notifier.fire_test_run_started(runner.describe())
            runner.run(self.notifier)
            self.notifier.fire_test_run_finished(result)
        finally:
            self.remove_listener(listener)
        return result


def run_with_listeners(runner: Runner, *listeners: RunListener) -> Result:
    core = RunnerCore()
    for listener in listeners:
        core.add_listener(listener)
    return core.run(runner)
