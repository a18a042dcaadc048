"""Statements: composable units of test execution.

Each combinator wraps an inner statement and adds one piece of lifecycle
behaviour. The runner builds a chain of them per test and per class.
"""

import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from selectrunner.errors import (
    AssumptionViolatedException,
    MultipleFailureException,
    TestTimedOutException,
)
from selectrunner.framework.description import Description
from selectrunner.framework.model import FrameworkMethod


class Statement(ABC):
    """A single runnable step of a test."""

    @abstractmethod
    def evaluate(self) -> None:
        """Run the step, raising on failure."""
        pass


class CallableStatement(Statement):
    def __init__(self, fn: Callable[[], Any]):
        self.fn = fn

    def evaluate(self) -> None:
        self.fn()


class InvokeMethod(Statement):
    def __init__(self, test_method: FrameworkMethod, target: Any):
        self.test_method = test_method
        self.target = target

    def evaluate(self) -> None:
        self.test_method.invoke_explosively(self.target)


class Fail(Statement):
    def __init__(self, error: BaseException):
        self.error = error

    def evaluate(self) -> None:
        raise self.error


class RunBefores(Statement):
    """Run every ``befores`` method, then the inner statement.

    The first failing method aborts the rest, including the inner statement.
    """

    def __init__(self, next: Statement, befores: list[FrameworkMethod], target: Any):
        self.next = next
        self.befores = befores
        self.target = target

    def evaluate(self) -> None:
        for before in self.befores:
            before.invoke_explosively(self.target)
        self.next.evaluate()


class RunAfters(Statement):
    """Run the inner statement, then every ``afters`` method no matter what.

    All failures, from the inner statement and from each after method, are
    collected and raised together.
    """

    def __init__(self, next: Statement, afters: list[FrameworkMethod], target: Any):
        self.next = next
        self.afters = afters
        self.target = target

    def evaluate(self) -> None:
        errors: list[BaseException] = []
        try:
            self.next.evaluate()
        except (Exception, SystemExit) as e:
            errors.append(e)
        finally:
            for each in self.afters:
                try:
                    each.invoke_explosively(self.target)
                except (Exception, SystemExit) as e:
                    errors.append(e)
        MultipleFailureException.assert_empty(errors)


class ExpectException(Statement):
    """Pass only if the inner statement raises ``expected``.

    ``expected`` may be any ``BaseException`` subclass, so ``SystemExit`` can
    be expected. An unexpected ``KeyboardInterrupt`` always propagates.
    """

    def __init__(self, next: Statement, expected: type):
        self.next = next
        self.expected = expected

    def evaluate(self) -> None:
        complete = False
        try:
            self.next.evaluate()
            complete = True
        except AssumptionViolatedException as e:
            if not issubclass(type(e), self.expected):
                raise
        except BaseException as e:
            if isinstance(e, self.expected):
                pass
            elif isinstance(e, KeyboardInterrupt):
                raise
            else:
                raise AssertionError(
                    f"Unexpected exception, expected<{_qualified(self.expected)}> "
                    f"but was<{_qualified(type(e))}>"
                ) from e
        if complete:
            raise AssertionError(f"Expected exception: {_qualified(self.expected)}")


class TimeUnit(Enum):
    SECONDS = ("seconds", 1.0)
    MILLISECONDS = ("milliseconds", 0.001)

    def __init__(self, label: str, factor: float):
        self.label = label
        self.factor = factor

    def to_seconds(self, value: float) -> float:
        return value * self.factor


class FailOnTimeout(Statement):
    """Run the inner statement on a watchdog thread and fail if it overruns.

    Python threads cannot be killed, so an overrunning body keeps running on
    its daemon thread after the timeout has been reported.
    """

    def __init__(self, next: Statement, timeout: float, unit: TimeUnit = TimeUnit.MILLISECONDS):
        self.next = next
        self.timeout = timeout
        self.unit = unit

    @classmethod
    def builder(cls) -> "FailOnTimeoutBuilder":
        return FailOnTimeoutBuilder()

    def evaluate(self) -> None:
        outcome: dict[str, BaseException] = {}

        def call() -> None:
            try:
                self.next.evaluate()
            except BaseException as e:
                outcome["error"] = e

        worker = threading.Thread(target=call, name="Time-limited test", daemon=True)
        worker.start()
        worker.join(self.unit.to_seconds(self.timeout) if self.timeout > 0 else None)
        if worker.is_alive():
            raise TestTimedOutException(self.timeout, self.unit.label)
        if "error" in outcome:
            raise outcome["error"]


class FailOnTimeoutBuilder:
    def __init__(self):
        self._timeout: float = 0
        self._unit = TimeUnit.SECONDS

    def with_timeout(self, timeout: float, unit: TimeUnit) -> "FailOnTimeoutBuilder":
        if timeout < 0:
            raise ValueError("timeout must be non-negative")
        self._timeout = timeout
        self._unit = unit
        return self

    def build(self, statement: Statement) -> FailOnTimeout:
        return FailOnTimeout(statement, self._timeout, self._unit)


class RunRules(Statement):
    """Apply each rule in turn around ``base``; the last rule ends up outermost."""

    def __init__(self, base: Statement, rules: Iterable[Any], description: Description):
        self.statement = self.apply_all(base, rules, description)

    @staticmethod
    def apply_all(result: Statement, rules: Iterable[Any], description: Description) -> Statement:
        for each in rules:
            result = each.apply(result, description)
        return result

    def evaluate(self) -> None:
        self.statement.evaluate()


def _qualified(cls: Optional[type]) -> str:
    if cls is None:
        return "None"
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"
