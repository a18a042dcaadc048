"""Assumptions: skip a test when a precondition does not hold."""

from typing import Any, Callable, Optional

from selectrunner.errors import AssumptionViolatedException


def assume_true(condition: bool, message: Optional[str] = None) -> None:
    if not condition:
        raise AssumptionViolatedException(message or "got: <False>, expected: is <True>")


def assume_false(condition: bool, message: Optional[str] = None) -> None:
    assume_true(not condition, message or "got: <True>, expected: is <False>")


def assume_not_none(*objects: Any) -> None:
    for each in objects:
        if each is None:
            raise AssumptionViolatedException("got: <None>, expected: every item is not None")


def assume_no_exception(fn: Callable[[], Any], message: Optional[str] = None) -> Any:
    """Call ``fn``; if it raises, treat the test as skipped rather than failed."""
    try:
        return fn()
    except Exception as e:
        raise AssumptionViolatedException(message or f"got: <{e!r}>, expected: no exception") from e
