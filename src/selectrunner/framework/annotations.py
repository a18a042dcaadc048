"""Lifecycle markers for test classes.

Markers are plain frozen dataclasses attached to functions, classes and
fields by the lower-case decorators below, e.g.::

    class AccountTests:
        folder = rule_field(TemporaryFolder)

        @before_class
        @classmethod
        def open_db(cls): ...

        @before
        def set_up(self): ...

        @test(expected=KeyError, timeout=200)
        def lookup_missing(self): ...
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

ANNOTATIONS_ATTR = "__selectrunner_annotations__"


class NoException(Exception):
    """Sentinel for a test that does not expect any exception."""

    pass


@dataclass(frozen=True)
class Test:
    """Marks a method as a test."""

    __test__ = False

    expected: type = NoException
    timeout: int = 0


@dataclass(frozen=True)
class Before:
    pass


@dataclass(frozen=True)
class After:
    pass


@dataclass(frozen=True)
class BeforeClass:
    pass


@dataclass(frozen=True)
class AfterClass:
    pass


@dataclass(frozen=True)
class Ignore:
    reason: str = ""


@dataclass(frozen=True)
class Rule:
    pass


@dataclass(frozen=True)
class ClassRule:
    pass


def _unwrap(obj: Any) -> Any:
    if isinstance(obj, (classmethod, staticmethod)):
        return obj.__func__
    return obj


def annotations_of(obj: Any) -> dict[type, Any]:
    """Return the markers attached to a function, class or member wrapper."""
    target = _unwrap(obj)
    if isinstance(target, type):
        # Class markers are not inherited.
        return dict(vars(target).get(ANNOTATIONS_ATTR) or {})
    return dict(getattr(target, ANNOTATIONS_ATTR, None) or {})


def annotate(obj: Any, annotation: Any) -> Any:
    """Attach ``annotation`` to ``obj`` and return ``obj`` unchanged."""
    target = _unwrap(obj)
    markers = annotations_of(target)
    markers[type(annotation)] = annotation
    setattr(target, ANNOTATIONS_ATTR, markers)
    return obj


def test(
    func: Optional[Callable] = None,
    *,
    expected: type = NoException,
    timeout: int = 0,
):
    """Mark a method as a test, optionally with an expected exception or timeout (ms)."""
    annotation = Test(expected=expected, timeout=timeout)
    if func is None:
        return lambda f: annotate(f, annotation)
    return annotate(func, annotation)


test.__test__ = False


def ignore(func: Any = None, *, reason: str = ""):
    """Mark a test as ignored. ``@ignore``, ``@ignore("why")`` and ``@ignore(reason=...)`` all work."""
    if isinstance(func, str):
        reason, func = func, None
    annotation = Ignore(reason=reason)
    if func is None:
        return lambda f: annotate(f, annotation)
    return annotate(func, annotation)


def before(func: Callable) -> Callable:
    return annotate(func, Before())


def after(func: Callable) -> Callable:
    return annotate(func, After())


def before_class(func: Any) -> Any:
    return annotate(func, BeforeClass())


def after_class(func: Any) -> Any:
    return annotate(func, AfterClass())


def rule(func: Callable) -> Callable:
    """Mark an instance method whose return value is a rule."""
    return annotate(func, Rule())


def class_rule(func: Any) -> Any:
    """Mark a classmethod or staticmethod whose return value is a class rule."""
    return annotate(func, ClassRule())


class AnnotatedField:
    """A class attribute carrying a marker.

    Instance fields are built by ``factory`` once per test instance, the way a
    field initializer runs once per fixture. Class fields hold one value.
    """

    def __init__(
        self,
        annotation: Any,
        value: Any = None,
        factory: Optional[Callable[[], Any]] = None,
    ):
        self.annotation = annotation
        self.value = value
        self.factory = factory
        self.name: Optional[str] = None

    @property
    def annotations(self) -> dict[type, Any]:
        return {type(self.annotation): self.annotation}

    @property
    def is_static(self) -> bool:
        return self.factory is None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if self.is_static:
            return self.value
        if instance is None:
            return self
        # Cache in the instance dict; later lookups bypass the descriptor.
        value = self.factory()
        instance.__dict__[self.name] = value
        return value


def rule_field(factory: Callable[[], Any]) -> AnnotatedField:
    """Declare a per-instance rule field built by ``factory``."""
    return AnnotatedField(Rule(), factory=factory)


def class_rule_field(value: Any) -> AnnotatedField:
    """Declare a class-level rule field."""
    return AnnotatedField(ClassRule(), value=value)
