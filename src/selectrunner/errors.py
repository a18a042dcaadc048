"""Exception kinds raised while loading a suite and while running it."""

from typing import Iterable


class SelectRunnerError(Exception):
    """Base class for all selectrunner errors."""

    pass


class SuiteLoadError(SelectRunnerError):
    """Raised when the XML suite cannot be turned into a test plan."""

    pass


class XmlWithTestsNotFound(SuiteLoadError):
    """The suite file cannot be opened or parsed."""

    pass


class XmlTestClassesNotFound(SuiteLoadError):
    """The suite file declares no test classes."""

    pass


class ClassWithTestsNotFound(SuiteLoadError):
    """A class named in the suite cannot be resolved."""

    pass


class NonExistentTestsDetected(SuiteLoadError):
    """The suite names methods that are not test methods of their class."""

    def __init__(self, message: str, method_names: Iterable[str] = ()):
        super().__init__(message)
        self.method_names = tuple(method_names)


class InitializationError(SelectRunnerError):
    """Raised when a test class cannot be modelled."""

    pass


class AssumptionViolatedException(SelectRunnerError):
    """A test's assumption does not hold; the test is skipped, not failed."""

    pass


class StoppedByUserException(SelectRunnerError):
    """Raised when a run was asked to stop before a test started."""

    pass


class TestTimedOutException(SelectRunnerError):
    """A test exceeded its declared timeout."""

    __test__ = False

    def __init__(self, timeout: float, unit_name: str):
        super().__init__(f"test timed out after {timeout:g} {unit_name}")
        self.timeout = timeout
        self.unit_name = unit_name


class MultipleFailureException(SelectRunnerError):
    """Several failures collected while running one statement."""

    def __init__(self, errors: list[BaseException]):
        self.failures = list(errors)
        details = "\n".join(
            f"  {type(e).__name__}({e})" for e in self.failures
        )
        super().__init__(f"There were {len(self.failures)} errors:\n{details}")

    @staticmethod
    def assert_empty(errors: list[BaseException]) -> None:
        """Raise nothing, the single error, or all errors wrapped together."""
        if not errors:
            return
        if len(errors) == 1:
            raise errors[0]
        raise MultipleFailureException(errors)
