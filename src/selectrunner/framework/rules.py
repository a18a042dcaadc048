"""Rules wrap a statement to add behaviour around a test or a whole class."""

import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from selectrunner.errors import AssumptionViolatedException, MultipleFailureException
from selectrunner.framework.description import Description
from selectrunner.framework.model import FrameworkMethod
from selectrunner.framework.statements import CallableStatement, FailOnTimeout, Statement, TimeUnit


class TestRule(ABC):
    """Transforms the statement for a test (or, as a class rule, a class)."""

    __test__ = False

    @abstractmethod
    def apply(self, base: Statement, description: Description) -> Statement:
        pass


class MethodRule(ABC):
    """Transforms the statement for one test method on one fixture."""

    @abstractmethod
    def apply(self, base: Statement, method: FrameworkMethod, target: Any) -> Statement:
        pass


class ExternalResource(TestRule):
    """Set up a resource before the wrapped statement and tear it down after."""

    def apply(self, base: Statement, description: Description) -> Statement:
        def evaluate() -> None:
            self.before()
            try:
                base.evaluate()
            finally:
                self.after()

        return CallableStatement(evaluate)

    def before(self) -> None:
        pass

    def after(self) -> None:
        pass


class TestWatcher(TestRule):
    """Observe a test's outcome without changing it."""

    __test__ = False

    def apply(self, base: Statement, description: Description) -> Statement:
        def evaluate() -> None:
            errors: list[BaseException] = []
            self._call(self.starting, errors, description)
            try:
                base.evaluate()
                self._call(self.succeeded, errors, description)
            except AssumptionViolatedException as e:
                errors.append(e)
                self._call(lambda d: self.skipped(e, d), errors, description)
            except (Exception, SystemExit) as e:
                errors.append(e)
                self._call(lambda d: self.failed(e, d), errors, description)
            finally:
                self._call(self.finished, errors, description)
            MultipleFailureException.assert_empty(errors)

        return CallableStatement(evaluate)

    @staticmethod
    def _call(hook, errors: list[BaseException], description: Description) -> None:
        try:
            hook(description)
        except Exception as e:
            errors.append(e)

    def starting(self, description: Description) -> None:
        pass

    def succeeded(self, description: Description) -> None:
        pass

    def failed(self, error: BaseException, description: Description) -> None:
        pass

    def skipped(self, error: AssumptionViolatedException, description: Description) -> None:
        pass

    def finished(self, description: Description) -> None:
        pass


class TestName(TestWatcher):
    """Make the running test's method name available inside the test."""

    __test__ = False

    def __init__(self):
        self._name: Optional[str] = None

    def starting(self, description: Description) -> None:
        self._name = description.method_name

    def get_method_name(self) -> Optional[str]:
        return self._name


class TemporaryFolder(ExternalResource):
    """A scratch directory created before the test and deleted after it."""

    def __init__(self, parent: Optional[Path] = None):
        self.parent = parent
        self._folder: Optional[Path] = None

    def before(self) -> None:
        self.create()

    def after(self) -> None:
        self.delete()

    def create(self) -> None:
        self._folder = Path(tempfile.mkdtemp(prefix="selectrunner", dir=self.parent))

    @property
    def root(self) -> Path:
        if self._folder is None:
            raise RuntimeError("the temporary folder has not yet been created")
        return self._folder

    def new_file(self, name: Optional[str] = None) -> Path:
        if name is None:
            handle, path = tempfile.mkstemp(prefix="selectrunner", dir=self.root)
            os.close(handle)
            return Path(path)
        path = self.root / name
        if path.exists():
            raise FileExistsError(f"a file with the name '{name}' already exists in the test folder")
        path.touch()
        return path

    def new_folder(self, *names: str) -> Path:
        if not names:
            return Path(tempfile.mkdtemp(prefix="selectrunner", dir=self.root))
        path = self.root.joinpath(*names)
        if path.exists():
            raise FileExistsError(f"a folder with the name '{'/'.join(names)}' already exists")
        path.mkdir(parents=True)
        return path

    def delete(self) -> None:
        if self._folder is not None:
            shutil.rmtree(self._folder, ignore_errors=True)


class Timeout(TestRule):
    """Apply the same timeout to every test of a class."""

    def __init__(self, timeout: float, unit: TimeUnit = TimeUnit.MILLISECONDS):
        self.timeout = timeout
        self.unit = unit

    @classmethod
    def millis(cls, millis: int) -> "Timeout":
        return cls(millis, TimeUnit.MILLISECONDS)

    @classmethod
    def seconds(cls, seconds: float) -> "Timeout":
        return cls(seconds, TimeUnit.SECONDS)

    def apply(self, base: Statement, description: Description) -> Statement:
        return FailOnTimeout.builder().with_timeout(self.timeout, self.unit).build(base)
