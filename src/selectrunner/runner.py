"""Runs exactly the tests chosen by an XML suite.

For every planned class the runner builds a class statement (before-class
methods, after-class methods and class rules around the children), and for
every chosen method a method statement (invoke, expected exception, timeout,
befores, afters, method rules, test rules; innermost first).
"""

import logging
import threading
from typing import Any, Optional

from selectrunner.errors import AssumptionViolatedException, StoppedByUserException
from selectrunner.framework.annotations import (
    After,
    AfterClass,
    Before,
    BeforeClass,
    ClassRule,
    Ignore,
    NoException,
    Rule,
    Test,
)
from selectrunner.framework.core import Runner
from selectrunner.framework.description import Description
from selectrunner.framework.model import FrameworkMethod, TestClass
from selectrunner.framework.notification import EachTestNotifier, RunNotifier
from selectrunner.framework.rules import MethodRule, TestRule
from selectrunner.framework.statements import (
    CallableStatement,
    ExpectException,
    Fail,
    FailOnTimeout,
    InvokeMethod,
    RunAfters,
    RunBefores,
    RunRules,
    Statement,
    TimeUnit,
)
from selectrunner.loader import TestPlan, XmlTestsLoader
from selectrunner.scheduler import RunnerScheduler, SynchronousScheduler

logger = logging.getLogger(__name__)


class XmlSuite:
    """Default anchor class naming the top-level suite."""

    pass


class XmlTestsRunner(Runner):
    """Runner over the classes and methods of a test plan.

    Classes run one after another in plan order. Methods of a class go
    through the scheduler, which may run them concurrently.
    """

    def __init__(
        self,
        anchor: type,
        plan: Optional[TestPlan] = None,
        scheduler: Optional[RunnerScheduler] = None,
    ):
        """Initialize the runner.

        Args:
            anchor: Class the top-level description is named after
            plan: Classes and method names to run (default: the loader singleton's plan)
            scheduler: Method scheduler (default: synchronous)
        """
        self._test_class = TestClass(anchor)
        self._xml_tests: TestPlan = plan if plan is not None else XmlTestsLoader.get_instance().get_tests()
        self._test_classes: dict[type, TestClass] = {}
        self._tests_to_be_executed: dict[type, list[FrameworkMethod]] = {}

        self._method_descriptions: dict[tuple[type, FrameworkMethod], Description] = {}
        self._class_descriptions: dict[type, Description] = {}
        self._descriptions_lock = threading.Lock()

        # Guarded by _children_lock
        self._filtered_children: dict[type, tuple[FrameworkMethod, ...]] = {}
        self._children_lock = threading.Lock()

        self._scheduler: RunnerScheduler = scheduler or SynchronousScheduler()

        self._populate_test_classes()
        self._populate_tests_to_be_executed()

    def _populate_test_classes(self) -> None:
        for clazz in self._xml_tests:
            self._test_classes[clazz] = TestClass(clazz)

    def _populate_tests_to_be_executed(self) -> None:
        for clazz, tests in self._xml_tests.items():
            wanted = set(tests)
            self._tests_to_be_executed[clazz] = [
                method
                for method in self._test_classes[clazz].get_annotated_methods(Test)
                if method.name in wanted
            ]

    def set_scheduler(self, scheduler: RunnerScheduler) -> None:
        """Replace the method scheduler; takes effect for classes started afterwards."""
        self._scheduler = scheduler

    #
    # Runner
    #
    def describe(self) -> Description:
        description = Description.create_suite_description(
            self._test_class.name, self._test_class.annotations.values()
        )
        for clazz in self._xml_tests:
            description.add_child(self.describe_class(clazz))
        return description

    def run(self, notifier: RunNotifier) -> None:
        for clazz in self._xml_tests:
            test_notifier = EachTestNotifier(notifier, self.describe_class(clazz))
            logger.debug("Running %s", self._test_classes[clazz].name)
            try:
                statement = self._class_block(notifier, clazz)
                statement.evaluate()
            except AssumptionViolatedException as e:
                test_notifier.add_failed_assumption(e)
            except StoppedByUserException:
                raise
            except (Exception, SystemExit) as e:
                test_notifier.add_failure(e)

    #
    # Descriptions
    #
    def describe_class(self, clazz: type) -> Description:
        description = self._class_descriptions.get(clazz)
        if description is not None:
            return description

        test_class = self._test_classes[clazz]
        description = Description.create_suite_description(
            test_class.name, test_class.annotations.values()
        )
        for child in self._get_filtered_children(clazz):
            description.add_child(self.describe_child(clazz, child))

        with self._descriptions_lock:
            return self._class_descriptions.setdefault(clazz, description)

    def describe_child(self, clazz: type, method: FrameworkMethod) -> Description:
        key = (clazz, method)
        description = self._method_descriptions.get(key)
        if description is None:
            description = Description.create_test_description(
                clazz, self._test_name(method), method.annotations.values()
            )
            with self._descriptions_lock:
                description = self._method_descriptions.setdefault(key, description)
        return description

    def _test_name(self, method: FrameworkMethod) -> str:
        return method.name

    def _get_filtered_children(self, clazz: type) -> tuple[FrameworkMethod, ...]:
        if clazz not in self._filtered_children:
            with self._children_lock:
                if clazz not in self._filtered_children:
                    self._filtered_children[clazz] = tuple(self._tests_to_be_executed[clazz])
        return self._filtered_children[clazz]

    #
    # Class level
    #
    def _class_block(self, notifier: RunNotifier, clazz: type) -> Statement:
        statement = self._children_invoker(notifier, clazz)
        if not self._are_all_children_ignored(clazz):
            statement = self._with_before_classes(statement, clazz)
            statement = self._with_after_classes(statement, clazz)
            statement = self._with_class_rules(statement, clazz)
        return statement

    def _are_all_children_ignored(self, clazz: type) -> bool:
        return all(self._is_ignored(child) for child in self._get_filtered_children(clazz))

    def _is_ignored(self, child: FrameworkMethod) -> bool:
        return child.get_annotation(Ignore) is not None

    def _children_invoker(self, notifier: RunNotifier, clazz: type) -> Statement:
        return CallableStatement(lambda: self._run_children(notifier, clazz))

    def _run_children(self, notifier: RunNotifier, clazz: type) -> None:
        current_scheduler = self._scheduler
        try:
            for each in self._get_filtered_children(clazz):
                current_scheduler.schedule(
                    lambda each=each: self._run_child(clazz, each, notifier)
                )
        finally:
            current_scheduler.finished()

    def _class_rules(self, clazz: type) -> list[TestRule]:
        test_class = self._test_classes[clazz]
        result = test_class.get_annotated_method_values(None, ClassRule, TestRule)
        result.extend(test_class.get_annotated_field_values(None, ClassRule, TestRule))
        return result

    def _with_before_classes(self, statement: Statement, clazz: type) -> Statement:
        befores = self._test_classes[clazz].get_annotated_methods(BeforeClass)
        return RunBefores(statement, befores, None) if befores else statement

    def _with_after_classes(self, statement: Statement, clazz: type) -> Statement:
        afters = self._test_classes[clazz].get_annotated_methods(AfterClass)
        return RunAfters(statement, afters, None) if afters else statement

    def _with_class_rules(self, statement: Statement, clazz: type) -> Statement:
        class_rules = self._class_rules(clazz)
        if not class_rules:
            return statement
        return RunRules(statement, class_rules, self.describe_class(clazz))

    #
    # Method level
    #
    def _run_child(self, clazz: type, method: FrameworkMethod, notifier: RunNotifier) -> None:
        description = self.describe_child(clazz, method)
        if self._is_ignored(method):
            notifier.fire_test_ignored(description)
        else:
            self._run_leaf(self._method_block(clazz, method), description, notifier)

    def _run_leaf(self, statement: Statement, description: Description, notifier: RunNotifier) -> None:
        each_notifier = EachTestNotifier(notifier, description)
        each_notifier.fire_test_started()
        try:
            statement.evaluate()
        except AssumptionViolatedException as e:
            each_notifier.add_failed_assumption(e)
        except (Exception, SystemExit) as e:
            each_notifier.add_failure(e)
        finally:
            each_notifier.fire_test_finished()

    def _method_block(self, clazz: type, method: FrameworkMethod) -> Statement:
        """Build the statement for one method.

        Building the fixture also builds its rule fields and calls its rule
        methods; a failure in any of these fails only this method.
        """
        try:
            test = self._create_test(clazz)
            statement = self._method_invoker(method, test)
            statement = self._possibly_expecting_exceptions(method, statement)
            statement = self._with_potential_timeout(method, statement)
            statement = self._with_befores(clazz, test, statement)
            statement = self._with_afters(clazz, test, statement)
            statement = self._with_rules(clazz, method, test, statement)
        except (Exception, SystemExit) as e:
            return Fail(e)
        return statement

    def _create_test(self, clazz: type) -> Any:
        """Return a new fixture for running a test."""
        return self._test_classes[clazz].get_only_constructor()()

    def _method_invoker(self, method: FrameworkMethod, test: Any) -> Statement:
        return InvokeMethod(method, test)

    def _possibly_expecting_exceptions(self, method: FrameworkMethod, next: Statement) -> Statement:
        expected = self._get_expected_exception(method.get_annotation(Test))
        return ExpectException(next, expected) if expected is not None else next

    def _with_potential_timeout(self, method: FrameworkMethod, next: Statement) -> Statement:
        timeout = self._get_timeout(method.get_annotation(Test))
        if timeout <= 0:
            return next
        return FailOnTimeout.builder().with_timeout(timeout, TimeUnit.MILLISECONDS).build(next)

    def _with_befores(self, clazz: type, target: Any, statement: Statement) -> Statement:
        befores = self._test_classes[clazz].get_annotated_methods(Before)
        return RunBefores(statement, befores, target) if befores else statement

    def _with_afters(self, clazz: type, target: Any, statement: Statement) -> Statement:
        afters = self._test_classes[clazz].get_annotated_methods(After)
        return RunAfters(statement, afters, target) if afters else statement

    def _with_rules(
        self, clazz: type, method: FrameworkMethod, target: Any, statement: Statement
    ) -> Statement:
        test_rules = self._get_test_rules(clazz, target)
        result = self._with_method_rules(clazz, method, test_rules, target, statement)
        result = self._with_test_rules(clazz, method, test_rules, result)
        return result

    def _with_method_rules(
        self,
        clazz: type,
        method: FrameworkMethod,
        test_rules: list[TestRule],
        target: Any,
        statement: Statement,
    ) -> Statement:
        result = statement
        for each in self._get_method_rules(clazz, target):
            # A rule implementing both interfaces is applied once, as a test rule.
            if not any(each is rule for rule in test_rules):
                result = each.apply(result, method, target)
        return result

    def _get_method_rules(self, clazz: type, target: Any) -> list[MethodRule]:
        test_class = self._test_classes[clazz]
        rules = test_class.get_annotated_method_values(target, Rule, MethodRule)
        rules.extend(test_class.get_annotated_field_values(target, Rule, MethodRule))
        return rules

    def _with_test_rules(
        self,
        clazz: type,
        method: FrameworkMethod,
        test_rules: list[TestRule],
        statement: Statement,
    ) -> Statement:
        if not test_rules:
            return statement
        return RunRules(statement, test_rules, self.describe_child(clazz, method))

    def _get_test_rules(self, clazz: type, target: Any) -> list[TestRule]:
        test_class = self._test_classes[clazz]
        result = test_class.get_annotated_method_values(target, Rule, TestRule)
        result.extend(test_class.get_annotated_field_values(target, Rule, TestRule))
        return result

    @staticmethod
    def _get_expected_exception(annotation: Optional[Test]) -> Optional[type]:
        if annotation is None or annotation.expected is NoException:
            return None
        return annotation.expected

    @staticmethod
    def _get_timeout(annotation: Optional[Test]) -> int:
        if annotation is None:
            return 0
        return annotation.timeout
