"""Minimal JUnit-style execution model: markers, reflection, statements, rules, events."""

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
    after,
    after_class,
    before,
    before_class,
    class_rule,
    class_rule_field,
    ignore,
    rule,
    rule_field,
    test,
)
from selectrunner.framework.assume import (
    assume_false,
    assume_no_exception,
    assume_not_none,
    assume_true,
)
from selectrunner.framework.core import Runner, RunnerCore, run_with_listeners
from selectrunner.framework.description import Description
from selectrunner.framework.model import FrameworkField, FrameworkMethod, TestClass
from selectrunner.framework.notification import (
    EachTestNotifier,
    Failure,
    Result,
    RunListener,
    RunNotifier,
)
from selectrunner.framework.rules import (
    ExternalResource,
    MethodRule,
    TemporaryFolder,
    TestName,
    TestRule,
    TestWatcher,
    Timeout,
)
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

__all__ = [
    "After",
    "AfterClass",
    "Before",
    "BeforeClass",
    "CallableStatement",
    "ClassRule",
    "Description",
    "EachTestNotifier",
    "ExpectException",
    "ExternalResource",
    "Fail",
    "FailOnTimeout",
    "Failure",
    "FrameworkField",
    "FrameworkMethod",
    "Ignore",
    "InvokeMethod",
    "MethodRule",
    "NoException",
    "Result",
    "Rule",
    "RunAfters",
    "RunBefores",
    "RunListener",
    "RunNotifier",
    "RunRules",
    "Runner",
    "RunnerCore",
    "Statement",
    "TemporaryFolder",
    "Test",
    "TestClass",
    "TestName",
    "TestRule",
    "TestWatcher",
    "TimeUnit",
    "Timeout",
    "after",
    "after_class",
    "assume_false",
    "assume_no_exception",
    "assume_not_none",
    "assume_true",
    "before",
    "before_class",
    "class_rule",
    "class_rule_field",
    "ignore",
    "rule",
    "rule_field",
    "run_with_listeners",
    "test",
]
