"""Test classes that the runner under test drives.

Every lifecycle step appends to JOURNAL so tests can check what ran and in
which order.
"""

import sys
import threading
import time

from selectrunner.framework import (
    ExternalResource,
    MethodRule,
    TemporaryFolder,
    TestName,
    TestRule,
    after,
    after_class,
    assume_true,
    before,
    before_class,
    class_rule,
    class_rule_field,
    ignore,
    rule,
    rule_field,
    test,
)
from selectrunner.framework.statements import CallableStatement

JOURNAL: list[str] = []


def record(entry: str) -> None:
    JOURNAL.append(entry)


class SampleTests:
    @test
    def a(self):
        record("a")

    @test
    def b(self):
        record("b")

    @test
    def c(self):
        record("c")

    def helper(self):
        record("helper")


class PartlyIgnoredTests:
    @test
    def a(self):
        record("a")

    @ignore
    @test
    def b(self):
        record("b")

    @test
    def c(self):
        record("c")


class AllIgnoredTests:
    @before_class
    @classmethod
    def set_up_class(cls):
        record("before_class")

    @after_class
    @classmethod
    def tear_down_class(cls):
        record("after_class")

    @ignore
    @test
    def a(self):
        record("a")

    @ignore("not ready")
    @test
    def b(self):
        record("b")

    @ignore(reason="flaky")
    @test
    def c(self):
        record("c")


class ExpectingTests:
    @test(expected=KeyError)
    def a(self):
        {}["missing"]

    @test(expected=KeyError)
    def wrong_type(self):
        raise ValueError("not a key error")

    @test(expected=KeyError)
    def nothing_raised(self):
        pass


class TimeoutTests:
    @test(timeout=50)
    def a(self):
        time.sleep(0.5)

    @test(timeout=1000)
    def quick(self):
        record("quick")


class LifecycleTests:
    @before_class
    @classmethod
    def set_up_class(cls):
        record("before_class")

    @after_class
    @staticmethod
    def tear_down_class():
        record("after_class")

    @before
    def set_up(self):
        record("before")

    @after
    def tear_down(self):
        record("after")

    @test
    def one(self):
        record("one")

    @test
    def two(self):
        record("two")
        assert False, "two fails"


class LifecycleBase:
    @before_class
    @classmethod
    def base_before_class(cls):
        record("base_before_class")

    @after_class
    @classmethod
    def base_after_class(cls):
        record("base_after_class")

    @before
    def base_before(self):
        record("base_before")

    @after
    def base_after(self):
        record("base_after")

    @test
    def inherited(self):
        record("inherited")


class LifecycleChild(LifecycleBase):
    @before_class
    @classmethod
    def child_before_class(cls):
        record("child_before_class")

    @after_class
    @classmethod
    def child_after_class(cls):
        record("child_after_class")

    @before
    def child_before(self):
        record("child_before")

    @after
    def child_after(self):
        record("child_after")

    @test
    def own(self):
        record("own")


class ShadowingChild(LifecycleBase):
    # Redefined without a marker: no longer a test.
    def inherited(self):
        record("shadowed")

    @test
    def own(self):
        record("own")


class BrokenConstructorTests:
    constructed = 0

    def __init__(self):
        type(self).constructed += 1
        if type(self).constructed == 1:
            raise RuntimeError("cannot build fixture")

    @test
    def a(self):
        record("a")

    @test
    def b(self):
        record("b")


class FailingBeforeClassTests:
    @before_class
    @classmethod
    def set_up_class(cls):
        raise RuntimeError("no database")

    @after_class
    @classmethod
    def tear_down_class(cls):
        record("after_class")

    @test
    def a(self):
        record("a")


class FailingBeforeTests:
    @before
    def set_up(self):
        raise RuntimeError("before failed")

    @after
    def tear_down(self):
        record("after")

    @test
    def a(self):
        record("a")


class FailingAfterTests:
    @after
    def tear_down(self):
        raise RuntimeError("after failed")

    @test
    def a(self):
        raise ValueError("test failed")


class AssumingTests:
    @test
    def a(self):
        assume_true(False, "only on CI")
        record("a")


class RecordingResource(ExternalResource):
    def __init__(self, label: str):
        self.label = label

    def before(self) -> None:
        record(f"{self.label} before")

    def after(self) -> None:
        record(f"{self.label} after")


class ClassRulesTests:
    resource = class_rule_field(RecordingResource("class rule"))

    @before
    def set_up(self):
        record("setUp")

    @after
    def tear_down(self):
        record("tearDown")

    @test
    def test_one(self):
        assert True

    @test
    def test_two(self):
        assert False


class StaticClassRuleTests:
    @class_rule
    @staticmethod
    def resource():
        return RecordingResource("static class rule")

    @test
    def a(self):
        record("a")


class RulesTests:
    temp_folder = rule_field(TemporaryFolder)
    name = rule_field(TestName)

    @test
    def test_temporary_folder_rule(self):
        new_folder = self.temp_folder.new_folder("Temp Folder")
        assert new_folder.exists()
        record(str(new_folder))

    @test
    def test_test_name_rule(self):
        assert self.name.get_method_name() == "test_test_name_rule"

    @test
    def test_two(self):
        assert True is True


class RecordingMethodRule(MethodRule):
    def apply(self, base, method, target):
        def evaluate():
            record(f"method rule {method.name}")
            base.evaluate()

        return CallableStatement(evaluate)


class DualRule(TestRule, MethodRule):
    """Usable both as a test rule and as a method rule."""

    def apply(self, base, description_or_method, target=None):
        def evaluate():
            record("dual")
            base.evaluate()

        return CallableStatement(evaluate)


class RuleOrderTests:
    resource = rule_field(lambda: RecordingResource("test rule"))
    dual = rule_field(DualRule)

    @rule
    def audit(self):
        return RecordingMethodRule()

    @before
    def set_up(self):
        record("before")

    @after
    def tear_down(self):
        record("after")

    @test
    def a(self):
        record("a")


class ThreadRecordingTests:
    @before_class
    @classmethod
    def set_up_class(cls):
        record("before_class")

    @after_class
    @classmethod
    def tear_down_class(cls):
        record("after_class")

    @test
    def a(self):
        time.sleep(0.1)
        record(f"a {threading.current_thread().name}")

    @test
    def b(self):
        time.sleep(0.1)
        record(f"b {threading.current_thread().name}")

    @test
    def c(self):
        time.sleep(0.1)
        record(f"c {threading.current_thread().name}")


def _resource_failing_once():
    BrokenRuleFieldTests.built += 1
    if BrokenRuleFieldTests.built == 1:
        raise RuntimeError("cannot build rule")
    return RecordingResource("rule")


class BrokenRuleFieldTests:
    built = 0
    resource = rule_field(_resource_failing_once)

    @test
    def a(self):
        record("a")

    @test
    def b(self):
        record("b")


class BrokenRuleMethodTests:
    @rule
    def audit(self):
        raise RuntimeError("cannot build method rule")

    @test
    def a(self):
        record("a")


class ExitingTests:
    @after
    def tear_down(self):
        record("after")

    @test(expected=SystemExit)
    def expects_exit(self):
        sys.exit(3)

    @test
    def exits(self):
        sys.exit(4)

    @test
    def c(self):
        record("c")


class PrivateMarkedTests:
    @test
    def visible(self):
        record("visible")

    @test
    def _hidden(self):
        record("hidden")


class Outer:
    class InnerTests:
        @test
        def a(self):
            record("inner a")


class NoTests:
    def helper(self):
        pass


not_a_class = "just a string"
