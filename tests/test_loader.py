"""Tests for the XML suite loader."""

import pytest

import suite_fixtures
from selectrunner.config import SuiteConfig
from selectrunner.errors import (
    ClassWithTestsNotFound,
    NonExistentTestsDetected,
    XmlTestClassesNotFound,
    XmlWithTestsNotFound,
)
from selectrunner.loader import XmlTestsLoader, get_tests, resolve_class


class TestXmlTestsLoader:
    """Tests for building a plan from a suite file."""

    def test_includes_select_methods(self, write_suite):
        """Test that listed methods become the plan, in XML order."""
        config = write_suite([("suite_fixtures.SampleTests", ["c", "a"])])

        plan = XmlTestsLoader(config).get_tests()

        assert plan == {suite_fixtures.SampleTests: ("c", "a")}

    def test_missing_methods_element_selects_all_tests(self, write_suite):
        """Test that a class without <methods> runs every test method."""
        config = write_suite([("suite_fixtures.SampleTests", None)])

        plan = XmlTestsLoader(config).get_tests()

        assert plan[suite_fixtures.SampleTests] == ("a", "b", "c")

    def test_empty_methods_element_selects_all_tests(self, write_suite):
        """Test that <methods/> with no includes runs every test method."""
        config = write_suite(
            """<suite><test><classes>
                 <class name="suite_fixtures.SampleTests"><methods/></class>
               </classes></test></suite>"""
        )

        plan = XmlTestsLoader(config).get_tests()

        assert plan[suite_fixtures.SampleTests] == ("a", "b", "c")

    def test_class_order_follows_document(self, write_suite):
        """Test that classes keep document order across <test> elements."""
        config = write_suite(
            """<suite>
                 <test><classes>
                   <class name="suite_fixtures.LifecycleTests"/>
                   <class name="suite_fixtures.SampleTests"/>
                 </classes></test>
                 <test><classes>
                   <class name="suite_fixtures.AssumingTests"/>
                 </classes></test>
               </suite>"""
        )

        plan = XmlTestsLoader(config).get_tests()

        assert list(plan) == [
            suite_fixtures.LifecycleTests,
            suite_fixtures.SampleTests,
            suite_fixtures.AssumingTests,
        ]

    def test_unknown_elements_are_ignored(self, write_suite):
        """Test that extra elements and attributes do not matter."""
        config = write_suite(
            """<suite name="x" parallel="methods">
                 <parameter name="env" value="ci"/>
                 <test name="t"><classes>
                   <class name="suite_fixtures.SampleTests" priority="1">
                     <methods><include name="b"/><exclude name="c"/></methods>
                   </class>
                 </classes></test>
               </suite>"""
        )

        plan = XmlTestsLoader(config).get_tests()

        assert plan == {suite_fixtures.SampleTests: ("b",)}

    def test_non_test_method_is_rejected(self, write_suite):
        """Test that a plain helper method cannot be selected."""
        config = write_suite([("suite_fixtures.SampleTests", ["a", "helper"])])

        with pytest.raises(NonExistentTestsDetected) as exc_info:
            XmlTestsLoader(config)

        assert exc_info.value.method_names == ("helper",)

    def test_private_method_is_rejected(self, write_suite):
        """Test that a marked method with a private name cannot be selected."""
        config = write_suite([("suite_fixtures.PrivateMarkedTests", ["visible", "_hidden"])])

        with pytest.raises(NonExistentTestsDetected) as exc_info:
            XmlTestsLoader(config)

        assert exc_info.value.method_names == ("_hidden",)

    def test_unknown_method_fails_load(self, write_suite):
        """Test that a method absent from the class stops the load."""
        config = write_suite([("suite_fixtures.SampleTests", ["a", "d"])])

        with pytest.raises(NonExistentTestsDetected) as exc_info:
            XmlTestsLoader(config)

        assert str(exc_info.value) == "Invalid test(s) was/were specified in xml file: d."

    def test_every_unknown_method_is_reported(self, write_suite):
        """Test that all offending names are listed, not just the first."""
        config = write_suite([("suite_fixtures.SampleTests", ["x", "a", "y"])])

        with pytest.raises(NonExistentTestsDetected) as exc_info:
            XmlTestsLoader(config)

        assert exc_info.value.method_names == ("x", "y")
        assert "x, y" in str(exc_info.value)

    def test_missing_file(self, tmp_path):
        """Test that a missing suite file raises XmlWithTestsNotFound."""
        config = SuiteConfig(suites_dir=str(tmp_path), tests_xml="absent.xml")

        with pytest.raises(XmlWithTestsNotFound):
            XmlTestsLoader(config)

    def test_malformed_file(self, write_suite):
        """Test that unparsable XML raises XmlWithTestsNotFound."""
        config = write_suite("<suite><test>")

        with pytest.raises(XmlWithTestsNotFound):
            XmlTestsLoader(config)

    def test_unset_suite_name(self, tmp_path):
        """Test that a config without a suite name raises XmlWithTestsNotFound."""
        with pytest.raises(XmlWithTestsNotFound):
            XmlTestsLoader(SuiteConfig(suites_dir=str(tmp_path)))

    def test_no_classes(self, write_suite):
        """Test that a suite without class elements is rejected."""
        config = write_suite("<suite><test><classes/></test></suite>")

        with pytest.raises(XmlTestClassesNotFound):
            XmlTestsLoader(config)

    def test_classes_outside_expected_path_are_not_found(self, write_suite):
        """Test that only suite/test/classes/class elements count."""
        config = write_suite('<suite><classes><class name="suite_fixtures.SampleTests"/></classes></suite>')

        with pytest.raises(XmlTestClassesNotFound):
            XmlTestsLoader(config)

    def test_unknown_class(self, write_suite):
        """Test that an unresolvable class raises ClassWithTestsNotFound."""
        config = write_suite([("suite_fixtures.MissingTests", None)])

        with pytest.raises(ClassWithTestsNotFound):
            XmlTestsLoader(config)

    def test_unknown_module(self, write_suite):
        """Test that an unknown module raises ClassWithTestsNotFound."""
        config = write_suite([("no_such_package.tests.SomeTests", None)])

        with pytest.raises(ClassWithTestsNotFound):
            XmlTestsLoader(config)

    def test_class_without_name(self, write_suite):
        """Test that a class element without a name raises ClassWithTestsNotFound."""
        config = write_suite("<suite><test><classes><class/></classes></test></suite>")

        with pytest.raises(ClassWithTestsNotFound):
            XmlTestsLoader(config)

    def test_nested_class(self, write_suite):
        """Test that nested classes resolve by their qualified name."""
        config = write_suite([("suite_fixtures.Outer.InnerTests", None)])

        plan = XmlTestsLoader(config).get_tests()

        assert plan == {suite_fixtures.Outer.InnerTests: ("a",)}

    def test_class_without_tests(self, write_suite):
        """Test that a class with no test methods yields an empty selection."""
        config = write_suite([("suite_fixtures.NoTests", None)])

        plan = XmlTestsLoader(config).get_tests()

        assert plan[suite_fixtures.NoTests] == ()

    def test_duplicate_class_last_occurrence_wins(self, write_suite):
        """Test that a repeated class keeps its first position and last methods."""
        config = write_suite(
            [
                ("suite_fixtures.SampleTests", ["a"]),
                ("suite_fixtures.AssumingTests", None),
                ("suite_fixtures.SampleTests", ["b"]),
            ]
        )

        plan = XmlTestsLoader(config).get_tests()

        assert list(plan) == [suite_fixtures.SampleTests, suite_fixtures.AssumingTests]
        assert plan[suite_fixtures.SampleTests] == ("b",)

    def test_duplicate_includes_are_kept(self, write_suite):
        """Test that include names are taken verbatim, duplicates included."""
        config = write_suite([("suite_fixtures.SampleTests", ["a", "a"])])

        plan = XmlTestsLoader(config).get_tests()

        assert plan[suite_fixtures.SampleTests] == ("a", "a")

    def test_plan_is_read_only(self, write_suite):
        """Test that the plan cannot be modified."""
        config = write_suite([("suite_fixtures.SampleTests", None)])
        plan = XmlTestsLoader(config).get_tests()

        with pytest.raises(TypeError):
            plan[suite_fixtures.NoTests] = ()

    def test_get_tests_returns_same_object(self, write_suite):
        """Test that repeated get_tests calls return the same plan."""
        loader = XmlTestsLoader(write_suite([("suite_fixtures.SampleTests", None)]))

        assert loader.get_tests() is loader.get_tests()


class TestSingleton:
    """Tests for the process-wide loader."""

    @pytest.fixture
    def suite_in_default_dir(self, tmp_path, monkeypatch):
        suites_dir = tmp_path / "src" / "test" / "resources" / "suites"
        suites_dir.mkdir(parents=True)
        (suites_dir / "smoke.xml").write_text(
            """<suite><test><classes>
                 <class name="suite_fixtures.SampleTests">
                   <methods><include name="a"/></methods>
                 </class>
               </classes></test></suite>"""
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("testsXml", "smoke.xml")

    def test_get_instance_reads_environment(self, suite_in_default_dir):
        """Test that the singleton loads the suite named by testsXml."""
        plan = XmlTestsLoader.get_instance().get_tests()

        assert plan == {suite_fixtures.SampleTests: ("a",)}

    def test_get_instance_is_idempotent(self, suite_in_default_dir):
        """Test that the singleton and its plan are built once."""
        first = XmlTestsLoader.get_instance()
        second = XmlTestsLoader.get_instance()

        assert first is second
        assert get_tests() is first.get_tests()

    def test_unset_variable(self, tmp_path, monkeypatch):
        """Test that a missing testsXml variable fails the load."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("testsXml", raising=False)

        with pytest.raises(XmlWithTestsNotFound):
            XmlTestsLoader.get_instance()


class TestResolveClass:
    """Tests for resolve_class."""

    def test_resolves_module_class(self):
        assert resolve_class("suite_fixtures.SampleTests") is suite_fixtures.SampleTests

    def test_rejects_bare_name(self):
        with pytest.raises(ValueError):
            resolve_class("SampleTests")

    def test_rejects_non_class(self):
        with pytest.raises(ValueError):
            resolve_class("suite_fixtures.not_a_class")

    def test_missing_attribute(self):
        with pytest.raises(AttributeError):
            resolve_class("suite_fixtures.Nope")
