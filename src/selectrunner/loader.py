"""Suite loading: turn an XML suite into a validated test plan.

A suite names test classes and, optionally, which of their test methods to
run::

    <suite>
      <test>
        <classes>
          <class name="tests.accounts.AccountTests">
            <methods>
              <include name="deposit"/>
            </methods>
          </class>
        </classes>
      </test>
    </suite>

A class without ``<methods>`` runs all of its tests. The plan maps each class
to the method names to run, in document order.
"""

import importlib
import logging
import threading
from types import MappingProxyType
from typing import Mapping, Optional

from lxml import etree

from selectrunner.config import TESTS_XML_PROPERTY, SuiteConfig
from selectrunner.errors import (
    ClassWithTestsNotFound,
    NonExistentTestsDetected,
    XmlTestClassesNotFound,
    XmlWithTestsNotFound,
)
from selectrunner.framework.model import TestClass

logger = logging.getLogger(__name__)

CLASS_XPATH = "//suite/test/classes/class"
INCLUDE_METHODS_XPATH = "methods/include/@name"
NAME_XPATH = "@name"

TestPlan = Mapping[type, tuple[str, ...]]


class XmlTestsLoader:
    """Loads and validates one XML suite.

    The plan is built in the constructor and never changes afterwards.
    """

    _instance: Optional["XmlTestsLoader"] = None
    _instance_lock = threading.Lock()

    def __init__(self, config: SuiteConfig):
        self.config = config
        self._tests: dict[type, tuple[str, ...]] = {}
        self._load()
        self._plan: TestPlan = MappingProxyType(self._tests)

    @classmethod
    def get_instance(cls) -> "XmlTestsLoader":
        """Return the process-wide loader, building it from the environment on first use."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls(SuiteConfig.from_env())
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the process-wide loader."""
        with cls._instance_lock:
            cls._instance = None

    def get_tests(self) -> TestPlan:
        return self._plan

    def _get_xml_nodes(self) -> list:
        path = self.config.suite_path()
        if path is None:
            logger.error("No suite file given; set the %s variable.", TESTS_XML_PROPERTY)
            raise XmlWithTestsNotFound(
                f"No suite file given. Set the {TESTS_XML_PROPERTY} environment variable."
            )

        try:
            document = etree.parse(str(path))
        except (OSError, etree.XMLSyntaxError) as e:
            logger.error("Unable to find xml file with tests: %s", path, exc_info=True)
            raise XmlWithTestsNotFound(str(e)) from e

        nodes = document.xpath(CLASS_XPATH)
        if not nodes:
            raise XmlTestClassesNotFound(
                f"Test class not found in xml by using {CLASS_XPATH} locator."
            )
        return nodes

    def _get_class(self, xml_class: str) -> type:
        try:
            clazz = resolve_class(xml_class)
        except (ImportError, AttributeError, ValueError) as e:
            logger.error("Unable to find associated class with the given name: %s", xml_class, exc_info=True)
            raise ClassWithTestsNotFound(f"{xml_class}: {e}") from e
        return clazz

    def _load(self) -> None:
        for node in self._get_xml_nodes():
            names = node.xpath(NAME_XPATH)
            if not names:
                raise ClassWithTestsNotFound(
                    f"A class element on line {node.sourceline} has no name attribute."
                )
            xml_class = str(names[0])
            xml_methods = [str(name) for name in node.xpath(INCLUDE_METHODS_XPATH)]
            clazz = self._get_class(xml_class)

            all_tests_in_class = TestClass(clazz).test_method_names()

            if not xml_methods:
                self._tests[clazz] = tuple(all_tests_in_class)
                continue

            invalid_xml_tests = [name for name in xml_methods if name not in all_tests_in_class]
            if invalid_xml_tests:
                raise NonExistentTestsDetected(
                    "Invalid test(s) was/were specified in xml file: "
                    f"{', '.join(invalid_xml_tests)}.",
                    invalid_xml_tests,
                )
            self._tests[clazz] = tuple(xml_methods)

        logger.debug(
            "Loaded %d test class(es) from %s", len(self._tests), self.config.tests_xml
        )


def resolve_class(qualified_name: str) -> type:
    """Import ``package.module.Class`` (or ``package.module.Outer.Inner``)."""
    parts = qualified_name.strip().split(".")
    if len(parts) < 2 or not all(parts):
        raise ValueError(f"'{qualified_name}' is not a fully qualified class name")

    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only keep looking when the missing module is the one we asked for.
            if e.name is not None and not module_name.startswith(e.name):
                raise
            continue

        obj = module
        for attr in parts[split:]:
            obj = getattr(obj, attr)
        if not isinstance(obj, type):
            raise ValueError(f"'{qualified_name}' is not a class")
        return obj

    raise ImportError(f"No module found for '{qualified_name}'")


def get_tests() -> TestPlan:
    """Return the plan of the process-wide loader."""
    return XmlTestsLoader.get_instance().get_tests()
