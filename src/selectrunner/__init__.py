"""
selectrunner - run a chosen subset of tests described by an XML suite.

This package provides tools to:
- Load an XML suite naming test classes and methods, validated against the code
- Run exactly those tests with full setup/teardown, rule, ignore, timeout and
  expected-exception semantics
- Dispatch the tests of each class synchronously or on a thread pool
"""

from selectrunner.errors import (
    ClassWithTestsNotFound,
    NonExistentTestsDetected,
    SuiteLoadError,
    XmlTestClassesNotFound,
    XmlWithTestsNotFound,
)
from selectrunner.loader import XmlTestsLoader, get_tests
from selectrunner.runner import XmlSuite, XmlTestsRunner
from selectrunner.scheduler import RunnerScheduler, SynchronousScheduler, ThreadPoolScheduler

__version__ = "0.1.0"
__author__ = "selectrunner Team"

__all__ = [
    "ClassWithTestsNotFound",
    "NonExistentTestsDetected",
    "RunnerScheduler",
    "SuiteLoadError",
    "SynchronousScheduler",
    "ThreadPoolScheduler",
    "XmlSuite",
    "XmlTestClassesNotFound",
    "XmlTestsLoader",
    "XmlTestsRunner",
    "XmlWithTestsNotFound",
    "get_tests",
]
