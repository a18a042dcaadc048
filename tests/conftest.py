"""Shared fixtures for the selectrunner tests."""

import threading
from pathlib import Path
from typing import Optional, Sequence, Union

import pytest

import suite_fixtures
from selectrunner.config import SuiteConfig
from selectrunner.framework import Description, Failure, RunListener, RunNotifier
from selectrunner.loader import XmlTestsLoader


class RecordingListener(RunListener):
    """Collects (event, name) pairs; the name is the method name for tests."""

    def __init__(self):
        self.events: list[tuple[str, str]] = []
        self.failures: list[Failure] = []
        self._lock = threading.Lock()

    @staticmethod
    def _name(description: Description) -> str:
        return description.method_name or description.display_name

    def _add(self, event: str, description: Description) -> None:
        with self._lock:
            self.events.append((event, self._name(description)))

    def test_started(self, description):
        self._add("started", description)

    def test_finished(self, description):
        self._add("finished", description)

    def test_ignored(self, description):
        self._add("ignored", description)

    def test_failure(self, failure):
        with self._lock:
            self.failures.append(failure)
        self._add("failure", failure.description)

    def test_assumption_failure(self, failure):
        with self._lock:
            self.failures.append(failure)
        self._add("assumption", failure.description)


SuiteEntry = tuple[str, Optional[Sequence[str]]]


def build_suite_xml(entries: Sequence[SuiteEntry]) -> str:
    classes = []
    for class_name, methods in entries:
        if methods is None:
            classes.append(f'        <class name="{class_name}"/>')
            continue
        includes = "\n".join(f'            <include name="{m}"/>' for m in methods)
        classes.append(
            f'        <class name="{class_name}">\n'
            f"          <methods>\n{includes}\n          </methods>\n"
            f"        </class>"
        )
    body = "\n".join(classes)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<suite name="Selected">\n'
        '  <test name="Default">\n'
        "    <classes>\n"
        f"{body}\n"
        "    </classes>\n"
        "  </test>\n"
        "</suite>\n"
    )


@pytest.fixture(autouse=True)
def clear_journal():
    """Start every test with an empty lifecycle journal."""
    suite_fixtures.JOURNAL.clear()
    yield
    suite_fixtures.JOURNAL.clear()


@pytest.fixture(autouse=True)
def reset_loader():
    """Keep the process-wide loader from leaking between tests."""
    XmlTestsLoader.reset_instance()
    yield
    XmlTestsLoader.reset_instance()


@pytest.fixture
def journal() -> list[str]:
    return suite_fixtures.JOURNAL


@pytest.fixture
def write_suite(tmp_path: Path):
    """Write a suite file into a temporary suites directory and return its config."""

    def _write(entries: Union[str, Sequence[SuiteEntry]], name: str = "suite.xml") -> SuiteConfig:
        content = entries if isinstance(entries, str) else build_suite_xml(entries)
        (tmp_path / name).write_text(content)
        return SuiteConfig(suites_dir=str(tmp_path), tests_xml=name)

    return _write


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def notifier(listener: RecordingListener) -> RunNotifier:
    run_notifier = RunNotifier()
    run_notifier.add_listener(listener)
    return run_notifier
