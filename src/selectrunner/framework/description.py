"""Descriptions identify suites and tests to listeners."""

import re
import threading
from typing import Any, Iterable, Optional

METHOD_AND_CLASS_NAME_PATTERN = re.compile(r"^([\s\S]*)\((.*)\)$")


class Description:
    """Label for a suite or a single test.

    Two descriptions are equal when their unique ids are equal, which by
    default is the display name.
    """

    EMPTY: "Description"
    TEST_MECHANISM: "Description"

    def __init__(
        self,
        test_class: Optional[type],
        display_name: str,
        annotations: Iterable[Any] = (),
        unique_id: Optional[str] = None,
    ):
        if not display_name:
            raise ValueError("The display name must not be empty.")
        self.test_class = test_class
        self.display_name = display_name
        self.unique_id = unique_id if unique_id is not None else display_name
        self.annotations = tuple(annotations)
        self._children: list["Description"] = []
        self._lock = threading.Lock()

    @classmethod
    def create_suite_description(
        cls, name: str, annotations: Iterable[Any] = ()
    ) -> "Description":
        return cls(None, name, annotations)

    @classmethod
    def create_test_description(
        cls, test_class: type, name: str, annotations: Iterable[Any] = ()
    ) -> "Description":
        class_name = f"{test_class.__module__}.{test_class.__qualname__}"
        return cls(test_class, f"{name}({class_name})", annotations)

    def add_child(self, description: "Description") -> None:
        with self._lock:
            self._children.append(description)

    @property
    def children(self) -> list["Description"]:
        with self._lock:
            return list(self._children)

    @property
    def is_suite(self) -> bool:
        return not self.is_test

    @property
    def is_test(self) -> bool:
        return not self._children and self.test_class is not None

    @property
    def is_empty(self) -> bool:
        return self == Description.EMPTY

    def test_count(self) -> int:
        if self.is_test:
            return 1
        return sum(child.test_count() for child in self.children)

    def get_annotation(self, annotation_type: type) -> Optional[Any]:
        for annotation in self.annotations:
            if isinstance(annotation, annotation_type):
                return annotation
        return None

    @property
    def class_name(self) -> str:
        if self.test_class is not None:
            return f"{self.test_class.__module__}.{self.test_class.__qualname__}"
        return self._parsed(2) or self.display_name

    @property
    def method_name(self) -> Optional[str]:
        return self._parsed(1)

    def _parsed(self, group: int) -> Optional[str]:
        match = METHOD_AND_CLASS_NAME_PATTERN.match(self.display_name)
        return match.group(group) if match else None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Description):
            return NotImplemented
        return self.unique_id == other.unique_id

    def __hash__(self) -> int:
        return hash(self.unique_id)

    def __str__(self) -> str:
        return self.display_name

    def __repr__(self) -> str:
        return f"Description({self.display_name!r})"


Description.EMPTY = Description(None, "No Tests")
Description.TEST_MECHANISM = Description(None, "Test mechanism")
