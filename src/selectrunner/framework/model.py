"""Reflective view over a user test class."""

from typing import Any, Callable, Optional

from selectrunner.errors import InitializationError
from selectrunner.framework.annotations import (
    AnnotatedField,
    Before,
    BeforeClass,
    Test,
    annotations_of,
)

# Annotations whose members run superclass first.
TOP_TO_BOTTOM = (Before, BeforeClass)


class FrameworkMethod:
    """A method of a test class, as seen by the runner."""

    def __init__(self, owner: type, name: str, member: Any):
        self.owner = owner
        self.name = name
        self.member = member
        self.annotations = annotations_of(member)

    @property
    def is_static(self) -> bool:
        return isinstance(self.member, (classmethod, staticmethod))

    def get_annotation(self, annotation_type: type) -> Optional[Any]:
        return self.annotations.get(annotation_type)

    def invoke_explosively(self, target: Any, *args: Any) -> Any:
        """Call the method on ``target`` and let any exception propagate.

        Class-level members ignore ``target``.
        """
        if isinstance(self.member, classmethod):
            return self.member.__func__(self.owner, *args)
        if isinstance(self.member, staticmethod):
            return self.member.__func__(*args)
        if target is None:
            raise TypeError(
                f"Method {self.name}() of {self.owner.__qualname__} needs an instance"
            )
        return self.member(target, *args)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FrameworkMethod):
            return NotImplemented
        return self.owner is other.owner and self.name == other.name

    def __hash__(self) -> int:
        return hash((self.owner, self.name))

    def __repr__(self) -> str:
        return f"FrameworkMethod({self.owner.__qualname__}.{self.name})"


class FrameworkField:
    """An annotated field of a test class."""

    def __init__(self, owner: type, name: str, field: AnnotatedField):
        self.owner = owner
        self.name = name
        self.field = field
        self.annotations = field.annotations

    @property
    def is_static(self) -> bool:
        return self.field.is_static

    def get_annotation(self, annotation_type: type) -> Optional[Any]:
        return self.annotations.get(annotation_type)

    def get(self, target: Any) -> Any:
        if self.is_static or target is None:
            return getattr(self.owner, self.name)
        return getattr(target, self.name)

    def __repr__(self) -> str:
        return f"FrameworkField({self.owner.__qualname__}.{self.name})"


class TestClass:
    """Index of the annotated methods and fields of a test class.

    Members are scanned across the MRO; names starting with an underscore are
    skipped even when marked. A member redefined in a subclass
    hides the base class version. Within one class, members keep their
    declaration order; base class members come after subclass members except
    for ``Before`` and ``BeforeClass``, which run base class first.
    """

    __test__ = False

    def __init__(self, cls: Optional[type]):
        if cls is not None and not isinstance(cls, type):
            raise InitializationError(f"{cls!r} is not a class")
        self.cls = cls
        self._methods: dict[type, list[FrameworkMethod]] = {}
        self._fields: dict[type, list[FrameworkField]] = {}
        if cls is not None:
            self._scan_annotated_members()

    def _scan_annotated_members(self) -> None:
        seen: set[str] = set()
        method_blocks: list[dict[type, list[FrameworkMethod]]] = []
        field_blocks: list[dict[type, list[FrameworkField]]] = []

        for klass in self.cls.__mro__:
            if klass is object:
                continue
            methods: dict[type, list[FrameworkMethod]] = {}
            fields: dict[type, list[FrameworkField]] = {}
            for name, member in vars(klass).items():
                if name in seen:
                    continue
                seen.add(name)
                # Only public members take part in the lifecycle.
                if name.startswith("_"):
                    continue
                if isinstance(member, AnnotatedField):
                    field = FrameworkField(klass, name, member)
                    for annotation_type in field.annotations:
                        fields.setdefault(annotation_type, []).append(field)
                    continue
                if isinstance(member, type) or not (
                    callable(member) or isinstance(member, (classmethod, staticmethod))
                ):
                    continue
                method = FrameworkMethod(klass, name, member)
                for annotation_type in method.annotations:
                    methods.setdefault(annotation_type, []).append(method)
            method_blocks.append(methods)
            field_blocks.append(fields)

        self._methods = self._merge(method_blocks)
        self._fields = self._merge(field_blocks)

    @staticmethod
    def _merge(blocks: list[dict]) -> dict:
        merged: dict = {}
        for block in blocks:
            for annotation_type, members in block.items():
                merged.setdefault(annotation_type, [])
                if annotation_type in TOP_TO_BOTTOM:
                    merged[annotation_type] = members + merged[annotation_type]
                else:
                    merged[annotation_type].extend(members)
        return merged

    @property
    def name(self) -> str:
        if self.cls is None:
            return "null"
        return f"{self.cls.__module__}.{self.cls.__qualname__}"

    @property
    def annotations(self) -> dict[type, Any]:
        if self.cls is None:
            return {}
        return annotations_of(self.cls)

    def get_annotated_methods(self, annotation_type: Optional[type] = None) -> list[FrameworkMethod]:
        """Return methods carrying ``annotation_type``, or every annotated method."""
        if annotation_type is not None:
            return list(self._methods.get(annotation_type, []))
        result: list[FrameworkMethod] = []
        for methods in self._methods.values():
            result.extend(m for m in methods if m not in result)
        return result

    def get_annotated_fields(self, annotation_type: Optional[type] = None) -> list[FrameworkField]:
        if annotation_type is not None:
            return list(self._fields.get(annotation_type, []))
        result: list[FrameworkField] = []
        for fields in self._fields.values():
            result.extend(f for f in fields if f not in result)
        return result

    def get_annotated_method_values(
        self, target: Any, annotation_type: type, value_type: type
    ) -> list[Any]:
        """Call each annotated method on ``target`` and keep results of ``value_type``."""
        values = []
        for method in self.get_annotated_methods(annotation_type):
            value = method.invoke_explosively(target)
            if isinstance(value, value_type):
                values.append(value)
        return values

    def get_annotated_field_values(
        self, target: Any, annotation_type: type, value_type: type
    ) -> list[Any]:
        values = []
        for field in self.get_annotated_fields(annotation_type):
            value = field.get(target)
            if isinstance(value, value_type):
                values.append(value)
        return values

    def get_only_constructor(self) -> Callable[[], Any]:
        """Return the callable that builds a fresh fixture."""
        if self.cls is None:
            raise InitializationError("No test class to construct")
        return self.cls

    def test_method_names(self) -> list[str]:
        return [method.name for method in self.get_annotated_methods(Test)]

    def __repr__(self) -> str:
        return f"TestClass({self.name})"
