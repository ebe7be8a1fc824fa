"""
Intermediate representation of generated types.

The synthesizer builds these from schema nodes and the templates render
them; nothing here knows about JSON Schema keywords.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..type_mapper import TypeDescriptor, TypeKind


@dataclass
class GeneratedField:
    """One attribute of a generated struct."""

    name: str  # Python attribute name
    type: TypeDescriptor
    serialized_name: str  # property name on the wire
    optional: bool = False
    doc: str = ""

    @property
    def kind(self) -> TypeKind:
        return self.type.kind

    @property
    def renamed(self) -> bool:
        return self.name != self.serialized_name


@dataclass
class GeneratedStruct:
    """A dataclass to generate."""

    name: str
    fields: list[GeneratedField] = field(default_factory=list)
    doc: str = ""
    # Schema embedded for the validation hooks
    schema: dict[str, Any] = field(default_factory=dict)

    def field_by_serialized_name(self, serialized_name: str) -> GeneratedField | None:
        for f in self.fields:
            if f.serialized_name == serialized_name:
                return f
        return None


@dataclass
class GeneratedEnum:
    """An Enum class to generate."""

    name: str
    base_kind: TypeKind
    members: list[tuple[str, Any]] = field(default_factory=list)
    doc: str = ""
    # Python type mixed into the Enum ("" for a plain Enum)
    base_type: str = ""

    @property
    def values(self) -> list[Any]:
        return [value for _, value in self.members]


@dataclass
class GenerateResult:
    """Generated files by name plus the errors of schemas that failed."""

    files: dict[str, str] = field(default_factory=dict)
    errors: list[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def merge(self, other: GenerateResult) -> None:
        self.files.update(other.files)
        self.errors.extend(other.errors)
