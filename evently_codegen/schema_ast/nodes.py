"""
AST (Abstract Syntax Tree) node definitions for JSON Schema.

Each schema position is one tagged variant: primitive, array, object,
enum or an unresolved reference. Constraint fields live only on the
variant they apply to, so a string constraint can never leak onto an
array node.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SchemaNode:
    """Base class for all AST nodes."""

    # Original source location in schema (for error messages)
    source_path: str = ""

    # Documentation metadata
    title: str = ""
    description: str = ""

    # const value (has_const distinguishes "const: null" from no const)
    const: Any = None
    has_const: bool = False

    # Raw schema metadata (x-* extensions, default, examples)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> str:
        return "any"


@dataclass
class PrimitiveNode(SchemaNode):
    """A string, integer, number, boolean or null type (or no type at all)."""

    type_name: str = ""  # "string", "integer", "number", "boolean", "null", "object" or ""
    format: str = ""

    # String constraints
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None

    # Numeric constraints
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: float | None = None
    exclusive_maximum: float | None = None
    multiple_of: float | None = None

    @property
    def kind(self) -> str:
        return "primitive"


@dataclass
class ArrayNode(SchemaNode):
    """An array type with an optional item schema."""

    items: SchemaNode | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False

    @property
    def kind(self) -> str:
        return "array"


@dataclass
class ObjectNode(SchemaNode):
    """An object type; properties keep their declaration order."""

    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: set[str] = field(default_factory=set)
    min_properties: int | None = None
    max_properties: int | None = None

    @property
    def kind(self) -> str:
        return "object"

    @property
    def has_properties(self) -> bool:
        return bool(self.properties)

    def is_required(self, name: str) -> bool:
        return name in self.required


@dataclass
class EnumNode(SchemaNode):
    """An enumerated value list; values may be of mixed dynamic types."""

    values: list[Any] = field(default_factory=list)

    # Declared "type" alongside the enum, if any
    type_name: str = ""

    @property
    def kind(self) -> str:
        return "enum"


@dataclass
class RefNode(SchemaNode):
    """An unresolved $ref."""

    ref: str = ""  # e.g. "#/components/schemas/User" or "common.json#/Address"

    # URI of the document the reference appeared in (relative refs resolve against it)
    document_uri: str = ""

    @property
    def kind(self) -> str:
        return "reference"


def is_object_with_properties(node: SchemaNode | None) -> bool:
    """Whether a node is an object that declares at least one property."""
    return isinstance(node, ObjectNode) and node.has_properties


def schema_type_name(node: SchemaNode | None) -> str:
    """The JSON Schema "type" keyword a node stands for ("" if untyped)."""
    if isinstance(node, PrimitiveNode):
        return node.type_name
    if isinstance(node, ArrayNode):
        return "array"
    if isinstance(node, ObjectNode):
        return "object"
    if isinstance(node, EnumNode):
        return node.type_name
    return ""
