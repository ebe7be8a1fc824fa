"""
Type mapping from JSON Schema nodes to Python type descriptors.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .config import CodeGeneratorConfig
from .schema_ast import ArrayNode, EnumNode, ObjectNode, PrimitiveNode, SchemaNode
from .utils import to_pascal_case


class TypeKind(str, Enum):
    """Kinds of type a generated field can have."""

    STRING = "string"
    INTEGER = "integer"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT = "float"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    BYTES = "bytes"
    LIST = "list"
    MAP = "map"
    STRUCT = "struct"
    ENUM = "enum"
    ANY = "any"


ANY_IMPORT = ("typing", "Any")


@dataclass(frozen=True)
class TypeDescriptor:
    """A Python type for one schema position."""

    kind: TypeKind
    # Annotation text without the optional wrapper, e.g. "list[str]"
    name: str
    item: TypeDescriptor | None = None
    nullable: bool = False
    # (module, name) pairs the annotation needs
    imports: tuple[tuple[str, str], ...] = ()

    @property
    def annotation(self) -> str:
        if self.nullable:
            return f"{self.name} | None"
        return self.name

    @property
    def is_container(self) -> bool:
        return self.kind in (TypeKind.LIST, TypeKind.MAP)

    def as_nullable(self) -> TypeDescriptor:
        return replace(self, nullable=True)

    def all_imports(self) -> set[tuple[str, str]]:
        """Imports needed by this descriptor and its item descriptors."""
        result = set(self.imports)
        if self.item is not None:
            result |= self.item.all_imports()
        return result

    def innermost(self) -> TypeDescriptor:
        """The element descriptor once every list level is unwrapped."""
        desc = self
        while desc.item is not None:
            desc = desc.item
        return desc


_STRING = TypeDescriptor(TypeKind.STRING, "str")
_ANY = TypeDescriptor(TypeKind.ANY, "Any", imports=(ANY_IMPORT,))

_TYPE_MAP: dict[str, TypeDescriptor] = {
    "string": _STRING,
    "integer": TypeDescriptor(TypeKind.INTEGER, "int"),
    "number": TypeDescriptor(TypeKind.FLOAT, "float"),
    "boolean": TypeDescriptor(TypeKind.BOOLEAN, "bool"),
    "array": TypeDescriptor(TypeKind.LIST, "list[Any]", item=_ANY),
    "object": TypeDescriptor(TypeKind.MAP, "dict[str, Any]", imports=(ANY_IMPORT,)),
}

_STRING_FORMATS = ("email", "hostname", "ipv4", "ipv6", "uri", "uri-reference", "uuid", "password")

# (type, format) pairs; formats win over the bare type
_FORMAT_MAP: dict[tuple[str, str], TypeDescriptor] = {
    ("string", "date-time"): TypeDescriptor(TypeKind.TIMESTAMP, "datetime", imports=(("datetime", "datetime"),)),
    ("string", "date"): TypeDescriptor(TypeKind.TIMESTAMP, "date", imports=(("datetime", "date"),)),
    ("string", "time"): TypeDescriptor(TypeKind.TIMESTAMP, "time", imports=(("datetime", "time"),)),
    ("string", "byte"): TypeDescriptor(TypeKind.BYTES, "bytes"),
    ("string", "binary"): TypeDescriptor(TypeKind.BYTES, "bytes"),
    ("integer", "int32"): TypeDescriptor(TypeKind.INT32, "int"),
    ("integer", "int64"): TypeDescriptor(TypeKind.INT64, "int"),
    ("number", "float"): TypeDescriptor(TypeKind.FLOAT32, "float"),
    ("number", "double"): TypeDescriptor(TypeKind.FLOAT64, "float"),
}
for _fmt in _STRING_FORMATS:
    _FORMAT_MAP[("string", _fmt)] = _STRING

_ENUM_BASE_TYPES = {
    TypeKind.STRING: "str",
    TypeKind.INTEGER: "int",
    TypeKind.FLOAT: "float",
    TypeKind.BOOLEAN: "bool",
}


@dataclass(frozen=True)
class EnumDescriptor:
    """The value list of an enum node plus its inferred base kind."""

    base_kind: TypeKind
    values: tuple[Any, ...]

    @property
    def base_type(self) -> str:
        return _ENUM_BASE_TYPES[self.base_kind]

    @property
    def nullable(self) -> bool:
        return any(v is None for v in self.values)

    @property
    def members(self) -> list[Any]:
        """Non-null values, each of which becomes an enum member."""
        return [v for v in self.values if v is not None]

    @property
    def homogeneous(self) -> bool:
        """Whether every member is of the base kind (so the base type can be mixed in)."""
        allowed = {self.base_kind}
        if self.base_kind == TypeKind.FLOAT:
            allowed.add(TypeKind.INTEGER)
        return all(_value_kind(v) in allowed for v in self.members)


def _value_kind(value: Any) -> TypeKind | None:
    if isinstance(value, bool):
        return TypeKind.BOOLEAN
    if isinstance(value, str):
        return TypeKind.STRING
    if isinstance(value, int):
        return TypeKind.INTEGER
    if isinstance(value, float):
        return TypeKind.INTEGER if value.is_integer() else TypeKind.FLOAT
    return None


def enum_base_kind(values: list[Any]) -> TypeKind:
    """
    Infer the base kind of an enum from its first non-null value.

    Floats with no fractional part count as integers. Lists with only null
    values (or values of no scalar kind) default to string.
    """
    for value in values:
        if value is None:
            continue
        return _value_kind(value) or TypeKind.STRING
    return TypeKind.STRING


@dataclass
class FieldMapping:
    """The Type Mapper's result for one property."""

    type: TypeDescriptor
    optional: bool
    doc: str = ""
    # Enum carried by the field itself or by its array items
    enum: EnumDescriptor | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class TypeMapper:
    """Maps schema nodes to TypeDescriptors and applies the optionality policy."""

    def __init__(self, config: CodeGeneratorConfig | None = None):
        self.config = config or CodeGeneratorConfig()

    def map_primitive(self, type_name: str, format: str = "") -> TypeDescriptor:
        """
        Map a JSON Schema (type, format) pair to a TypeDescriptor.

        Format-specific mappings take priority; unknown pairs map to Any.
        """
        if format and (type_name, format) in _FORMAT_MAP:
            return _FORMAT_MAP[(type_name, format)]
        return _TYPE_MAP.get(type_name, _ANY)

    def detect_enum(self, node: SchemaNode | None) -> EnumDescriptor | None:
        """Return an EnumDescriptor when the node carries a non-empty value list."""
        if not isinstance(node, EnumNode) or not node.values:
            return None
        base_kind = enum_base_kind(node.values)
        values = tuple(_normalize_enum_value(v, base_kind) for v in node.values)
        return EnumDescriptor(base_kind=base_kind, values=values)

    def map_node(self, node: SchemaNode | None) -> TypeDescriptor:
        """Map a node that is not extracted into its own type (no context names)."""
        if node is None:
            return _ANY
        enum = self.detect_enum(node)
        if enum is not None:
            if not enum.homogeneous:
                return _ANY
            return TypeDescriptor(enum.base_kind, enum.base_type)
        if isinstance(node, ArrayNode):
            return self.list_of(self.map_node(node.items))
        if isinstance(node, ObjectNode):
            return _TYPE_MAP["object"]
        if isinstance(node, PrimitiveNode):
            return self.map_primitive(node.type_name, node.format)
        return _ANY

    def map_property(self, node: SchemaNode, field_name: str, required: bool) -> FieldMapping:
        """
        Map a property with the context of its name and required-ness.

        Enum properties get a dedicated type named after the field
        (``PascalCase(field) + "Enum"``); arrays of enums get
        ``list[PascalCase(field) + "ItemEnum"]``.
        """
        enum = self.detect_enum(node)
        if enum is not None:
            desc = TypeDescriptor(TypeKind.ENUM, self.enum_type_name(field_name))
        elif isinstance(node, ArrayNode) and self.detect_enum(node.items) is not None:
            enum = self.detect_enum(node.items)
            desc = self.list_of(TypeDescriptor(TypeKind.ENUM, self.enum_type_name(field_name + "Item")))
        else:
            desc = self.map_node(node)

        return FieldMapping(
            type=self.apply_optionality(desc, required),
            optional=not required,
            doc=node.description,
            enum=enum,
            metadata=dict(node.metadata),
        )

    def apply_optionality(self, desc: TypeDescriptor, required: bool) -> TypeDescriptor:
        """
        Wrap optional scalar and object types as nullable.

        Lists and dicts are never wrapped: an absent optional sequence or
        mapping is represented by an empty one.
        """
        if required or desc.is_container or desc.kind == TypeKind.ANY:
            return desc
        if not self.config.nullable_optionals:
            return desc
        return desc.as_nullable()

    @staticmethod
    def list_of(item: TypeDescriptor) -> TypeDescriptor:
        return TypeDescriptor(TypeKind.LIST, f"list[{item.annotation}]", item=item)

    @staticmethod
    def struct(name: str) -> TypeDescriptor:
        return TypeDescriptor(TypeKind.STRUCT, name)

    @staticmethod
    def enum_type_name(field_name: str) -> str:
        return to_pascal_case(field_name) + "Enum"


def _normalize_enum_value(value: Any, base_kind: TypeKind) -> Any:
    if base_kind == TypeKind.INTEGER and isinstance(value, float) and value.is_integer():
        return int(value)
    return value
