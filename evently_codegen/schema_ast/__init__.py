"""
Schema AST (Abstract Syntax Tree) module.

Contains the tagged node definitions and the parser for JSON Schema.
"""

from __future__ import annotations

from .nodes import (
    ArrayNode,
    EnumNode,
    ObjectNode,
    PrimitiveNode,
    RefNode,
    SchemaNode,
    is_object_with_properties,
    schema_type_name,
)
from .parser import SchemaParser, node_to_dict, parse_schema

__all__ = [
    "SchemaNode",
    "PrimitiveNode",
    "ArrayNode",
    "ObjectNode",
    "EnumNode",
    "RefNode",
    "SchemaParser",
    "parse_schema",
    "node_to_dict",
    "is_object_with_properties",
    "schema_type_name",
]
