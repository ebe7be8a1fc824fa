"""
JSON Schema parser that builds the tagged node tree.

Raw mappings (from json.load / yaml.safe_load) become SchemaNode
variants. Structural problems in the schema itself raise
SchemaValidationError with the JSON-Pointer-like path of the offending
keyword. node_to_dict() is the inverse and is used to embed schemas in
generated code.
"""

from __future__ import annotations

import math
from typing import Any

from ..errors import SchemaValidationError
from .nodes import (
    ArrayNode,
    EnumNode,
    ObjectNode,
    PrimitiveNode,
    RefNode,
    SchemaNode,
)

_STRING_CONSTRAINTS = {
    "minLength": "min_length",
    "maxLength": "max_length",
}

_NUMERIC_CONSTRAINTS = {
    "minimum": "minimum",
    "maximum": "maximum",
    "exclusiveMinimum": "exclusive_minimum",
    "exclusiveMaximum": "exclusive_maximum",
    "multipleOf": "multiple_of",
}

_METADATA_KEYS = ("default", "examples", "readOnly", "writeOnly", "nullable")


class SchemaParser:
    """Parses raw JSON Schema mappings into SchemaNode trees."""

    def __init__(self, document_uri: str = ""):
        """
        Initialize the parser.

        Args:
            document_uri: URI of the document being parsed; stamped on every
                RefNode so relative references resolve against it
        """
        self.document_uri = document_uri

    def parse(self, schema: Any, path: str = "#") -> SchemaNode:
        """
        Parse a schema recursively.

        Args:
            schema: The schema mapping (or boolean schema)
            path: Current path in schema (for error messages)

        Returns:
            Appropriate SchemaNode subclass

        Raises:
            SchemaValidationError: If the schema is structurally invalid
        """
        if schema is True:
            return PrimitiveNode(source_path=path)
        if not isinstance(schema, dict):
            raise SchemaValidationError(path, f"schema must be an object, got {type(schema).__name__}")

        if "$ref" in schema:
            return self._parse_ref_node(schema, path)

        type_name, nullable = self._parse_type_keyword(schema, path)

        enum_values = schema.get("enum")
        if enum_values is not None:
            if not isinstance(enum_values, list):
                raise SchemaValidationError(f"{path}/enum", "enum must be a list")
            if enum_values:
                node = EnumNode(values=list(enum_values), type_name=type_name, source_path=path)
                return self._finish(node, schema, path, nullable)

        if type_name == "array" or (not type_name and "items" in schema):
            node = self._parse_array_node(schema, path)
        elif type_name == "object" or (not type_name and "properties" in schema):
            node = self._parse_object_node(schema, path)
        else:
            node = self._parse_primitive_node(schema, path, type_name)

        return self._finish(node, schema, path, nullable)

    def _parse_type_keyword(self, schema: dict[str, Any], path: str) -> tuple[str, bool]:
        """Return the single declared type and whether "null" was also listed."""
        raw = schema.get("type", "")
        if isinstance(raw, str):
            return raw, False
        if isinstance(raw, list):
            non_null = [t for t in raw if t != "null"]
            if len(non_null) == 1 and isinstance(non_null[0], str):
                return non_null[0], "null" in raw
            if not non_null:
                return "null", False
            raise SchemaValidationError(f"{path}/type", f"union types are not supported: {raw}")
        raise SchemaValidationError(f"{path}/type", f"type must be a string, got {type(raw).__name__}")

    def _finish(self, node: SchemaNode, schema: dict[str, Any], path: str, nullable: bool) -> SchemaNode:
        """Attach the metadata shared by every node kind."""
        title = schema.get("title", "")
        description = schema.get("description", "")
        if not isinstance(title, str):
            raise SchemaValidationError(f"{path}/title", "title must be a string")
        if not isinstance(description, str):
            raise SchemaValidationError(f"{path}/description", "description must be a string")
        node.title = title
        node.description = description

        if "const" in schema:
            node.const = schema["const"]
            node.has_const = True

        for key, value in schema.items():
            if key.startswith("x-") or key in _METADATA_KEYS:
                node.metadata[key] = value
        if nullable:
            node.metadata["nullable"] = True
        return node

    def _parse_ref_node(self, schema: dict[str, Any], path: str) -> RefNode:
        """Parse a $ref node."""
        ref = schema["$ref"]
        if not isinstance(ref, str):
            raise SchemaValidationError(f"{path}/$ref", "$ref must be a string")
        node = RefNode(ref=ref, document_uri=self.document_uri, source_path=path)
        if "description" in schema and isinstance(schema["description"], str):
            node.description = schema["description"]
        return node

    def _parse_array_node(self, schema: dict[str, Any], path: str) -> ArrayNode:
        """Parse an array node."""
        node = ArrayNode(source_path=path)
        items = schema.get("items")
        if items is not None:
            if isinstance(items, list):
                raise SchemaValidationError(f"{path}/items", "tuple-style items are not supported")
            node.items = self.parse(items, f"{path}/items")

        node.min_items = self._non_negative_int(schema, "minItems", path)
        node.max_items = self._non_negative_int(schema, "maxItems", path)

        unique = schema.get("uniqueItems", False)
        if not isinstance(unique, bool):
            raise SchemaValidationError(f"{path}/uniqueItems", "uniqueItems must be a boolean")
        node.unique_items = unique
        return node

    def _parse_object_node(self, schema: dict[str, Any], path: str) -> ObjectNode:
        """Parse an object node, keeping property declaration order."""
        node = ObjectNode(source_path=path)

        properties = schema.get("properties") or {}
        if not isinstance(properties, dict):
            raise SchemaValidationError(f"{path}/properties", "properties must be an object")
        for name, prop_schema in properties.items():
            if not isinstance(name, str):
                raise SchemaValidationError(f"{path}/properties", f"property name must be a string, got {name!r}")
            node.properties[name] = self.parse(prop_schema, f"{path}/properties/{name}")

        required = schema.get("required") or []
        if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
            raise SchemaValidationError(f"{path}/required", "required must be a list of strings")
        node.required = set(required)

        node.min_properties = self._non_negative_int(schema, "minProperties", path)
        node.max_properties = self._non_negative_int(schema, "maxProperties", path)
        return node

    def _parse_primitive_node(self, schema: dict[str, Any], path: str, type_name: str) -> PrimitiveNode:
        """Parse a primitive (or untyped) node and its constraints."""
        fmt = schema.get("format", "")
        if not isinstance(fmt, str):
            raise SchemaValidationError(f"{path}/format", "format must be a string")
        node = PrimitiveNode(type_name=type_name, format=fmt, source_path=path)

        for key, attr in _STRING_CONSTRAINTS.items():
            setattr(node, attr, self._non_negative_int(schema, key, path))

        pattern = schema.get("pattern")
        if pattern is not None and not isinstance(pattern, str):
            raise SchemaValidationError(f"{path}/pattern", "pattern must be a string")
        node.pattern = pattern

        for key, attr in _NUMERIC_CONSTRAINTS.items():
            if key not in schema:
                continue
            value = schema[key]
            # Draft-4 style boolean exclusive bounds qualify minimum/maximum
            if key in ("exclusiveMinimum", "exclusiveMaximum") and isinstance(value, bool):
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise SchemaValidationError(f"{path}/{key}", f"{key} must be a number")
            setattr(node, attr, value)

        if schema.get("exclusiveMinimum") is True and node.minimum is not None:
            node.exclusive_minimum, node.minimum = node.minimum, None
        if schema.get("exclusiveMaximum") is True and node.maximum is not None:
            node.exclusive_maximum, node.maximum = node.maximum, None

        if node.multiple_of is not None and node.multiple_of < 0:
            raise SchemaValidationError(f"{path}/multipleOf", "multipleOf must not be negative")
        return node

    def _non_negative_int(self, schema: dict[str, Any], key: str, path: str) -> int | None:
        if key not in schema:
            return None
        value = schema[key]
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise SchemaValidationError(f"{path}/{key}", f"{key} must be a non-negative integer")
        return value


def parse_schema(schema: Any, document_uri: str = "") -> SchemaNode:
    """Parse a raw schema mapping into a SchemaNode tree."""
    return SchemaParser(document_uri).parse(schema)


def node_to_dict(node: SchemaNode | None) -> dict[str, Any]:
    """
    Serialize a SchemaNode back to a JSON Schema mapping.

    Only keywords the node actually carries are written, so the output of
    parse_schema(node_to_dict(n)) describes the same constraints as n.
    """
    if node is None:
        return {}

    out: dict[str, Any] = {}
    if isinstance(node, RefNode):
        out["$ref"] = node.ref
    elif isinstance(node, EnumNode):
        if node.type_name:
            out["type"] = node.type_name
        out["enum"] = list(node.values)
    elif isinstance(node, ArrayNode):
        out["type"] = "array"
        if node.items is not None:
            out["items"] = node_to_dict(node.items)
        _put(out, "minItems", node.min_items)
        _put(out, "maxItems", node.max_items)
        if node.unique_items:
            out["uniqueItems"] = True
    elif isinstance(node, ObjectNode):
        out["type"] = "object"
        if node.properties:
            out["properties"] = {name: node_to_dict(prop) for name, prop in node.properties.items()}
        if node.required:
            out["required"] = sorted(node.required)
        _put(out, "minProperties", node.min_properties)
        _put(out, "maxProperties", node.max_properties)
    elif isinstance(node, PrimitiveNode):
        if node.type_name:
            out["type"] = node.type_name
        if node.format:
            out["format"] = node.format
        for key, attr in _STRING_CONSTRAINTS.items():
            _put(out, key, getattr(node, attr))
        _put(out, "pattern", node.pattern)
        for key, attr in _NUMERIC_CONSTRAINTS.items():
            _put(out, key, getattr(node, attr))

    if node.has_const:
        out["const"] = node.const
    if node.metadata.get("nullable") and "type" in out:
        out["type"] = [out["type"], "null"]
    return out


def _put(out: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        out[key] = value
