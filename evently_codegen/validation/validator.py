"""
Runtime validator for data against SchemaNode trees.

Supports the JSON Schema subset the code generator understands: type
checks, string/numeric/array/object constraints, enum and const. The
composition keywords (allOf, anyOf, oneOf, not, if/then/else) are not
evaluated.

Every applicable constraint is checked; a call never stops at the first
error. Field paths are dotted for object properties (``user.address``)
and bracketed for array items (``tags[2]``).
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from types import MappingProxyType
from typing import Any

from ..schema_ast import (
    ArrayNode,
    EnumNode,
    ObjectNode,
    PrimitiveNode,
    RefNode,
    SchemaNode,
    parse_schema,
    schema_type_name,
)
from ..utils import unescape_pointer_token
from .result import ValidationResult


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern:
    return re.compile(pattern)


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, (float, Decimal)):
        return "number"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _is_integral(value: Any) -> bool:
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value.is_integer()
    try:
        return value == value.to_integral_value()
    except InvalidOperation:
        return False


def _is_multiple_of(value: Any, divisor: Any) -> bool:
    try:
        quotient = Decimal(str(value)) / Decimal(str(divisor))
    except InvalidOperation:
        return False
    return quotient.is_finite() and quotient == quotient.to_integral_value()


def deep_equal(a: Any, b: Any) -> bool:
    """JSON equality: booleans never equal numbers, containers compare element-wise."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        return a.keys() == b.keys() and all(deep_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(deep_equal(x, y) for x, y in zip(a, b))
    if _is_number(a) and _is_number(b):
        return a == b
    return type(a) is type(b) and a == b


def canonical_form(value: Any) -> str:
    """Canonical string used to detect duplicates under uniqueItems."""
    return json.dumps(value, sort_keys=True, default=str)


def join_path(parent: str, name: str) -> str:
    if not parent:
        return name
    return f"{parent}.{name}"


def _format_number(value: Any) -> str:
    # Integral floats print without a fraction; ints of any size print exactly
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class SchemaValidator:
    """
    Validates values against schema nodes.

    Instances are immutable and safe to share between threads.

    Attributes:
        strict: Reject object keys not declared in the schema's properties
        definitions: Named schemas that ``$ref`` nodes are looked up in, by
            exact reference string or by the reference's last pointer token
    """

    strict: bool = False
    definitions: Mapping[str, SchemaNode] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "definitions", MappingProxyType(dict(self.definitions)))

    def validate(self, value: Any, schema: SchemaNode | None, field_path: str = "") -> ValidationResult:
        """
        Validate a decoded value against a schema node.

        Args:
            value: Decoded JSON-like value (dicts, lists, str, numbers, bool, None)
            schema: Schema to validate against; None accepts anything
            field_path: Path prefix for reported errors

        Returns:
            ValidationResult with every violated constraint
        """
        result = ValidationResult()
        self._validate(value, schema, field_path, result, ())
        return result

    def validate_json(self, data: str | bytes, schema: SchemaNode | None) -> ValidationResult:
        """Decode raw JSON text and validate it; decode failures become a root-level error."""
        try:
            value = json.loads(data)
        except ValueError as e:
            result = ValidationResult()
            result.add_error("", f"invalid JSON: {e}")
            return result
        return self.validate(value, schema)

    def validate_message(self, data: Any, schema: SchemaNode | Mapping[str, Any]) -> ValidationResult:
        """
        Validate a message payload against its schema.

        ``data`` may be raw JSON text or an already decoded value, and
        ``schema`` may be a node or a raw schema mapping.
        """
        if isinstance(schema, Mapping):
            schema = parse_schema(dict(schema))
        if isinstance(data, (str, bytes, bytearray)):
            return self.validate_json(data, schema)
        return self.validate(data, schema)

    def _lookup(self, ref: str) -> SchemaNode | None:
        if ref in self.definitions:
            return self.definitions[ref]
        name = unescape_pointer_token(ref.rsplit("/", 1)[-1])
        return self.definitions.get(name)

    def _validate(
        self,
        value: Any,
        node: SchemaNode | None,
        path: str,
        result: ValidationResult,
        refs_seen: tuple[str, ...],
    ) -> None:
        if node is None:
            return

        if isinstance(node, RefNode):
            if node.ref in refs_seen:
                result.add_error(path, f"circular reference: {' -> '.join(refs_seen + (node.ref,))}")
                return
            target = self._lookup(node.ref)
            if target is None:
                result.add_error(path, f"unresolved reference: {node.ref}")
                return
            self._validate(value, target, path, result, refs_seen + (node.ref,))
            return

        type_name = schema_type_name(node)

        if value is None:
            allows_null = (
                type_name in ("", "null")
                or isinstance(node, EnumNode)
                or node.has_const
                or node.metadata.get("nullable", False)
            )
            if not allows_null:
                result.add_error(path, "value cannot be null")
                return
        else:
            self._validate_type(value, node, type_name, path, result)

        if isinstance(node, EnumNode):
            self._validate_enum(value, node, path, result)

        if node.has_const or type_name == "null":
            if not deep_equal(value, node.const):
                result.add_error(path, f"value must be: {_format_value(node.const)}")

    def _validate_type(self, value: Any, node: SchemaNode, type_name: str, path: str, result: ValidationResult) -> None:
        if type_name == "string":
            self._validate_string(value, node, path, result)
        elif type_name in ("number", "integer"):
            self._validate_number(value, node, type_name, path, result)
        elif type_name == "boolean":
            if not isinstance(value, bool):
                result.add_error(path, f"expected boolean, got {_json_type_name(value)}")
        elif type_name == "array":
            self._validate_array(value, node, path, result)
        elif type_name == "object":
            self._validate_object(value, node, path, result)
        elif type_name == "":
            self._validate_inferred(value, node, path, result)
        elif type_name != "null":
            result.add_error(path, f"unsupported schema type: {type_name}")

    def _validate_inferred(self, value: Any, node: SchemaNode, path: str, result: ValidationResult) -> None:
        """No declared type: validate by the value's own type."""
        if isinstance(value, str):
            self._validate_string(value, node, path, result)
        elif _is_number(value):
            self._validate_number(value, node, "number", path, result)
        elif isinstance(value, (list, tuple)):
            self._validate_array(value, node, path, result)
        elif isinstance(value, Mapping):
            self._validate_object(value, node, path, result)

    def _validate_string(self, value: Any, node: SchemaNode, path: str, result: ValidationResult) -> None:
        if not isinstance(value, str):
            result.add_error(path, f"expected string, got {_json_type_name(value)}")
            return
        if not isinstance(node, PrimitiveNode):
            return

        # Lengths are counted in code points
        length = len(value)
        if node.min_length is not None and length < node.min_length:
            result.add_error(path, f"string length {length} is less than minimum {node.min_length}")
        if node.max_length is not None and length > node.max_length:
            result.add_error(path, f"string length {length} exceeds maximum {node.max_length}")

        if node.pattern is not None:
            try:
                regex = _compile_pattern(node.pattern)
            except re.error as e:
                result.add_error(path, f"invalid regex pattern: {e}")
                return
            if not regex.search(value):
                result.add_error(path, f"string does not match pattern: {node.pattern}")

    def _validate_number(
        self, value: Any, node: SchemaNode, type_name: str, path: str, result: ValidationResult
    ) -> None:
        if not _is_number(value):
            result.add_error(path, f"expected {type_name}, got {_json_type_name(value)}")
            return
        if type_name == "integer" and not _is_integral(value):
            result.add_error(path, f"expected integer value, got {value}")
            return
        if not isinstance(node, PrimitiveNode):
            return

        if node.minimum is not None and value < node.minimum:
            result.add_error(path, f"value {_format_number(value)} is less than minimum {_format_number(node.minimum)}")
        if node.maximum is not None and value > node.maximum:
            result.add_error(path, f"value {_format_number(value)} exceeds maximum {_format_number(node.maximum)}")
        if node.exclusive_minimum is not None and value <= node.exclusive_minimum:
            result.add_error(
                path, f"value {_format_number(value)} is not greater than exclusive minimum {_format_number(node.exclusive_minimum)}"
            )
        if node.exclusive_maximum is not None and value >= node.exclusive_maximum:
            result.add_error(path, f"value {_format_number(value)} is not less than exclusive maximum {_format_number(node.exclusive_maximum)}")
        if node.multiple_of and not _is_multiple_of(value, node.multiple_of):
            result.add_error(path, f"value {_format_number(value)} is not a multiple of {_format_number(node.multiple_of)}")

    def _validate_array(self, value: Any, node: SchemaNode, path: str, result: ValidationResult) -> None:
        if not isinstance(value, (list, tuple)):
            result.add_error(path, f"expected array, got {_json_type_name(value)}")
            return
        if not isinstance(node, ArrayNode):
            return

        length = len(value)
        if node.min_items is not None and length < node.min_items:
            result.add_error(path, f"array length {length} is less than minimum {node.min_items}")
        if node.max_items is not None and length > node.max_items:
            result.add_error(path, f"array length {length} exceeds maximum {node.max_items}")

        if node.unique_items:
            seen: set[str] = set()
            for i, item in enumerate(value):
                key = canonical_form(item)
                if key in seen:
                    result.add_error(f"{path}[{i}]", "duplicate item in array with uniqueItems constraint")
                seen.add(key)

        if node.items is not None:
            for i, item in enumerate(value):
                self._validate(item, node.items, f"{path}[{i}]", result, ())

    def _validate_object(self, value: Any, node: SchemaNode, path: str, result: ValidationResult) -> None:
        if not isinstance(value, Mapping):
            result.add_error(path, f"expected object, got {_json_type_name(value)}")
            return
        if not isinstance(node, ObjectNode):
            return

        count = len(value)
        if node.min_properties is not None and count < node.min_properties:
            result.add_error(path, f"object has {count} properties, minimum is {node.min_properties}")
        if node.max_properties is not None and count > node.max_properties:
            result.add_error(path, f"object has {count} properties, maximum is {node.max_properties}")

        for name in sorted(node.required):
            if name not in value:
                result.add_error(join_path(path, name), "required property is missing")

        for name, prop in node.properties.items():
            if name in value:
                self._validate(value[name], prop, join_path(path, name), result, ())

        if self.strict:
            for name in value:
                if name not in node.properties:
                    result.add_error(join_path(path, name), "additional property not allowed in strict mode")

    def _validate_enum(self, value: Any, node: EnumNode, path: str, result: ValidationResult) -> None:
        if any(deep_equal(value, allowed) for allowed in node.values):
            return
        allowed = ", ".join(_format_value(v) for v in node.values)
        result.add_error(path, f"value must be one of: {allowed}")
