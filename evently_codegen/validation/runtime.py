"""
Runtime support imported by generated modules.

Generated types embed their schemas as plain mappings; EmbeddedSchemas
parses them once at import time and backs the ``validate`` and
``validate_json`` hooks. The encode/decode helpers are used as
dataclasses-json field encoders and decoders for timestamp and binary
fields.
"""

from __future__ import annotations

import base64
import dataclasses
from collections.abc import Mapping
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from ..schema_ast import ArrayNode, RefNode, SchemaNode, is_object_with_properties, parse_schema
from ..utils import unescape_pointer_token
from .result import ValidationResult
from .validator import SchemaValidator, deep_equal


def to_plain(value: Any) -> Any:
    """
    Convert an instance dump to plain JSON-like values.

    Enum members become their values, timestamps become ISO 8601 strings
    and bytes become base64 text. None values are kept.
    """
    if isinstance(value, Enum):
        return to_plain(value.value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Mapping):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def encode_value(value: Any) -> Any:
    """Field encoder for timestamp and bytes fields (lists handled element-wise)."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return value


def _decoder(convert):
    def decode(value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, list):
            return [decode(v) for v in value]
        return convert(value)

    return decode


def _from_iso(cls):
    def convert(value: Any) -> Any:
        if isinstance(value, cls):
            return value
        text = str(value)
        if cls is datetime and text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return cls.fromisoformat(text)

    return convert


def _from_base64(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return base64.b64decode(value)


decode_datetime = _decoder(_from_iso(datetime))
decode_date = _decoder(_from_iso(date))
decode_time = _decoder(_from_iso(time))
decode_bytes = _decoder(_from_base64)


class EmbeddedSchemas:
    """The schemas of one generated module, parsed and ready for validation."""

    def __init__(self, schemas: Mapping[str, Mapping[str, Any]], strict: bool = False):
        """
        Args:
            schemas: Raw schema mapping per generated type name; references
                between them use ``#/definitions/<TypeName>``
            strict: Default mode for hooks called without an explicit mode
        """
        self.strict = strict
        self.definitions: dict[str, SchemaNode] = {
            name: parse_schema(dict(raw)) for name, raw in schemas.items()
        }
        self._validators = {
            mode: SchemaValidator(strict=mode, definitions=self.definitions) for mode in (False, True)
        }

    def validator(self, strict: bool | None = None) -> SchemaValidator:
        return self._validators[self.strict if strict is None else bool(strict)]

    def schema(self, type_name: str) -> SchemaNode:
        try:
            return self.definitions[type_name]
        except KeyError:
            raise KeyError(f"no embedded schema for type '{type_name}'") from None

    def validate_value(self, type_name: str, value: Any, strict: bool | None = None) -> ValidationResult:
        return self.validator(strict).validate(value, self.schema(type_name))

    def validate_instance(self, type_name: str, instance: Any, strict: bool | None = None) -> ValidationResult:
        """Validate a generated-type instance via its plain dictionary form."""
        if hasattr(instance, "to_dict"):
            data = instance.to_dict(encode_json=False)
        else:
            data = dataclasses.asdict(instance)
        return self.validate_value(type_name, self.drop_unset(to_plain(data), self.schema(type_name)), strict)

    def drop_unset(self, value: Any, node: SchemaNode | None) -> Any:
        """
        Remove optional struct fields that hold None from an instance dump.

        Only objects declaring properties (the generated types) are
        filtered; required fields and free-form mappings keep their nulls.
        """
        if isinstance(node, RefNode):
            node = self.definitions.get(unescape_pointer_token(node.ref.rsplit("/", 1)[-1]))
        if isinstance(node, ArrayNode) and isinstance(value, list):
            return [self.drop_unset(item, node.items) for item in value]
        if is_object_with_properties(node) and isinstance(value, Mapping):
            return {
                k: self.drop_unset(v, node.properties.get(k))
                for k, v in value.items()
                if v is not None or node.is_required(k)
            }
        return value

    def validate_json(self, type_name: str, data: str | bytes, strict: bool | None = None) -> ValidationResult:
        return self.validator(strict).validate_json(data, self.schema(type_name))


def enum_contains(enum_cls: type[Enum], value: Any) -> bool:
    """Membership test for generated enums; booleans never match numeric members."""
    if isinstance(value, enum_cls):
        return True
    return any(deep_equal(value, member.value) for member in enum_cls)
