"""
Tests for mapping schema nodes to Python type descriptors.
"""

import unittest

from evently_codegen.config import CodeGeneratorConfig
from evently_codegen.schema_ast import parse_schema
from evently_codegen.type_mapper import TypeKind, TypeMapper, enum_base_kind


class TestMapPrimitive(unittest.TestCase):
    def setUp(self):
        self.mapper = TypeMapper()

    def test_bare_types(self):
        cases = {
            "string": (TypeKind.STRING, "str"),
            "integer": (TypeKind.INTEGER, "int"),
            "number": (TypeKind.FLOAT, "float"),
            "boolean": (TypeKind.BOOLEAN, "bool"),
            "array": (TypeKind.LIST, "list[Any]"),
            "object": (TypeKind.MAP, "dict[str, Any]"),
        }
        for type_name, (kind, annotation) in cases.items():
            desc = self.mapper.map_primitive(type_name)
            self.assertEqual(desc.kind, kind, type_name)
            self.assertEqual(desc.annotation, annotation, type_name)

    def test_format_wins(self):
        self.assertEqual(self.mapper.map_primitive("string", "date-time").name, "datetime")
        self.assertEqual(self.mapper.map_primitive("string", "date").name, "date")
        self.assertEqual(self.mapper.map_primitive("string", "time").name, "time")
        self.assertEqual(self.mapper.map_primitive("string", "date-time").kind, TypeKind.TIMESTAMP)
        self.assertEqual(self.mapper.map_primitive("string", "byte").kind, TypeKind.BYTES)
        self.assertEqual(self.mapper.map_primitive("string", "binary").name, "bytes")
        self.assertEqual(self.mapper.map_primitive("integer", "int32").kind, TypeKind.INT32)
        self.assertEqual(self.mapper.map_primitive("integer", "int64").name, "int")
        self.assertEqual(self.mapper.map_primitive("number", "float").kind, TypeKind.FLOAT32)
        self.assertEqual(self.mapper.map_primitive("number", "double").kind, TypeKind.FLOAT64)

    def test_string_formats(self):
        for fmt in ("email", "uri", "uri-reference", "uuid", "hostname", "ipv4", "ipv6", "password"):
            self.assertEqual(self.mapper.map_primitive("string", fmt).annotation, "str", fmt)

    def test_unknown_format_falls_back_to_type(self):
        self.assertEqual(self.mapper.map_primitive("string", "color").annotation, "str")

    def test_unknown_type_is_any(self):
        desc = self.mapper.map_primitive("decimal")
        self.assertEqual(desc.kind, TypeKind.ANY)
        self.assertIn(("typing", "Any"), desc.all_imports())

    def test_timestamp_imports(self):
        self.assertEqual(self.mapper.map_primitive("string", "date-time").all_imports(), {("datetime", "datetime")})


class TestDetectEnum(unittest.TestCase):
    def setUp(self):
        self.mapper = TypeMapper()

    def test_non_enum(self):
        self.assertIsNone(self.mapper.detect_enum(parse_schema({"type": "string"})))

    def test_base_kinds(self):
        self.assertEqual(enum_base_kind(["a", "b"]), TypeKind.STRING)
        self.assertEqual(enum_base_kind([1, 2, 3]), TypeKind.INTEGER)
        self.assertEqual(enum_base_kind([1.5, 2]), TypeKind.FLOAT)
        self.assertEqual(enum_base_kind([True, False]), TypeKind.BOOLEAN)

    def test_first_non_null_value_decides(self):
        self.assertEqual(enum_base_kind([None, 3]), TypeKind.INTEGER)

    def test_integral_floats_are_integers(self):
        enum = self.mapper.detect_enum(parse_schema({"enum": [1.0, 2.0]}))
        self.assertEqual(enum.base_kind, TypeKind.INTEGER)
        self.assertEqual(enum.values, (1, 2))

    def test_all_null_defaults_to_string(self):
        enum = self.mapper.detect_enum(parse_schema({"enum": [None]}))
        self.assertEqual(enum.base_kind, TypeKind.STRING)
        self.assertTrue(enum.nullable)
        self.assertEqual(enum.members, [])

    def test_homogeneous(self):
        self.assertTrue(self.mapper.detect_enum(parse_schema({"enum": [1.5, 2]})).homogeneous)
        self.assertFalse(self.mapper.detect_enum(parse_schema({"enum": ["a", 1]})).homogeneous)

    def test_mixed_enum_maps_to_any(self):
        self.assertEqual(self.mapper.map_node(parse_schema({"enum": ["a", 1]})).kind, TypeKind.ANY)


class TestMapProperty(unittest.TestCase):
    def setUp(self):
        self.mapper = TypeMapper()

    def test_enum_field_type_name(self):
        mapping = self.mapper.map_property(parse_schema({"enum": ["a"]}), "order_status", required=True)
        self.assertEqual(mapping.type.kind, TypeKind.ENUM)
        self.assertEqual(mapping.type.annotation, "OrderStatusEnum")

    def test_array_of_enum_field_type_name(self):
        schema = {"type": "array", "items": {"enum": ["x"]}}
        mapping = self.mapper.map_property(parse_schema(schema), "tags", required=True)
        self.assertEqual(mapping.type.annotation, "list[TagsItemEnum]")
        self.assertEqual(mapping.enum.values, ("x",))

    def test_optional_scalar_is_nullable(self):
        mapping = self.mapper.map_property(parse_schema({"type": "integer"}), "count", required=False)
        self.assertEqual(mapping.type.annotation, "int | None")
        self.assertTrue(mapping.optional)

    def test_required_scalar_is_not_nullable(self):
        mapping = self.mapper.map_property(parse_schema({"type": "integer"}), "count", required=True)
        self.assertEqual(mapping.type.annotation, "int")

    def test_optional_containers_are_not_wrapped(self):
        array = self.mapper.map_property(parse_schema({"type": "array", "items": {"type": "string"}}), "a", False)
        mapping = self.mapper.map_property(parse_schema({"type": "object"}), "b", False)
        self.assertEqual(array.type.annotation, "list[str]")
        self.assertEqual(mapping.type.annotation, "dict[str, Any]")

    def test_nullable_optionals_disabled(self):
        mapper = TypeMapper(CodeGeneratorConfig(nullable_optionals=False))
        mapping = mapper.map_property(parse_schema({"type": "string"}), "name", required=False)
        self.assertEqual(mapping.type.annotation, "str")

    def test_description_becomes_doc(self):
        mapping = self.mapper.map_property(parse_schema({"type": "string", "description": "Name"}), "n", True)
        self.assertEqual(mapping.doc, "Name")

    def test_nested_lists(self):
        schema = {"type": "array", "items": {"type": "array", "items": {"type": "string", "format": "date"}}}
        desc = self.mapper.map_node(parse_schema(schema))
        self.assertEqual(desc.annotation, "list[list[date]]")
        self.assertEqual(desc.innermost().kind, TypeKind.TIMESTAMP)
        self.assertEqual(desc.all_imports(), {("datetime", "date")})


if __name__ == "__main__":
    unittest.main()
