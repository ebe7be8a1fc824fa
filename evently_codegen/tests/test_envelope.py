"""
Tests for reading root schemas out of input documents.
"""

from __future__ import annotations

import json

import pytest

from evently_codegen.envelope import (
    SUPPORTED_VERSIONS,
    check_version,
    extract_schemas,
    load_schema_document,
    parse_schema_document,
)
from evently_codegen.errors import FileError, ParseError, SchemaValidationError, UnsupportedVersionError
from evently_codegen.resolver import SchemaResolver
from evently_codegen.schema_ast import EnumNode, ObjectNode, RefNode

ASYNCAPI_YAML = """
asyncapi: 2.6.0
info:
  title: Orders
  version: 1.0.0
channels:
  orders/placed:
    subscribe:
      message:
        $ref: '#/components/messages/OrderPlaced'
components:
  messages:
    OrderPlaced:
      payload:
        $ref: '#/components/schemas/Order'
  schemas:
    Order:
      type: object
      properties:
        id:
          type: string
        status:
          $ref: '#/components/schemas/Status'
      required: [id]
    Status:
      type: string
      enum: [open, closed]
"""


class TestCheckVersion:
    @pytest.mark.parametrize("version", SUPPORTED_VERSIONS)
    def test_supported(self, version):
        assert check_version(version) == version

    def test_v_prefix_is_ignored(self):
        assert check_version("v3.0.0") == "3.0.0"

    def test_unsupported(self):
        with pytest.raises(UnsupportedVersionError) as exc_info:
            check_version("1.2.0")
        assert exc_info.value.version == "1.2.0"
        assert exc_info.value.supported_versions == SUPPORTED_VERSIONS
        assert "1.2.0" in str(exc_info.value)

    def test_missing(self):
        with pytest.raises(SchemaValidationError):
            check_version("")


class TestExtractSchemas:
    def test_components_and_messages(self):
        document = parse_schema_document(ASYNCAPI_YAML, uri="mem://orders.yaml")

        assert document.version == "2.6.0"
        assert sorted(document.schemas) == ["Order", "OrderPlaced", "Status"]
        assert isinstance(document.schemas["Order"], ObjectNode)
        assert isinstance(document.schemas["Status"], EnumNode)
        assert isinstance(document.schemas["OrderPlaced"], RefNode)
        assert document.schemas["Order"].source_path == "mem://orders.yaml#/components/schemas/Order"
        assert document.schemas["OrderPlaced"].document_uri == "mem://orders.yaml"

    def test_defs(self):
        schemas = extract_schemas({"$defs": {"a/b": {"type": "object"}}}, "mem://doc.json")
        assert schemas["a/b"].source_path == "mem://doc.json#/$defs/a~1b"

    def test_definitions(self):
        schemas = extract_schemas({"definitions": {"Thing": {"type": "object"}}})
        assert list(schemas) == ["Thing"]

    def test_single_schema_document(self):
        schemas = extract_schemas({"type": "object", "properties": {"id": {"type": "string"}}}, "mem://x.json", "Ping")
        assert list(schemas) == ["Ping"]
        assert schemas["Ping"].source_path == "mem://x.json#"

    def test_single_schema_document_needs_a_name(self):
        with pytest.raises(SchemaValidationError):
            extract_schemas({"type": "object"})

    def test_invalid_root_schema(self):
        with pytest.raises(SchemaValidationError):
            extract_schemas({"components": {"schemas": {"Bad": {"type": "object", "required": "id"}}}})

    def test_unsupported_version(self):
        with pytest.raises(UnsupportedVersionError):
            parse_schema_document(json.dumps({"asyncapi": "1.0.0"}))

    def test_non_mapping_document(self):
        with pytest.raises(ParseError):
            parse_schema_document("- a\n- b\n")


class TestLoadSchemaDocument:
    def test_registers_document_with_resolver(self, tmp_path):
        path = tmp_path / "orders.yaml"
        path.write_text(ASYNCAPI_YAML)
        resolver = SchemaResolver()

        document = load_schema_document(path, resolver)

        assert document.uri == str(path.resolve())
        assert resolver.base_uri == document.uri
        order = resolver.resolve_schema(document.schemas["OrderPlaced"].ref)
        assert "status" in order.properties

    def test_name_defaults_to_file_stem(self, tmp_path):
        path = tmp_path / "user_signup.json"
        path.write_text(json.dumps({"type": "object", "properties": {"id": {"type": "string"}}}))
        assert list(load_schema_document(path).schemas) == ["user_signup"]

    def test_explicit_uri(self, tmp_path):
        path = tmp_path / "api.json"
        path.write_text(json.dumps({"definitions": {"A": {"type": "object"}}}))
        document = load_schema_document(path, uri="https://example.com/api.json")
        assert document.schemas["A"].source_path == "https://example.com/api.json#/definitions/A"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileError):
            load_schema_document(tmp_path / "missing.json")
