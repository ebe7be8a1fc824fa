"""
Tests for the evently_codegen command.
"""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from evently_codegen.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_FILE_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_PARSE_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    evently_codegen,
    load_config,
)
from evently_codegen.cli_utils import reconstruct_command_line
from evently_codegen.errors import SchemaValidationError

ORDERS_DOC = {
    "asyncapi": "2.6.0",
    "info": {"title": "Orders", "version": "1.0.0"},
    "components": {
        "messages": {"OrderPlaced": {"payload": {"$ref": "#/components/schemas/Order"}}},
        "schemas": {
            "Order": {
                "type": "object",
                "properties": {"id": {"type": "string"}, "status": {"$ref": "#/components/schemas/Status"}},
                "required": ["id"],
            },
            "Status": {"type": "string", "enum": ["open", "closed"]},
        },
    },
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def orders_file(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text(json.dumps(ORDERS_DOC))
    return path


def _run(runner, *args):
    return runner.invoke(evently_codegen, [str(a) for a in args])


class TestGenerate:
    def test_generates_one_module_per_schema(self, runner, orders_file, tmp_path):
        out = tmp_path / "out"
        result = _run(runner, orders_file, out)

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert sorted(p.name for p in out.iterdir()) == ["order.py", "order_placed.py", "status.py"]
        assert "Generated 3 file(s)" in result.output
        order = (out / "order.py").read_text()
        assert "class Order:" in order
        assert "class Status(str, Enum):" in order
        assert "class OrderPlaced:" in (out / "order_placed.py").read_text()

    def test_generation_comment_has_command_line(self, runner, orders_file, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        result = _run(runner, orders_file, out, "--strict")

        assert result.exit_code == EXIT_SUCCESS, result.output
        text = (out / "order.py").read_text()
        assert "evently_codegen orders.json out --strict" in text.splitlines()[0]
        assert "strict=True" in text

    def test_single_schema_with_name(self, runner, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"type": "object", "properties": {"id": {"type": "string"}}}))
        out = tmp_path / "out"

        result = _run(runner, path, out, "--name", "UserSignup")

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "class UserSignup:" in (out / "user_signup.py").read_text()

    def test_config_file(self, runner, orders_file, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"add_generation_comment": False, "ignore_classes": ["OrderPlaced"]}))
        out = tmp_path / "out"

        result = _run(runner, orders_file, out, "--config", config)

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert not (out / "order_placed.py").exists()
        assert not (out / "order.py").read_text().startswith("# Generated")

    def test_verbose(self, runner, orders_file, tmp_path):
        result = _run(runner, orders_file, tmp_path / "out", "--verbose")
        assert result.exit_code == EXIT_SUCCESS, result.output


class TestExitCodes:
    def test_existing_files_need_force(self, runner, orders_file, tmp_path):
        out = tmp_path / "out"
        assert _run(runner, orders_file, out).exit_code == EXIT_SUCCESS

        again = _run(runner, orders_file, out)
        assert again.exit_code == EXIT_FILE_ERROR
        assert "already exists" in again.output

        assert _run(runner, orders_file, out, "--force").exit_code == EXIT_SUCCESS

    def test_invalid_config(self, runner, orders_file, tmp_path):
        config = tmp_path / "config.json"
        config.write_text("{not json")
        result = _run(runner, orders_file, tmp_path / "out", "--config", config)
        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_unparsable_input(self, runner, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("key: [unclosed")
        result = _run(runner, path, tmp_path / "out")
        assert result.exit_code == EXIT_PARSE_ERROR
        assert "Failed to parse input document" in result.output

    def test_unsupported_version(self, runner, tmp_path):
        path = tmp_path / "old.json"
        path.write_text(json.dumps({"asyncapi": "1.2.0", "components": {"schemas": {}}}))
        result = _run(runner, path, tmp_path / "out")
        assert result.exit_code == EXIT_VALIDATION_ERROR
        assert "unsupported AsyncAPI version" in result.output

    def test_no_schemas(self, runner, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"asyncapi": "3.0.0", "info": {"title": "x", "version": "1"}}))
        result = _run(runner, path, tmp_path / "out")
        assert result.exit_code == EXIT_GENERATION_ERROR

    def test_partial_failure_writes_the_rest(self, runner, tmp_path):
        doc = {
            "definitions": {
                "Good": {"type": "object", "properties": {"id": {"type": "string"}}},
                "Broken": {"type": "object", "properties": {"a": {"$ref": "#/definitions/Missing"}}},
            }
        }
        path = tmp_path / "mixed.json"
        path.write_text(json.dumps(doc))
        out = tmp_path / "out"

        result = _run(runner, path, out)

        assert result.exit_code == EXIT_GENERATION_ERROR
        assert (out / "good.py").exists()
        assert not (out / "broken.py").exists()
        assert "Broken" in result.output

    def test_relative_refs_use_base_uri(self, runner, tmp_path):
        schemas = tmp_path / "schemas"
        schemas.mkdir()
        (schemas / "common.json").write_text(
            json.dumps({"Address": {"type": "object", "properties": {"city": {"type": "string"}}}})
        )
        path = tmp_path / "api.json"
        path.write_text(
            json.dumps({"definitions": {"Customer": {"type": "object", "properties": {"address": {"$ref": "common.json#/Address"}}}}})
        )
        out = tmp_path / "out"

        result = _run(runner, path, out, "--base-uri", schemas / "api.json")

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "class Address:" in (out / "customer.py").read_text()


class TestHelpers:
    def test_load_config_defaults(self):
        assert load_config(None).include_comments is True

    def test_load_config_rejects_non_objects(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        with pytest.raises(SchemaValidationError):
            load_config(str(path))

    def test_reconstruct_command_line_without_context(self):
        assert reconstruct_command_line(evently_codegen) == "evently_codegen"
