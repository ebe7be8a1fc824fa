"""
Code synthesizer: schema trees to Python modules.

One root schema becomes one module holding a dataclass for the root
object, a dataclass for every nested object-with-properties, an Enum
class for every enum, and the validation hooks bound to the embedded
schemas. Names are allocated from a NameRegistry that is reset for every
root schema, so names never leak between unrelated outputs.
"""

from __future__ import annotations

import ast
import collections
import logging
import pprint
from collections.abc import Callable, Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import jinja2

from .. import __version__
from ..config import CodeGeneratorConfig
from ..errors import EventlyCodegenError, GenerationError
from ..resolver import SchemaResolver
from ..schema_ast import (
    ArrayNode,
    EnumNode,
    ObjectNode,
    RefNode,
    SchemaNode,
    is_object_with_properties,
    node_to_dict,
)
from ..type_mapper import TypeDescriptor, TypeKind, TypeMapper
from ..utils import is_valid_identifier, to_pascal_case, to_snake_case, unescape_pointer_token
from ..validation.validator import canonical_form
from .ir import GeneratedEnum, GeneratedField, GeneratedStruct, GenerateResult
from .names import NameRegistry, array_item_type_name, enum_member_names, field_names, nested_type_name

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "python"

RUNTIME_MODULE = "evently_codegen.validation"

STDLIB_MODULES = {"dataclasses", "datetime", "enum", "typing"}

# Types written to the embedded schema when only kinds are kept
_KIND_SCHEMA_TYPES = {
    TypeKind.STRING: "string",
    TypeKind.TIMESTAMP: "string",
    TypeKind.BYTES: "string",
    TypeKind.INTEGER: "integer",
    TypeKind.INT32: "integer",
    TypeKind.INT64: "integer",
    TypeKind.FLOAT: "number",
    TypeKind.FLOAT32: "number",
    TypeKind.FLOAT64: "number",
    TypeKind.BOOLEAN: "boolean",
    TypeKind.MAP: "object",
}


def assemble_imports(import_tuples: set[tuple[str, str]]) -> list[str]:
    """Assemble Python imports by grouping them by module and sorting"""
    import_groups = collections.defaultdict(set)
    for module, name in import_tuples:
        import_groups[module].add(name)

    stdlib_groups = {m: import_groups[m] for m in import_groups if m in STDLIB_MODULES}
    third_party_groups = {m: import_groups[m] for m in import_groups if m not in STDLIB_MODULES and m != "__future__"}

    def from_import(module: str, names: set[str]) -> str:
        return f"from {module} import {', '.join(sorted(names))}"

    # __future__ imports must come first
    assembled_imports = []
    if "__future__" in import_groups:
        assembled_imports.append(from_import("__future__", import_groups["__future__"]))
        if stdlib_groups or third_party_groups:
            assembled_imports.append("")

    for module in sorted(stdlib_groups):
        assembled_imports.append(from_import(module, stdlib_groups[module]))
    if stdlib_groups and third_party_groups:
        assembled_imports.append("")

    for module in sorted(third_party_groups):
        assembled_imports.append(from_import(module, third_party_groups[module]))

    return assembled_imports


def _doc_lines(text: str) -> list[str]:
    """Split a description into docstring-safe lines."""
    text = text.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    return [line.rstrip() for line in text.splitlines()]


class CodeSynthesizer:
    """Synthesizes Python modules of dataclasses and enums from schema trees."""

    def __init__(
        self,
        config: CodeGeneratorConfig | None = None,
        resolver: SchemaResolver | None = None,
        command_line: str = "evently_codegen",
    ):
        """
        Initialize the synthesizer.

        Args:
            config: Code generation configuration
            resolver: Resolver for $ref properties (refs fail without one)
            command_line: Command shown in the generation comment
        """
        self.config = config or CodeGeneratorConfig()
        self.resolver = resolver
        self.command_line = command_line
        self.type_mapper = TypeMapper(self.config)
        self._setup_templates()
        self._reset()

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
            lstrip_blocks=True,
            trim_blocks=True,
            keep_trailing_newline=True,
        )
        self.prefix_template = self.jinja_env.get_template("prefix.py.jinja2")
        self.enum_template = self.jinja_env.get_template("enum.py.jinja2")
        self.class_template = self.jinja_env.get_template("class.py.jinja2")
        self.suffix_template = self.jinja_env.get_template("suffix.py.jinja2")

    def _reset(self) -> None:
        """Forget every name and type allocated for the previous root schema."""
        self.registry = NameRegistry()
        self.structs: dict[str, GeneratedStruct] = {}
        self.enums: dict[str, GeneratedEnum] = {}
        # (candidate name, canonical values) -> allocated enum name
        self._enum_keys: dict[tuple[str, str], str] = {}
        # resolved target identifier -> generated type name
        self._ref_types: dict[str, str] = {}
        # id(ObjectNode) -> generated struct name
        self._struct_nodes: dict[int, str] = {}
        # identifiers of references currently being inlined
        self._inlining: list[str] = []

    def generate_types(self, schemas: Mapping[str, SchemaNode]) -> GenerateResult:
        """
        Synthesize one module per root schema.

        Schemas are processed in sorted name order. A schema that fails is
        recorded in the result's errors and the remaining schemas are still
        generated.
        """
        result = GenerateResult()
        for name in sorted(schemas):
            if name in self.config.ignore_classes:
                logger.debug(f"Ignoring schema {name}")
                continue
            schema_result = self.synthesize(schemas[name], name)
            for filename in schema_result.files:
                if filename in result.files:
                    schema_result.files = {}
                    schema_result.errors.append(
                        GenerationError(f"output file '{filename}' is already produced by another schema", schema=name)
                    )
                    break
            result.merge(schema_result)
        return result

    def synthesize(self, root_schema: SchemaNode, name: str) -> GenerateResult:
        """
        Synthesize the module for one root schema.

        Returns:
            GenerateResult with ``{filename: text}`` on success, or the
            error that aborted this schema
        """
        result = GenerateResult()
        try:
            filename, text = self.render_module(root_schema, name)
        except EventlyCodegenError as e:
            error = e
            if not isinstance(e, GenerationError):
                error = GenerationError(f"failed to generate types: {e}", schema=name)
                error.__cause__ = e
            elif not error.schema:
                error.schema = name
            logger.warning(f"Failed to generate {name}: {error}")
            result.errors.append(error)
        else:
            result.files[filename] = text
        return result

    def render_module(self, root_schema: SchemaNode, name: str) -> tuple[str, str]:
        """
        Build and render the module for one root schema.

        Raises:
            GenerationError: If a name is invalid or the output does not parse
            ResolverError: If a $ref cannot be resolved
        """
        self._reset()

        class_name = to_pascal_case(name)
        stem = to_snake_case(name)
        if not is_valid_identifier(class_name) or not stem:
            raise GenerationError(f"cannot derive a valid type name from '{name}'", schema=name)

        root = self._resolve(root_schema) if isinstance(root_schema, RefNode) else root_schema
        if isinstance(root, ObjectNode):
            if "#" in root.source_path:
                self._ref_types[root.source_path] = class_name
            self.registry.allocate(class_name)
            self._build_struct(root, class_name)
        elif isinstance(root, EnumNode):
            self._register_enum(class_name, root)
        else:
            raise GenerationError(f"root schema must be an object or enum schema, got {root.kind}", schema=name)

        text = self._render()
        try:
            ast.parse(text)
        except SyntaxError as e:
            raise GenerationError(f"generated code is not valid Python: {e}", schema=name) from e

        logger.debug(f"Generated {len(self.structs)} classes and {len(self.enums)} enums for {name}")
        return f"{stem}.py", text

    # Type extraction

    def _build_struct(self, node: ObjectNode, name: str) -> GeneratedStruct:
        """Build the struct for an object node under an already allocated name."""
        struct = GeneratedStruct(name=name, doc=node.description or node.title)
        # Registered before the fields so recursive references find it
        self.structs[name] = struct
        self._struct_nodes[id(node)] = name

        properties = sorted(node.properties)
        attributes = field_names(properties)
        for prop in properties:
            prop_node = node.properties[prop]
            required = node.is_required(prop)
            attribute = attributes[prop]
            if not is_valid_identifier(attribute):
                raise GenerationError(f"invalid field name '{attribute}' for property '{prop}'", schema=name)

            desc = self.type_mapper.apply_optionality(self._field_type(name, prop, prop_node), required)
            if self._allows_null(prop_node) and not desc.nullable and not desc.is_container:
                if desc.kind != TypeKind.ANY:
                    desc = desc.as_nullable()

            struct.fields.append(
                GeneratedField(
                    name=attribute,
                    type=desc,
                    serialized_name=prop,
                    optional=not required,
                    doc=prop_node.description,
                )
            )

        struct.schema = self._embedded_schema(node, struct)
        return struct

    def _field_type(self, parent: str, prop: str, node: SchemaNode) -> TypeDescriptor:
        """Type of a property, extracting nested objects and enums into named types."""
        if isinstance(node, RefNode):
            return self._ref_type(node, lambda target: self._field_type(parent, prop, target))

        if is_object_with_properties(node):
            name = self.registry.allocate(nested_type_name(parent, prop))
            self._build_struct(node, name)
            return self.type_mapper.struct(name)

        if isinstance(node, EnumNode):
            mapping = self.type_mapper.map_property(node, prop, required=True)
            return TypeDescriptor(TypeKind.ENUM, self._register_enum(mapping.type.name, node))

        if isinstance(node, ArrayNode):
            if isinstance(node.items, EnumNode):
                mapping = self.type_mapper.map_property(node, prop, required=True)
                name = self._register_enum(mapping.type.item.name, node.items)
                return self.type_mapper.list_of(TypeDescriptor(TypeKind.ENUM, name))
            return self.type_mapper.list_of(self._item_type(parent, prop, node.items))

        return self.type_mapper.map_node(node)

    def _item_type(self, parent: str, prop: str, items: SchemaNode | None) -> TypeDescriptor:
        """Type of the items of an array property."""
        if isinstance(items, RefNode):
            return self._ref_type(items, lambda target: self._item_type(parent, prop, target))

        if is_object_with_properties(items):
            name = self.registry.allocate(array_item_type_name(parent, prop))
            self._build_struct(items, name)
            return self.type_mapper.struct(name)

        if isinstance(items, EnumNode):
            name = self._register_enum(self.type_mapper.enum_type_name(prop + "Item"), items)
            return TypeDescriptor(TypeKind.ENUM, name)

        if isinstance(items, ArrayNode):
            return self.type_mapper.list_of(self._item_type(parent, prop, items.items))

        return self.type_mapper.map_node(items)

    def _ref_type(self, node: RefNode, inline: Callable[[SchemaNode], TypeDescriptor]) -> TypeDescriptor:
        """
        Type of a $ref property.

        Objects with properties and enums become named types (one per
        reference target per pass); anything else is inlined.
        """
        target = self._resolve(node)
        key = target.source_path or f"{node.document_uri}#{node.ref}"

        if is_object_with_properties(target):
            name = self._ref_types.get(key)
            if name is None:
                name = self.registry.allocate(self._ref_type_candidate(node.ref))
                self._ref_types[key] = name
                self._build_struct(target, name)
            return self.type_mapper.struct(name)

        if isinstance(target, EnumNode):
            return TypeDescriptor(TypeKind.ENUM, self._register_enum(self._ref_type_candidate(node.ref), target))

        if key in self._inlining:
            raise GenerationError(f"reference '{node.ref}' is recursive through a schema that cannot be named")
        self._inlining.append(key)
        try:
            return inline(target)
        finally:
            self._inlining.pop()

    def _resolve(self, node: RefNode) -> SchemaNode:
        if self.resolver is None:
            raise GenerationError(f"cannot resolve reference '{node.ref}': no resolver configured")
        return self.resolver.resolve_property(node.ref, base_uri=node.document_uri or None)

    @staticmethod
    def _ref_type_candidate(ref: str) -> str:
        """Type name for a reference target: its last pointer token, or the document name."""
        uri, _, fragment = ref.partition("#")
        if fragment.strip("/"):
            token = unescape_pointer_token(fragment.rstrip("/").rsplit("/", 1)[-1])
        else:
            token = Path(urlparse(uri).path).stem
        name = to_pascal_case(token) or "Ref"
        if not name[0].isalpha():
            name = "Ref" + name
        return name

    def _register_enum(self, candidate: str, node: EnumNode) -> str:
        """
        Register an enum type, reusing an identical one.

        The same candidate name with the same values maps to the same
        type; the same name with different values gets a suffixed name.
        """
        enum = self.type_mapper.detect_enum(node)
        key = (candidate, canonical_form(list(enum.values)))
        if key in self._enum_keys:
            return self._enum_keys[key]

        name = self.registry.allocate(candidate)
        if not is_valid_identifier(name):
            raise GenerationError(f"invalid enum type name '{name}'")

        overrides = node.metadata.get("x-enum-members")
        base_type = enum.base_type if enum.homogeneous and enum.base_kind != TypeKind.BOOLEAN else ""
        self.enums[name] = GeneratedEnum(
            name=name,
            base_kind=enum.base_kind,
            members=enum_member_names(name, enum.members, overrides if isinstance(overrides, dict) else None),
            doc=node.description,
            base_type=base_type,
        )
        self._enum_keys[key] = name
        return name

    @staticmethod
    def _allows_null(node: SchemaNode) -> bool:
        if node.metadata.get("nullable"):
            return True
        return isinstance(node, EnumNode) and any(v is None for v in node.values)

    # Embedded schemas

    def _embedded_schema(self, node: ObjectNode, struct: GeneratedStruct) -> dict[str, Any]:
        if self.config.embed_full_schema:
            return self._embed_object(node, ())
        return self._kind_schema(struct)

    def _embed_object(self, node: ObjectNode, seen: tuple[str, ...]) -> dict[str, Any]:
        schema = node_to_dict(replace(node, properties={}))
        if node.properties:
            schema["properties"] = {name: self._embed(prop, seen) for name, prop in node.properties.items()}
        return schema

    def _embed(self, node: SchemaNode | None, seen: tuple[str, ...]) -> dict[str, Any]:
        """Full schema of a node, with generated types replaced by definition references."""
        if node is None:
            return {}
        name = self._struct_nodes.get(id(node))
        if name is not None:
            return {"$ref": f"#/definitions/{name}"}
        if isinstance(node, RefNode):
            target = self._resolve(node)
            name = self._ref_types.get(target.source_path)
            if name in self.structs:
                return {"$ref": f"#/definitions/{name}"}
            if node.ref in seen:
                return {}
            return self._embed(target, seen + (node.ref,))
        if isinstance(node, ArrayNode):
            schema = node_to_dict(replace(node, items=None))
            if node.items is not None:
                schema["items"] = self._embed(node.items, seen)
            return schema
        if isinstance(node, ObjectNode):
            return self._embed_object(node, seen)
        return node_to_dict(node)

    def _kind_schema(self, struct: GeneratedStruct) -> dict[str, Any]:
        """Schema keeping only each field's kind, required-ness and enum values."""
        schema: dict[str, Any] = {"type": "object"}
        if struct.fields:
            schema["properties"] = {f.serialized_name: self._kind_type_schema(f.type) for f in struct.fields}
        required = [f.serialized_name for f in struct.fields if not f.optional]
        if required:
            schema["required"] = required
        return schema

    def _kind_type_schema(self, desc: TypeDescriptor) -> dict[str, Any]:
        if desc.kind == TypeKind.STRUCT:
            return {"$ref": f"#/definitions/{desc.name}"}
        if desc.kind == TypeKind.ENUM:
            values = list(self.enums[desc.name].values)
            if desc.nullable:
                values.append(None)
            return {"enum": values}
        if desc.kind == TypeKind.LIST:
            return {"type": "array", "items": self._kind_type_schema(desc.item)}
        schema_type = _KIND_SCHEMA_TYPES.get(desc.kind)
        return {"type": schema_type} if schema_type else {}

    # Rendering

    def _render(self) -> str:
        out = self.prefix_template.render(
            generation_comment=self._generation_comment(),
            required_imports=assemble_imports(self._collect_imports()),
        )
        for enum in self.enums.values():
            out += self.enum_template.render(self._enum_context(enum))
        # Nested types before the types that use them
        for struct in reversed(list(self.structs.values())):
            out += self.class_template.render(self._struct_context(struct))
        definitions = {struct.name: struct.schema for struct in self.structs.values()}
        out += self.suffix_template.render(
            schema_definitions=pprint.pformat(definitions, sort_dicts=False, width=100),
            strict=self.config.strict_validation,
        )
        return out

    def _generation_comment(self) -> str:
        if not self.config.add_generation_comment:
            return ""
        return f"# Generated by evently_codegen v{__version__} : {self.command_line}"

    def _collect_imports(self) -> set[tuple[str, str]]:
        imports = {(RUNTIME_MODULE, "EmbeddedSchemas")}
        if self.config.use_future_annotations:
            imports.add(("__future__", "annotations"))
        if self.enums:
            imports |= {("enum", "Enum"), ("typing", "Any"), (RUNTIME_MODULE, "runtime")}
        if self.structs:
            imports |= {
                ("dataclasses", "dataclass"),
                ("dataclasses_json", "dataclass_json"),
                (RUNTIME_MODULE, "ValidationResult"),
            }
        for struct in self.structs.values():
            for f in struct.fields:
                imports |= f.type.all_imports()
                default = self._field_default(f)
                if "field(" in default:
                    imports.add(("dataclasses", "field"))
                if "config(" in default:
                    imports.add(("dataclasses_json", "config"))
                if "runtime." in default:
                    imports.add((RUNTIME_MODULE, "runtime"))
        return imports

    def _enum_context(self, enum: GeneratedEnum) -> dict[str, Any]:
        return {
            "name": enum.name,
            "base_type": enum.base_type,
            "doc_lines": _doc_lines(enum.doc) if self.config.include_comments and enum.doc else [],
            "members": [{"name": name, "literal": repr(value)} for name, value in enum.members],
        }

    def _struct_context(self, struct: GeneratedStruct) -> dict[str, Any]:
        properties = []
        for f in struct.fields:
            annotation = f.type.annotation
            if not self.config.use_future_annotations and f.type.innermost().kind in (TypeKind.STRUCT, TypeKind.ENUM):
                annotation = f'"{annotation}"'
            properties.append(
                {
                    "name": f.name,
                    "annotation": annotation,
                    "default": self._field_default(f),
                    "comment_lines": f.doc.strip().splitlines() if self.config.include_comments and f.doc else [],
                }
            )
        return {
            "name": struct.name,
            "doc_lines": _doc_lines(struct.doc) if self.config.include_comments and struct.doc else [],
            "properties": properties,
        }

    @staticmethod
    def _field_default(f: GeneratedField) -> str:
        """The ``= ...`` part of a field declaration ("" for a required plain field)."""
        config_args = []
        if f.renamed:
            config_args.append(f"field_name={f.serialized_name!r}")
        inner = f.type.innermost()
        if inner.kind == TypeKind.TIMESTAMP:
            config_args += ["encoder=runtime.encode_value", f"decoder=runtime.decode_{inner.name}"]
        elif inner.kind == TypeKind.BYTES:
            config_args += ["encoder=runtime.encode_value", "decoder=runtime.decode_bytes"]

        args = []
        if f.optional:
            if f.type.kind == TypeKind.LIST:
                args.append("default_factory=list")
            elif f.type.kind == TypeKind.MAP:
                args.append("default_factory=dict")
            else:
                args.append("default=None")
        if config_args:
            args.append(f"metadata=config({', '.join(config_args)})")

        if not args:
            return ""
        if args == ["default=None"]:
            return " = None"
        return f" = field({', '.join(args)})"
