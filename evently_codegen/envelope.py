"""
Document boundary: turn an input document into the map of root schemas.

Only the parts of an event-API document that hold payload schemas are
read. Channels, operations and servers are not interpreted.

Root schemas are collected from, in order (later entries win on a name
clash):

* ``components.messages.<name>.payload``
* ``components.schemas``
* ``$defs`` and ``definitions``

A document with none of those is itself a single root schema.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import FileError, ParseError, SchemaValidationError, UnsupportedVersionError
from .resolver import SchemaResolver, decode_document
from .schema_ast import SchemaNode, SchemaParser
from .utils import escape_pointer_token

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ["2.0.0", "2.1.0", "2.2.0", "2.3.0", "2.4.0", "2.5.0", "2.6.0", "3.0.0"]

_DEFINITION_KEYS = ("$defs", "definitions")


@dataclass
class SchemaDocument:
    """A decoded input document and the root schemas found in it."""

    uri: str
    content: dict[str, Any]
    version: str = ""
    schemas: dict[str, SchemaNode] = field(default_factory=dict)


def check_version(version: Any) -> str:
    """
    Check a declared AsyncAPI version.

    A leading "v" is ignored. Returns the normalized version.

    Raises:
        SchemaValidationError: If the version is empty or not a string
        UnsupportedVersionError: If the version is not supported
    """
    if not isinstance(version, str) or not version:
        raise SchemaValidationError("asyncapi", "AsyncAPI version is required")
    normalized = version.removeprefix("v")
    if normalized not in SUPPORTED_VERSIONS:
        raise UnsupportedVersionError(version, SUPPORTED_VERSIONS)
    return normalized


def extract_schemas(document: dict[str, Any], uri: str = "", name: str = "") -> dict[str, SchemaNode]:
    """
    Parse the root schemas of a decoded document.

    Each root is parsed with its absolute ``uri#pointer`` location as
    source path, so a ``$ref`` elsewhere in the document that points at
    the same location maps to the same generated type.

    Args:
        document: Decoded document content
        uri: URI the document is known under
        name: Root name used when the whole document is one schema

    Returns:
        Map of root schema name to parsed node
    """
    parser = SchemaParser(document_uri=uri)
    roots: dict[str, tuple[str, Any]] = {}

    components = document.get("components")
    if isinstance(components, dict):
        messages = components.get("messages")
        if isinstance(messages, dict):
            for msg_name, message in messages.items():
                if isinstance(message, dict) and message.get("payload") is not None:
                    roots[msg_name] = (f"/components/messages/{escape_pointer_token(msg_name)}/payload", message["payload"])
        schemas = components.get("schemas")
        if isinstance(schemas, dict):
            for schema_name, raw in schemas.items():
                roots[schema_name] = (f"/components/schemas/{escape_pointer_token(schema_name)}", raw)

    for key in _DEFINITION_KEYS:
        definitions = document.get(key)
        if isinstance(definitions, dict):
            for schema_name, raw in definitions.items():
                roots[schema_name] = (f"/{key}/{escape_pointer_token(schema_name)}", raw)

    if not roots and "asyncapi" not in document:
        if not name:
            raise SchemaValidationError("", "a name is required for a document that is a single schema")
        return {name: parser.parse(document, f"{uri}#")}

    result = {}
    for root_name, (pointer, raw) in roots.items():
        result[root_name] = parser.parse(raw, f"{uri}#{pointer}")
    logger.debug(f"Found {len(result)} root schemas in {uri or 'document'}")
    return result


def parse_schema_document(
    data: bytes | str | dict[str, Any],
    uri: str = "",
    name: str = "",
    resolver: SchemaResolver | None = None,
) -> SchemaDocument:
    """
    Decode a document, check its version and extract its root schemas.

    When a resolver is given, the document is registered with it under
    ``uri`` so fragment-only references resolve against it without
    another load.

    Raises:
        ParseError: If the data is not JSON or YAML, or is not a mapping
        UnsupportedVersionError: If a declared AsyncAPI version is unsupported
        SchemaValidationError: If a root schema is structurally invalid
    """
    content = data if isinstance(data, dict) else decode_document(data, uri)
    if not isinstance(content, dict):
        raise ParseError(f"document root must be a mapping, got {type(content).__name__}")

    version = ""
    if "asyncapi" in content:
        version = check_version(content["asyncapi"])

    if resolver is not None and uri:
        resolver.add_document(uri, content)

    return SchemaDocument(uri=uri, content=content, version=version, schemas=extract_schemas(content, uri, name))


def load_schema_document(
    path: str | Path,
    resolver: SchemaResolver | None = None,
    name: str = "",
    uri: str = "",
) -> SchemaDocument:
    """
    Read a document from disk and extract its root schemas.

    Args:
        path: File to read
        resolver: Resolver to register the document with; its base URI is
            set to the document URI
        name: Root name for a single-schema document (defaults to the file stem)
        uri: URI the document is known under (defaults to the absolute path)
    """
    path = Path(path)
    uri = uri or str(path.resolve())
    try:
        data = path.read_bytes()
    except OSError as e:
        raise FileError("read", str(path), str(e)) from e

    if resolver is not None:
        resolver.base_uri = uri
    return parse_schema_document(data, uri=uri, name=name or path.stem, resolver=resolver)
