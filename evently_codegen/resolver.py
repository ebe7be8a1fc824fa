"""
Schema resolver for $ref references across documents and fragments.

A reference has the form ``[URI]#[fragment]``. The URI part is loaded
(from disk or over http(s)), decoded as JSON or YAML and cached by URI;
the fragment is a JSON Pointer (RFC 6901) into the decoded document.
Resolved nodes are memoized by the exact reference string.

Cycle detection uses a resolution stack that only holds the references
currently being resolved, so a reference chain that loops back on itself
raises CircularReferenceError instead of recursing forever.

A resolver instance owns mutable caches and must not be shared between
threads.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import urljoin, urlparse

import requests
import yaml

from .config import ResolverConfig
from .errors import (
    CircularReferenceError,
    ParseError,
    PointerIndexError,
    PointerTargetError,
    ResolverError,
    SchemaValidationError,
)
from .schema_ast import ObjectNode, SchemaNode, SchemaParser
from .utils import unescape_pointer_token

logger = logging.getLogger(__name__)


def decode_document(data: bytes | str, uri: str = "") -> Any:
    """
    Decode raw document bytes, trying JSON first and then YAML.

    Raises:
        ParseError: If the data is neither valid JSON nor valid YAML
    """
    try:
        return json.loads(data)
    except ValueError as json_error:
        try:
            return yaml.safe_load(data)
        except yaml.YAMLError as yaml_error:
            line = column = 0
            mark = getattr(yaml_error, "problem_mark", None)
            if mark is not None:
                line, column = mark.line + 1, mark.column + 1
            where = f" '{uri}'" if uri else ""
            raise ParseError(
                f"failed to parse document{where} as JSON ({json_error}) or YAML ({yaml_error})",
                line,
                column,
            ) from yaml_error


def resolve_pointer(document: Any, fragment: str, reference: str = "") -> Any:
    """
    Resolve a fragment within a decoded document.

    A fragment starting with ``/`` is a JSON Pointer; any other non-empty
    fragment is looked up as a top-level key. An empty fragment (or ``/``)
    addresses the whole document.

    Args:
        document: Decoded JSON/YAML content
        fragment: The part of a reference after ``#``
        reference: Reference string used in error messages

    Returns:
        The addressed value

    Raises:
        PointerTargetError: A key is missing or a scalar is descended into
        PointerIndexError: A sequence index is ``-``, non-numeric or out of range
    """
    reference = reference or f"#{fragment}"
    if fragment in ("", "/"):
        return document

    if not fragment.startswith("/"):
        if isinstance(document, dict) and fragment in document:
            return document[fragment]
        raise PointerTargetError(reference, f"fragment '{fragment}' not found in document")

    current = document
    for raw_token in fragment[1:].split("/"):
        token = unescape_pointer_token(raw_token)
        if isinstance(current, dict):
            if token not in current:
                raise PointerTargetError(reference, f"key '{token}' not found in object")
            current = current[token]
        elif isinstance(current, list):
            if token == "-":
                raise PointerIndexError(reference, "array index '-' not supported for resolution")
            if not (token.isascii() and token.isdigit()):
                raise PointerIndexError(reference, f"invalid array index '{token}'")
            index = int(token)
            if index >= len(current):
                raise PointerIndexError(reference, f"array index {index} out of bounds")
            current = current[index]
        else:
            raise PointerTargetError(reference, f"cannot resolve pointer '{token}' in non-object/array value")
    return current


class SchemaResolver:
    """Resolves $ref strings to SchemaNode trees with caching and cycle detection."""

    def __init__(
        self,
        base_uri: str = "",
        http_timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        """
        Initialize the resolver.

        Args:
            base_uri: File path or URL that relative references resolve against
            http_timeout: Timeout in seconds for http(s) loads
            session: Optional requests session (one is created otherwise)
        """
        self._base_uri = base_uri
        self.http_timeout = http_timeout
        self.session = session or requests.Session()

        # Decoded documents by absolute URI
        self._documents: dict[str, Any] = {}
        # Resolved nodes by reference string
        self._nodes: dict[str, SchemaNode] = {}
        # Absolute identifiers of references currently being resolved
        self._stack: list[str] = []

    @classmethod
    def from_config(cls, config: ResolverConfig) -> SchemaResolver:
        return cls(base_uri=config.base_uri, http_timeout=config.http_timeout)

    @property
    def base_uri(self) -> str:
        return self._base_uri

    @base_uri.setter
    def base_uri(self, value: str) -> None:
        self._base_uri = value

    @property
    def stack(self) -> list[str]:
        """Copy of the current resolution stack."""
        return list(self._stack)

    @property
    def cache_size(self) -> int:
        """Number of cached documents and resolved nodes."""
        return len(self._documents) + len(self._nodes)

    def clear_cache(self) -> None:
        """Drop every cached document and resolved node."""
        self._documents.clear()
        self._nodes.clear()

    def add_document(self, uri: str, content: Any) -> None:
        """
        Seed the document cache, so references to ``uri`` never hit disk or network.

        Args:
            uri: Absolute URI (or path) the document is known under
            content: Decoded content, or raw JSON/YAML text
        """
        if isinstance(content, (str, bytes)):
            content = decode_document(content, uri)
        self._documents[uri] = content

    def resolve_schema(self, ref: str, base_uri: str | None = None) -> ObjectNode:
        """
        Resolve a reference that must point at an object schema.

        Args:
            ref: Reference string, e.g. ``common.json#/components/schemas/User``
            base_uri: Document the reference appeared in (defaults to the
                resolver's base URI)

        Returns:
            The resolved ObjectNode (the same object on every call)

        Raises:
            ResolverError: If the reference cannot be resolved or is not an object
            CircularReferenceError: If the reference is part of a cycle
            ParseError: If a referenced document cannot be decoded
        """
        node = self._resolve(ref, base_uri)
        if not isinstance(node, ObjectNode):
            raise ResolverError(ref, f"reference does not point to an object schema (got {node.kind})")
        return node

    def resolve_property(self, ref: str, base_uri: str | None = None) -> SchemaNode:
        """Resolve a reference to any kind of schema node."""
        return self._resolve(ref, base_uri)

    def load_document(self, uri: str) -> Any:
        """
        Load and decode the document at ``uri``, using the document cache.

        Raises:
            ResolverError: If the document cannot be read or fetched
            ParseError: If the content is neither JSON nor YAML
        """
        if uri in self._documents:
            logger.debug(f"Document cache hit for {uri}")
            return self._documents[uri]

        if uri.startswith(("http://", "https://")):
            data = self._load_http(uri)
        else:
            data = self._load_file(uri)

        document = decode_document(data, uri)
        logger.debug(f"Loaded document {uri}")
        self._documents[uri] = document
        return document

    def _resolve(self, ref: str, base_uri: str | None) -> SchemaNode:
        if not ref:
            raise ResolverError(ref, "empty reference")

        base = self._base_uri if base_uri is None else base_uri
        uri, fragment = self._split_reference(ref, base)
        identifier = f"{uri}#{fragment}"
        cache_key = ref if base == self._base_uri else identifier

        if identifier in self._stack:
            raise CircularReferenceError(ref, self._stack)

        if cache_key in self._nodes:
            logger.debug(f"Reference cache hit for {ref}")
            return self._nodes[cache_key]

        self._stack.append(identifier)
        try:
            try:
                document = self.load_document(uri)
            except ParseError:
                raise
            except ResolverError as e:
                raise ResolverError(ref, f"failed to load document '{uri}': {e.message}") from e

            try:
                target = resolve_pointer(document, fragment, ref)
            except ResolverError as e:
                raise type(e)(ref, f"failed to resolve fragment '{fragment}': {e.message}") from e

            if isinstance(target, dict) and isinstance(target.get("$ref"), str):
                # Alias: follow it relative to the document it lives in
                node = self._resolve(target["$ref"], uri)
            else:
                try:
                    node = SchemaParser(document_uri=uri).parse(target, identifier)
                except SchemaValidationError as e:
                    raise ResolverError(ref, f"invalid schema at reference target: {e}") from e
        finally:
            self._stack.pop()

        self._nodes[cache_key] = node
        return node

    def _split_reference(self, ref: str, base: str) -> tuple[str, str]:
        """Split ``ref`` at the first ``#`` and make the URI part absolute."""
        uri, _, fragment = ref.partition("#")
        if not uri:
            if not base:
                raise ResolverError(ref, "fragment-only references not supported without base document")
            return base, fragment

        if not self._is_absolute(uri):
            if not base:
                raise ResolverError(ref, f"relative reference '{ref}' requires base URI")
            uri = urljoin(base, uri)
        return uri, fragment

    @staticmethod
    def _is_absolute(uri: str) -> bool:
        return bool(urlparse(uri).scheme) or os.path.isabs(uri)

    def _load_http(self, uri: str) -> bytes:
        try:
            response = self.session.get(uri, timeout=self.http_timeout)
        except requests.RequestException as e:
            raise ResolverError(uri, f"HTTP request failed: {e}") from e
        if response.status_code != 200:
            raise ResolverError(uri, f"HTTP request failed with status {response.status_code}")
        return response.content

    def _load_file(self, uri: str) -> bytes:
        path = uri[len("file://") :] if uri.startswith("file://") else uri
        path = os.path.normpath(path)
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise ResolverError(uri, f"failed to read file '{path}': {e}") from e
