"""
Error hierarchy for schema resolution, parsing and code generation.

Payload validation failures are not exceptions: they are collected as
ValidationError values inside a ValidationResult (see validation.result).
"""

from __future__ import annotations


class EventlyCodegenError(Exception):
    """Base exception for evently_codegen errors."""

    pass


class ParseError(EventlyCodegenError):
    """A raw document could not be decoded."""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line > 0 and self.column > 0:
            return f"parse error at line {self.line}, column {self.column}: {self.message}"
        return f"parse error: {self.message}"


class SchemaValidationError(EventlyCodegenError):
    """The schema model itself (or a configuration value) is structurally invalid."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.field:
            return f"validation error in field '{self.field}': {self.message}"
        return f"validation error: {self.message}"


class GenerationError(EventlyCodegenError):
    """Synthesis produced an invalid identifier or unparsable output."""

    def __init__(self, message: str, schema: str = ""):
        self.schema = schema
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.schema:
            return f"generation error in schema '{self.schema}': {self.message}"
        return f"generation error: {self.message}"


class UnsupportedVersionError(EventlyCodegenError):
    """The document declares an AsyncAPI version we do not handle."""

    def __init__(self, version: str, supported_versions: list[str]):
        self.version = version
        self.supported_versions = list(supported_versions)
        super().__init__(str(self))

    def __str__(self) -> str:
        supported = ", ".join(self.supported_versions)
        return f"unsupported AsyncAPI version '{self.version}', supported versions: [{supported}]"


class ResolverError(EventlyCodegenError):
    """A reference could not be loaded or resolved."""

    def __init__(self, reference: str, message: str):
        self.reference = reference
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"resolver error for reference '{self.reference}': {self.message}"


class CircularReferenceError(ResolverError):
    """A reference chain loops back onto itself."""

    def __init__(self, reference: str, stack: list[str]):
        self.stack = list(stack)
        super().__init__(reference, "circular reference detected")

    def __str__(self) -> str:
        chain = " -> ".join(self.stack)
        return f"circular reference detected for '{self.reference}', resolution stack: [{chain}]"


class FileError(EventlyCodegenError):
    """A file operation on generated output failed."""

    def __init__(self, operation: str, path: str, message: str):
        self.operation = operation
        self.path = path
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"file {self.operation} operation failed for path '{self.path}': {self.message}"


class PointerTargetError(ResolverError):
    """A JSON Pointer token names a key that does not exist."""

    pass


class PointerIndexError(ResolverError):
    """A JSON Pointer token is not a usable index into a sequence."""

    pass
