"""evently_codegen

Generate Python dataclasses and enums from the JSON Schema payloads of
event-driven API documents, together with a runtime validator for
the same schemas.
"""

__version__ = "0.3.0"

from .config import CodeGeneratorConfig, ResolverConfig
from .errors import (
    CircularReferenceError,
    EventlyCodegenError,
    FileError,
    GenerationError,
    ParseError,
    ResolverError,
    SchemaValidationError,
    UnsupportedVersionError,
)
from .resolver import SchemaResolver
from .synthesizer import CodeSynthesizer, GenerateResult
from .type_mapper import TypeMapper
from .validation import SchemaValidator, ValidationError, ValidationResult

__all__ = [
    "CircularReferenceError",
    "CodeGeneratorConfig",
    "CodeSynthesizer",
    "EventlyCodegenError",
    "FileError",
    "GenerateResult",
    "GenerationError",
    "ParseError",
    "ResolverConfig",
    "ResolverError",
    "SchemaResolver",
    "SchemaValidationError",
    "SchemaValidator",
    "TypeMapper",
    "UnsupportedVersionError",
    "ValidationError",
    "ValidationResult",
]
