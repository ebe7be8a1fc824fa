"""
Validation engine: schema validator, result types and runtime helpers for generated code.
"""

from __future__ import annotations

from .result import ValidationError, ValidationResult
from .runtime import EmbeddedSchemas, to_plain
from .validator import SchemaValidator, deep_equal

__all__ = [
    "SchemaValidator",
    "ValidationError",
    "ValidationResult",
    "EmbeddedSchemas",
    "to_plain",
    "deep_equal",
]
