"""
Validation result types.

Payload validation never raises: every violated constraint becomes a
ValidationError value and a single call collects all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dataclasses_json import dataclass_json


@dataclass_json
@dataclass(kw_only=True)
class ValidationError:
    """A single violated constraint at a dot/bracket-qualified field path."""

    field: str
    message: str

    def __str__(self) -> str:
        if self.field:
            return f"validation error in field '{self.field}': {self.message}"
        return f"validation error: {self.message}"


@dataclass_json
@dataclass(kw_only=True)
class ValidationResult:
    """Outcome of one validation call."""

    valid: bool = True
    errors: list[ValidationError] = field(default_factory=list)

    def add_error(self, field: str, message: str) -> None:
        self.valid = False
        self.errors.append(ValidationError(field=field, message=message))

    def merge(self, other: ValidationResult) -> None:
        """Fold another result's errors into this one."""
        if not other.valid:
            self.valid = False
        self.errors.extend(other.errors)

    def errors_for(self, field: str) -> list[ValidationError]:
        return [e for e in self.errors if e.field == field]

    @property
    def messages(self) -> list[str]:
        return [str(e) for e in self.errors]
