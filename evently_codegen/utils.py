"""
Utility functions for naming generated types, fields and files.
"""

import keyword
import re

# Regex pattern to split text into words, handling camelCase boundaries
_WORD_PATTERN = re.compile(r"[a-z]+|[A-Z][a-z]*|[0-9]+")

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _normalize_separators(text: str) -> str:
    """Normalize separators (underscores, hyphens, dots) to spaces."""
    return text.replace("_", " ").replace("-", " ").replace(".", " ")


def _split_into_words(text: str) -> list[str]:
    """Split text into words, handling camelCase boundaries."""
    return _WORD_PATTERN.findall(_normalize_separators(text))


def to_pascal_case(text: str) -> str:
    """Convert snake_case, camelCase, kebab-case or space-separated text to PascalCase.

    Examples:
        "first_name" -> "FirstName"
        "homeAddress" -> "HomeAddress"
        "in-progress" -> "InProgress"
        "first 3 rows" -> "First3Rows"
        "ABC" -> "ABC"

    Args:
        text: The text to convert

    Returns:
        PascalCase string (empty if the text holds no letters or digits)
    """
    if not text:
        return ""
    words = _split_into_words(text)
    return "".join(word[0].upper() + word[1:] for word in words if word)


def to_snake_case(text: str) -> str:
    """Convert a type name to a lowercase, underscore-separated file stem.

    Examples:
        "UserSignupPayload" -> "user_signup_payload"
        "user-service" -> "user_service"
    """
    words = _split_into_words(text)
    return "_".join(word.lower() for word in words if word)


def to_field_name(text: str) -> str:
    """Convert a serialized property name to a Python attribute name."""
    name = to_snake_case(text)
    if not name:
        return ""
    if name[0].isdigit():
        name = "field_" + name
    if keyword.iskeyword(name):
        name = name + "_"
    return name


def singularize(text: str) -> str:
    """Strip one trailing "s" (the naming rule for array item types)."""
    if text.endswith("s"):
        return text[:-1]
    return text


def is_valid_identifier(name: str) -> bool:
    """Check that a name can be used as a Python class or attribute name."""
    if not name or not _IDENTIFIER_PATTERN.match(name):
        return False
    return not keyword.iskeyword(name)


def unescape_pointer_token(token: str) -> str:
    """Unescape one JSON Pointer token (``~1`` before ``~0``)."""
    return token.replace("~1", "/").replace("~0", "~")


def escape_pointer_token(token: str) -> str:
    """Escape one JSON Pointer token (``~`` before ``/``)."""
    return token.replace("~", "~0").replace("/", "~1")
