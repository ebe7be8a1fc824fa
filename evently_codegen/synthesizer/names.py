"""
Name allocation for generated types, fields and enum members.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from ..utils import is_valid_identifier, singularize, to_field_name, to_pascal_case

# Names a generated field must not take: the hooks and dataclasses-json
# methods on every class, and module-level or builtin names used in class
# bodies (annotations and default factories are evaluated there).
RESERVED_FIELD_NAMES = frozenset(
    {
        "validate",
        "validate_json",
        "to_dict",
        "to_json",
        "from_dict",
        "from_json",
        "schema",
        "dataclass_json_config",
        "field",
        "config",
        "dataclass",
        "dataclass_json",
        "datetime",
        "date",
        "time",
        "Enum",
        "Any",
        "runtime",
        "list",
        "dict",
        "str",
        "int",
        "float",
        "bool",
        "bytes",
    }
)


class NameRegistry:
    """
    Set of names allocated during one generation pass.

    A taken candidate gets an increasing numeric suffix (``Name2``,
    ``Name3``, ...). The winning name is registered immediately, so names
    allocated later in the same pass see it as taken.
    """

    def __init__(self, reserved: Iterable[str] = ()):
        self._reserved = frozenset(reserved)
        self._names: set[str] = set(self._reserved)

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names) - len(self._reserved)

    def allocate(self, candidate: str) -> str:
        if candidate not in self._names:
            self._names.add(candidate)
            return candidate
        counter = 2
        while f"{candidate}{counter}" in self._names:
            counter += 1
        name = f"{candidate}{counter}"
        self._names.add(name)
        return name

    def reset(self) -> None:
        self._names = set(self._reserved)


def nested_type_name(parent: str, prop_name: str) -> str:
    """Candidate name for an object-with-properties nested under ``parent``."""
    return parent + to_pascal_case(prop_name)


def array_item_type_name(parent: str, prop_name: str) -> str:
    """
    Candidate name for the object items of an array property.

    The singular form of the property is tried first; a property with no
    trailing "s" falls back to ``<prop>Item``.
    """
    name = nested_type_name(parent, singularize(prop_name))
    if name == nested_type_name(parent, prop_name):
        name = nested_type_name(parent, prop_name + "Item")
    return name


def field_names(properties: Iterable[str]) -> dict[str, str]:
    """Map serialized property names to unique Python attribute names."""
    registry = NameRegistry(RESERVED_FIELD_NAMES)
    result = {}
    for prop in properties:
        base = to_field_name(prop) or "field"
        if base in RESERVED_FIELD_NAMES:
            base = base + "_"
        result[prop] = registry.allocate(base)
    return result


def _literal_text(value: Any) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value)
    text = text.replace("-", "Minus").replace("+", "")
    return re.sub(r"[^0-9A-Za-z_]", "_", text)


def enum_member_names(type_name: str, values: Iterable[Any], overrides: Mapping[str, str] | None = None) -> list[tuple[str, Any]]:
    """
    Name the members of an enum type.

    String values are title-cased (``"in-progress"`` -> ``InProgress``).
    Numbers and booleans use their literal text after the type name's
    prefix (``PriorityEnum`` value ``1`` -> ``Priority1``). Names given in
    ``overrides`` (the ``x-enum-members`` extension) win.
    """
    overrides = overrides or {}
    prefix = type_name.removesuffix("Enum") or type_name
    registry = NameRegistry()
    members = []
    for value in values:
        name = overrides.get(value if isinstance(value, str) else _literal_text(value), "")
        if not name and isinstance(value, str):
            name = to_pascal_case(value)
            if name and not name[0].isalpha():
                name = prefix + name
        if not name:
            name = prefix + _literal_text(value)
        if not is_valid_identifier(name) or name.startswith("_"):
            name = "Value" + re.sub(r"[^0-9A-Za-z]", "", name)
        members.append((registry.allocate(name), value))
    return members
