"""Component Schema Registry.

The closed vocabulary of renderable components and the typed property schema
of each one. Adding a component means adding an enum member and a schema entry.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class ComponentKind(str, Enum):
    """Allowed component names."""

    BUTTON = "Button"
    CARD = "Card"
    INPUT = "Input"
    TABLE = "Table"
    MODAL = "Modal"
    SIDEBAR = "Sidebar"
    NAVBAR = "Navbar"
    CHART = "Chart"


class ValueType(str, Enum):
    """Property value types."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING_LIST = "string[]"
    NUMBER_LIST = "number[]"
    STRING_MATRIX = "string[][]"
    NODE = "node"

    @property
    def is_list(self) -> bool:
        return self in (ValueType.STRING_LIST, ValueType.NUMBER_LIST, ValueType.STRING_MATRIX)


@dataclass(frozen=True)
class PropertySchema:
    """Schema of a single component property."""

    type: ValueType
    required: bool = False
    allowed_values: frozenset[str] | None = None

    def describe(self) -> str:
        required = "required" if self.required else "optional"
        text = f"{self.type.value} ({required})"
        if self.allowed_values:
            text += f" allowed: {'|'.join(sorted(self.allowed_values))}"
        return text


ComponentSchema = Mapping[str, PropertySchema]


def _string(required: bool = True, allowed: tuple[str, ...] | None = None) -> PropertySchema:
    return PropertySchema(ValueType.STRING, required, frozenset(allowed) if allowed else None)


COMPONENT_SCHEMAS: dict[ComponentKind, ComponentSchema] = {
    ComponentKind.BUTTON: {
        "id": _string(),
        "label": _string(),
        "variant": _string(allowed=("primary", "secondary")),
    },
    ComponentKind.CARD: {
        "id": _string(),
        "title": _string(),
        "children": PropertySchema(ValueType.NODE),
    },
    ComponentKind.INPUT: {
        "id": _string(),
        "label": _string(),
        "placeholder": _string(required=False),
    },
    ComponentKind.TABLE: {
        "id": _string(),
        "columns": PropertySchema(ValueType.STRING_LIST, required=True),
        "rows": PropertySchema(ValueType.STRING_MATRIX, required=True),
    },
    ComponentKind.MODAL: {
        "id": _string(),
        "title": _string(),
        "isOpen": PropertySchema(ValueType.BOOLEAN, required=True),
        "children": PropertySchema(ValueType.NODE),
    },
    ComponentKind.SIDEBAR: {
        "id": _string(),
        "items": PropertySchema(ValueType.STRING_LIST, required=True),
    },
    ComponentKind.NAVBAR: {
        "id": _string(),
        "title": _string(),
    },
    ComponentKind.CHART: {
        "id": _string(),
        "title": _string(),
        "data": PropertySchema(ValueType.NUMBER_LIST, required=True),
    },
}

ALLOWED_COMPONENTS: tuple[str, ...] = tuple(kind.value for kind in ComponentKind)


def resolve_kind(raw: Any) -> ComponentKind | None:
    """Exact-name lookup."""
    if isinstance(raw, ComponentKind):
        return raw
    if not isinstance(raw, str):
        return None
    try:
        return ComponentKind(raw)
    except ValueError:
        return None


def coerce_kind(raw: Any) -> ComponentKind | None:
    """Case-insensitive lookup for model output ("button" -> Button)."""
    if isinstance(raw, ComponentKind):
        return raw
    if not isinstance(raw, str):
        return None
    lowered = raw.strip().lower()
    for kind in ComponentKind:
        if kind.value.lower() == lowered:
            return kind
    return None


def schema_for(kind: ComponentKind) -> ComponentSchema:
    return COMPONENT_SCHEMAS[kind]


def accepts_children(kind: ComponentKind) -> bool:
    """True when the kind declares a node-typed "children" property."""
    children = COMPONENT_SCHEMAS[kind].get("children")
    return children is not None and children.type is ValueType.NODE


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def value_matches(schema: PropertySchema, value: Any) -> bool:
    """Check a Python value against a property schema (type and allowed values)."""
    match schema.type:
        case ValueType.STRING | ValueType.NODE:
            ok = isinstance(value, str)
        case ValueType.NUMBER:
            ok = _is_number(value)
        case ValueType.BOOLEAN:
            ok = isinstance(value, bool)
        case ValueType.STRING_LIST:
            ok = isinstance(value, list) and all(isinstance(v, str) for v in value)
        case ValueType.NUMBER_LIST:
            ok = isinstance(value, list) and all(_is_number(v) for v in value)
        case ValueType.STRING_MATRIX:
            ok = isinstance(value, list) and all(
                isinstance(row, list) and all(isinstance(cell, str) for cell in row) for row in value
            )
        case _:
            ok = False

    if ok and schema.allowed_values is not None:
        ok = stringify(value) in schema.allowed_values
    return ok


def stringify(value: Any) -> str:
    """String form used for allowed-value membership."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def describe_registry() -> str:
    """One line per component, for prompts."""
    lines = []
    for kind, schema in COMPONENT_SCHEMAS.items():
        props = ", ".join(f"{name}: {prop.describe()}" for name, prop in schema.items())
        lines.append(f"{kind.value}: {props}")
    return "\n".join(lines)
