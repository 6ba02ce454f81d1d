"""Component vocabulary and property schemas."""

from .registry import (
    ALLOWED_COMPONENTS,
    COMPONENT_SCHEMAS,
    ComponentKind,
    ComponentSchema,
    PropertySchema,
    ValueType,
    accepts_children,
    coerce_kind,
    describe_registry,
    resolve_kind,
    schema_for,
    stringify,
    value_matches,
)

__all__ = [
    "ALLOWED_COMPONENTS",
    "COMPONENT_SCHEMAS",
    "ComponentKind",
    "ComponentSchema",
    "PropertySchema",
    "ValueType",
    "accepts_children",
    "coerce_kind",
    "describe_registry",
    "resolve_kind",
    "schema_for",
    "stringify",
    "value_matches",
]
