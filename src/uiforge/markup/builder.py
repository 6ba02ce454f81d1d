"""
Deterministic Markup Builder
Builds markup mechanically from a resolved Plan. Only registered kinds and
schema-valid property values are emitted, so the output always validates.
"""

import re
from typing import Any

from ..core.json import safe_json_dumps
from ..plan.models import Plan, PlanComponent
from ..schema import COMPONENT_SCHEMAS, ComponentKind, ValueType, accepts_children, resolve_kind, value_matches

_PLAIN_ATTRIBUTE = re.compile(r'[^"\\\n\r&]*')
_PLAIN_TEXT = re.compile(r"[^<>{}&\n\r]+")


def builder_defaults(kind: ComponentKind, component_id: str) -> dict[str, Any]:
    """Complete required properties for every kind."""
    match kind:
        case ComponentKind.BUTTON:
            return {"id": component_id, "label": "Button", "variant": "primary"}
        case ComponentKind.CARD:
            return {"id": component_id, "title": "Card"}
        case ComponentKind.INPUT:
            return {"id": component_id, "label": "Input"}
        case ComponentKind.TABLE:
            return {"id": component_id, "columns": ["Column 1", "Column 2"], "rows": [["Row 1", "Row 2"]]}
        case ComponentKind.MODAL:
            return {"id": component_id, "title": "Modal", "isOpen": True}
        case ComponentKind.SIDEBAR:
            return {"id": component_id, "items": ["Item 1", "Item 2"]}
        case ComponentKind.NAVBAR:
            return {"id": component_id, "title": "Navigation"}
        case ComponentKind.CHART:
            return {"id": component_id, "title": "Chart", "data": [1, 2, 3]}
    return {"id": component_id}


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def format_attribute(name: str, value: Any) -> str:
    if isinstance(value, str):
        if _PLAIN_ATTRIBUTE.fullmatch(value):
            return f'{name}="{value}"'
        return f"{name}={{{safe_json_dumps(value)}}}"
    if isinstance(value, bool):
        return f"{name}={{{'true' if value else 'false'}}}"
    if isinstance(value, (int, float)):
        return f"{name}={{{_format_number(value)}}}"
    if value and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value):
        return f"{name}={{[{', '.join(_format_number(v) for v in value)}]}}"
    return f"{name}={{{safe_json_dumps(value)}}}"


def format_text(value: str) -> str:
    if _PLAIN_TEXT.fullmatch(value) and value == value.strip():
        return value
    return f"{{{safe_json_dumps(value)}}}"


def build_component(component: PlanComponent) -> str:
    kind = resolve_kind(component.kind)
    if kind is None:
        return ""

    schema = COMPONENT_SCHEMAS[kind]
    props = builder_defaults(kind, component.id)
    for key, value in component.properties.items():
        prop = schema.get(key)
        if prop is None or prop.type is ValueType.NODE:
            continue
        if value_matches(prop, value):
            props[key] = value

    attrs = " ".join(format_attribute(key, value) for key, value in props.items())
    content = component.properties.get("children") if accepts_children(kind) else None
    if isinstance(content, str) and content.strip():
        return f"<{kind.value} {attrs}>{format_text(content.strip())}</{kind.value}>"
    return f"<{kind.value} {attrs} />"


def ordered_components(plan: Plan) -> list[PlanComponent]:
    """Components in layout-section order, unplaced ones last."""
    allowed = [component for component in plan.components if resolve_kind(component.kind) is not None]
    if not plan.layout_plan or not plan.layout_plan.sections:
        return allowed

    by_id = {component.id: component for component in allowed}
    ordered = []
    for section in plan.layout_plan.sections:
        for component_id in section.components:
            match = by_id.pop(component_id, None)
            if match is not None:
                ordered.append(match)
    ordered.extend(component for component in allowed if component.id in by_id)
    return ordered


def build_markup(plan: Plan) -> str:
    """
    Build markup for a resolved plan.

    A single component is emitted bare; anything else is wrapped in a fragment.
    Identical plans always yield identical text.
    """
    rendered = [build_component(component) for component in ordered_components(plan)]
    if len(rendered) == 1:
        return rendered[0]
    return "<>\n" + "\n".join(rendered) + "\n</>"
