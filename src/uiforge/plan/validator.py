"""Plan Validator: pure, total schema checks over a normalized Plan."""

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..schema import COMPONENT_SCHEMAS, ComponentKind, resolve_kind, value_matches
from .models import ChangeKind, Plan, PlanChange, PlanComponent


@dataclass
class PlanValidation:
    """Validation outcome with every violation found."""

    violations: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.violations

    def __bool__(self) -> bool:
        return self.valid


def check_props(
    kind: ComponentKind, props: Mapping[str, Any], partial: bool = True, where: str = ""
) -> list[str]:
    """
    Check properties against a component schema.

    Args:
        kind: Component kind whose schema applies
        props: Property mapping
        partial: Skip the required-property completeness check
        where: Prefix for violation messages
    """
    schema = COMPONENT_SCHEMAS[kind]
    violations = []
    for key, value in props.items():
        prop = schema.get(key)
        if prop is None:
            violations.append(f"{where}unknown property '{key}' for {kind.value}")
        elif not value_matches(prop, value):
            violations.append(f"{where}property '{key}' does not satisfy {prop.describe()}")

    if not partial:
        for name, prop in schema.items():
            if prop.required and name not in props:
                violations.append(f"{where}missing required property '{name}'")
    return violations


def _check_component(index: int, component: PlanComponent) -> list[str]:
    where = f"components[{index}] ({component.id}): "
    kind = resolve_kind(component.kind)
    if kind is None:
        return [f"{where}unknown component '{component.kind}'"]
    return check_props(kind, component.properties, partial=True, where=where)


def _check_change(index: int, change: PlanChange) -> list[str]:
    where = f"changes[{index}]: "
    if change.change_kind is ChangeKind.REMOVE:
        return []
    if change.kind is None:
        return [f"{where}{change.change_kind.value} requires a componentType"]
    kind = resolve_kind(change.kind)
    if kind is None:
        return [f"{where}unknown component '{change.kind}'"]
    return check_props(kind, change.properties or {}, partial=True, where=where)


def validate_plan(plan: Plan) -> PlanValidation:
    """Validate every component and change of a plan. Never raises."""
    result = PlanValidation()
    for index, component in enumerate(plan.components):
        result.violations.extend(_check_component(index, component))
    for index, change in enumerate(plan.changes):
        result.violations.extend(_check_change(index, change))
    return result
