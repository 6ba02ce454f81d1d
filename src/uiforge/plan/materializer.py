"""
Plan Materializer
Applies add/update/remove changes onto a baseline component list.

Changes are resolved best-effort; a change that cannot be resolved to a
component id is skipped without error. Property maps are always copied.
"""

from ..core.logging_config import get_logger
from .models import ChangeKind, Plan, PlanChange, PlanComponent

logger = get_logger(__name__)


def unique_id(base: str, taken: set[str]) -> str:
    """First free ``base-N`` id, N starting at 1."""
    index = 1
    while f"{base}-{index}" in taken:
        index += 1
    return f"{base}-{index}"


class _Resolver:
    """Maps changes to component ids against a fixed baseline."""

    def __init__(self, baseline: list[PlanComponent]) -> None:
        self.known_ids = {component.id for component in baseline}
        self.by_kind: dict[str, list[str]] = {}
        for component in baseline:
            self.by_kind.setdefault(component.kind.value, []).append(component.id)

    def resolve(self, change: PlanChange) -> str | None:
        explicit = change.id.strip()
        if explicit:
            if change.change_kind is ChangeKind.ADD and explicit not in self.known_ids:
                return explicit
            if change.change_kind is not ChangeKind.ADD and explicit in self.known_ids:
                return explicit

        if change.kind is None:
            return None

        if change.change_kind is ChangeKind.ADD:
            return unique_id(change.kind.value.lower(), self.known_ids)

        matches = self.by_kind.get(change.kind.value, [])
        if len(matches) == 1:
            return matches[0]
        return None

    def claim(self, component_id: str) -> None:
        self.known_ids.add(component_id)


def apply_changes(baseline: Plan, edits: Plan) -> Plan:
    """
    Apply edits.changes to baseline.components.

    Returns:
        A resolved copy of ``edits`` (empty changes) whose components are the
        baseline survivors in their original order followed by new additions
    """
    resolver = _Resolver(baseline.components)
    components: dict[str, PlanComponent] = {
        component.id: component.model_copy(update={"properties": dict(component.properties)})
        for component in baseline.components
    }

    skipped = 0
    for change in edits.changes:
        resolved = resolver.resolve(change)
        if resolved is None:
            skipped += 1
            continue

        if change.change_kind is ChangeKind.REMOVE:
            components.pop(resolved, None)
            continue

        if change.kind is None:
            skipped += 1
            continue

        props = dict(change.properties or {})
        existing = components.get(resolved)
        if change.change_kind is ChangeKind.UPDATE and existing is not None:
            components[resolved] = existing.model_copy(update={"properties": {**existing.properties, **props}})
        else:
            components[resolved] = PlanComponent(id=resolved, kind=change.kind, properties=props)
            resolver.claim(resolved)

    if skipped:
        logger.info("plan_changes_skipped", count=skipped, total=len(edits.changes))

    return edits.model_copy(update={"components": list(components.values()), "changes": []})


def materialize(plan: Plan) -> Plan:
    """Resolve a plan against its own components."""
    return apply_changes(plan, plan)
