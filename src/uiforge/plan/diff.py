"""Diff engine: which component ids changed between two plans."""

from typing import Any

from ..core.json import safe_json_dumps
from .models import Plan, PlanComponent


def _signature(component: PlanComponent) -> tuple[str, str]:
    # sort_keys makes the comparison insensitive to property order
    return component.kind.value, safe_json_dumps(component.properties, sort_keys=True)


def changed_ids(previous: Plan | None, next_plan: Plan) -> set[str]:
    """
    Ids that are new in ``next_plan``, gone from ``previous``, or whose
    (kind, properties) signature differs.
    """
    before = {c.id: _signature(c) for c in previous.components} if previous else {}
    after = {c.id: _signature(c) for c in next_plan.components}

    changed = set(after) ^ set(before)
    changed.update(cid for cid in after.keys() & before.keys() if after[cid] != before[cid])
    return changed


def summarize(previous: Plan | None, next_plan: Plan) -> dict[str, Any]:
    """Sorted diff split into added, removed and updated ids."""
    before = {c.id for c in previous.components} if previous else set()
    after = {c.id for c in next_plan.components}
    changed = changed_ids(previous, next_plan)
    return {
        "changed": sorted(changed),
        "added": sorted(after - before),
        "removed": sorted(before - after),
        "updated": sorted(changed & before & after),
    }
