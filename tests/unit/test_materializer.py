"""Tests for applying plan changes."""

import pytest

from uiforge.plan.materializer import apply_changes, materialize, unique_id
from uiforge.plan.models import ChangeKind, Plan, PlanChange, PlanComponent, PlanKind
from uiforge.schema import ComponentKind


def edits(*changes):
    return Plan(plan_kind=PlanKind.MODIFY, layout_strategy="basic", changes=list(changes))


@pytest.mark.unit
def test_unique_id():
    assert unique_id("modal", set()) == "modal-1"
    assert unique_id("modal", {"modal-1", "modal-2"}) == "modal-3"


@pytest.mark.unit
def test_update_merges_properties(card_plan):
    change = PlanChange(id="card-1", change_kind=ChangeKind.UPDATE, kind=ComponentKind.CARD, properties={"title": "Income"})
    result = apply_changes(card_plan, edits(change))

    assert result.components[0].properties == {"title": "Income"}
    assert result.changes == []
    assert result.plan_kind is PlanKind.MODIFY
    assert card_plan.components[0].properties == {"title": "Card"}


@pytest.mark.unit
def test_update_without_id_uses_single_match(card_plan):
    change = PlanChange(change_kind=ChangeKind.UPDATE, kind=ComponentKind.CARD, properties={"children": "$5"})
    result = apply_changes(card_plan, edits(change))
    assert result.components[0].properties == {"title": "Card", "children": "$5"}


@pytest.mark.unit
def test_add_without_id_gets_unique_id(card_plan):
    change = PlanChange(change_kind=ChangeKind.ADD, kind=ComponentKind.MODAL, properties={"title": "Settings"})
    result = apply_changes(card_plan, edits(change))

    assert result.component_ids() == ["card-1", "modal-1"]
    assert result.components[1].kind is ComponentKind.MODAL


@pytest.mark.unit
def test_remove_and_unresolvable_changes(dashboard_plan):
    result = apply_changes(
        dashboard_plan,
        edits(
            PlanChange(id="chart-1", change_kind=ChangeKind.REMOVE),
            PlanChange(id="ghost", change_kind=ChangeKind.REMOVE),
            PlanChange(id="ghost", change_kind=ChangeKind.UPDATE, kind=ComponentKind.BUTTON, properties={"label": "X"}),
            PlanChange(id="card-1", change_kind=ChangeKind.ADD),
        ),
    )
    assert result.component_ids() == ["card-1", "table-1"]


@pytest.mark.unit
def test_add_with_taken_id_falls_back_to_generated(card_plan):
    change = PlanChange(id="card-1", change_kind=ChangeKind.ADD, kind=ComponentKind.CARD, properties={"title": "B"})
    result = apply_changes(card_plan, edits(change))
    assert result.component_ids() == ["card-1", "card-2"]


@pytest.mark.unit
def test_two_adds_never_collide(card_plan):
    add = PlanChange(change_kind=ChangeKind.ADD, kind=ComponentKind.BUTTON, properties={"label": "Go"})
    result = apply_changes(card_plan, edits(add, add))
    assert result.component_ids() == ["card-1", "button-1", "button-2"]


@pytest.mark.unit
def test_ambiguous_update_is_skipped():
    baseline = Plan(
        plan_kind=PlanKind.NEW,
        layout_strategy="basic",
        components=[
            PlanComponent(id="a", kind=ComponentKind.CARD, properties={"title": "A"}),
            PlanComponent(id="b", kind=ComponentKind.CARD, properties={"title": "B"}),
        ],
    )
    change = PlanChange(change_kind=ChangeKind.UPDATE, kind=ComponentKind.CARD, properties={"title": "Z"})
    result = apply_changes(baseline, edits(change))
    assert [c.properties["title"] for c in result.components] == ["A", "B"]


@pytest.mark.unit
def test_materialize_is_idempotent(card_plan):
    plan = card_plan.model_copy(
        update={"changes": [PlanChange(change_kind=ChangeKind.ADD, kind=ComponentKind.NAVBAR, properties={"title": "N"})]}
    )
    once = materialize(plan)
    twice = materialize(once)

    assert once.component_ids() == ["card-1", "navbar-1"]
    assert once.is_resolved
    assert twice == once
