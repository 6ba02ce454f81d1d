"""Tests for the keyword heuristics and data model synthesis."""

import re
import string

import pytest
from hypothesis import given, strategies as st

from uiforge.plan.heuristics import (
    build_layout_plan,
    domain_from_reasoning,
    fallback_reasoning,
    hash_string,
    heuristic_plan,
    infer_intent,
    is_data_model_aligned,
    is_placeholder_card,
    metric_value,
    slugify,
    synthesize_data_model,
    wants_data_components,
)
from uiforge.plan.materializer import materialize
from uiforge.plan.models import (
    ChangeKind,
    Complexity,
    DataModel,
    IntentType,
    Metric,
    PlanComponent,
    PlanKind,
    SectionType,
)
from uiforge.schema import ComponentKind


@pytest.mark.unit
@pytest.mark.parametrize(
    "message,intent",
    [
        ("Build a landing page for my bakery", IntentType.MARKETING_PAGE),
        ("Build an ads report", IntentType.REPORT),
        ("Create an analytics view", IntentType.REPORT),
        ("Build a signup form", IntentType.FORM),
        ("A hero banner for the launch", IntentType.MARKETING),
        ("A marketing page", IntentType.MARKETING_PAGE),
        ("A crud screen for users", IntentType.CRUD),
        ("Show a table of orders", IntentType.CRUD),
        ("Build a sales dashboard", IntentType.DASHBOARD),
    ],
)
def test_infer_intent(message, intent):
    assert infer_intent(message).intent_type is intent


@pytest.mark.unit
def test_infer_intent_complexity_and_layout():
    simple = infer_intent("A simple form")
    detailed = infer_intent("A detailed sales dashboard")

    assert simple.complexity is Complexity.SIMPLE
    assert simple.layout_strategy == "input_form"
    assert detailed.complexity is Complexity.COMPLEX
    assert detailed.layout_strategy == "analytics_dashboard"
    assert infer_intent("landing page").layout_strategy == "basic"


@pytest.mark.unit
def test_wants_data_components():
    assert wants_data_components("Add a Graph of signups")
    assert not wants_data_components("A contact form")


@pytest.mark.unit
def test_slugify_and_hash():
    assert slugify("Sales Tracker!") == "sales-tracker"
    assert slugify("!!!") == "item"
    assert hash_string("a") == 97
    assert hash_string("ab") == 97 * 31 + 98


@pytest.mark.unit
def test_metric_value_formats():
    assert re.fullmatch(r"\d+\.\d%", metric_value("Win Rate"))
    assert re.fullmatch(r"\$\d{3},000", metric_value("Revenue"))
    assert re.fullmatch(r"\d+ hrs", metric_value("Watch Time"))
    assert re.fullmatch(r"[\d,]+", metric_value("Active Users"))


@given(st.text(alphabet=string.ascii_letters + " ", max_size=40))
def test_metric_value_is_deterministic(label):
    """Property test: values depend only on the label."""
    assert metric_value(label) == metric_value(label)
    assert metric_value(label) == metric_value(label.upper())


@pytest.mark.unit
def test_fallback_reasoning():
    reasoning = fallback_reasoning("  Build me a   tool to track my expenses daily ")
    assert reasoning.domain_model.product_or_system == "Build me a tool to track"
    assert reasoning.domain_model.domain_type == "general"
    assert fallback_reasoning("   ").domain_model.product_or_system == "Requested UI"


@pytest.mark.unit
def test_domain_from_reasoning(reasoning):
    domain = domain_from_reasoning(reasoning)
    assert domain.domain == "sales"
    assert domain.key_entities == ["deal", "account"]
    assert domain.operational_concepts == ["pipeline health"]


@pytest.mark.unit
def test_synthesize_data_model(reasoning):
    data_model = synthesize_data_model(reasoning)

    assert [m.label for m in data_model.metrics] == ["Revenue", "Win Rate", "Open Deals"]
    table = data_model.tables[0]
    assert table.id == "table-deals"
    assert table.columns == ["Deals Item", "Metric", "Value"]
    assert [row["Metric"] for row in table.rows] == ["Revenue", "Win Rate", "Open Deals"]
    chart = data_model.charts[0]
    assert chart.id == "chart-revenue-trend"
    assert chart.labels == ["Period 1", "Period 2", "Period 3", "Period 4"]
    assert all(20 <= value < 100 for value in chart.values)
    assert synthesize_data_model(reasoning) == data_model


@pytest.mark.unit
def test_synthesize_data_model_defaults():
    data_model = synthesize_data_model(fallback_reasoning("anything"))
    assert [m.label for m in data_model.metrics] == ["Key Metric", "Primary Indicator", "Operational Signal"]
    assert data_model.tables == []
    assert data_model.charts == []


@pytest.mark.unit
def test_alignment(reasoning):
    assert is_data_model_aligned(reasoning, DataModel())
    assert is_data_model_aligned(reasoning, DataModel(metrics=[Metric(label="Revenue", value="$1")]))
    assert not is_data_model_aligned(reasoning, DataModel(metrics=[Metric(label="Ad Impressions", value="1")]))
    assert not is_data_model_aligned(reasoning, DataModel(metrics=[Metric(label="Revenue per click", value="1")]))


@pytest.mark.unit
def test_marketing_metrics_fit_marketing_domain(reasoning):
    marketing = reasoning.model_copy(
        update={"domain_model": reasoning.domain_model.model_copy(update={"domain_type": "advertising"})}
    )
    assert is_data_model_aligned(marketing, DataModel(metrics=[Metric(label="Revenue per click", value="1")]))


@pytest.mark.unit
@pytest.mark.parametrize(
    "properties,expected",
    [
        ({"title": "Card", "children": "x"}, True),
        ({"title": "Revenue"}, True),
        ({"title": "Revenue", "children": "  "}, True),
        ({"title": "Revenue", "children": "$5"}, False),
    ],
)
def test_is_placeholder_card(properties, expected):
    component = PlanComponent(id="c", kind=ComponentKind.CARD, properties=properties)
    assert is_placeholder_card(component) is expected


@pytest.mark.unit
def test_layout_plan_content_section():
    components = [PlanComponent(id="b", kind=ComponentKind.BUTTON, properties={})]
    sections = build_layout_plan(components, DataModel()).sections

    assert len(sections) == 1
    assert sections[0].id == "content-section"
    assert sections[0].type is SectionType.MIXED
    assert sections[0].components == ["b"]


@pytest.mark.unit
def test_heuristic_plan_from_keywords():
    plan = heuristic_plan("Add a navbar and a button", fallback_reasoning("Add a navbar and a button"))

    assert plan.plan_kind is PlanKind.NEW
    assert plan.component_ids() == [
        "navbar-1",
        "button-1",
        "metric-key-metric",
        "metric-primary-indicator",
        "metric-operational-signal",
    ]
    assert plan.components[0].properties == {"id": "navbar-1", "title": "My App"}


@pytest.mark.unit
def test_heuristic_plan_for_form():
    plan = heuristic_plan("Build a signup form with an input", fallback_reasoning("signup"))
    assert plan.component_ids() == ["input-1"]
    assert plan.intent_analysis.intent_type is IntentType.FORM


@pytest.mark.unit
def test_heuristic_plan_fills_placeholder_card():
    plan = heuristic_plan("Hello there", fallback_reasoning("Hello there"))

    assert plan.components[0].id == "card-1"
    assert plan.components[0].properties["title"] == "Key Metric"
    assert len(plan.components) == 3


@pytest.mark.unit
def test_heuristic_modify(card_plan):
    plan = heuristic_plan(
        "Change the card title to Income and add a modal", fallback_reasoning("Change the card"), card_plan
    )

    assert plan.plan_kind is PlanKind.MODIFY
    assert [change.change_kind for change in plan.changes] == [ChangeKind.ADD, ChangeKind.UPDATE]
    assert plan.changes[0].properties == {"id": "modal-1", "title": "Settings", "isOpen": False}

    resolved = materialize(plan)
    assert resolved.component_ids() == ["card-1", "modal-1"]
    assert resolved.components[0].properties["title"] == "Income"
