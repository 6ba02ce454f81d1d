"""
Plan Heuristics
Deterministic, keyword-driven builders used when the model output cannot be
trusted: intent inference, data model synthesis, layout sections, the
reasoning/data-model alignment check, and the heuristic fallback plan.
"""

import re
from typing import Any

from ..schema import ComponentKind
from .materializer import unique_id
from .models import (
    ChangeKind,
    Complexity,
    DataChart,
    DataModel,
    DataModelHints,
    DataTable,
    DomainAnalysis,
    DomainModel,
    IntentAnalysis,
    IntentType,
    LayoutPlan,
    LayoutSection,
    Metric,
    Plan,
    PlanChange,
    PlanComponent,
    PlanKind,
    ReasoningOutput,
    SectionType,
)

MARKETING_METRIC_TOKENS = ("ctr", "cpc", "impressions", "conversions", "click", "ad", "campaign")

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
_SLUG_STRIP = re.compile(r"[^a-z0-9]+")
_PERCENT = re.compile(r"(rate|percent|%)")
_MONEY = re.compile(r"(revenue|expense|cost|profit|budget|price|amount|spend)")
_DURATION = re.compile(r"(time|duration|watch|hours)")
_MARKETING_DOMAIN = re.compile(r"(marketing|ads|advertising|campaign)")

# keyword -> component kind, in the order components are emitted
KEYWORD_COMPONENTS: tuple[tuple[str, ComponentKind], ...] = (
    ("navbar", ComponentKind.NAVBAR),
    ("card", ComponentKind.CARD),
    ("chart", ComponentKind.CHART),
    ("table", ComponentKind.TABLE),
    ("sidebar", ComponentKind.SIDEBAR),
    ("modal", ComponentKind.MODAL),
    ("button", ComponentKind.BUTTON),
    ("input", ComponentKind.INPUT),
)

LAYOUT_BY_INTENT = {
    IntentType.REPORT: "analytics_dashboard",
    IntentType.DASHBOARD: "analytics_dashboard",
    IntentType.FORM: "input_form",
    IntentType.MARKETING: "hero_marketing",
    IntentType.CRUD: "data_management",
}


def default_props(kind: ComponentKind, component_id: str) -> dict[str, Any]:
    """Schema-valid placeholder properties for a component."""
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
            return {"id": component_id, "title": "Settings", "isOpen": False}
        case ComponentKind.SIDEBAR:
            return {"id": component_id, "items": ["Item 1", "Item 2"]}
        case ComponentKind.NAVBAR:
            return {"id": component_id, "title": "My App"}
        case ComponentKind.CHART:
            return {"id": component_id, "title": "Chart", "data": [1, 2, 3]}
    return {"id": component_id}


def slugify(value: str) -> str:
    slug = _SLUG_STRIP.sub("-", value.lower()).strip("-")[:30]
    return slug or "item"


def tokenize(value: str) -> list[str]:
    return [token for token in _TOKEN_SPLIT.split(value.lower()) if token]


def hash_string(value: str) -> int:
    """32-bit multiplicative string hash (stable across processes)."""
    result = 0
    for char in value:
        result = (result * 31 + ord(char)) % 2**32
    return result


def metric_value(label: str) -> str:
    """Plausible display value derived only from the label."""
    lower = label.lower()
    seed = hash_string(lower)

    if _PERCENT.search(lower):
        return f"{((seed % 450) + 50) / 10:.1f}%"
    if _MONEY.search(lower):
        return f"${((seed % 900) + 100) * 1000:,}"
    if _DURATION.search(lower):
        return f"{(seed % 120) + 10} hrs"
    return f"{(seed % 9000) + 100:,}"


def infer_intent(user_message: str) -> IntentAnalysis:
    message = user_message.lower()

    def has(*words: str) -> bool:
        return any(word in message for word in words)

    if has("home page", "homepage", "website", "landing page"):
        intent = IntentType.MARKETING_PAGE
    elif has("report", "ads", "analytics"):
        intent = IntentType.REPORT
    elif has("form", "sign up", "input"):
        intent = IntentType.FORM
    elif has("marketing", "landing", "hero"):
        intent = IntentType.MARKETING_PAGE if "page" in message else IntentType.MARKETING
    elif has("crud", "table", "list"):
        intent = IntentType.CRUD
    else:
        intent = IntentType.DASHBOARD

    if has("simple", "basic"):
        complexity = Complexity.SIMPLE
    elif has("detailed", "comprehensive"):
        complexity = Complexity.COMPLEX
    else:
        complexity = Complexity.MODERATE

    return IntentAnalysis(
        intent_type=intent,
        domain="general",
        complexity=complexity,
        layout_strategy=LAYOUT_BY_INTENT.get(intent, "basic"),
    )


def domain_from_reasoning(reasoning: ReasoningOutput) -> DomainAnalysis:
    source = reasoning.domain_model.domain_type or reasoning.domain_model.product_or_system or "general"
    return DomainAnalysis(
        domain=slugify(source),
        key_entities=list(reasoning.entities),
        inferred_industry=reasoning.domain_model.domain_type,
        operational_concepts=list(reasoning.insights_required),
    )


def needs_structured_data(intent: IntentType) -> bool:
    return intent in (IntentType.REPORT, IntentType.DASHBOARD)


def wants_data_components(user_message: str) -> bool:
    message = user_message.lower()
    return any(word in message for word in ("chart", "graph", "table", "report", "dashboard", "analytics"))


def fallback_reasoning(user_message: str) -> ReasoningOutput:
    """Minimal reasoning built from the first six words of the request."""
    summary = " ".join(user_message.split()[:6]).strip()
    return ReasoningOutput(
        domain_model=DomainModel(
            product_or_system=summary or "Requested UI",
            domain_type="general",
            user_role="user",
            primary_goal="complete the requested task",
        ),
        data_model_hints=DataModelHints(),
    )


def _table_from_name(name: str, index: int, metrics: list[str]) -> DataTable:
    label = " ".join(name.split()) or f"table-{index + 1}"
    columns = [f"{label} Item", "Metric", "Value"]
    rows = []
    for row_index, suffix in enumerate(("A", "B", "C")):
        metric = metrics[row_index % len(metrics)] if metrics else "Metric"
        rows.append({columns[0]: f"{label} {suffix}", "Metric": metric, "Value": metric_value(metric)})
    return DataTable(id=f"table-{slugify(label)}", columns=columns, rows=rows)


def _chart_from_name(name: str, index: int) -> DataChart:
    label = " ".join(name.split()) or f"chart-{index + 1}"
    labels = [f"Period {n}" for n in range(1, 5)]
    values = [(hash_string(f"{label}-{entry}") % 80) + 20 for entry in labels]
    return DataChart(id=f"chart-{slugify(label)}", type="line", labels=labels, values=values)


def synthesize_data_model(reasoning: ReasoningOutput) -> DataModel:
    """Build metrics, tables and charts from the reasoning's hints."""
    seeds = reasoning.metrics_to_track + reasoning.data_model_hints.summary_metrics_needed
    unique_metrics = list(dict.fromkeys(metric.strip() for metric in seeds if metric.strip()))
    labels = unique_metrics or ["Key Metric", "Primary Indicator", "Operational Signal"]

    return DataModel(
        metrics=[Metric(label=label, value=metric_value(label)) for label in labels],
        tables=[
            _table_from_name(name, index, unique_metrics)
            for index, name in enumerate(reasoning.data_model_hints.tables_needed)
        ],
        charts=[_chart_from_name(name, index) for index, name in enumerate(reasoning.data_model_hints.charts_needed)],
    )


def _chart_title(reasoning: ReasoningOutput) -> str:
    subject = reasoning.domain_model.product_or_system or reasoning.domain_model.domain_type
    return f"{subject} trend".strip()


def _claim(base: str, taken: set[str]) -> str:
    candidate = base if base not in taken else unique_id(base, taken)
    taken.add(candidate)
    return candidate


def components_from_data_model(
    data_model: DataModel, domain: DomainAnalysis, reasoning: ReasoningOutput
) -> list[PlanComponent]:
    """Metric Cards, then Tables, then Charts; one overview Card when empty."""
    taken: set[str] = set()
    components = []

    for metric in data_model.metrics:
        cid = _claim(f"metric-{slugify(metric.label)}", taken)
        components.append(
            PlanComponent(
                id=cid, kind=ComponentKind.CARD, properties={"id": cid, "title": metric.label, "children": metric.value}
            )
        )

    for table in data_model.tables:
        cid = _claim(table.id or f"table-{slugify(domain.domain)}", taken)
        components.append(
            PlanComponent(
                id=cid,
                kind=ComponentKind.TABLE,
                properties={"id": cid, "columns": list(table.columns), "rows": table.row_matrix()},
            )
        )

    for chart in data_model.charts:
        cid = _claim(chart.id or f"chart-{slugify(domain.domain)}", taken)
        components.append(
            PlanComponent(
                id=cid,
                kind=ComponentKind.CHART,
                properties={"id": cid, "title": _chart_title(reasoning), "data": list(chart.values)},
            )
        )

    if not components:
        cid = _claim("card-1", taken)
        components.append(
            PlanComponent(
                id=cid, kind=ComponentKind.CARD, properties={"id": cid, "title": "Overview", "children": "No data available"}
            )
        )
    return components


def is_placeholder_card(component: PlanComponent) -> bool:
    if component.kind is not ComponentKind.CARD:
        return False
    title = component.properties.get("title")
    children = component.properties.get("children")
    return (
        not isinstance(title, str)
        or title.strip().lower() == "card"
        or children is None
        or not str(children).strip()
    )


def is_placeholder_table(component: PlanComponent) -> bool:
    return component.kind is ComponentKind.TABLE and component.properties.get("columns") == ["Column 1", "Column 2"]


def is_placeholder_chart(component: PlanComponent) -> bool:
    if component.kind is not ComponentKind.CHART:
        return False
    title = component.properties.get("title")
    data = component.properties.get("data")
    return (
        (not isinstance(title, str) or title.strip().lower() == "chart")
        and isinstance(data, list)
        and len(data) == 3
        and all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in data)
    )


def enrich_components(
    components: list[PlanComponent],
    data_model: DataModel,
    domain: DomainAnalysis,
    reasoning: ReasoningOutput,
) -> list[PlanComponent]:
    """
    Fill placeholder components with data model content.

    Placeholder Cards take metrics in order; leftover metrics become new Cards.
    The first Table and Chart take the primary table and chart, or are added.
    """
    result = [component.model_copy(update={"properties": dict(component.properties)}) for component in components]
    taken = {component.id for component in result}
    metrics = list(data_model.metrics)
    metric_index = 0

    for position, component in enumerate(result):
        if metric_index >= len(metrics):
            break
        if is_placeholder_card(component):
            metric = metrics[metric_index]
            metric_index += 1
            props = {**component.properties, "title": metric.label, "children": metric.value}
            result[position] = component.model_copy(update={"properties": props})

    for metric in metrics[metric_index:]:
        cid = _claim(f"metric-{slugify(metric.label)}", taken)
        result.append(
            PlanComponent(
                id=cid, kind=ComponentKind.CARD, properties={"id": cid, "title": metric.label, "children": metric.value}
            )
        )

    if data_model.tables:
        table = data_model.tables[0]
        position = next((i for i, c in enumerate(result) if c.kind is ComponentKind.TABLE), None)
        if position is None:
            cid = _claim(table.id or f"table-{slugify(domain.domain)}", taken)
            result.append(
                PlanComponent(
                    id=cid,
                    kind=ComponentKind.TABLE,
                    properties={"id": cid, "columns": list(table.columns), "rows": table.row_matrix()},
                )
            )
        elif is_placeholder_table(result[position]) or "columns" not in result[position].properties:
            existing = result[position]
            props = {**existing.properties, "columns": list(table.columns), "rows": table.row_matrix()}
            result[position] = existing.model_copy(update={"properties": props})

    if data_model.charts:
        chart = data_model.charts[0]
        position = next((i for i, c in enumerate(result) if c.kind is ComponentKind.CHART), None)
        if position is None:
            cid = _claim(chart.id or f"chart-{slugify(domain.domain)}", taken)
            result.append(
                PlanComponent(
                    id=cid,
                    kind=ComponentKind.CHART,
                    properties={"id": cid, "title": _chart_title(reasoning), "data": list(chart.values)},
                )
            )
        elif is_placeholder_chart(result[position]) or "data" not in result[position].properties:
            existing = result[position]
            props = {**existing.properties, "title": _chart_title(reasoning), "data": list(chart.values)}
            result[position] = existing.model_copy(update={"properties": props})

    return result


def build_layout_plan(components: list[PlanComponent], data_model: DataModel) -> LayoutPlan:
    """Group component ids into metric, table and chart sections."""
    groups = (
        (ComponentKind.CARD, "summary-section", SectionType.METRICS, "Summary Metrics",
         "High-level KPIs for quick health check"),
        (ComponentKind.TABLE, "table-section", SectionType.TABLE, "Detailed Table",
         "Operational detail and breakdown"),
        (ComponentKind.CHART, "chart-section", SectionType.CHART, "Trend Analysis",
         "Visual trend over time"),
    )
    sections = []
    for kind, section_id, section_type, title, purpose in groups:
        ids = [component.id for component in components if component.kind is kind]
        if ids:
            sections.append(
                LayoutSection(id=section_id, type=section_type, title=title, purpose=purpose, components=ids)
            )

    if not sections and not data_model.metrics:
        sections.append(
            LayoutSection(
                id="content-section",
                type=SectionType.MIXED,
                title="Content",
                purpose="General layout grouping",
                components=[component.id for component in components],
            )
        )
    return LayoutPlan(sections=sections)


def is_data_model_aligned(reasoning: ReasoningOutput, data_model: DataModel) -> bool:
    """
    Check that metric labels share vocabulary with the reasoning.

    A data model without metrics is always aligned. Marketing metrics are only
    accepted for a marketing-like domain.
    """
    if not data_model.metrics:
        return True

    required: set[str] = set()
    for entry in (
        reasoning.metrics_to_track
        + reasoning.data_model_hints.summary_metrics_needed
        + reasoning.entities
        + reasoning.insights_required
    ):
        required.update(tokenize(entry))

    metric_tokens = {token for metric in data_model.metrics for token in tokenize(metric.label)}
    if required and not (metric_tokens & required):
        return False

    domain_text = f"{reasoning.domain_model.product_or_system} {reasoning.domain_model.domain_type}".lower()
    marketing_domain = bool(_MARKETING_DOMAIN.search(domain_text))
    marketing_metrics = any(
        token in metric.label.lower() for metric in data_model.metrics for token in MARKETING_METRIC_TOKENS
    )
    return marketing_domain or not marketing_metrics


def heuristic_plan(user_message: str, reasoning: ReasoningOutput, previous: Plan | None = None) -> Plan:
    """
    Build a schema-valid plan from keywords alone.

    New plans get one component per keyword mentioned (one Card when none
    match). Modify plans keep the previous components and emit changes.
    """
    message = user_message.lower()
    domain = (previous.domain_analysis if previous else None) or domain_from_reasoning(reasoning)
    intent = (previous.intent_analysis if previous else None) or infer_intent(user_message)
    intent = intent.model_copy(update={"domain": domain.domain})

    data_model = previous.data_model if previous and previous.data_model else None
    if data_model is None:
        data_model = synthesize_data_model(reasoning) if needs_structured_data(intent.intent_type) else DataModel()

    taken = set(previous.component_ids()) if previous else set()
    components: list[PlanComponent] = []
    changes: list[PlanChange] = []

    if previous is None:
        for keyword, kind in KEYWORD_COMPONENTS:
            if keyword in message:
                cid = unique_id(kind.value.lower(), taken)
                taken.add(cid)
                components.append(PlanComponent(id=cid, kind=kind, properties=default_props(kind, cid)))

        if not components:
            cid = unique_id("card", taken)
            components.append(
                PlanComponent(id=cid, kind=ComponentKind.CARD, properties=default_props(ComponentKind.CARD, cid))
            )

        if needs_structured_data(intent.intent_type):
            components = enrich_components(components, data_model, domain, reasoning)
    else:
        components = [c.model_copy(update={"properties": dict(c.properties)}) for c in previous.components]

        def first_of(kind: ComponentKind, base: str) -> str:
            found = next((c.id for c in previous.components if c.kind is kind), None)
            return found or unique_id(base, taken)

        if "add" in message and "modal" in message:
            cid = unique_id("modal", taken)
            changes.append(
                PlanChange(
                    id=cid,
                    change_kind=ChangeKind.ADD,
                    kind=ComponentKind.MODAL,
                    properties=default_props(ComponentKind.MODAL, cid),
                )
            )

        if "remove" in message and "chart" in message:
            changes.append(
                PlanChange(id=first_of(ComponentKind.CHART, "chart"), change_kind=ChangeKind.REMOVE, kind=ComponentKind.CHART)
            )

        if ("change" in message or "update" in message) and "card" in message:
            title = "Income" if "income" in message else "Updated"
            changes.append(
                PlanChange(
                    id=first_of(ComponentKind.CARD, "card"),
                    change_kind=ChangeKind.UPDATE,
                    kind=ComponentKind.CARD,
                    properties={"title": title},
                )
            )

    return Plan(
        plan_kind=PlanKind.MODIFY if previous else PlanKind.NEW,
        layout_strategy=intent.layout_strategy,
        components=components,
        changes=changes,
        intent_analysis=intent,
        domain_analysis=domain,
        reasoning=reasoning,
        data_model=data_model,
        layout_plan=build_layout_plan(components, data_model),
    )
