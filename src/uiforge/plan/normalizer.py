"""
Plan Normalizer
Reduces an untyped JSON value from model output to a typed Plan.

The untyped value is pattern-matched once here and never retained: every
function returns either a pydantic model or a plain mapping of checked values.
Normalization is deterministic and never invents property values.
"""

from typing import Any

from ..core.errors import PlanShapeError
from ..core.logging_config import get_logger
from ..schema import COMPONENT_SCHEMAS, ComponentKind, ValueType, coerce_kind
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

logger = get_logger(__name__)

# kind -> {legacy key: canonical key}
PROP_ALIASES: dict[ComponentKind, dict[str, str]] = {
    ComponentKind.CARD: {"header": "title"},
    ComponentKind.NAVBAR: {"header": "title"},
    ComponentKind.MODAL: {"header": "title"},
    ComponentKind.BUTTON: {"text": "label"},
    ComponentKind.TABLE: {"headers": "columns"},
    ComponentKind.CHART: {"values": "data"},
}

_SCALAR_TYPES = (ValueType.STRING, ValueType.NUMBER, ValueType.BOOLEAN)


def _entries(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _strings(value: Any) -> list[str]:
    return [entry for entry in _entries(value) if isinstance(entry, str)]


def _non_blank(value: Any) -> list[str]:
    return [entry.strip() for entry in _strings(value) if entry.strip()]


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def normalize_props(kind: ComponentKind, props: Any) -> dict[str, Any]:
    """Apply key aliases, unwrap single-element lists, drop unknown keys."""
    if not isinstance(props, dict):
        return {}

    normalized = dict(props)
    for legacy, canonical in PROP_ALIASES.get(kind, {}).items():
        if legacy not in normalized:
            continue
        legacy_value = normalized.pop(legacy)
        if canonical in normalized and normalized[canonical]:
            continue
        expected = COMPONENT_SCHEMAS[kind][canonical].type
        if expected.is_list and isinstance(legacy_value, list):
            normalized[canonical] = legacy_value
        elif not expected.is_list and isinstance(legacy_value, str):
            normalized[canonical] = legacy_value

    schema = COMPONENT_SCHEMAS[kind]
    result: dict[str, Any] = {}
    for key, value in normalized.items():
        prop = schema.get(key)
        if prop is None:
            continue
        if prop.type in _SCALAR_TYPES and isinstance(value, list) and len(value) == 1:
            value = value[0]
        result[key] = value
    return result


def _normalize_component(value: Any) -> PlanComponent | None:
    if not isinstance(value, dict):
        return None
    kind = coerce_kind(value.get("type", value.get("kind")))
    component_id = value.get("id")
    if kind is None or not isinstance(component_id, str):
        return None
    props = value.get("props", value.get("properties"))
    return PlanComponent(id=component_id, kind=kind, properties=normalize_props(kind, props))


def _normalize_change(value: Any) -> PlanChange | None:
    if not isinstance(value, dict):
        return None

    raw_kind = value.get("type", value.get("changeKind"))
    try:
        change_kind = ChangeKind(raw_kind.lower() if isinstance(raw_kind, str) else raw_kind)
    except ValueError:
        raise PlanShapeError(f"Unknown change type: {raw_kind!r}")

    kind = coerce_kind(value.get("componentType", value.get("kind")))
    raw_props = value.get("props", value.get("properties"))
    if kind is not None:
        props = normalize_props(kind, raw_props)
    else:
        props = dict(raw_props) if isinstance(raw_props, dict) else None

    change_id = value.get("id")
    return PlanChange(
        id=change_id if isinstance(change_id, str) else "",
        change_kind=change_kind,
        kind=kind,
        properties=props,
    )


def normalize_intent_analysis(value: Any) -> IntentAnalysis | None:
    if not isinstance(value, dict):
        return None
    try:
        intent_type = IntentType(value.get("intentType"))
        complexity = Complexity(value.get("complexity"))
    except ValueError:
        return None
    domain = _text(value.get("domain"))
    layout_strategy = _text(value.get("layoutStrategy"))
    if domain is None or layout_strategy is None:
        return None
    return IntentAnalysis(
        intent_type=intent_type,
        domain=domain,
        complexity=complexity,
        layout_strategy=layout_strategy,
    )


def normalize_domain_analysis(value: Any) -> DomainAnalysis | None:
    if not isinstance(value, dict):
        return None
    domain = _text(value.get("domain"))
    industry = _text(value.get("inferredIndustry"))
    if domain is None or industry is None:
        return None
    return DomainAnalysis(
        domain=domain,
        key_entities=_strings(value.get("keyEntities")),
        inferred_industry=industry,
        operational_concepts=_strings(value.get("operationalConcepts")),
    )


def _normalize_row(value: Any) -> dict[str, str | int | float]:
    return {
        key: cell
        for key, cell in value.items()
        if isinstance(cell, (str, int, float)) and not isinstance(cell, bool)
    }


def normalize_data_model(value: Any) -> DataModel | None:
    """Keep only well-formed metrics, tables and charts."""
    if not isinstance(value, dict):
        return None

    metrics = []
    for entry in _entries(value.get("metrics")):
        if isinstance(entry, dict) and _text(entry.get("label")) and _text(entry.get("value")):
            metrics.append(Metric(label=entry["label"], value=entry["value"]))

    tables = []
    for entry in _entries(value.get("tables")):
        if not isinstance(entry, dict):
            continue
        columns = _strings(entry.get("columns"))
        table_id = _text(entry.get("id"))
        if table_id is None or not columns:
            continue
        rows = [_normalize_row(row) for row in _entries(entry.get("rows")) if isinstance(row, dict)]
        tables.append(DataTable(id=table_id, columns=columns, rows=[row for row in rows if row]))

    charts = []
    for entry in _entries(value.get("charts")):
        if not isinstance(entry, dict):
            continue
        values = [
            v for v in _entries(entry.get("values")) if isinstance(v, (int, float)) and not isinstance(v, bool)
        ]
        chart_id = _text(entry.get("id"))
        if chart_id is None or not values:
            continue
        charts.append(
            DataChart(
                id=chart_id,
                type="bar" if entry.get("type") == "bar" else "line",
                labels=_strings(entry.get("labels")),
                values=values,
            )
        )

    return DataModel(metrics=metrics, tables=tables, charts=charts)


def normalize_layout_plan(value: Any) -> LayoutPlan | None:
    if not isinstance(value, dict):
        return None
    sections = []
    for entry in _entries(value.get("sections")):
        if not isinstance(entry, dict) or not _text(entry.get("id")):
            continue
        try:
            section_type = SectionType(entry.get("type"))
        except ValueError:
            section_type = SectionType.MIXED
        sections.append(
            LayoutSection(
                id=entry["id"],
                type=section_type,
                title=entry.get("title") if isinstance(entry.get("title"), str) else None,
                purpose=entry.get("purpose") if isinstance(entry.get("purpose"), str) else None,
                components=_strings(entry.get("components")),
            )
        )
    return LayoutPlan(sections=sections)


def normalize_reasoning(value: Any) -> ReasoningOutput | None:
    """
    Normalize a reasoning object.

    Returns None when the domain model is incomplete or the data model hints
    are missing. Blank list entries are dropped.
    """
    if not isinstance(value, dict):
        return None

    domain_model = value.get("domainModel")
    hints = value.get("dataModelHints")
    if not isinstance(domain_model, dict) or not isinstance(hints, dict):
        return None

    fields = {
        name: (domain_model.get(name) or "").strip() if isinstance(domain_model.get(name), str) else ""
        for name in ("productOrSystem", "domainType", "userRole", "primaryGoal")
    }
    if not all(fields.values()):
        return None

    return ReasoningOutput(
        domain_model=DomainModel(**fields),
        entities=_non_blank(value.get("entities")),
        insights_required=_non_blank(value.get("insightsRequired")),
        metrics_to_track=_non_blank(value.get("metricsToTrack")),
        data_model_hints=DataModelHints(
            tables_needed=_non_blank(hints.get("tablesNeeded")),
            charts_needed=_non_blank(hints.get("chartsNeeded")),
            summary_metrics_needed=_non_blank(hints.get("summaryMetricsNeeded")),
        ),
    )


def normalize_plan(value: Any) -> Plan:
    """
    Normalize an untyped value into a Plan.

    Args:
        value: Parsed JSON (usually a dict)

    Returns:
        Plan with typed components and changes

    Raises:
        PlanShapeError: plan kind or layout strategy missing or invalid
    """
    if not isinstance(value, dict):
        raise PlanShapeError("Plan must be a JSON object")

    raw_kind = value.get("type", value.get("planKind"))
    layout = value.get("layout", value.get("layoutStrategy"))
    if not isinstance(raw_kind, str) or not isinstance(layout, str):
        raise PlanShapeError("Plan requires string 'type' and 'layout' fields")

    try:
        plan_kind = PlanKind(raw_kind.strip().lower())
    except ValueError:
        raise PlanShapeError(f"Unknown plan type: {raw_kind!r}")

    raw_components = _entries(value.get("components"))
    raw_changes = _entries(value.get("changes"))

    components = [c for c in map(_normalize_component, raw_components) if c is not None]
    changes = [c for c in map(_normalize_change, raw_changes) if c is not None]

    dropped = len(raw_components) - len(components)
    if dropped:
        logger.debug("plan_components_dropped", count=dropped)

    return Plan(
        plan_kind=plan_kind,
        layout_strategy=layout,
        components=components,
        changes=changes,
        intent_analysis=normalize_intent_analysis(value.get("intentAnalysis")),
        domain_analysis=normalize_domain_analysis(value.get("domainAnalysis")),
        reasoning=normalize_reasoning(value.get("reasoning")),
        data_model=normalize_data_model(value.get("dataModel")),
        layout_plan=normalize_layout_plan(value.get("layoutPlan")),
    )
