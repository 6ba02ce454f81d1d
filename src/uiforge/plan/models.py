"""Plan Data Models.

Python attribute names are snake_case; the wire format (prompts, API payloads)
uses the camelCase aliases.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..schema import ComponentKind


class PlanKind(str, Enum):
    NEW = "new"
    MODIFY = "modify"
    REGENERATE = "regenerate"


class ChangeKind(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


class IntentType(str, Enum):
    REPORT = "report"
    DASHBOARD = "dashboard"
    FORM = "form"
    MARKETING = "marketing"
    MARKETING_PAGE = "marketing_page"
    CRUD = "crud"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class SectionType(str, Enum):
    METRICS = "metrics"
    TABLE = "table"
    CHART = "chart"
    MIXED = "mixed"


class WireModel(BaseModel):
    """Immutable model that accepts both field names and wire aliases."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PlanComponent(WireModel):
    """A component that should exist in the UI."""

    id: str
    kind: ComponentKind = Field(alias="type")
    properties: dict[str, Any] = Field(default_factory=dict, alias="props")


class PlanChange(WireModel):
    """An edit against a baseline plan."""

    id: str = ""
    change_kind: ChangeKind = Field(alias="type")
    kind: ComponentKind | None = Field(default=None, alias="componentType")
    properties: dict[str, Any] | None = Field(default=None, alias="props")


class IntentAnalysis(WireModel):
    intent_type: IntentType = Field(alias="intentType")
    domain: str
    complexity: Complexity
    layout_strategy: str = Field(alias="layoutStrategy")


class DomainAnalysis(WireModel):
    domain: str
    key_entities: list[str] = Field(default_factory=list, alias="keyEntities")
    inferred_industry: str = Field(alias="inferredIndustry")
    operational_concepts: list[str] = Field(default_factory=list, alias="operationalConcepts")


class Metric(WireModel):
    label: str
    value: str


class DataTable(WireModel):
    id: str
    columns: list[str]
    rows: list[dict[str, str | int | float]] = Field(default_factory=list)

    def row_matrix(self) -> list[list[str]]:
        """Rows as a string matrix ordered by columns."""
        return [[str(row.get(column, "")) for column in self.columns] for row in self.rows]


class DataChart(WireModel):
    id: str
    type: str = "line"
    labels: list[str] = Field(default_factory=list)
    values: list[int | float] = Field(default_factory=list)


class DataModel(WireModel):
    """Structured data the UI should present."""

    metrics: list[Metric] = Field(default_factory=list)
    tables: list[DataTable] = Field(default_factory=list)
    charts: list[DataChart] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "DataModel":
        return cls()


class LayoutSection(WireModel):
    id: str
    type: SectionType = SectionType.MIXED
    title: str | None = None
    purpose: str | None = None
    components: list[str] = Field(default_factory=list)


class LayoutPlan(WireModel):
    sections: list[LayoutSection] = Field(default_factory=list)


class DomainModel(WireModel):
    product_or_system: str = Field(alias="productOrSystem")
    domain_type: str = Field(alias="domainType")
    user_role: str = Field(alias="userRole")
    primary_goal: str = Field(alias="primaryGoal")


class DataModelHints(WireModel):
    tables_needed: list[str] = Field(default_factory=list, alias="tablesNeeded")
    charts_needed: list[str] = Field(default_factory=list, alias="chartsNeeded")
    summary_metrics_needed: list[str] = Field(default_factory=list, alias="summaryMetricsNeeded")


class ReasoningOutput(WireModel):
    """Domain reasoning produced ahead of planning."""

    domain_model: DomainModel = Field(alias="domainModel")
    entities: list[str] = Field(default_factory=list)
    insights_required: list[str] = Field(default_factory=list, alias="insightsRequired")
    metrics_to_track: list[str] = Field(default_factory=list, alias="metricsToTrack")
    data_model_hints: DataModelHints = Field(default_factory=DataModelHints, alias="dataModelHints")


class Plan(WireModel):
    """What UI should exist.

    A resolved plan has an empty ``changes`` list; changes are transient edit
    instructions applied by the materializer.
    """

    plan_kind: PlanKind = Field(alias="type")
    layout_strategy: str = Field(alias="layout")
    components: list[PlanComponent] = Field(default_factory=list)
    changes: list[PlanChange] = Field(default_factory=list)
    intent_analysis: IntentAnalysis | None = Field(default=None, alias="intentAnalysis")
    domain_analysis: DomainAnalysis | None = Field(default=None, alias="domainAnalysis")
    reasoning: ReasoningOutput | None = None
    data_model: DataModel | None = Field(default=None, alias="dataModel")
    layout_plan: LayoutPlan | None = Field(default=None, alias="layoutPlan")

    @property
    def is_resolved(self) -> bool:
        return not self.changes

    def component_ids(self) -> list[str]:
        return [component.id for component in self.components]
