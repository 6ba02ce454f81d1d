"""Plan model, normalization, validation, materialization and diffing."""

from .diff import changed_ids, summarize
from .materializer import apply_changes, materialize, unique_id
from .models import (
    ChangeKind,
    DataModel,
    DomainAnalysis,
    IntentAnalysis,
    IntentType,
    LayoutPlan,
    Plan,
    PlanChange,
    PlanComponent,
    PlanKind,
    ReasoningOutput,
)
from .normalizer import normalize_plan, normalize_props, normalize_reasoning
from .validator import PlanValidation, validate_plan

__all__ = [
    "ChangeKind",
    "DataModel",
    "DomainAnalysis",
    "IntentAnalysis",
    "IntentType",
    "LayoutPlan",
    "Plan",
    "PlanChange",
    "PlanComponent",
    "PlanKind",
    "PlanValidation",
    "ReasoningOutput",
    "apply_changes",
    "changed_ids",
    "materialize",
    "normalize_plan",
    "normalize_props",
    "normalize_reasoning",
    "summarize",
    "unique_id",
    "validate_plan",
]
