"""
Planner Agent
Turns a request plus domain reasoning into a schema-checked Plan.

Parsed plans are finalized (analyses inferred, data model synthesized or
replaced, placeholders enriched, layout sections built). Sparse plans are
re-requested once with a hint. Structural failures retry once and then fall
back to the keyword-driven heuristic plan.
"""

from ..clients import CompletionClient
from ..core.errors import STRUCTURAL_CODES, ErrorCode, PlannerError, PlanShapeError
from ..core.json import JSONParseError, extract_json
from ..core.logging_config import get_logger
from ..plan.heuristics import (
    build_layout_plan,
    components_from_data_model,
    domain_from_reasoning,
    enrich_components,
    fallback_reasoning,
    heuristic_plan,
    infer_intent,
    is_data_model_aligned,
    is_placeholder_card,
    needs_structured_data,
    synthesize_data_model,
    wants_data_components,
)
from ..plan.models import DataModel, Plan, PlanKind, ReasoningOutput
from ..plan.normalizer import normalize_plan
from ..plan.validator import validate_plan
from ..schema import ComponentKind
from .prompts import SPARSE_PLAN_HINT, build_planner_prompt
from .stage import StageMachine, StagePolicy, StageRun

logger = get_logger(__name__)

PLANNER_POLICY = StagePolicy(retry_on=STRUCTURAL_CODES, fallback_on=STRUCTURAL_CODES)

# Fewer meaningful components than this triggers the sparse-plan retry
MIN_MEANINGFUL_COMPONENTS = 3


def _first(*values):
    return next((value for value in values if value is not None), None)


def parse_plan(raw: str) -> Plan:
    """
    Reduce completion text to a validated Plan.

    Raises:
        PlannerError: invalid_json, invalid_plan (normalizer rejected it) or
            invalid_shape (schema violations)
    """
    try:
        value = extract_json(raw)
    except JSONParseError as e:
        raise PlannerError("Planner returned invalid JSON.", ErrorCode.INVALID_JSON) from e

    try:
        plan = normalize_plan(value)
    except PlanShapeError as e:
        raise PlannerError(f"Planner returned an invalid plan shape: {e}", ErrorCode.INVALID_PLAN) from e

    validation = validate_plan(plan)
    if not validation:
        raise PlannerError(
            "Planner returned a plan that violates the component schema: " + "; ".join(validation.violations),
            ErrorCode.INVALID_SHAPE,
        )
    return plan


def finalize_plan(
    plan: Plan,
    user_message: str,
    reasoning: ReasoningOutput,
    previous: Plan | None = None,
) -> Plan:
    """
    Fill in everything a parsed plan left out.

    Args:
        plan: Parsed plan
        user_message: The user's request (keyword signals)
        reasoning: Reasoning from the Reasoning stage
        previous: Previous plan in the modify flow
    """
    resolved_reasoning = plan.reasoning or reasoning
    domain = _first(
        plan.domain_analysis,
        previous.domain_analysis if previous else None,
    ) or domain_from_reasoning(resolved_reasoning)
    intent = _first(
        plan.intent_analysis,
        previous.intent_analysis if previous else None,
    ) or infer_intent(user_message)
    intent = intent.model_copy(update={"domain": domain.domain})

    structured = needs_structured_data(intent.intent_type)
    wants_data = wants_data_components(user_message)

    data_model = _first(plan.data_model, previous.data_model if previous else None)
    if data_model is None:
        data_model = synthesize_data_model(resolved_reasoning) if structured else DataModel.empty()
    if structured and not is_data_model_aligned(resolved_reasoning, data_model):
        logger.info("plan_data_model_replaced", reason="misaligned")
        data_model = synthesize_data_model(resolved_reasoning)

    components = list(plan.components)
    if plan.plan_kind in (PlanKind.NEW, PlanKind.REGENERATE) and structured:
        if components:
            components = enrich_components(components, data_model, domain, resolved_reasoning)
        else:
            components = components_from_data_model(data_model, domain, resolved_reasoning)

    if not structured and not wants_data:
        components = [c for c in components if c.kind not in (ComponentKind.CHART, ComponentKind.TABLE)]
        data_model = DataModel.empty()

    if not structured:
        components = [c for c in components if not is_placeholder_card(c)]

    layout_plan = _first(plan.layout_plan, previous.layout_plan if previous else None)
    if layout_plan is None:
        layout_plan = build_layout_plan(components, data_model)

    return plan.model_copy(
        update={
            "layout_strategy": plan.layout_strategy or intent.layout_strategy,
            "components": components,
            "intent_analysis": intent,
            "domain_analysis": domain,
            "reasoning": resolved_reasoning,
            "data_model": data_model,
            "layout_plan": layout_plan,
        }
    )


def is_sparse(plan: Plan, user_message: str) -> bool:
    """A non-data new plan with too few meaningful components."""
    intent = plan.intent_analysis
    if intent is None or plan.plan_kind is PlanKind.MODIFY:
        return False
    if needs_structured_data(intent.intent_type) or wants_data_components(user_message):
        return False
    meaningful = [c for c in plan.components if not is_placeholder_card(c)]
    return len(meaningful) < MIN_MEANINGFUL_COMPONENTS


class PlannerAgent:
    """Runs the Planning stage."""

    def __init__(self, client: CompletionClient) -> None:
        self.client = client
        self.machine: StageMachine[Plan] = StageMachine("planning", PLANNER_POLICY)

    async def run(
        self,
        user_message: str,
        reasoning: ReasoningOutput | None = None,
        previous_plan: Plan | None = None,
    ) -> StageRun[Plan]:
        """
        Plan a request.

        Args:
            user_message: The user's request
            reasoning: Output of the Reasoning stage
            previous_plan: Plan being modified, if any

        Raises:
            CompletionError: The completion service failed
        """
        reasoning = _first(
            reasoning,
            previous_plan.reasoning if previous_plan else None,
        ) or fallback_reasoning(user_message)
        prompt = build_planner_prompt(user_message, previous_plan, reasoning)
        sparse_prompt = build_planner_prompt(user_message, previous_plan, reasoning, SPARSE_PLAN_HINT)

        async def request(text: str) -> Plan:
            raw = await self.client.acomplete(text)
            return finalize_plan(parse_plan(raw), user_message, reasoning, previous_plan)

        async def attempt(_state) -> Plan:
            plan = await request(prompt)
            if is_sparse(plan, user_message):
                logger.info("plan_sparse_retry", components=len(plan.components))
                plan = await request(sparse_prompt)
            return plan

        def fallback(error: PlannerError) -> Plan:
            logger.warning("planner_fallback", code=error.code.value)
            return heuristic_plan(user_message, reasoning, previous_plan)

        return await self.machine.run(attempt, fallback)
