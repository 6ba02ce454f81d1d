"""
UI Pipeline
Orchestrates Generate (Reasoning -> Planning -> Generation) and Modify
(Planning -> materialize -> Generation -> Explanation) requests and commits the
result to the version store.
"""

from dataclasses import dataclass, field
from typing import Any

from ..agents import ExplainerAgent, GeneratorAgent, PlannerAgent, ReasoningAgent, StageRun
from ..clients import CompletionClient
from ..core.id import new_request_id
from ..core.logging_config import LogContext, get_logger
from ..markup.validator import MarkupValidation
from ..plan.diff import summarize
from ..plan.heuristics import is_data_model_aligned
from ..plan.materializer import apply_changes, materialize
from ..plan.models import Plan, PlanKind
from ..versions import Version, VersionStore

logger = get_logger(__name__)


@dataclass
class PipelineResult:
    """A committed version and how it was produced."""

    version: Version
    index: int
    plan: Plan
    markup: str
    explanation: str
    validation: MarkupValidation
    diff: dict[str, list[str]] | None = None
    runs: list[StageRun] = field(default_factory=list)

    def stage_trace(self) -> dict[str, list[str]]:
        trace: dict[str, list[str]] = {}
        for run in self.runs:
            trace.setdefault(run.stage, []).extend(step.state.value for step in run.trace)
        return trace

    def to_dict(self) -> dict[str, Any]:
        response: dict[str, Any] = {
            "success": True,
            "version": self.version.summary(self.index),
            "plan": self.plan.to_wire(),
            "code": self.markup,
            "explanation": self.explanation,
            "validation": {
                "componentCheck": self.validation.component_check,
                "propCheck": self.validation.prop_check,
            },
        }
        if self.diff is not None:
            response["diff"] = {"changedComponents": self.diff["changed"], **self.diff}
        return response


def coerce_modify(plan: Plan, previous: Plan) -> Plan:
    """Turn a planner result into a modify plan over the previous components."""
    if plan.plan_kind is PlanKind.MODIFY:
        return plan
    logger.info("plan_coerced_to_modify", returned=plan.plan_kind.value, changes=len(plan.changes))
    return plan.model_copy(
        update={
            "plan_kind": PlanKind.MODIFY,
            "components": list(previous.components),
            "changes": list(plan.changes),
        }
    )


class UIPipeline:
    """Runs the stage chain for one request at a time per call."""

    def __init__(self, client: CompletionClient, store: VersionStore) -> None:
        self.store = store
        self.reasoning = ReasoningAgent(client)
        self.planner = PlannerAgent(client)
        self.generator = GeneratorAgent(client)
        self.explainer = ExplainerAgent(client)

    async def generate(self, user_message: str, session_id: str | None = None) -> PipelineResult:
        """
        Build a new UI from a request.

        Raises:
            StageError: A stage failed with no fallback left
            MarkupRejectedError: Deterministic markup failed validation
            CompletionError: The completion service failed
        """
        with LogContext(request_id=new_request_id(), session_id=session_id):
            logger.info("generate_started", message_length=len(user_message))
            runs: list[StageRun] = []

            reasoning_run = await self.reasoning.run(user_message)
            plan_run = await self.planner.run(user_message, reasoning_run.value)
            runs += [reasoning_run, plan_run]

            data_model = plan_run.value.data_model
            if data_model is not None and not is_data_model_aligned(reasoning_run.value, data_model):
                logger.info("plan_realign", metrics=[metric.label for metric in data_model.metrics])
                reasoning_run = await self.reasoning.run(user_message, previous=reasoning_run.value)
                plan_run = await self.planner.run(user_message, reasoning_run.value)
                runs += [reasoning_run, plan_run]

            resolved = materialize(plan_run.value)
            generation_run = await self.generator.run(resolved)
            runs.append(generation_run)
            generated = generation_run.value

            version, index = await self.store.commit(resolved, generated.markup, "")
            logger.info(
                "generate_completed",
                version_id=version.id,
                components=len(resolved.components),
                deterministic=generated.deterministic,
            )
            return PipelineResult(
                version=version,
                index=index,
                plan=resolved,
                markup=generated.markup,
                explanation="",
                validation=generated.validation,
                runs=runs,
            )

    async def modify(self, user_message: str, previous: Plan, session_id: str | None = None) -> PipelineResult:
        """
        Apply a change request to an existing plan.

        Args:
            user_message: The change request
            previous: Plan of the version being modified
            session_id: Caller session, for logging

        Raises:
            StageError: A stage failed with no fallback left
            MarkupRejectedError: Deterministic markup failed validation
            CompletionError: The completion service failed
        """
        with LogContext(request_id=new_request_id(), session_id=session_id):
            logger.info("modify_started", message_length=len(user_message), components=len(previous.components))

            plan_run = await self.planner.run(user_message, previous_plan=previous)
            resolved = apply_changes(previous, coerce_modify(plan_run.value, previous))

            generation_run = await self.generator.run(resolved)
            generated = generation_run.value
            explanation_run = await self.explainer.run(resolved, generated.markup)

            version, index = await self.store.commit(resolved, generated.markup, explanation_run.value)
            diff = summarize(previous, resolved)
            logger.info("modify_completed", version_id=version.id, changed=diff["changed"])
            return PipelineResult(
                version=version,
                index=index,
                plan=resolved,
                markup=generated.markup,
                explanation=explanation_run.value,
                validation=generated.validation,
                diff=diff,
                runs=[plan_run, generation_run, explanation_run],
            )
