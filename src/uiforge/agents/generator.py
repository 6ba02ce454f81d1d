"""Generator Agent - markup from a resolved plan, with deterministic fallback."""

from dataclasses import dataclass

from ..clients import CompletionClient
from ..core.errors import ErrorCode, GeneratorError, MarkupRejectedError
from ..core.json import strip_code_fences
from ..core.logging_config import get_logger
from ..markup.builder import build_markup
from ..markup.validator import MarkupValidation, validate_markup
from ..monitoring import metrics_collector
from ..plan.models import Plan
from .prompts import build_generator_prompt
from .stage import StageMachine, StagePolicy, StageRun

logger = get_logger(__name__)

GENERATOR_POLICY = StagePolicy(
    retry_on=frozenset({ErrorCode.UNPARSEABLE_MARKUP}),
    fallback_on=frozenset({ErrorCode.UNPARSEABLE_MARKUP, ErrorCode.INVALID_SHAPE}),
)

FALLBACK_RAW = "fallback"


@dataclass
class GeneratedMarkup:
    """Markup that passed the whitelist validator."""

    markup: str
    validation: MarkupValidation
    raw: str

    @property
    def deterministic(self) -> bool:
        return self.raw == FALLBACK_RAW


class GeneratorAgent:
    """Runs the Generation stage."""

    def __init__(self, client: CompletionClient) -> None:
        self.client = client
        self.machine: StageMachine[GeneratedMarkup] = StageMachine("generation", GENERATOR_POLICY)

    async def run(self, plan: Plan) -> StageRun[GeneratedMarkup]:
        """
        Generate validated markup for a resolved plan.

        Unparseable output is regenerated once. Any remaining validation
        failure switches to the deterministic builder.

        Raises:
            GeneratorError: The model returned empty markup
            MarkupRejectedError: Even the deterministic markup failed validation
        """
        prompt = build_generator_prompt(plan)
        last: list[GeneratedMarkup] = []

        async def attempt(_state) -> GeneratedMarkup:
            raw = await self.client.acomplete(prompt)
            markup = strip_code_fences(raw)
            if not markup:
                raise GeneratorError("Generator returned empty markup.", ErrorCode.EMPTY_OUTPUT)

            validation = validate_markup(markup)
            result = GeneratedMarkup(markup=markup, validation=validation, raw=raw)
            if validation.is_valid:
                return result

            last.append(result)
            metrics_collector.record_markup_failure(validation.component_check, validation.prop_check)
            code = ErrorCode.UNPARSEABLE_MARKUP if validation.unparseable else ErrorCode.INVALID_SHAPE
            raise GeneratorError(" ".join(validation.errors), code)

        def fallback(error: GeneratorError) -> GeneratedMarkup:
            markup = build_markup(plan)
            validation = validate_markup(markup)
            if not validation.is_valid:
                metrics_collector.record_markup_failure(validation.component_check, validation.prop_check)
                logger.error("deterministic_markup_rejected", errors=validation.errors)
                rejected = last[-1] if last else None
                raise MarkupRejectedError(
                    " ".join(validation.errors),
                    validation,
                    markup=rejected.markup if rejected else markup,
                )
            logger.info("generation_fallback", code=error.code.value, components=len(plan.components))
            return GeneratedMarkup(markup=markup, validation=validation, raw=FALLBACK_RAW)

        return await self.machine.run(attempt, fallback)
