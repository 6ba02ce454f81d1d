"""Reasoning Agent - describes the user's domain before any UI is planned."""

from ..clients import CompletionClient
from ..core.errors import ErrorCode, ReasoningError
from ..core.json import JSONParseError, extract_json
from ..core.logging_config import get_logger
from ..plan.heuristics import fallback_reasoning
from ..plan.models import ReasoningOutput
from ..plan.normalizer import normalize_reasoning
from .prompts import build_reasoning_prompt
from .stage import StageMachine, StagePolicy, StageRun

logger = get_logger(__name__)

REASONING_POLICY = StagePolicy(
    retry_on=frozenset({ErrorCode.INVALID_JSON, ErrorCode.INVALID_SHAPE}),
    fallback_on=frozenset({ErrorCode.INVALID_JSON, ErrorCode.INVALID_SHAPE}),
)


def parse_reasoning(raw: str) -> ReasoningOutput:
    """
    Reduce completion text to a ReasoningOutput.

    Raises:
        ReasoningError: invalid_json when no object can be extracted,
            invalid_shape when required fields are missing
    """
    try:
        value = extract_json(raw)
    except JSONParseError as e:
        raise ReasoningError("Reasoning returned invalid JSON.", ErrorCode.INVALID_JSON) from e

    reasoning = normalize_reasoning(value)
    if reasoning is None:
        raise ReasoningError("Reasoning returned an invalid shape.", ErrorCode.INVALID_SHAPE)
    return reasoning


class ReasoningAgent:
    """Runs the Reasoning stage."""

    def __init__(self, client: CompletionClient) -> None:
        self.client = client
        self.machine: StageMachine[ReasoningOutput] = StageMachine("reasoning", REASONING_POLICY)

    async def run(self, user_message: str, previous: ReasoningOutput | None = None) -> StageRun[ReasoningOutput]:
        """
        Produce domain reasoning for a request.

        Args:
            user_message: The user's request
            previous: Stale reasoning to revise, when re-running after a failed alignment check
        """
        prompt = build_reasoning_prompt(user_message, previous)

        async def attempt(_state) -> ReasoningOutput:
            raw = await self.client.acomplete(prompt)
            return parse_reasoning(raw)

        def fallback(error: ReasoningError) -> ReasoningOutput:
            logger.warning("reasoning_fallback", code=error.code.value)
            return fallback_reasoning(user_message)

        return await self.machine.run(attempt, fallback)
