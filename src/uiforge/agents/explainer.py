"""Explainer Agent - plain-language summary of a generated version."""

from ..clients import CompletionClient
from ..core.errors import ErrorCode, ExplainerError
from ..core.json import strip_code_fences
from ..plan.models import Plan
from .prompts import build_explainer_prompt
from .stage import StageMachine, StagePolicy, StageRun

EXPLAINER_POLICY = StagePolicy(retry_on=frozenset({ErrorCode.EMPTY_OUTPUT}))


class ExplainerAgent:
    """Runs the Explanation stage. There is no fallback."""

    def __init__(self, client: CompletionClient) -> None:
        self.client = client
        self.machine: StageMachine[str] = StageMachine("explanation", EXPLAINER_POLICY)

    async def run(self, plan: Plan, markup: str) -> StageRun[str]:
        prompt = build_explainer_prompt(plan, markup)

        async def attempt(_state) -> str:
            explanation = strip_code_fences(await self.client.acomplete(prompt))
            if not explanation:
                raise ExplainerError("Explainer returned empty text.", ErrorCode.EMPTY_OUTPUT)
            return explanation

        return await self.machine.run(attempt)
