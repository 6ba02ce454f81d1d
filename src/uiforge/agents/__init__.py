"""Generation stages and their retry state machine."""

from .explainer import ExplainerAgent
from .generator import GeneratedMarkup, GeneratorAgent
from .planner import PlannerAgent, finalize_plan, parse_plan
from .reasoning import ReasoningAgent, parse_reasoning
from .stage import StageMachine, StagePolicy, StageRun, StageState, Transition

__all__ = [
    "ExplainerAgent",
    "GeneratedMarkup",
    "GeneratorAgent",
    "PlannerAgent",
    "ReasoningAgent",
    "StageMachine",
    "StagePolicy",
    "StageRun",
    "StageState",
    "Transition",
    "finalize_plan",
    "parse_plan",
    "parse_reasoning",
]
