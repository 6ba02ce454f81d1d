"""
Stage Prompts
Prompt builders for the Reasoning, Planning, Generation and Explanation stages.
Each builder is a pure function of its inputs.
"""

from ..core.json import safe_json_dumps
from ..plan.models import Plan, ReasoningOutput
from ..schema import ALLOWED_COMPONENTS, describe_registry

# ============================================================================
# Shared Vocabulary
# ============================================================================

COMPONENT_LIST = ", ".join(ALLOWED_COMPONENTS)
COMPONENT_SCHEMA = describe_registry()

SPARSE_PLAN_HINT = 'Return at least 4 components across multiple sections. Avoid placeholder titles like "Card".'

# ============================================================================
# Reasoning
# ============================================================================

REASONING_PROMPT = """You are a domain reasoning agent for a UI builder.

Rules:
- Output STRICT JSON only. No markdown, no commentary.
- Describe the product or system the user is asking for, not the UI.
- Name concrete entities, metrics and insights from the user's domain.

Return a single JSON object with this exact shape:
{
  "domainModel": {
    "productOrSystem": "<string>",
    "domainType": "<string>",
    "userRole": "<string>",
    "primaryGoal": "<string>"
  },
  "entities": ["<string>"],
  "insightsRequired": ["<string>"],
  "metricsToTrack": ["<string>"],
  "dataModelHints": {
    "tablesNeeded": ["<string>"],
    "chartsNeeded": ["<string>"],
    "summaryMetricsNeeded": ["<string>"]
  }
}"""

# ============================================================================
# Planning
# ============================================================================

PLANNER_PROMPT = f"""You are a UI planning agent.

Rules:
- Output STRICT JSON only.
- Do not generate code.
- Use only allowed components:
  {COMPONENT_LIST}.
- Use only the allowed props for each component:
{COMPONENT_SCHEMA}
- Do not invent props (e.g., use Card.title, not Card.header).
- When a previous plan is given, return "type": "modify" and describe edits in "changes".

You must return a single JSON object with this exact shape:
{{
  "type": "new" | "modify" | "regenerate",
  "layout": "<layout-name>",
  "components": [
    {{
      "id": "<string>",
      "type": "<AllowedComponent>",
      "props": {{ "<prop>": "<value>" }}
    }}
  ],
  "changes": [
    {{
      "id": "<string>",
      "type": "add" | "update" | "remove",
      "componentType": "<AllowedComponent>",
      "props": {{ "<prop>": "<value>" }}
    }}
  ],
  "intentAnalysis": {{
    "intentType": "report" | "dashboard" | "form" | "marketing" | "marketing_page" | "crud",
    "domain": "<string>",
    "complexity": "simple" | "moderate" | "complex",
    "layoutStrategy": "<string>"
  }},
  "dataModel": {{
    "metrics": [{{ "label": "<string>", "value": "<string>" }}],
    "tables": [{{ "id": "<string>", "columns": ["<string>"], "rows": [{{ "<column>": "<value>" }}] }}],
    "charts": [{{ "id": "<string>", "type": "line" | "bar", "labels": ["<string>"], "values": [0] }}]
  }}
}}

Return JSON only. No markdown, no commentary.

Interpret the user's request and generate a structured UI plan."""

# ============================================================================
# Generation
# ============================================================================

GENERATOR_PROMPT = """You are a deterministic UI markup generator.

Rules:
- Use only allowed components and their allowed props.
- Do not create new components.
- Do not use inline styles.
- Do not use imports or external UI libraries.
- Use only literal attribute values: strings, numbers, booleans, arrays.
- Preserve existing components if modifying.
- Return a single element or fragment that starts with < (no markdown fences, no commentary)."""

# ============================================================================
# Explanation
# ============================================================================

EXPLAINER_PROMPT = """You are a UI explanation agent.

Explain:
- Why layout was chosen
- Why components were selected
- What was modified (if applicable)

Return clear plain English explanation."""


def _dump(value: Plan | ReasoningOutput | None) -> str:
    if value is None:
        return "null"
    return safe_json_dumps(value.to_wire(), indent=2)


def build_reasoning_prompt(user_message: str, previous: ReasoningOutput | None = None) -> str:
    """
    Build the reasoning prompt.

    Args:
        user_message: The user's request
        previous: Earlier reasoning to revise (alignment re-run)
    """
    prompt = f"{REASONING_PROMPT}\n\nUser message:\n{user_message}\n"
    if previous is not None:
        prompt += (
            "\nPrevious reasoning (the resulting metrics did not match it; "
            f"revise it to be specific to the request):\n{_dump(previous)}\n"
        )
    return prompt + "\nReturn JSON only."


def build_planner_prompt(
    user_message: str,
    previous_plan: Plan | None = None,
    reasoning: ReasoningOutput | None = None,
    hint: str | None = None,
) -> str:
    """Build the planner prompt with optional previous plan, reasoning and retry hint."""
    parts = [
        PLANNER_PROMPT,
        f"User message:\n{user_message}",
        f"Domain reasoning:\n{_dump(reasoning)}",
        f"Previous plan:\n{_dump(previous_plan)}",
    ]
    if hint:
        parts.append(f"Additional requirement:\n{hint}")
    parts.append("Return JSON only.")
    return "\n\n".join(parts)


def build_generator_prompt(plan: Plan) -> str:
    return f"{GENERATOR_PROMPT}\n\nAllowed components:\n{COMPONENT_SCHEMA}\n\nPlan:\n{_dump(plan)}\n\nReturn markup only."


def build_explainer_prompt(plan: Plan, markup: str) -> str:
    return f"{EXPLAINER_PROMPT}\n\nPlan:\n{_dump(plan)}\n\nGenerated Markup:\n{markup}\n"
