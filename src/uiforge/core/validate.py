"""Request validation and the pre-flight prompt safety screen."""

import re
from dataclasses import dataclass
from typing import Any
from returns.result import Result, Success, Failure

from pydantic import BaseModel, Field, field_validator, ConfigDict

from ..schema import ALLOWED_COMPONENTS, ComponentKind
from .json import JSONParseError, validate_json_depth

# Validation limits
DEFAULT_MAX_PROMPT_LENGTH = 2000
MAX_PLAN_DEPTH = 20

DISALLOWED_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"<\s*script", re.IGNORECASE), "Script tags are not allowed."),
    (re.compile(r"\bimport\b", re.IGNORECASE), "Imports are not allowed."),
    (re.compile(r"\braw\s+html\b", re.IGNORECASE), "Raw HTML is not allowed."),
    (re.compile(r"\binline\s+style\b", re.IGNORECASE), "Inline styles are not allowed."),
    (re.compile(r"style\s*=", re.IGNORECASE), "Inline styles are not allowed."),
)

COMPONENT_SUFFIXES = tuple(kind.value for kind in ComponentKind)

_CAPITALIZED_TOKEN = re.compile(r"\b[A-Z][A-Za-z0-9]*\b")


@dataclass(frozen=True)
class ValidationResult:
    """Validation error with details (for Result pattern)."""

    message: str
    field: str | None = None
    value: Any | None = None


class RequestValidator(BaseModel):
    """Base validator with strict configuration."""

    model_config = ConfigDict(
        strict=True, validate_assignment=True, extra="forbid", frozen=True, populate_by_name=True
    )


def _stripped(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("Message cannot be empty")
    return stripped


class GenerateRequest(RequestValidator):
    """Validated Generate request."""

    user_message: str = Field(min_length=1, alias="userMessage")
    session_id: str | None = Field(default=None, alias="sessionId")

    @field_validator("user_message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        return _stripped(v)


class CurrentVersion(RequestValidator):
    """The caller's copy of the version being modified."""

    id: str
    plan: dict[str, Any]
    code: str = ""

    @field_validator("plan")
    @classmethod
    def validate_plan_depth(cls, v: dict[str, Any]) -> dict[str, Any]:
        try:
            validate_json_depth(v, max_depth=MAX_PLAN_DEPTH)
        except JSONParseError as e:
            raise ValueError(str(e)) from e
        return v


class ModifyRequest(RequestValidator):
    """Validated Modify request."""

    user_message: str = Field(min_length=1, alias="userMessage")
    session_id: str | None = Field(default=None, alias="sessionId")
    current_version: CurrentVersion = Field(alias="currentVersion")

    @field_validator("user_message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        return _stripped(v)


def find_unknown_component(message: str) -> str | None:
    """First capitalized token ending in a component name that is not itself a component."""
    for token in _CAPITALIZED_TOKEN.findall(message):
        if token.endswith(COMPONENT_SUFFIXES) and token not in ALLOWED_COMPONENTS:
            return token
    return None


def validate_prompt_safety(
    message: str, max_length: int = DEFAULT_MAX_PROMPT_LENGTH
) -> Result[None, ValidationResult]:
    """
    Screen free text before it reaches any stage.

    Args:
        message: The user's request
        max_length: Character ceiling

    Returns:
        Success(None), or Failure with a user-facing message
    """
    if len(message) > max_length:
        return Failure(ValidationResult("Prompt too long.", field="userMessage", value=len(message)))

    trimmed = message.strip()
    for pattern, error in DISALLOWED_PATTERNS:
        if pattern.search(trimmed):
            return Failure(ValidationResult(error, field="userMessage"))

    unknown = find_unknown_component(trimmed)
    if unknown:
        return Failure(
            ValidationResult(f"Unknown component requested: {unknown}.", field="userMessage", value=unknown)
        )

    return Success(None)
