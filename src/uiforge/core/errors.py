"""Error taxonomy shared by every pipeline stage."""

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..markup.validator import MarkupValidation


class ErrorCode(str, Enum):
    """Machine-readable failure classes."""

    INVALID_JSON = "invalid_json"
    INVALID_SHAPE = "invalid_shape"
    INVALID_PLAN = "invalid_plan"
    UNPARSEABLE_MARKUP = "unparseable_markup"
    EMPTY_OUTPUT = "empty_output"
    COMPLETION_FAILED = "completion_failed"
    RATE_LIMITED = "rate_limited"


# Failures a single re-invocation of the same completion call may fix
STRUCTURAL_CODES = frozenset({ErrorCode.INVALID_JSON, ErrorCode.INVALID_SHAPE, ErrorCode.INVALID_PLAN})


class UIForgeError(Exception):
    """Base class for all service errors."""

    code: ErrorCode = ErrorCode.COMPLETION_FAILED

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "message": str(self)}


class StageError(UIForgeError):
    """A generation stage could not reduce model output to a trusted structure."""

    stage = "stage"

    def __init__(self, message: str, code: ErrorCode) -> None:
        super().__init__(message)
        self.code = code

    @property
    def structural(self) -> bool:
        return self.code in STRUCTURAL_CODES


class ReasoningError(StageError):
    stage = "reasoning"


class PlannerError(StageError):
    stage = "planning"


class GeneratorError(StageError):
    stage = "generation"


class ExplainerError(StageError):
    stage = "explanation"


class MarkupRejectedError(UIForgeError):
    """Even the deterministic markup failed validation."""

    code = ErrorCode.UNPARSEABLE_MARKUP

    def __init__(self, message: str, validation: "MarkupValidation", markup: str = "") -> None:
        super().__init__(message)
        self.validation = validation
        self.markup = markup


class CompletionError(UIForgeError):
    """Completion service call failed (transport, status, or empty body)."""

    code = ErrorCode.COMPLETION_FAILED

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(CompletionError):
    """Completion service kept answering 429 after all attempts."""

    code = ErrorCode.RATE_LIMITED

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class PlanShapeError(UIForgeError):
    """A value could not be normalized into a Plan."""

    code = ErrorCode.INVALID_PLAN
