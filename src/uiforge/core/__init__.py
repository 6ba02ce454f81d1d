"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .errors import (
    ErrorCode,
    UIForgeError,
    StageError,
    ReasoningError,
    PlannerError,
    GeneratorError,
    ExplainerError,
    MarkupRejectedError,
    CompletionError,
    RateLimitError,
    PlanShapeError,
)
from .validate import (
    ValidationResult,
    GenerateRequest,
    ModifyRequest,
    CurrentVersion,
    validate_prompt_safety,
)
from .logging_config import configure_logging, get_logger, LogContext
from .json import (
    extract_json,
    safe_json_dumps,
    strip_code_fences,
    JSONParseError,
    validate_json_depth,
)
from .id import new_request_id, new_version_id


def create_container(settings: Settings | None = None, client=None):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings, client)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "UIForgeError",
    "StageError",
    "ReasoningError",
    "PlannerError",
    "GeneratorError",
    "ExplainerError",
    "MarkupRejectedError",
    "CompletionError",
    "RateLimitError",
    "PlanShapeError",
    # Validation
    "ValidationResult",
    "GenerateRequest",
    "ModifyRequest",
    "CurrentVersion",
    "validate_prompt_safety",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # JSON
    "extract_json",
    "safe_json_dumps",
    "strip_code_fences",
    "JSONParseError",
    "validate_json_depth",
    # IDs
    "new_request_id",
    "new_version_id",
    # DI
    "create_container",
]
