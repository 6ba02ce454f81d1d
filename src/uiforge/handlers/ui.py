"""UI Handler."""

import time
from typing import Any

import pydantic
from returns.result import Failure

from ..core.config import Settings
from ..core.errors import MarkupRejectedError, PlannerError, PlanShapeError, UIForgeError
from ..core.logging_config import get_logger
from ..core.validate import GenerateRequest, ModifyRequest, validate_prompt_safety
from ..markup.interpreter import SafeInterpreter
from ..monitoring import metrics_collector, trace_operation, trace_operation_async
from ..pipeline import PipelineResult, UIPipeline
from ..plan.normalizer import normalize_plan
from ..versions import VersionStore

logger = get_logger(__name__)

Response = tuple[int, dict[str, Any]]


def _failure(message: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "error": message, **extra}


def _describe(error: pydantic.ValidationError) -> str:
    details = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        details.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return "Invalid request: " + "; ".join(details)


class UIHandler:
    """Validates requests, runs the pipeline and maps errors to status codes."""

    def __init__(self, pipeline: UIPipeline, store: VersionStore, settings: Settings) -> None:
        self.pipeline = pipeline
        self.store = store
        self.settings = settings
        self.interpreter = SafeInterpreter()

    def _screen(self, message: str) -> str | None:
        check = validate_prompt_safety(message, self.settings.max_prompt_length)
        if isinstance(check, Failure):
            return check.failure().message
        return None

    def _error_response(self, operation: str, error: Exception) -> Response:
        if isinstance(error, MarkupRejectedError):
            metrics_collector.record_error("markup_rejected", "ui_handler")
            body = _failure(
                str(error),
                validation={
                    "componentCheck": error.validation.component_check,
                    "propCheck": error.validation.prop_check,
                },
            )
            if self.settings.expose_debug:
                body["debug"] = {"generatedCode": error.markup}
            logger.error("markup_rejected", operation=operation, errors=error.validation.errors)
            return 400, body

        if isinstance(error, (PlannerError, PlanShapeError)):
            metrics_collector.record_error(error.code.value, "ui_handler")
            logger.warning("plan_rejected", operation=operation, error=str(error))
            return 400, _failure(str(error))

        if isinstance(error, UIForgeError):
            metrics_collector.record_error(error.code.value, "ui_handler")
            logger.error("pipeline_failed", operation=operation, code=error.code.value, error=str(error))
            return 500, _failure(str(error))

        metrics_collector.record_error(type(error).__name__, "ui_handler")
        logger.exception("unexpected_error", operation=operation)
        return 500, _failure(str(error) or "Unknown error")

    async def generate(self, payload: Any) -> Response:
        """Handle a Generate request."""
        start_time = time.time()
        try:
            request = GenerateRequest.model_validate(payload)
        except pydantic.ValidationError as e:
            metrics_collector.record_request("generate", "validation_error", time.time() - start_time)
            return 400, _failure(_describe(e))

        unsafe = self._screen(request.user_message)
        if unsafe:
            metrics_collector.record_request("generate", "rejected", time.time() - start_time)
            logger.info("prompt_rejected", reason=unsafe)
            return 400, _failure(unsafe)

        try:
            async with trace_operation_async("ui_generate", session=request.session_id or ""):
                result = await self.pipeline.generate(request.user_message, request.session_id)
        except Exception as e:
            status, body = self._error_response("generate", e)
            metrics_collector.record_request("generate", "error", time.time() - start_time)
            return status, body

        metrics_collector.record_request("generate", "success", time.time() - start_time)
        return 200, self._success(result)

    async def modify(self, payload: Any) -> Response:
        """Handle a Modify request."""
        start_time = time.time()
        try:
            request = ModifyRequest.model_validate(payload)
        except pydantic.ValidationError as e:
            metrics_collector.record_request("modify", "validation_error", time.time() - start_time)
            return 400, _failure(_describe(e))

        unsafe = self._screen(request.user_message)
        if unsafe:
            metrics_collector.record_request("modify", "rejected", time.time() - start_time)
            logger.info("prompt_rejected", reason=unsafe)
            return 400, _failure(unsafe)

        try:
            previous = normalize_plan(request.current_version.plan)
            async with trace_operation_async("ui_modify", session=request.session_id or ""):
                result = await self.pipeline.modify(request.user_message, previous, request.session_id)
        except Exception as e:
            status, body = self._error_response("modify", e)
            metrics_collector.record_request("modify", "error", time.time() - start_time)
            return status, body

        metrics_collector.record_request("modify", "success", time.time() - start_time)
        return 200, self._success(result)

    def _success(self, result: PipelineResult) -> dict[str, Any]:
        body = result.to_dict()
        if self.settings.expose_debug:
            body["debug"] = {"stages": result.stage_trace()}
        return body

    def versions(self) -> Response:
        return 200, {
            "success": True,
            "currentIndex": self.store.current_index,
            "versions": [version.summary(index) for index, version in enumerate(self.store.history())],
        }

    async def rollback(self) -> Response:
        version = await self.store.rollback()
        if version is None:
            return 404, _failure("No versions committed.")
        return 200, {"success": True, "currentIndex": self.store.current_index, "version": version.to_dict()}

    async def select(self, index: int) -> Response:
        try:
            version = await self.store.select_version(index)
        except IndexError as e:
            return 404, _failure(str(e))
        return 200, {"success": True, "currentIndex": index, "version": version.to_dict()}

    def render_current(self) -> Response:
        """Safe-interpret the current version's markup into a render tree."""
        version = self.store.current()
        if version is None:
            return 404, _failure("No versions committed.")

        with trace_operation("ui_render", version=version.id):
            result = self.interpreter.render(version.markup)
        body = {"success": result.ok, "versionId": version.id, **result.to_dict()}
        return (200 if result.ok else 422), body
