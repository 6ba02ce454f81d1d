"""
Request Tracing
Lightweight spans around pipeline requests and stage calls.
"""

import contextvars
import time
import uuid
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Iterator

import structlog

_trace_id: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="")
_span_id: contextvars.ContextVar[str] = contextvars.ContextVar("span_id", default="")


@dataclass
class Span:
    """A single traced operation."""

    trace_id: str
    span_id: str
    parent_id: str
    name: str
    service: str
    start_time: float
    end_time: float = 0.0
    duration: float = 0.0
    tags: dict[str, str] = field(default_factory=dict)
    error: Exception | None = None

    def finish(self) -> None:
        """Mark span as complete."""
        self.end_time = time.time()
        self.duration = self.end_time - self.start_time

    def set_tag(self, key: str, value: Any) -> None:
        self.tags[key] = str(value)

    def set_error(self, error: Exception) -> None:
        self.error = error


class Tracer:
    """Creates spans and logs them on completion."""

    def __init__(self, service: str, slow_threshold: float = 10.0) -> None:
        self.service = service
        self.slow_threshold = slow_threshold
        self.logger = structlog.get_logger(__name__)

    def start_span(self, name: str, **tags: str) -> tuple[Span, contextvars.Token, contextvars.Token]:
        trace_id = _trace_id.get() or str(uuid.uuid4())
        parent_id = _span_id.get()
        span = Span(
            trace_id=trace_id,
            span_id=str(uuid.uuid4()),
            parent_id=parent_id,
            name=name,
            service=self.service,
            start_time=time.time(),
            tags=tags,
        )
        trace_token = _trace_id.set(trace_id)
        span_token = _span_id.set(span.span_id)
        return span, trace_token, span_token

    def submit(self, span: Span) -> None:
        """Log a completed span."""
        fields = {
            "trace_id": span.trace_id,
            "span_id": span.span_id,
            "operation": span.name,
            "duration_ms": round(span.duration * 1000, 2),
            "service": span.service,
            **span.tags,
        }
        if span.parent_id:
            fields["parent_id"] = span.parent_id

        if span.error:
            self.logger.warning("span_completed_with_error", error=str(span.error), **fields)
        elif span.duration > self.slow_threshold:
            self.logger.warning("span_completed_slow", **fields)
        else:
            self.logger.debug("span_completed", **fields)


_tracer: Tracer | None = None


def init_tracer(service: str) -> Tracer:
    """Initialize global tracer."""
    global _tracer
    _tracer = Tracer(service)
    return _tracer


@contextmanager
def trace_operation(operation: str, **kwargs: Any) -> Iterator[Span | None]:
    """Trace a synchronous block. No-op until init_tracer() is called."""
    if _tracer is None:
        yield None
        return

    span, trace_token, span_token = _tracer.start_span(operation, **{k: str(v) for k, v in kwargs.items()})
    try:
        yield span
    except Exception as e:
        span.set_error(e)
        raise
    finally:
        span.finish()
        _span_id.reset(span_token)
        _trace_id.reset(trace_token)
        _tracer.submit(span)


@asynccontextmanager
async def trace_operation_async(operation: str, **kwargs: Any) -> AsyncGenerator[Span | None, None]:
    """Trace an async block. No-op until init_tracer() is called."""
    if _tracer is None:
        yield None
        return

    span, trace_token, span_token = _tracer.start_span(operation, **{k: str(v) for k, v in kwargs.items()})
    try:
        yield span
    except Exception as e:
        span.set_error(e)
        raise
    finally:
        span.finish()
        _span_id.reset(span_token)
        _trace_id.reset(trace_token)
        _tracer.submit(span)
