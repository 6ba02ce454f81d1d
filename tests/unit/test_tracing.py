"""Tests for request tracing spans."""

import pytest

from uiforge.core import tracing
from uiforge.core.tracing import init_tracer, trace_operation, trace_operation_async


@pytest.fixture
def tracer():
    yield init_tracer("uiforge-test")
    tracing._tracer = None


@pytest.mark.unit
def test_no_op_without_tracer():
    with trace_operation("noop") as span:
        assert span is None


@pytest.mark.unit
def test_sync_span_records_tags_and_duration(tracer):
    with trace_operation("ui_render", version="ver_1") as span:
        pass

    assert span.name == "ui_render"
    assert span.service == "uiforge-test"
    assert span.tags == {"version": "ver_1"}
    assert span.duration >= 0.0
    assert span.error is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_nested_spans_share_trace(tracer):
    async with trace_operation_async("outer") as outer:
        async with trace_operation_async("inner", state="attempt") as inner:
            pass

    assert inner.trace_id == outer.trace_id
    assert inner.parent_id == outer.span_id
    assert outer.parent_id == ""


@pytest.mark.unit
@pytest.mark.asyncio
async def test_span_records_error(tracer):
    with pytest.raises(ValueError):
        async with trace_operation_async("failing") as span:
            raise ValueError("boom")

    assert isinstance(span.error, ValueError)
