"""Tests for the UI handler: request validation, status mapping and version routes."""

import pytest

from uiforge.core import Settings
from uiforge.core.errors import CompletionError, ErrorCode, MarkupRejectedError, PlannerError
from uiforge.handlers import UIHandler
from uiforge.markup import MarkupValidation

PREVIOUS_PLAN = {
    "type": "new",
    "layout": "basic",
    "components": [{"id": "card-1", "type": "Card", "props": {"id": "card-1", "title": "Revenue", "children": "$1"}}],
}

MODIFY_PLAN_JSON = """{
  "type": "modify",
  "layout": "basic",
  "changes": [{"id": "card-1", "type": "update", "componentType": "Card", "props": {"title": "Income"}}]
}"""


class RaisingPipeline:
    """Pipeline stand-in that fails every request with the given error."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    async def generate(self, user_message, session_id=None):
        raise self.error

    async def modify(self, user_message, previous, session_id=None):
        raise self.error


@pytest.fixture
def make_handler(make_pipeline, store, settings):
    def factory(*responses, settings_override=None):
        pipeline, client = make_pipeline(*responses)
        return UIHandler(pipeline, store, settings_override or settings), client

    return factory


def raising_handler(error, store, expose_debug=False):
    settings = Settings(llm_api_key="test-api-key", expose_debug=expose_debug)
    return UIHandler(RaisingPipeline(error), store, settings)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_generate_success(make_handler, reasoning_json, dashboard_plan_json, dashboard_markup):
    handler, client = make_handler(reasoning_json, dashboard_plan_json, dashboard_markup)

    status, body = await handler.generate({"userMessage": "Build a sales dashboard", "sessionId": "s-1"})

    assert status == 200
    assert body["success"] is True
    assert body["code"] == dashboard_markup
    assert body["explanation"] == ""
    assert body["version"]["index"] == 0
    assert body["validation"] == {"componentCheck": True, "propCheck": True}
    assert [c["id"] for c in body["plan"]["components"]] == ["metric-revenue", "metric-win-rate", "deals"]
    assert "debug" not in body
    assert client.calls == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_generate_debug_includes_stage_trace(make_handler, reasoning_json, dashboard_plan_json, dashboard_markup):
    debug_settings = Settings(llm_api_key="test-api-key", expose_debug=True)
    handler, _ = make_handler(reasoning_json, dashboard_plan_json, dashboard_markup, settings_override=debug_settings)

    status, body = await handler.generate({"userMessage": "Build a sales dashboard"})

    assert status == 200
    assert body["debug"]["stages"] == {
        "reasoning": ["attempt", "done"],
        "planning": ["attempt", "done"],
        "generation": ["attempt", "done"],
    }


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"userMessage": ""}, {"userMessage": 7}, "not an object"])
async def test_generate_invalid_request(make_handler, payload):
    handler, client = make_handler()

    status, body = await handler.generate(payload)

    assert status == 400
    assert body["success"] is False
    assert body["error"].startswith("Invalid request:")
    assert client.calls == 0


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message,error",
    [
        ("Add a <script> tag", "Script tags are not allowed."),
        ("x" * 2001, "Prompt too long."),
        ("Add a FancyButton", "Unknown component requested: FancyButton."),
    ],
)
async def test_generate_rejects_unsafe_prompt(make_handler, message, error):
    handler, client = make_handler()

    status, body = await handler.generate({"userMessage": message})

    assert status == 400
    assert body == {"success": False, "error": error}
    assert client.calls == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_completion_failure_is_500(make_handler):
    handler, _ = make_handler(CompletionError("upstream down", status_code=503))

    status, body = await handler.generate({"userMessage": "Build a sales dashboard"})

    assert status == 500
    assert body == {"success": False, "error": "upstream down"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_planner_error_is_400(store):
    handler = raising_handler(PlannerError("bad plan", ErrorCode.INVALID_PLAN), store)

    status, body = await handler.generate({"userMessage": "Build a sales dashboard"})

    assert status == 400
    assert body["error"] == "bad plan"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_markup_rejected_reports_facets(store):
    validation = MarkupValidation.unparseable_result("bad")
    error = MarkupRejectedError("Invalid markup", validation, markup="<Card")

    status, body = await raising_handler(error, store).generate({"userMessage": "Build a page"})
    assert status == 400
    assert body["validation"] == {"componentCheck": False, "propCheck": False}
    assert "debug" not in body

    status, body = await raising_handler(error, store, expose_debug=True).generate({"userMessage": "Build a page"})
    assert body["debug"] == {"generatedCode": "<Card"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unexpected_error_is_500(store):
    handler = raising_handler(RuntimeError("boom"), store)

    status, body = await handler.modify(
        {"userMessage": "Change the card", "currentVersion": {"id": "v1", "plan": PREVIOUS_PLAN}}
    )

    assert status == 500
    assert body == {"success": False, "error": "boom"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_modify_success(make_handler):
    handler, client = make_handler(
        MODIFY_PLAN_JSON,
        '<Card id="card-1" title="Income">$1</Card>',
        "Renamed the revenue card to Income.",
    )

    status, body = await handler.modify(
        {
            "userMessage": "Change the card title to Income",
            "currentVersion": {"id": "v1", "plan": PREVIOUS_PLAN, "code": ""},
        }
    )

    assert status == 200
    assert body["explanation"] == "Renamed the revenue card to Income."
    assert body["diff"]["changedComponents"] == ["card-1"]
    assert body["diff"]["updated"] == ["card-1"]
    assert body["plan"]["type"] == "modify"
    assert body["plan"]["components"][0]["props"]["title"] == "Income"
    assert client.calls == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_modify_tolerates_malformed_previous_collections(make_handler):
    handler, client = make_handler(
        MODIFY_PLAN_JSON,
        '<Card id="card-1" title="Income">$1</Card>',
        "Renamed the revenue card to Income.",
    )
    previous = {**PREVIOUS_PLAN, "dataModel": {"metrics": 5}, "layoutPlan": {"sections": 7}}

    status, body = await handler.modify(
        {"userMessage": "Change the card title to Income", "currentVersion": {"id": "v1", "plan": previous}}
    )

    assert status == 200
    assert body["plan"]["components"][0]["props"]["title"] == "Income"
    assert client.calls == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_modify_rejects_malformed_previous_plan(make_handler):
    handler, client = make_handler()

    status, body = await handler.modify(
        {"userMessage": "Change the card", "currentVersion": {"id": "v1", "plan": {"components": []}}}
    )

    assert status == 400
    assert body["success"] is False
    assert client.calls == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_version_routes_without_versions(make_handler):
    handler, _ = make_handler()

    assert handler.versions() == (200, {"success": True, "currentIndex": -1, "versions": []})
    assert (await handler.rollback())[0] == 404
    assert (await handler.select(0))[0] == 404
    assert handler.render_current()[0] == 404


@pytest.mark.unit
@pytest.mark.asyncio
async def test_version_routes(make_handler, store, card_plan):
    handler, _ = make_handler()
    first, _ = await store.commit(card_plan, '<Card id="card-1" title="One" />')
    second, _ = await store.commit(card_plan, '<Card id="card-1" title="Two" />')

    status, body = handler.versions()
    assert status == 200
    assert body["currentIndex"] == 1
    assert [v["id"] for v in body["versions"]] == [first.id, second.id]

    status, body = await handler.rollback()
    assert status == 200
    assert body["version"]["id"] == first.id

    status, body = await handler.select(1)
    assert status == 200
    assert body["version"]["code"] == '<Card id="card-1" title="Two" />'

    assert (await handler.select(5))[0] == 404


@pytest.mark.unit
@pytest.mark.asyncio
async def test_render_current(make_handler, store, card_plan):
    handler, _ = make_handler()
    await store.commit(card_plan, '<Card id="card-1" title="Revenue">$10</Card>')

    status, body = handler.render_current()

    assert status == 200
    assert body["success"] is True
    assert body["tree"]["component"] == "Card"
    assert body["tree"]["props"] == {"id": "card-1", "title": "Revenue"}
    assert body["tree"]["children"] == ["$10"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_render_current_withholds_invalid_markup(make_handler, store, card_plan):
    handler, _ = make_handler()
    await store.commit(card_plan, '<Card id="card-1" title="Revenue" style={{}} />')

    status, body = handler.render_current()

    assert status == 422
    assert body["tree"] is None
    assert "Inline styles are not allowed." in body["errors"]
