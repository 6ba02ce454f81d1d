"""Tests for the completion service client."""

import pytest
import respx
import httpx

from uiforge.clients import CompletionConfig, OpenAICompletionClient
from uiforge.clients.completion import extract_chat_text, extract_output_text, parse_retry_after
from uiforge.core.errors import CompletionError, RateLimitError

REMOTE = "https://llm.test/v1"
LOCAL = "http://localhost:11434/v1"


def make_client(base_url=REMOTE, **overrides):
    waits = []
    config = CompletionConfig(base_url=base_url, api_key="test-key", **overrides)
    return OpenAICompletionClient(config, sleep=waits.append), waits


@pytest.mark.unit
def test_endpoint_selection():
    remote, _ = make_client()
    local, _ = make_client(LOCAL)
    forced, _ = make_client(use_chat_completions=True)

    assert remote.endpoint == f"{REMOTE}/responses"
    assert local.endpoint == f"{LOCAL}/chat/completions"
    assert forced.endpoint == f"{REMOTE}/chat/completions"


@pytest.mark.unit
@respx.mock
def test_complete_via_responses():
    route = respx.post(f"{REMOTE}/responses").mock(
        return_value=httpx.Response(200, json={"output_text": "  hello  "})
    )
    client, _ = make_client()

    assert client.complete("prompt") == "hello"
    request = route.calls.last.request
    assert request.headers["authorization"] == "Bearer test-key"
    assert b'"input":"prompt"' in request.content.replace(b" ", b"")


@pytest.mark.unit
@respx.mock
def test_complete_via_chat_completions():
    respx.post(f"{LOCAL}/chat/completions").mock(
        return_value=httpx.Response(200, json={"choices": [{"message": {"content": " hi "}}]})
    )
    client, _ = make_client(LOCAL)

    assert client.complete("prompt") == "hi"


@pytest.mark.unit
@respx.mock
def test_rate_limit_retry_uses_retry_after_header():
    route = respx.post(f"{REMOTE}/responses").mock(
        side_effect=[
            httpx.Response(429, headers={"Retry-After": "2"}),
            httpx.Response(200, json={"output_text": "ok"}),
        ]
    )
    client, waits = make_client()

    assert client.complete("prompt") == "ok"
    assert route.call_count == 2
    assert waits == [2.0]


@pytest.mark.unit
@respx.mock
def test_rate_limit_retry_uses_body_hint():
    respx.post(f"{REMOTE}/responses").mock(
        side_effect=[
            httpx.Response(429, text="Rate limit reached. Please try again in 500ms."),
            httpx.Response(200, json={"output_text": "ok"}),
        ]
    )
    client, waits = make_client(min_wait=0.0)

    assert client.complete("prompt") == "ok"
    assert waits == [0.5]


@pytest.mark.unit
@respx.mock
def test_rate_limit_exhausted():
    route = respx.post(f"{REMOTE}/responses").mock(
        return_value=httpx.Response(429, headers={"Retry-After": "3"})
    )
    client, waits = make_client(max_attempts=2)

    with pytest.raises(RateLimitError) as exc_info:
        client.complete("prompt")

    assert route.call_count == 2
    assert waits == [3.0]
    assert exc_info.value.retry_after == 3.0
    assert exc_info.value.status_code == 429


@pytest.mark.unit
@respx.mock
def test_status_error_is_not_retried():
    route = respx.post(f"{REMOTE}/responses").mock(return_value=httpx.Response(500, text="boom"))
    client, _ = make_client()

    with pytest.raises(CompletionError) as exc_info:
        client.complete("prompt")

    assert route.call_count == 1
    assert exc_info.value.status_code == 500


@pytest.mark.unit
@respx.mock
def test_empty_completion_is_an_error():
    respx.post(f"{REMOTE}/responses").mock(return_value=httpx.Response(200, json={"output": []}))
    client, _ = make_client()

    with pytest.raises(CompletionError):
        client.complete("prompt")


@pytest.mark.unit
@respx.mock
@pytest.mark.parametrize(
    "payload",
    [
        {"output": ["bad", {"content": ["x"]}]},
        {"output": [None, {"content": {"type": "text", "text": "x"}}]},
        {"output": {"content": []}},
        {"output": [{"content": [{"type": "text", "text": 7}]}]},
    ],
)
def test_malformed_output_is_an_error(payload):
    respx.post(f"{REMOTE}/responses").mock(return_value=httpx.Response(200, json=payload))
    client, _ = make_client()

    with pytest.raises(CompletionError, match="empty"):
        client.complete("prompt")


@pytest.mark.unit
@respx.mock
def test_circuit_breaker_opens_after_transport_failures():
    route = respx.post(f"{REMOTE}/responses").mock(side_effect=httpx.ConnectError("refused"))
    client, _ = make_client(fail_max=1)

    with pytest.raises(CompletionError):
        client.complete("prompt")
    with pytest.raises(CompletionError, match="circuit open"):
        client.complete("prompt")

    assert route.call_count == 1


@pytest.mark.unit
@pytest.mark.asyncio
@respx.mock
async def test_acomplete_runs_in_executor():
    respx.post(f"{REMOTE}/responses").mock(return_value=httpx.Response(200, json={"output_text": "async"}))
    client, _ = make_client()

    assert await client.acomplete("prompt") == "async"


@pytest.mark.unit
def test_extract_output_text_from_content_parts():
    data = {
        "output": [
            {"content": [{"type": "output_text", "text": "first"}, {"type": "refusal", "text": "no"}]},
            {"content": [{"type": "text", "text": "second"}]},
        ]
    }
    assert extract_output_text(data) == "first\nsecond"


@pytest.mark.unit
def test_extract_chat_text_handles_missing_choices():
    assert extract_chat_text({}) == ""
    assert extract_chat_text({"choices": [{"message": {"content": None}}]}) == ""


@pytest.mark.unit
@pytest.mark.parametrize(
    "response,expected",
    [
        (httpx.Response(429, headers={"Retry-After": "1.5"}), 1.5),
        (httpx.Response(429, text="Retry after 4 seconds"), 4.0),
        (httpx.Response(429, text="slow down"), None),
    ],
)
def test_parse_retry_after(response, expected):
    assert parse_retry_after(response) == expected
