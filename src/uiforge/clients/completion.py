"""
Completion Service Client
OpenAI-compatible text completion with circuit breaker protection and bounded
retry on rate limiting.
"""

import asyncio
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

import httpx
import pybreaker

from ..core.config import Settings
from ..core.errors import CompletionError, RateLimitError
from ..core.logging_config import get_logger
from ..monitoring import metrics_collector

logger = get_logger(__name__)

_RETRY_HINTS = (
    re.compile(r"try again in\s+(\d+(?:\.\d+)?)\s*(ms|s|sec|secs|seconds?)\b", re.IGNORECASE),
    re.compile(r"retry after\s+(\d+(?:\.\d+)?)\s*(ms|s|sec|secs|seconds?)?\b", re.IGNORECASE),
)
_LOCAL_HOSTS = re.compile(r"localhost|127\.0\.0\.1")


class CompletionClient(Protocol):
    """Anything that turns a prompt into completion text."""

    async def acomplete(self, prompt: str) -> str: ...


@dataclass
class CompletionConfig:
    """Connection and retry settings for the completion service."""

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    timeout: float = 60.0
    use_chat_completions: bool = False
    max_attempts: int = 3
    min_wait: float = 1.0
    fail_max: int = 5
    reset_timeout: int = 30

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionConfig":
        return cls(
            base_url=settings.llm_base_url,
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout,
            use_chat_completions=settings.llm_use_chat_completions,
            max_attempts=settings.rate_limit_max_attempts,
            min_wait=settings.rate_limit_min_wait,
            fail_max=settings.breaker_fail_max,
            reset_timeout=settings.breaker_reset_timeout,
        )


class BreakerListener(pybreaker.CircuitBreakerListener):
    """Logs circuit breaker state changes."""

    def state_change(self, cb, old_state, new_state):
        logger.warning(
            "breaker_state_change",
            breaker=cb.name,
            from_state=str(old_state),
            to_state=str(new_state),
        )


def parse_retry_after(response: httpx.Response) -> float | None:
    """
    Seconds to wait before retrying a 429.

    Uses the Retry-After header when numeric, otherwise a "try again in N s" /
    "retry after N seconds" hint in the body.
    """
    header = response.headers.get("retry-after")
    if header:
        try:
            return max(float(header), 0.0)
        except ValueError:
            pass

    body = response.text
    for pattern in _RETRY_HINTS:
        match = pattern.search(body)
        if match:
            value = float(match.group(1))
            unit = (match.group(2) or "s").lower()
            return value / 1000 if unit == "ms" else value
    return None


def extract_output_text(data: dict[str, Any]) -> str:
    """Text from a responses-API payload."""
    if isinstance(data.get("output_text"), str) and data["output_text"]:
        return data["output_text"]

    output = data.get("output")
    chunks = []
    for item in output if isinstance(output, list) else []:
        contents = item.get("content") if isinstance(item, dict) else None
        for content in contents if isinstance(contents, list) else []:
            if not isinstance(content, dict) or content.get("type") not in ("output_text", "text"):
                continue
            if isinstance(content.get("text"), str) and content["text"]:
                chunks.append(content["text"])
    return "\n".join(chunks)


def extract_chat_text(data: dict[str, Any]) -> str:
    """Text from a chat-completions payload."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content.strip() if isinstance(content, str) else ""


class OpenAICompletionClient:
    """
    Completion client for OpenAI-compatible APIs.

    Uses the chat completions endpoint for local base URLs or when forced,
    the responses endpoint otherwise. HTTP calls go through a circuit breaker.
    """

    def __init__(
        self,
        config: CompletionConfig,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._client = http_client or httpx.Client(timeout=config.timeout)
        self._sleep = sleep
        self._breaker = pybreaker.CircuitBreaker(
            fail_max=config.fail_max,
            reset_timeout=config.reset_timeout,
            name="completion-http",
            listeners=[BreakerListener()],
        )
        logger.info("client_init", url=self.base_url, model=config.model, chat=self.use_chat_completions)

    @property
    def use_chat_completions(self) -> bool:
        return self.config.use_chat_completions or bool(_LOCAL_HOSTS.search(self.base_url))

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions" if self.use_chat_completions else f"{self.base_url}/responses"

    def _payload(self, prompt: str) -> dict[str, Any]:
        if self.use_chat_completions:
            return {
                "model": self.config.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self.config.temperature,
                "stream": False,
            }
        return {
            "model": self.config.model,
            "input": prompt,
            "temperature": self.config.temperature,
            "top_p": 1,
        }

    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        def _make_request():
            return self._client.post(self.endpoint, json=payload, headers=headers)

        try:
            return self._breaker.call(_make_request)
        except pybreaker.CircuitBreakerError as e:
            logger.error("completion_failed", error="Circuit breaker open")
            raise CompletionError("Completion service unavailable (circuit open)") from e
        except httpx.HTTPError as e:
            logger.warning("completion_http_error", error=str(e))
            raise CompletionError(f"Completion request failed: {e}") from e

    def complete(self, prompt: str) -> str:
        """
        Run one completion.

        Raises:
            RateLimitError: Still rate limited after max_attempts
            CompletionError: Transport failure, non-2xx status, or empty text
        """
        payload = self._payload(prompt)
        start = time.time()
        status = "error"
        try:
            response = self._send_with_retry(payload)
            text = self._parse(response)
            status = "success"
            return text
        finally:
            metrics_collector.record_llm_call(self.config.model, status, time.time() - start)

    def _send_with_retry(self, payload: dict[str, Any]) -> httpx.Response:
        attempts = max(self.config.max_attempts, 1)
        for attempt in range(1, attempts + 1):
            response = self._post(payload)
            if response.status_code != 429:
                if response.is_success:
                    return response
                logger.warning("completion_status_error", status=response.status_code)
                raise CompletionError(
                    f"Completion service error ({response.status_code}): {response.text[:500]}",
                    status_code=response.status_code,
                )

            hint = parse_retry_after(response)
            if attempt == attempts:
                logger.error("completion_rate_limited", attempts=attempts, retry_after=hint)
                raise RateLimitError(
                    f"Completion service rate limited after {attempts} attempts", retry_after=hint
                )

            wait = max(hint or 0.0, self.config.min_wait)
            logger.info("completion_rate_limit_retry", attempt=attempt, wait=wait)
            self._sleep(wait)

        raise CompletionError("Completion retry loop exhausted")

    def _parse(self, response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as e:
            raise CompletionError("Completion service returned invalid JSON") from e
        if not isinstance(data, dict):
            raise CompletionError("Completion service returned an unexpected payload")

        text = extract_chat_text(data) if self.use_chat_completions else extract_output_text(data).strip()
        if not text:
            raise CompletionError("Completion response was empty")
        return text

    async def acomplete(self, prompt: str) -> str:
        """Run complete() in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.complete, prompt)

    def close(self) -> None:
        """Close HTTP client"""
        self._client.close()

    def __enter__(self) -> "OpenAICompletionClient":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
