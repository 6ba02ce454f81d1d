"""External service clients."""

from .completion import CompletionClient, CompletionConfig, OpenAICompletionClient

__all__ = ["CompletionClient", "CompletionConfig", "OpenAICompletionClient"]
