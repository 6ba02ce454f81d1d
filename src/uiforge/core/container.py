"""Dependency Injection Container."""

from injector import Injector, Module, provider, singleton

from ..clients import CompletionClient, CompletionConfig, OpenAICompletionClient
from ..handlers.ui import UIHandler
from ..pipeline import UIPipeline
from ..versions import VersionStore
from .config import Settings, get_settings


class CoreModule(Module):
    """Core dependencies."""

    def __init__(self, settings: Settings, client: CompletionClient | None = None) -> None:
        self.settings = settings
        self.client = client

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        return self.settings

    @singleton
    @provider
    def provide_completion_client(self, settings: Settings) -> CompletionClient:
        """Provide the completion client (an injected one wins)."""
        if self.client is not None:
            return self.client
        return OpenAICompletionClient(CompletionConfig.from_settings(settings))

    @singleton
    @provider
    def provide_version_store(self) -> VersionStore:
        return VersionStore()

    @singleton
    @provider
    def provide_pipeline(self, client: CompletionClient, store: VersionStore) -> UIPipeline:
        return UIPipeline(client, store)

    @singleton
    @provider
    def provide_ui_handler(self, pipeline: UIPipeline, store: VersionStore, settings: Settings) -> UIHandler:
        return UIHandler(pipeline, store, settings)


def create_container(settings: Settings | None = None, client: CompletionClient | None = None) -> Injector:
    """Create configured injector."""
    return Injector([CoreModule(settings or get_settings(), client)])
