"""
HTTP Server
uvicorn entry point for the UIForge API.
"""

import uvicorn

from .api import create_app
from .core import configure_logging, create_container, get_logger, get_settings
from .core.tracing import init_tracer

logger = get_logger(__name__)


def serve() -> None:
    """Entry point - configure logging and run uvicorn."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs)
    init_tracer("uiforge")

    # Resolve dependencies
    container = create_container(settings)
    app = create_app(container)

    logger.info("starting", host=settings.host, port=settings.port, model=settings.llm_model)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    serve()
