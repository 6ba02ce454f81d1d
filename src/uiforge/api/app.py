"""
HTTP API
FastAPI application exposing the Generate / Modify pipeline and version history.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from injector import Injector
from prometheus_client import CONTENT_TYPE_LATEST

from ..clients import CompletionClient, OpenAICompletionClient
from ..core import create_container, get_logger
from ..handlers import UIHandler
from ..monitoring import metrics_collector
from ..versions import VersionStore

logger = get_logger(__name__)

VERSION = "0.1.0"


async def _json_body(request: Request) -> tuple[bool, object]:
    try:
        return True, await request.json()
    except ValueError:
        return False, None


def create_app(container: Injector | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        container: Configured injector (defaults to one built from settings)
    """
    container = container or create_container()
    handler = container.get(UIHandler)
    store = container.get(VersionStore)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("service_starting", version=VERSION)
        yield
        client = container.get(CompletionClient)
        if isinstance(client, OpenAICompletionClient):
            client.close()
        logger.info("service_stopped")

    app = FastAPI(
        title="UIForge",
        description="Natural language to verified UI markup",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "version": VERSION,
            "versions": len(store),
            "timestamp": time.time(),
        }

    @app.get("/metrics")
    async def metrics():
        return Response(content=metrics_collector.get_metrics(), media_type=CONTENT_TYPE_LATEST)

    @app.post("/api/generate")
    async def generate(request: Request):
        ok, payload = await _json_body(request)
        if not ok:
            return JSONResponse({"success": False, "error": "Invalid JSON payload."}, status_code=400)
        status, body = await handler.generate(payload)
        return JSONResponse(body, status_code=status)

    @app.post("/api/modify")
    async def modify(request: Request):
        ok, payload = await _json_body(request)
        if not ok:
            return JSONResponse({"success": False, "error": "Invalid JSON payload."}, status_code=400)
        status, body = await handler.modify(payload)
        return JSONResponse(body, status_code=status)

    @app.get("/api/versions")
    async def list_versions():
        status, body = handler.versions()
        return JSONResponse(body, status_code=status)

    @app.post("/api/versions/rollback")
    async def rollback():
        status, body = await handler.rollback()
        return JSONResponse(body, status_code=status)

    @app.post("/api/versions/{index}/select")
    async def select_version(index: int):
        status, body = await handler.select(index)
        return JSONResponse(body, status_code=status)

    @app.get("/api/versions/current/render")
    async def render_current():
        status, body = handler.render_current()
        return JSONResponse(body, status_code=status)

    return app
