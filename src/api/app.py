"""
Second Brain — HTTP application.

create_app() wires the store, the model client and the maps client into the
services, attaches them to app.state and mounts the /api routers. Every
SecondBrainError becomes a JSON body {"error": message} with the status the
error kind carries.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api import capture, entries, ideas, insights, projects, tasks
from src.config import Settings
from src.core.chat_service import ChatService
from src.core.classifier import Classifier
from src.core.digest import DigestGenerator
from src.core.errors import SecondBrainError
from src.core.llm import LLMClient
from src.core.plan_service import PlanService
from src.data.db import EntryDB
from src.integrations.google_maps import GoogleMapsClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings,
    entry_db: Optional[EntryDB] = None,
    llm: Optional[LLMClient] = None,
    maps: Optional[GoogleMapsClient] = None,
) -> FastAPI:
    """Build the application. Collaborators may be injected for tests."""
    entry_db = entry_db or EntryDB(settings.DATABASE_PATH)
    llm = llm or LLMClient.from_settings(settings)
    maps = maps or GoogleMapsClient(settings.GOOGLE_MAPS_API_KEY)

    app = FastAPI(
        title="Second Brain",
        description="Personal knowledge capture with AI classification",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.entry_db = entry_db
    app.state.maps = maps
    app.state.classifier = Classifier(llm, entry_db)
    app.state.chat_service = ChatService(llm, entry_db, maps=maps, timezone=settings.TIMEZONE)
    app.state.plan_service = PlanService(llm, entry_db)
    app.state.digest_generator = DigestGenerator(llm, entry_db)

    @app.exception_handler(SecondBrainError)
    async def handle_service_error(request: Request, exc: SecondBrainError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        return JSONResponse(status_code=400, content={"error": errors or "Invalid request"})

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    for module in (entries, capture, ideas, projects, tasks, insights):
        app.include_router(module.router, prefix="/api")

    logger.info(
        "Second Brain app ready (provider=%s, maps=%s, db=%s)",
        settings.LLM_PROVIDER, "on" if maps.configured else "off", settings.DATABASE_PATH,
    )
    return app
