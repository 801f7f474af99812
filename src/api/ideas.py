"""Idea endpoints: plan suggestions, chat, bookmark and export."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import HTMLResponse

from src.api.auth import require_user
from src.api.deps import get_chat_service, get_plan_service
from src.api.schemas import ChatResponse, ExportRequest, PlanChatRequest, SaveResponse
from src.core.chat_service import ChatService
from src.core.errors import BadRequest
from src.core.plan_service import Plan, PlanService, coerce_plan, placeholder_plan
from src.data.models import Category, Entry
from src.export.document import build_document, export_filename
from src.export.html_renderer import render_plan_html
from src.export.pdf_renderer import render_plan_pdf

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ideas", tags=["ideas"])

EXPORT_FORMATS = ("pdf", "html")


@router.get("/{entry_id}/suggestions")
async def idea_suggestions(
    entry_id: str,
    regenerate: bool = False,
    user_id: str = Depends(require_user),
    plans: PlanService = Depends(get_plan_service),
) -> dict[str, Any]:
    _, plan = await plans.get_plan(user_id, entry_id, Category.IDEA, regenerate=regenerate)
    return plan.model_dump(exclude={"milestones"})


@router.post("/{entry_id}/chat", response_model=ChatResponse)
async def idea_chat(
    entry_id: str,
    body: PlanChatRequest,
    user_id: str = Depends(require_user),
    chat: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    plan = coerce_plan(body.plan) if body.plan else None
    reply = await chat.idea_chat(user_id, entry_id, body.message, plan)
    return ChatResponse(**asdict(reply))


@router.post("/{entry_id}/save", response_model=SaveResponse)
async def toggle_save(
    entry_id: str,
    user_id: str = Depends(require_user),
    plans: PlanService = Depends(get_plan_service),
) -> SaveResponse:
    return SaveResponse(saved=plans.toggle_saved(user_id, entry_id))


def _export_response(entry: Entry, plan: Plan, export_format: str) -> Response:
    doc = build_document(entry.data, plan)
    insight = str(entry.data.get("insight") or "")
    if export_format == "html":
        filename = export_filename(insight, "html")
        return HTMLResponse(
            content=render_plan_html(doc),
            headers={"Content-Disposition": f'inline; filename="{filename}"'},
        )
    rendered = render_plan_pdf(doc)
    filename = export_filename(insight, "pdf")
    return Response(
        content=rendered.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _check_format(export_format: Optional[str]) -> str:
    export_format = (export_format or "pdf").lower()
    if export_format not in EXPORT_FORMATS:
        raise BadRequest("format must be pdf or html")
    return export_format


@router.post("/{entry_id}/export")
async def export_with_plan(
    entry_id: str,
    body: Optional[ExportRequest] = None,
    format: Optional[str] = None,
    user_id: str = Depends(require_user),
    plans: PlanService = Depends(get_plan_service),
) -> Response:
    """Export using the plan the client already holds."""
    export_format = _check_format(format)
    entry = plans.load_idea(user_id, entry_id)
    plan = coerce_plan(body.plan) if body is not None else None
    if plan is None:
        logger.warning("Export for %s received an unusable plan; using placeholder", entry_id)
        plan = placeholder_plan()
    return _export_response(entry, plan, export_format)


@router.get("/{entry_id}/export")
async def export_fresh(
    entry_id: str,
    format: Optional[str] = None,
    user_id: str = Depends(require_user),
    plans: PlanService = Depends(get_plan_service),
) -> Response:
    """Generate a fresh plan and export it."""
    export_format = _check_format(format)
    entry, plan = await plans.fresh_plan_for_export(user_id, entry_id)
    return _export_response(entry, plan, export_format)
