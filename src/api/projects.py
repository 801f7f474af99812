"""Project endpoints: plan suggestions and chat."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends

from src.api.auth import require_user
from src.api.deps import get_chat_service, get_plan_service
from src.api.schemas import ChatResponse, PlanChatRequest
from src.core.chat_service import ChatService
from src.core.plan_service import PlanService, coerce_plan
from src.data.models import Category

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("/{entry_id}/suggestions")
async def project_suggestions(
    entry_id: str,
    regenerate: bool = False,
    user_id: str = Depends(require_user),
    plans: PlanService = Depends(get_plan_service),
) -> dict[str, Any]:
    _, plan = await plans.get_plan(user_id, entry_id, Category.PROJECT, regenerate=regenerate)
    return plan.model_dump(exclude={"timeEstimate"})


@router.post("/{entry_id}/chat", response_model=ChatResponse)
async def project_chat(
    entry_id: str,
    body: PlanChatRequest,
    user_id: str = Depends(require_user),
    chat: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    plan = coerce_plan(body.plan) if body.plan else None
    reply = await chat.project_chat(user_id, entry_id, body.message, plan)
    return ChatResponse(**asdict(reply))
