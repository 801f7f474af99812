"""Task chat endpoint."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from src.api.auth import require_user
from src.api.deps import get_chat_service
from src.api.schemas import ChatResponse, TaskChatRequest
from src.core.chat_service import ChatService, UserLocation

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("/{entry_id}/chat", response_model=ChatResponse)
async def task_chat(
    entry_id: str,
    body: TaskChatRequest,
    user_id: str = Depends(require_user),
    chat: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    location = UserLocation(latitude=body.latitude, longitude=body.longitude)
    reply = await chat.task_chat(user_id, entry_id, body.message, location)
    return ChatResponse(**asdict(reply))
