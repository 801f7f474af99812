"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class EntryCreate(BaseModel):
    category: str
    data: dict[str, Any]
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    needs_review: Optional[bool] = None
    linked_entries: Optional[list[str]] = None


class EntryUpdate(BaseModel):
    """Partial update; only fields the caller actually sent are applied."""

    data: Optional[dict[str, Any]] = None
    category: Optional[str] = None
    needs_review: Optional[bool] = None
    archived: Optional[bool] = None
    linked_entries: Optional[list[str]] = None


class CaptureRequest(BaseModel):
    text: str
    current_date: str = ""
    current_time: str = ""
    current_day: str = ""


class CaptureResponse(BaseModel):
    entry: dict[str, Any]
    needs_review: bool
    mentioned_people: list[str] = Field(default_factory=list)


class PlanChatRequest(BaseModel):
    """Chat turn for an idea or a project; `plan` is the plan the client shows."""

    message: str
    plan: Optional[dict[str, Any]] = None


class TaskChatRequest(BaseModel):
    message: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class ChatResponse(BaseModel):
    response: str
    updated: bool = False
    updated_fields: Optional[dict[str, Any]] = None


class ExportRequest(BaseModel):
    plan: Any = None


class SaveResponse(BaseModel):
    saved: bool


class DigestResponse(BaseModel):
    digest: list[str]


class DistanceResponse(BaseModel):
    duration: str
    distance: str
    in_traffic: bool
