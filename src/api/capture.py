"""Classify-and-create endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.api.auth import require_user
from src.api.deps import get_classifier
from src.api.schemas import CaptureRequest, CaptureResponse
from src.core.classifier import Classifier, DateContext

router = APIRouter(tags=["capture"])


@router.post("/capture", status_code=status.HTTP_201_CREATED, response_model=CaptureResponse)
async def capture(
    body: CaptureRequest,
    user_id: str = Depends(require_user),
    classifier: Classifier = Depends(get_classifier),
) -> CaptureResponse:
    date_context = None
    if body.current_date:
        date_context = DateContext(
            current_date=body.current_date,
            current_time=body.current_time,
            current_day=body.current_day,
        )
    result = await classifier.capture(user_id, body.text, date_context)
    return CaptureResponse(
        entry=result.entry.to_dict(),
        needs_review=result.needs_review,
        mentioned_people=result.mentioned_people,
    )
