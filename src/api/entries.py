"""Entry CRUD endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.auth import require_user
from src.api.deps import get_entry_db
from src.api.schemas import EntryCreate, EntryUpdate
from src.core.errors import BadRequest, NotFound
from src.data.db import ARCHIVED_EXCLUDE, ARCHIVED_INCLUDE, ARCHIVED_ONLY, EntryDB

router = APIRouter(prefix="/entries", tags=["entries"])

_ARCHIVED_FILTERS = {
    "false": ARCHIVED_EXCLUDE,
    "true": ARCHIVED_INCLUDE,
    "only": ARCHIVED_ONLY,
}


def archived_filter(value: Optional[str]) -> str:
    """Map the `archived` query value onto a store filter."""
    if value is None or value == "":
        return ARCHIVED_EXCLUDE
    try:
        return _ARCHIVED_FILTERS[value.lower()]
    except KeyError:
        raise BadRequest("archived must be one of: true, false, only") from None


@router.get("")
async def list_entries(
    category: Optional[str] = None,
    archived: Optional[str] = None,
    needs_review: Optional[bool] = Query(default=None),
    user_id: str = Depends(require_user),
    db: EntryDB = Depends(get_entry_db),
) -> list[dict[str, Any]]:
    entries = db.list_entries(
        user_id,
        category=category or None,
        archived=archived_filter(archived),
        needs_review=needs_review,
    )
    return [e.to_dict() for e in entries]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_entry(
    body: EntryCreate,
    user_id: str = Depends(require_user),
    db: EntryDB = Depends(get_entry_db),
) -> dict[str, Any]:
    entry = db.create(
        user_id,
        body.category,
        body.data,
        confidence=body.confidence,
        needs_review=body.needs_review,
        linked_entries=body.linked_entries,
    )
    return entry.to_dict()


@router.get("/{entry_id}")
async def get_entry(
    entry_id: str,
    user_id: str = Depends(require_user),
    db: EntryDB = Depends(get_entry_db),
) -> dict[str, Any]:
    entry = db.get(user_id, entry_id)
    if entry is None:
        raise NotFound("Entry not found")
    return entry.to_dict()


@router.patch("/{entry_id}")
async def update_entry(
    entry_id: str,
    body: EntryUpdate,
    user_id: str = Depends(require_user),
    db: EntryDB = Depends(get_entry_db),
) -> dict[str, Any]:
    changes = body.model_dump(exclude_unset=True)
    # Explicit nulls are treated as "not sent"
    changes = {k: v for k, v in changes.items() if v is not None}
    entry = db.update(user_id, entry_id, changes)
    if entry is None:
        raise NotFound("Entry not found")
    return entry.to_dict()


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    user_id: str = Depends(require_user),
    db: EntryDB = Depends(get_entry_db),
) -> dict[str, bool]:
    if not db.delete(user_id, entry_id):
        raise NotFound("Entry not found")
    return {"success": True}
