"""
Second Brain — Data Models.

One persisted record type, the Entry, whose `data` payload is a tagged
union keyed by `category`. The payload models below are the contract shared
by the classifier prompt, manual entry and the chat-update paths.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from src.core.errors import BadRequest

REVIEW_THRESHOLD = 0.6


class Category(str, Enum):
    PERSON = "person"
    PROJECT = "project"
    IDEA = "idea"
    TASK = "task"


ProjectStatus = Literal["active", "on-hold", "completed"]
TaskStatus = Literal["pending", "in-progress", "completed"]
Priority = Literal["low", "medium", "high"]

PROJECT_STATUSES: tuple[str, ...] = ("active", "on-hold", "completed")


# ---------------------------------------------------------------------------
# Payload variants
# ---------------------------------------------------------------------------


class _Payload(BaseModel):
    # Schemaless column: unknown keys are kept as-is
    model_config = ConfigDict(extra="allow")


class PersonData(_Payload):
    """{"name": "Dana", "context": "met at PyCon", "lastContact": "2026-01-10"}"""
    name: str
    context: str | None = ""
    lastContact: str | None = ""


class ProjectData(_Payload):
    """{"goal": "Launch MVP", "status": "active", "nextAction": "Set up DB"}"""
    goal: str
    status: ProjectStatus = "active"
    nextAction: str | None = ""
    suggestions: dict[str, Any] | None = None


class IdeaData(_Payload):
    """{"insight": "Solar-powered bike lock", "category": "hardware", "date": "2026-01-10"}"""
    insight: str
    category: str | None = ""
    date: str | None = ""
    notes: str | None = None
    timeEstimate: str | None = None
    saved: bool | None = None
    suggestions: dict[str, Any] | None = None


class TaskData(_Payload):
    """{"task": "Buy milk", "deadline": "none", "priority": "low", "status": "pending"}"""
    task: str
    deadline: str | None = "none"
    priority: Priority = "medium"
    status: TaskStatus | None = None
    location: str | None = None
    notes: str | None = None


PAYLOAD_MODELS: dict[Category, type[_Payload]] = {
    Category.PERSON: PersonData,
    Category.PROJECT: ProjectData,
    Category.IDEA: IdeaData,
    Category.TASK: TaskData,
}

# The field a reviewer sees first, and the one a recategorized entry inherits
PRIMARY_FIELDS: dict[Category, str] = {
    Category.PERSON: "name",
    Category.PROJECT: "goal",
    Category.IDEA: "insight",
    Category.TASK: "task",
}


def parse_category(value: Any) -> Category:
    """Coerce a wire value into a Category, raising BadRequest when unknown."""
    try:
        return Category(value)
    except ValueError:
        raise BadRequest(f"Unknown category: {value!r}") from None


def validate_payload(category: Category, data: Any) -> dict[str, Any]:
    """Check that `data` has the shape `category` requires.

    Returns the caller's dict unchanged; defaults are never written back so
    the stored payload reads back verbatim.
    """
    if not isinstance(data, dict):
        raise BadRequest(f"{category.value} data must be an object")
    try:
        PAYLOAD_MODELS[category].model_validate(data)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise BadRequest(f"Invalid {category.value} data: {errors}") from exc
    return data


def carry_over_payload(data: dict[str, Any], new_category: Category) -> dict[str, Any]:
    """Adapt an existing payload to a new category during review.

    The new primary field is filled from the first string value of the old
    payload when it is missing; everything else is kept.
    """
    primary = PRIMARY_FIELDS[new_category]
    if isinstance(data.get(primary), str) and data[primary]:
        return dict(data)
    first_text = next((v for v in data.values() if isinstance(v, str) and v), "")
    carried = dict(data)
    carried[primary] = first_text
    # Enum-valued fields from the old category may not fit the new one
    if new_category is Category.PROJECT and carried.get("status") not in PROJECT_STATUSES:
        carried.pop("status", None)
    if new_category is Category.TASK:
        if carried.get("status") not in (None, "pending", "in-progress", "completed"):
            carried.pop("status", None)
        if carried.get("priority") not in (None, "low", "medium", "high"):
            carried.pop("priority", None)
    return carried


def needs_review_for(confidence: float) -> bool:
    return confidence < REVIEW_THRESHOLD


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------


@dataclass
class Entry:
    """A single captured person / project / idea / task."""

    id: str
    user_id: str
    category: Category
    data: dict[str, Any]
    confidence: float = 1.0
    needs_review: bool = False
    archived: bool = False
    linked_entries: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Wire representation (snake_case top level, payload untouched)."""
        out = asdict(self)
        out["category"] = self.category.value
        return out
