"""
Second Brain — Capture Classifier.

Brain of the capture flow: turns free text into a category, a confidence
score, a category-shaped payload and the names of people it mentions.
One model call per capture; a reply that is not valid JSON fails the
capture and nothing is written.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError

from src.core.errors import BadRequest, UpstreamParseFailure
from src.core.llm import clean_llm_response
from src.data.models import Category, Entry, needs_review_for, validate_payload

if TYPE_CHECKING:
    from src.core.llm import LLMClient
    from src.data.db import EntryDB

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# JSON contract
# ---------------------------------------------------------------------------


class Classification(BaseModel):
    """Structured result of classifying one capture.

    JSON example:
    {
        "category": "task",
        "confidence": 0.92,
        "data": {"task": "Buy milk", "deadline": "2026-02-14", "priority": "low"},
        "mentionedPeople": []
    }
    """
    category: Category
    confidence: float = Field(ge=0.0, le=1.0)
    data: dict[str, Any]
    mentioned_people: list[str] = Field(default_factory=list, alias="mentionedPeople")

    @property
    def needs_review(self) -> bool:
        return needs_review_for(self.confidence)


@dataclass
class DateContext:
    """The caller's local clock, used to resolve "today" / "tomorrow"."""

    current_date: str          # YYYY-MM-DD
    current_time: str = ""     # e.g. "14:05"
    current_day: str = ""      # e.g. "Tuesday"


@dataclass
class CaptureResult:
    entry: Entry
    needs_review: bool
    mentioned_people: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# System prompt for LLM
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT = """\
You are an AI assistant that categorizes user inputs into one of four categories for a "Second Brain" application.

Categories:
1. "person" - Information about a person (name, how you know them, contact info)
2. "project" - Goals, ongoing work, initiatives with action items
3. "idea" - Insights, thoughts, concepts, creative sparks
4. "task" - Actionable to-do items with potential deadlines

Analyze the input and return a JSON object with:
{
  "category": "person" | "project" | "idea" | "task",
  "confidence": 0.0 to 1.0 (how confident you are in this categorization),
  "data": {
    // For person: { "name": string, "context": string, "lastContact": string }
    // For project: { "goal": string, "status": "active" | "on-hold" | "completed", "nextAction": string }
    // For idea: { "insight": string, "category": string, "date": string (ISO date) }
    // For task: { "task": string, "deadline": string (ISO date or "none"), "priority": "low" | "medium" | "high", "status": "pending" | "in-progress" | "completed", "location": string or null, "notes": string or null }
  },
  "mentionedPeople": string[] // Names of people mentioned (for cross-linking)
}

Guidelines:
- Extract as much relevant information as possible
- For dates, use ISO format (YYYY-MM-DD)
- Infer priority/status from context when not explicit
- If multiple categories seem to apply, choose the most specific one
- Set confidence < 0.6 if the input is too vague or ambiguous
- For tasks, extract location if mentioned (e.g., "meeting at Starbucks" → location: "Starbucks")
- For tasks, default status to "pending" unless otherwise specified

Return ONLY valid JSON, no markdown or explanation."""

_DATE_CONTEXT = """

Current date/time context:
- Today's date: {current_date} ({current_day})
- Current time: {current_time}
- When user says "today", use: {current_date}
- When user says "tomorrow", calculate based on {current_date}
- When user says "next week", calculate 7 days from {current_date}"""


def build_system_prompt(date_context: DateContext | None) -> str:
    if date_context is None or not date_context.current_date:
        return _SYSTEM_PROMPT
    return _SYSTEM_PROMPT + _DATE_CONTEXT.format(
        current_date=date_context.current_date,
        current_day=date_context.current_day or "unknown day",
        current_time=date_context.current_time or "unknown",
    )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_classification(raw_text: str) -> Classification:
    """Parse a raw model reply into a Classification.

    Raises UpstreamParseFailure if the reply is not JSON of the right shape.
    """
    cleaned = clean_llm_response(raw_text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse classifier response as JSON: %s — raw: '%s'", exc, raw_text)
        raise UpstreamParseFailure("Failed to parse AI response") from exc

    try:
        result = Classification.model_validate(payload)
        validate_payload(result.category, result.data)
    except (ValidationError, BadRequest) as exc:
        logger.error("Classifier response has the wrong shape: %s — raw: '%s'", exc, raw_text)
        raise UpstreamParseFailure("AI response did not match the entry schema") from exc

    return result


def match_people(mentioned: list[str], people: list[Entry]) -> list[str]:
    """Ids of person entries whose name contains any mentioned name.

    Case-insensitive substring match; every match is returned, no ranking.
    """
    needles = [m.lower() for m in mentioned if m and m.strip()]
    if not needles:
        return []
    linked: list[str] = []
    for person in people:
        name = str(person.data.get("name") or "").lower()
        if name and any(needle in name for needle in needles):
            linked.append(person.id)
    return linked


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class Classifier:
    """Classify free text and store it as a new entry."""

    def __init__(self, llm: LLMClient, entry_db: EntryDB) -> None:
        self._llm = llm
        self._db = entry_db

    async def classify(self, text: str, date_context: DateContext | None = None) -> Classification:
        raw_text = await self._llm.complete(
            system=build_system_prompt(date_context),
            user_message=f'Categorize this input: "{text}"',
            max_tokens=1024,
        )
        logger.debug("Classifier raw response: %s", raw_text)
        result = parse_classification(raw_text)
        logger.info(
            "Classified capture as %s (confidence %.2f)",
            result.category.value, result.confidence,
        )
        return result

    async def capture(
        self, user_id: str, text: str, date_context: DateContext | None = None,
    ) -> CaptureResult:
        """Classify `text`, link mentioned people and persist the entry."""
        if not text or not text.strip():
            raise BadRequest("Text is required")

        result = await self.classify(text, date_context)

        linked: list[str] = []
        if result.mentioned_people:
            people = self._db.list_entries(user_id, category=Category.PERSON)
            linked = match_people(result.mentioned_people, people)

        entry = self._db.create(
            user_id,
            result.category,
            result.data,
            confidence=result.confidence,
            needs_review=result.needs_review,
            linked_entries=linked,
        )
        return CaptureResult(
            entry=entry,
            needs_review=result.needs_review,
            mentioned_people=result.mentioned_people,
        )
