"""
Second Brain — Implementation Plans.

Generates the AI "suggestions" plan for an idea or a project and caches it
in the entry's payload under `suggestions`. A cached plan is served as-is
unless the caller asks to regenerate.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError

from src.core.errors import BadRequest, NotFound, SecondBrainError, UpstreamParseFailure
from src.core.llm import clean_llm_response
from src.data.models import Category, Entry

if TYPE_CHECKING:
    from src.core.llm import LLMClient
    from src.data.db import EntryDB

logger = logging.getLogger(__name__)


class PlanStep(BaseModel):
    title: str
    description: str = ""


class Plan(BaseModel):
    """An AI-generated implementation plan.

    Idea plans carry `timeEstimate`; project plans carry `milestones`.
    """
    summary: str = ""
    steps: list[PlanStep] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    considerations: list[str] = Field(default_factory=list)
    timeEstimate: str = ""
    milestones: list[str] = Field(default_factory=list)


def placeholder_plan(summary: str = "Unable to generate summary") -> Plan:
    """Stand-in used by exports when no usable plan is available."""
    return Plan(summary=summary, timeEstimate="Unknown")


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_IDEA_PROMPT = """\
You are an AI assistant that helps users implement their ideas. Given an idea, provide practical suggestions for how to bring it to life.

Return a JSON object with:
{
  "summary": "A brief 1-2 sentence summary of the idea",
  "steps": [
    {
      "title": "Step title",
      "description": "Detailed description of what to do"
    }
  ],
  "resources": ["List of tools, technologies, or resources that could help"],
  "considerations": ["Important things to keep in mind, potential challenges"],
  "timeEstimate": "Rough time estimate (e.g., '2-4 weeks', '1-2 months')"
}

Guidelines:
- Provide 4-6 actionable steps
- Be specific and practical
- Consider the user's perspective as someone implementing this themselves
- Include both technical and non-technical considerations where relevant

Return ONLY valid JSON, no markdown or explanation."""

_PROJECT_PROMPT = """\
You are an AI project advisor that helps users plan and complete their projects. Given a project, provide practical guidance and a roadmap for achieving the goal.

Return a JSON object with:
{
  "summary": "A brief 1-2 sentence assessment of the project and its current state",
  "steps": [
    {
      "title": "Step title",
      "description": "Detailed description of what to do"
    }
  ],
  "resources": ["List of tools, technologies, or resources that could help"],
  "considerations": ["Important risks, blockers, or things to keep in mind"],
  "milestones": ["Key checkpoints to track progress toward the goal"]
}

Guidelines:
- Provide 4-6 actionable steps tailored to the project's current status
- If the project is "on-hold", suggest how to restart momentum
- If the project is "active", focus on the next action and moving forward
- Be specific and practical
- Consider dependencies between steps

Return ONLY valid JSON, no markdown or explanation."""


def _idea_request(data: dict[str, Any]) -> str:
    return (
        "Help me implement this idea:\n\n"
        f"Idea: {data.get('insight', '')}\n"
        f"Category: {data.get('category') or ''}\n"
        f"Date captured: {data.get('date') or ''}\n\n"
        "Please provide practical suggestions for how to bring this idea to life."
    )


def _project_request(data: dict[str, Any]) -> str:
    return (
        "Help me complete this project:\n\n"
        f"Goal: {data.get('goal', '')}\n"
        f"Status: {data.get('status', '')}\n"
        f"Next Action: {data.get('nextAction') or ''}\n\n"
        "Please provide practical guidance and a roadmap for achieving this goal."
    )


def parse_plan(raw_text: str) -> Plan:
    """Parse a model reply into a Plan, raising UpstreamParseFailure on bad shape."""
    cleaned = clean_llm_response(raw_text)
    try:
        return Plan.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.error("Failed to parse plan: %s — raw: '%s'", exc, raw_text)
        raise UpstreamParseFailure("Failed to parse AI response") from exc


def coerce_plan(raw: Any) -> Plan | None:
    """Validate a caller-supplied plan object; None when it is unusable."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return None
    try:
        return Plan.model_validate(raw)
    except ValidationError:
        return None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class PlanService:
    """Generate and cache plans for ideas and projects."""

    def __init__(self, llm: LLMClient, entry_db: EntryDB) -> None:
        self._llm = llm
        self._db = entry_db

    def _load(
        self, user_id: str, entry_id: str, category: Category, strict: bool = False,
    ) -> Entry:
        """Fetch an entry of `category`.

        A wrong category reads as not found, or as a bad request when strict.
        """
        entry = self._db.get(user_id, entry_id)
        if entry is None:
            raise NotFound(f"{category.value.capitalize()} not found")
        if entry.category is not category:
            if strict:
                raise BadRequest(f"Entry is not a {category.value}")
            raise NotFound(f"{category.value.capitalize()} not found")
        return entry

    async def generate(self, entry: Entry) -> Plan:
        """One model call producing a fresh plan for `entry`. Nothing is stored."""
        if entry.category is Category.IDEA:
            system, request = _IDEA_PROMPT, _idea_request(entry.data)
        elif entry.category is Category.PROJECT:
            system, request = _PROJECT_PROMPT, _project_request(entry.data)
        else:
            raise BadRequest(f"Plans are not available for {entry.category.value} entries")

        raw_text = await self._llm.complete(system=system, user_message=request, max_tokens=2048)
        plan = parse_plan(raw_text)
        logger.info("Generated plan with %d steps for entry %s", len(plan.steps), entry.id)
        return plan

    async def get_plan(
        self, user_id: str, entry_id: str, category: Category, regenerate: bool = False,
    ) -> tuple[Entry, Plan]:
        """Return the cached plan, or generate and cache a new one."""
        entry = self._load(user_id, entry_id, category)

        cached = entry.data.get("suggestions")
        if cached and not regenerate:
            plan = coerce_plan(cached)
            if plan is not None:
                return entry, plan
            logger.warning("Cached plan on entry %s is malformed; regenerating", entry_id)

        plan = await self.generate(entry)
        new_data = {**entry.data, "suggestions": plan.model_dump()}
        try:
            stored = self._db.update_data(user_id, entry_id, new_data)
            if stored is not None:
                entry = stored
        except SecondBrainError as exc:
            logger.error("Failed to cache plan on entry %s: %s", entry_id, exc)
        return entry, plan

    def load_idea(self, user_id: str, entry_id: str) -> Entry:
        return self._load(user_id, entry_id, Category.IDEA, strict=True)

    async def fresh_plan_for_export(self, user_id: str, entry_id: str) -> tuple[Entry, Plan]:
        """Generate an uncached idea plan, falling back to a placeholder."""
        entry = self._load(user_id, entry_id, Category.IDEA, strict=True)
        try:
            plan = await self.generate(entry)
        except UpstreamParseFailure:
            plan = placeholder_plan()
        return entry, plan

    def toggle_saved(self, user_id: str, entry_id: str) -> bool:
        """Flip an idea's bookmark flag and return the new state."""
        entry = self._load(user_id, entry_id, Category.IDEA, strict=True)
        saved = not bool(entry.data.get("saved"))
        if self._db.update_data(user_id, entry_id, {**entry.data, "saved": saved}) is None:
            raise NotFound("Idea not found")
        logger.info("Idea %s saved=%s", entry_id, saved)
        return saved
