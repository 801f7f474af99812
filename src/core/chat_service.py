"""
Second Brain — Advisory Chat.

One chat turn per request for ideas, projects and tasks. Each turn sends the
entry's current fields to the model; the model may end its reply with an
action block asking for a field update, which is merged into the stored
payload before the cleaned reply goes back to the user.

History is not stored: the client resends whatever context it wants.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable
from zoneinfo import ZoneInfo

from src.core.action_block import extract_action
from src.core.date_parser import parse_natural_date
from src.core.errors import BadRequest, NotFound, SecondBrainError
from src.data.models import PROJECT_STATUSES, Category, Entry
from src.integrations.google_maps import directions_url

if TYPE_CHECKING:
    from src.core.llm import LLMClient
    from src.core.plan_service import Plan
    from src.data.db import EntryDB
    from src.integrations.google_maps import GoogleMapsClient

logger = logging.getLogger(__name__)

APOLOGY = "Sorry, I ran into a problem processing that message. Please try again."


@dataclass
class UserLocation:
    latitude: float | None = None
    longitude: float | None = None

    def as_origin(self) -> str | None:
        if self.latitude is None or self.longitude is None:
            return None
        return f"{self.latitude},{self.longitude}"


@dataclass
class ChatReply:
    response: str
    updated: bool = False
    updated_fields: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_UPDATE_CONTRACT = """\
When the user wants to modify the {noun}, respond with a JSON object at the END of your message:
{{"action": "update", "updates": {{"field": "value"}}}}"""


def _plan_outline(plan: Plan | None, with_milestones: bool) -> str:
    if plan is None:
        return ""
    steps = ", ".join(f"{i}. {step.title}" for i, step in enumerate(plan.steps, start=1))
    lines = ["", "Current AI-Generated Plan:", f"- Summary: {plan.summary}"]
    if with_milestones:
        lines.append(f"- Milestones: {', '.join(plan.milestones)}")
    else:
        lines.append(f"- Default Time Estimate: {plan.timeEstimate}")
    lines.append(f"- Steps: {steps}")
    return "\n".join(lines) + "\n"


def build_idea_prompt(data: dict[str, Any], plan: Plan | None) -> str:
    return f"""\
You are a helpful idea assistant. You help users develop and refine their ideas.

Current Idea:
- Insight: {data.get('insight', '')}
- Category: {data.get('category') or ''}
- Date: {data.get('date') or ''}
- Time Estimate: {data.get('timeEstimate') or 'Not set (AI will generate)'}
- Notes: {data.get('notes') or 'None'}
{_plan_outline(plan, with_milestones=False)}
You can help the user:
1. Edit the idea details (insight, category, timeEstimate, notes)
2. Discuss and refine the implementation plan
3. Answer questions about how to execute the idea

{_UPDATE_CONTRACT.format(noun="idea")}

Valid fields:
- insight (string): The main idea/insight - clean up grammar and make it clear
- category (string): The idea category
- timeEstimate (string): Custom time estimate (e.g., "4-8 months", "2 weeks")
- notes (string): Additional notes about the idea

Examples:
- "Change insight to: Build a mobile app" → {{"action": "update", "updates": {{"insight": "Build a mobile app"}}}}
- "Update category to business" → {{"action": "update", "updates": {{"category": "business"}}}}
- "Change the estimated time to 4-8 months" → {{"action": "update", "updates": {{"timeEstimate": "4-8 months"}}}}

IMPORTANT: When the user asks to change ANY field, you MUST include the JSON action at the end of your response.

Be concise and helpful. Focus on making the idea actionable."""


def build_project_prompt(data: dict[str, Any], plan: Plan | None) -> str:
    return f"""\
You are a helpful project advisor. You help users plan, execute, and complete their projects.

Current Project:
- Goal: {data.get('goal', '')}
- Status: {data.get('status', '')}
- Next Action: {data.get('nextAction') or ''}
{_plan_outline(plan, with_milestones=True)}
You can help the user:
1. Edit the project details (goal, status, nextAction)
2. Discuss strategy and next steps
3. Help break down work and unblock progress

{_UPDATE_CONTRACT.format(noun="project")}

Valid fields:
- goal (string): The project goal
- status (string): Must be one of "active", "on-hold", or "completed"
- nextAction (string): The immediate next step to take

Examples:
- "Change status to on-hold" → {{"action": "update", "updates": {{"status": "on-hold"}}}}
- "Update next action to: Set up the database" → {{"action": "update", "updates": {{"nextAction": "Set up the database"}}}}

IMPORTANT: When the user asks to change ANY field, you MUST include the JSON action at the end of your response.

Be concise and helpful. Focus on actionable advice that moves the project forward."""


def build_task_prompt(data: dict[str, Any], other_tasks: list[Entry], distance_info: str) -> str:
    location = data.get("location") or ""
    if location:
        task_type = (
            "TASK TYPE: Location-based errand\n"
            + (f"Current Distance: {distance_info}" if distance_info else "User GPS: Not available")
            + '\n\nFocus on logistics and travel. When asked "how far" or about distance, '
            "provide the travel info above."
        )
        location_examples = (
            f'- "Get directions" → use EXACTLY this URL: {directions_url(location)}\n'
            f'- "How far am I?" → Tell them: {distance_info or "Location services unavailable"}\n\n'
            "Never make up URLs. Only use the directions URL above."
        )
        closing = "Be concise. Proactively mention travel time if relevant."
    else:
        task_type = (
            "TASK TYPE: Simple task (no location)\n"
            "Focus on productivity and task management. Don't mention travel or directions."
        )
        location_examples = ""
        closing = "Be concise. Focus on helping them complete the task efficiently."

    conflicts = ""
    if other_tasks:
        listed = "\n".join(
            f"- {t.data.get('task', '')} (Deadline: {t.data.get('deadline') or 'Not set'})"
            for t in other_tasks
        )
        conflicts = f"\nOther Tasks (for conflict detection):\n{listed}\n"

    return f"""\
You are a smart task assistant that adapts to the task type.

Current Task Information:
- Task: {data.get('task', '')}
- Status: {data.get('status') or 'pending'}
- Priority: {data.get('priority') or 'medium'}
- Deadline: {data.get('deadline') or 'Not set'}
- Location: {location or 'None (simple task)'}
- Notes: {data.get('notes') or 'None'}

{task_type}
{conflicts}
{_UPDATE_CONTRACT.format(noun="task")}

Valid fields:
- task (string): Task name
- status: "pending", "in-progress", or "completed"
- priority: "low", "medium", or "high"
- deadline (string): Date/time
- location (string): Address - adding one makes this a location task, an empty string makes it a simple task
- notes (string): Clean up and improve grammar before saving

Examples:
- "Change priority to high" → {{"action": "update", "updates": {{"priority": "high"}}}}
- "Mark complete" → {{"action": "update", "updates": {{"status": "completed"}}}}
- "Add note: bring laptop" → {{"action": "update", "updates": {{"notes": "Bring laptop."}}}}
{location_examples}

{closing}"""


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ChatService:
    """Runs single chat turns against idea, project and task entries."""

    def __init__(
        self,
        llm: LLMClient,
        entry_db: EntryDB,
        maps: GoogleMapsClient | None = None,
        timezone: str = "UTC",
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        self._llm = llm
        self._db = entry_db
        self._maps = maps
        self._timezone = ZoneInfo(timezone)
        self._now_fn = now_fn

    def _now(self) -> datetime:
        if self._now_fn is not None:
            return self._now_fn()
        return datetime.now(self._timezone).replace(tzinfo=None)

    def _load(self, user_id: str, entry_id: str, category: Category) -> Entry:
        entry = self._db.get(user_id, entry_id)
        if entry is None:
            raise NotFound(f"{category.value.capitalize()} not found")
        if entry.category is not category:
            raise BadRequest(f"Entry is not a {category.value}")
        return entry

    async def idea_chat(
        self, user_id: str, entry_id: str, message: str, plan: Plan | None = None,
    ) -> ChatReply:
        entry = self._load(user_id, entry_id, Category.IDEA)
        system = build_idea_prompt(entry.data, plan)
        return await self._converse(entry, system, message, lambda updates: updates)

    async def project_chat(
        self, user_id: str, entry_id: str, message: str, plan: Plan | None = None,
    ) -> ChatReply:
        entry = self._load(user_id, entry_id, Category.PROJECT)
        system = build_project_prompt(entry.data, plan)
        return await self._converse(entry, system, message, _drop_invalid_status)

    async def task_chat(
        self,
        user_id: str,
        entry_id: str,
        message: str,
        location: UserLocation | None = None,
    ) -> ChatReply:
        entry = self._load(user_id, entry_id, Category.TASK)
        try:
            other_tasks = self._db.list_entries(
                user_id, category=Category.TASK, exclude_id=entry_id,
            )
            distance_info = await self._distance_info(entry, location)
            system = build_task_prompt(entry.data, other_tasks, distance_info)
        except Exception as exc:
            logger.error("Failed to build task chat context for %s: %s", entry_id, exc)
            return ChatReply(response=APOLOGY)

        def prepare(updates: dict[str, Any]) -> dict[str, Any]:
            return self._prepare_task_updates(entry.data, message, updates)

        return await self._converse(entry, system, message, prepare)

    async def _distance_info(self, entry: Entry, location: UserLocation | None) -> str:
        """Travel summary for the prompt; empty when it cannot be computed."""
        destination = entry.data.get("location")
        origin = location.as_origin() if location else None
        if not destination or not origin or self._maps is None or not self._maps.configured:
            return ""
        try:
            result = await self._maps.get_distance(origin, destination)
        except SecondBrainError as exc:
            logger.warning("Distance unavailable for task %s: %s", entry.id, exc)
            return ""
        return (
            f"Distance to task location: {result.distance_text}, "
            f"Travel time: {result.duration_text}"
            + (" (with current traffic)" if result.in_traffic else "")
        )

    def _prepare_task_updates(
        self, data: dict[str, Any], message: str, updates: dict[str, Any],
    ) -> dict[str, Any]:
        updates = dict(updates)
        if updates.get("notes") and data.get("notes") and "add to notes" in message.lower():
            updates["notes"] = f"{data['notes']}\n{updates['notes']}"
        if updates.get("deadline"):
            resolved = parse_natural_date(str(updates["deadline"]), self._now())
            if resolved is not None:
                updates["deadline"] = resolved
        return updates

    async def _converse(
        self,
        entry: Entry,
        system: str,
        message: str,
        prepare: Callable[[dict[str, Any]], dict[str, Any]],
    ) -> ChatReply:
        try:
            reply = await self._llm.complete(system=system, user_message=message, max_tokens=1024)
            extracted = extract_action(reply)
            updates = extracted.updates
            if updates is None:
                return ChatReply(response=extracted.display_text)

            updates = prepare(updates)
            if not updates:
                return ChatReply(response=extracted.display_text)
            updated = self._apply(entry, updates)
            return ChatReply(
                response=extracted.display_text,
                updated=updated,
                updated_fields=updates,
            )
        except Exception as exc:
            logger.error("%s chat failed for %s: %s", entry.category.value, entry.id, exc)
            return ChatReply(response=APOLOGY)

    def _apply(self, entry: Entry, updates: dict[str, Any]) -> bool:
        """Shallow-merge `updates` into the stored payload. False if it did not stick."""
        merged = {**entry.data, **updates}
        try:
            stored = self._db.update_data(entry.user_id, entry.id, merged)
        except SecondBrainError as exc:
            logger.error("Chat update for %s not applied: %s", entry.id, exc)
            return False
        if stored is None:
            logger.warning("Entry %s disappeared before chat update", entry.id)
            return False
        logger.info("Chat updated %s fields: %s", entry.id, ", ".join(sorted(updates)))
        return True


def _drop_invalid_status(updates: dict[str, Any]) -> dict[str, Any]:
    if "status" in updates and updates["status"] not in PROJECT_STATUSES:
        logger.warning("Dropping invalid project status %r", updates["status"])
        updates = {k: v for k, v in updates.items() if k != "status"}
    return updates
