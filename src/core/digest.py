"""
Second Brain — Daily Focus Digest.

Three short focus points for today, synthesized from the caller's most
recent open tasks and projects. Any failure yields an empty list; the
digest is never worth a hard error.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from src.core.errors import SecondBrainError
from src.core.llm import clean_llm_response
from src.data.models import Category, Entry

if TYPE_CHECKING:
    from src.core.llm import LLMClient
    from src.data.db import EntryDB

logger = logging.getLogger(__name__)

MAX_TASKS = 10
MAX_PROJECTS = 5

_DIGEST_PROMPT = """\
Based on these tasks and projects, generate exactly 3 short, actionable focus points for today. Each should be 1 sentence max.

Tasks:
{tasks}

Projects:
{projects}

Return as a JSON array of 3 strings, nothing else. Example: ["Focus point 1", "Focus point 2", "Focus point 3"]"""

_SYSTEM = "You are a concise personal productivity assistant."


def summarize_entries(tasks: list[Entry], projects: list[Entry]) -> tuple[str, str]:
    task_lines = "\n".join(
        f"- Task: {t.data.get('task', '')} "
        f"(Priority: {t.data.get('priority', '')}, Deadline: {t.data.get('deadline') or ''})"
        for t in tasks
    )
    project_lines = "\n".join(
        f"- Project: {p.data.get('goal', '')} "
        f"(Status: {p.data.get('status', '')}, Next: {p.data.get('nextAction') or ''})"
        for p in projects
    )
    return task_lines or "No tasks", project_lines or "No projects"


def parse_bullets(raw_text: str) -> list[str]:
    """Parse a JSON array of strings; [] for anything else."""
    try:
        bullets = json.loads(clean_llm_response(raw_text))
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse digest as JSON: %s — raw: '%s'", exc, raw_text)
        return []
    if not isinstance(bullets, list):
        logger.warning("Digest reply is not a list: %s", type(bullets).__name__)
        return []
    return [str(b).strip() for b in bullets if isinstance(b, str) and b.strip()]


class DigestGenerator:
    def __init__(self, llm: LLMClient, entry_db: EntryDB) -> None:
        self._llm = llm
        self._db = entry_db

    async def generate(self, user_id: str) -> list[str]:
        tasks = self._db.list_entries(user_id, category=Category.TASK, limit=MAX_TASKS)
        projects = self._db.list_entries(user_id, category=Category.PROJECT, limit=MAX_PROJECTS)

        if not tasks and not projects:
            logger.info("No open tasks or projects for %s; skipping digest", user_id)
            return []

        task_lines, project_lines = summarize_entries(tasks, projects)
        try:
            raw_text = await self._llm.complete(
                system=_SYSTEM,
                user_message=_DIGEST_PROMPT.format(tasks=task_lines, projects=project_lines),
                max_tokens=512,
            )
        except SecondBrainError as exc:
            logger.warning("Digest generation failed for %s: %s", user_id, exc)
            return []

        return parse_bullets(raw_text)
