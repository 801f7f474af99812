"""
Second Brain — Chat Action Blocks.

Chat models answer in prose and may end the reply with a single JSON
instruction such as {"action": "update", "updates": {"priority": "high"}}.
This module finds that block, parses it, and removes it from the text the
user sees.

Patterns are tried in order and the first match wins. A block that matches
but does not parse is ignored and the reply is returned untouched.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

_ACTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Inline update object, the shape every chat prompt asks for
    re.compile(r'\{"action":\s*"update",\s*"updates":\s*\{[^{}]*\}\s*\}'),
    # Inline object with any action name
    re.compile(r'\{"action":\s*"[^"]+",\s*"updates":\s*\{[^{}]*\}\s*\}'),
    # Inline link action, e.g. directions
    re.compile(r'\{"action":\s*"[^"]+",\s*"url":\s*"[^"]+"\s*\}'),
    # Fenced code block wrapping the object
    re.compile(r'```(?:json)?\s*(\{[\s\S]*?\})\s*```'),
)


@dataclass
class ActionMatch:
    """A candidate block found in a reply."""

    matched_text: str  # exact substring to strip from the reply
    json_text: str     # the object itself, without any fence


@dataclass
class ExtractedAction:
    """Outcome of scanning one reply."""

    display_text: str
    action: dict[str, Any] | None = None

    @property
    def updates(self) -> dict[str, Any] | None:
        """The update map, when the block is a well-formed update action."""
        if self.action is None or self.action.get("action") != "update":
            return None
        updates = self.action.get("updates")
        if not isinstance(updates, dict) or not updates:
            return None
        return updates


def _enclosing_fence(reply: str, inline: str) -> str:
    """Widen an inline match to the code fence around it, if there is one."""
    fenced = re.search(r"```(?:json)?\s*" + re.escape(inline) + r"\s*```", reply)
    return fenced.group(0) if fenced else inline


def find_action_block(reply: str) -> ActionMatch | None:
    """Return the first candidate action block in `reply`, if any."""
    for pattern in _ACTION_PATTERNS:
        match = pattern.search(reply)
        if not match:
            continue
        if match.groups():
            return ActionMatch(matched_text=match.group(0), json_text=match.group(1).strip())
        return ActionMatch(
            matched_text=_enclosing_fence(reply, match.group(0)),
            json_text=match.group(0),
        )
    return None


def extract_action(reply: str) -> ExtractedAction:
    """Split a chat reply into user-facing text and an optional action.

    On a successful parse the block is removed from the text. On a parse
    failure the failure is logged and the full reply is kept.
    """
    candidate = find_action_block(reply)
    if candidate is None:
        logger.debug("No action block in reply: %s", reply[:200])
        return ExtractedAction(display_text=reply)

    try:
        action = json.loads(candidate.json_text)
    except json.JSONDecodeError as exc:
        logger.error("Error parsing action block: %s — raw match: '%s'", exc, candidate.json_text)
        return ExtractedAction(display_text=reply)

    if not isinstance(action, dict):
        logger.warning("Action block is not an object: %s", candidate.json_text)
        return ExtractedAction(display_text=reply)

    display_text = reply.replace(candidate.matched_text, "", 1).strip()
    return ExtractedAction(display_text=display_text, action=action)
