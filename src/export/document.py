"""Content shared by the PDF and HTML plan exports.

Both renderers draw the same PlanDocument, so section order and text are
identical whichever format the caller asks for.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from dateutil import parser as dateutil_parser

from src.core.plan_service import Plan, PlanStep


@dataclass
class PlanDocument:
    category_label: str
    date_label: str
    title: str
    summary: str
    time_estimate: str
    steps: list[PlanStep] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    considerations: list[str] = field(default_factory=list)
    footer: str = ""


def format_long_date(value: str | date) -> str:
    """'2026-03-05' → 'March 5, 2026'. Unreadable input is returned as-is."""
    if isinstance(value, date):
        parsed = value
    else:
        try:
            parsed = dateutil_parser.parse(value)
        except (ValueError, OverflowError, dateutil_parser.ParserError):
            return value
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def build_document(idea: dict[str, Any], plan: Plan, generated_on: date | None = None) -> PlanDocument:
    """Assemble the export content for an idea and its plan."""
    generated_on = generated_on or date.today()
    return PlanDocument(
        category_label=str(idea.get("category") or "idea").upper(),
        date_label=format_long_date(str(idea.get("date") or "")) if idea.get("date") else "",
        title=str(idea.get("insight") or "Untitled idea"),
        summary=plan.summary,
        # The idea's own estimate wins over the plan's default
        time_estimate=str(idea.get("timeEstimate") or plan.timeEstimate or "Unknown"),
        steps=list(plan.steps),
        resources=list(plan.resources),
        considerations=list(plan.considerations),
        footer=f"Generated by Second Brain - {format_long_date(generated_on)}",
    )


def export_filename(insight: str, extension: str) -> str:
    stem = re.sub(r"[^a-z0-9]", "_", insight or "idea", flags=re.IGNORECASE)[:50].lower()
    return f"{stem}_plan.{extension}"
