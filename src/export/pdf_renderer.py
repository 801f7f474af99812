"""
Second Brain — Plan PDF export.

Lays out a PlanDocument on A4 pages by hand: every block measures its text
against the content width, and a new page is started whenever the space
left above the bottom margin is too small for the next block.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

from reportlab.lib.colors import Color
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen.canvas import Canvas

from src.export.document import PlanDocument

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 50
CONTENT_WIDTH = PAGE_WIDTH - MARGIN * 2

REGULAR = "Helvetica"
BOLD = "Helvetica-Bold"
GLYPHS = "ZapfDingbats"
CHECK_MARK = "4"   # ✔ in ZapfDingbats
WARNING_SIGN = "s"  # ▲ in ZapfDingbats

PURPLE = Color(0.486, 0.227, 0.929)
DARK_GRAY = Color(0.102, 0.102, 0.102)
MEDIUM_GRAY = Color(0.294, 0.333, 0.388)
LIGHT_GRAY = Color(0.612, 0.639, 0.686)
AMBER = Color(0.573, 0.251, 0.055)
RULE_GRAY = Color(0.898, 0.906, 0.922)
PANEL_GRAY = Color(0.953, 0.957, 0.965)
LAVENDER = Color(0.929, 0.914, 0.992)
GREEN = Color(0.063, 0.725, 0.506)
ORANGE = Color(0.961, 0.62, 0.043)


def _split_long_word(word: str, max_width: float, font: str, size: float) -> list[str]:
    """Break a single word that is wider than the line, character by character."""
    pieces: list[str] = []
    current = ""
    for char in word:
        if current and stringWidth(current + char, font, size) > max_width:
            pieces.append(current)
            current = char
        else:
            current += char
    if current:
        pieces.append(current)
    return pieces


def wrap_text(text: str, max_width: float, font: str, size: float) -> list[str]:
    """Greedy word wrap measured in points for `font` at `size`."""
    lines: list[str] = []
    current = ""
    for word in text.split():
        if stringWidth(word, font, size) > max_width:
            if current:
                lines.append(current)
                current = ""
            *full, current = _split_long_word(word, max_width, font, size)
            lines.extend(full)
            continue
        candidate = f"{current} {word}" if current else word
        if current and stringWidth(candidate, font, size) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


@dataclass
class RenderedPdf:
    content: bytes
    page_count: int


class PlanPdfWriter:
    """Stateful cursor over a reportlab canvas."""

    def __init__(self, compress: bool = True) -> None:
        self._buffer = io.BytesIO()
        self._canvas = Canvas(self._buffer, pagesize=A4, pageCompression=1 if compress else 0)
        self._y = PAGE_HEIGHT - MARGIN
        self.page_count = 1

    # -- primitives ---------------------------------------------------------

    def _ensure_space(self, needed: float) -> None:
        if self._y - needed < MARGIN:
            self._canvas.showPage()
            self.page_count += 1
            self._y = PAGE_HEIGHT - MARGIN

    def _text(self, x: float, y: float, text: str, font: str, size: float, color: Color) -> None:
        self._canvas.setFont(font, size)
        self._canvas.setFillColor(color)
        self._canvas.drawString(x, y, text)

    def _rule(self, thickness: float, color: Color) -> None:
        self._canvas.setStrokeColor(color)
        self._canvas.setLineWidth(thickness)
        self._canvas.line(MARGIN, self._y, PAGE_WIDTH - MARGIN, self._y)

    def _paragraph(
        self, text: str, x: float, width: float, font: str, size: float,
        leading: float, color: Color,
    ) -> None:
        for line in wrap_text(text, width, font, size):
            self._ensure_space(leading)
            self._text(x, self._y, line, font, size, color)
            self._y -= leading

    def _section_heading(self, title: str) -> None:
        self._ensure_space(50)
        self._text(MARGIN, self._y, title, BOLD, 16, DARK_GRAY)
        self._y -= 10
        self._rule(1, RULE_GRAY)
        self._y -= 20

    def _bullet_list(self, items: list[str], glyph: str, color: Color) -> None:
        for item in items:
            lines = wrap_text(item, CONTENT_WIDTH - 25, REGULAR, 11) or [""]
            self._ensure_space(20)
            self._text(MARGIN + 5, self._y, glyph, GLYPHS, 10, color)
            for index, line in enumerate(lines):
                if index > 0:
                    self._y -= 16
                    self._ensure_space(16)
                self._text(MARGIN + 25, self._y, line, REGULAR, 11, MEDIUM_GRAY)
            self._y -= 18

    # -- blocks -------------------------------------------------------------

    def header(self, doc: PlanDocument) -> None:
        self._text(MARGIN, self._y, doc.category_label, BOLD, 10, AMBER)
        if doc.date_label:
            offset = stringWidth(doc.category_label, BOLD, 10)
            self._text(MARGIN + offset, self._y, f"    {doc.date_label}", REGULAR, 10, LIGHT_GRAY)
        self._y -= 30

    def title(self, doc: PlanDocument) -> None:
        self._paragraph(doc.title, MARGIN, CONTENT_WIDTH, BOLD, 22, 28, DARK_GRAY)
        self._y -= 10

    def summary(self, doc: PlanDocument) -> None:
        self._paragraph(doc.summary, MARGIN, CONTENT_WIDTH, REGULAR, 12, 18, MEDIUM_GRAY)
        self._y -= 15
        self._ensure_space(30)
        self._rule(2, PURPLE)
        self._y -= 30

    def time_estimate(self, doc: PlanDocument) -> None:
        label = "Estimated time: "
        label_width = stringWidth(label, REGULAR, 11)
        value_width = CONTENT_WIDTH - 40 - label_width
        lines = wrap_text(doc.time_estimate, value_width, BOLD, 11) or [""]
        leading = 15
        panel_height = 35 + leading * (len(lines) - 1)
        self._ensure_space(panel_height + 5)
        self._canvas.setFillColor(PANEL_GRAY)
        self._canvas.rect(MARGIN, self._y - panel_height + 10, CONTENT_WIDTH, panel_height, stroke=0, fill=1)
        self._text(MARGIN + 20, self._y - 15, label, REGULAR, 11, MEDIUM_GRAY)
        for index, line in enumerate(lines):
            self._text(MARGIN + 20 + label_width, self._y - 15 - index * leading, line, BOLD, 11, DARK_GRAY)
        self._y -= panel_height + 20

    def steps(self, doc: PlanDocument) -> None:
        self._section_heading("Implementation Steps")
        self._y -= 5
        for number, step in enumerate(doc.steps, start=1):
            self._ensure_space(60)
            self._canvas.setFillColor(LAVENDER)
            self._canvas.circle(MARGIN + 15, self._y + 3, 12, stroke=0, fill=1)
            self._canvas.setFont(BOLD, 10)
            self._canvas.setFillColor(PURPLE)
            self._canvas.drawCentredString(MARGIN + 15, self._y, str(number))
            title_lines = wrap_text(step.title, CONTENT_WIDTH - 40, BOLD, 12) or [""]
            for index, line in enumerate(title_lines):
                if index > 0:
                    self._ensure_space(16)
                self._text(MARGIN + 40, self._y, line, BOLD, 12, DARK_GRAY)
                self._y -= 16
            self._y -= 2
            self._paragraph(step.description, MARGIN + 40, CONTENT_WIDTH - 40, REGULAR, 11, 16, MEDIUM_GRAY)
            self._y -= 15

    def resources(self, doc: PlanDocument) -> None:
        if not doc.resources:
            return
        self._y -= 10
        self._section_heading("Helpful Resources")
        self._bullet_list(doc.resources, CHECK_MARK, GREEN)

    def considerations(self, doc: PlanDocument) -> None:
        if not doc.considerations:
            return
        self._y -= 10
        self._section_heading("Things to Consider")
        self._bullet_list(doc.considerations, WARNING_SIGN, ORANGE)

    def footer(self, doc: PlanDocument) -> None:
        self._y -= 20
        self._ensure_space(30)
        self._rule(1, RULE_GRAY)
        self._y -= 15
        self._canvas.setFont(REGULAR, 9)
        self._canvas.setFillColor(LIGHT_GRAY)
        self._canvas.drawCentredString(PAGE_WIDTH / 2, self._y, doc.footer)

    def finish(self) -> bytes:
        self._canvas.showPage()
        self._canvas.save()
        return self._buffer.getvalue()


def render_plan_pdf(doc: PlanDocument, compress: bool = True) -> RenderedPdf:
    """Draw every section of `doc` and return the PDF bytes."""
    writer = PlanPdfWriter(compress=compress)
    writer.header(doc)
    writer.title(doc)
    writer.summary(doc)
    writer.time_estimate(doc)
    writer.steps(doc)
    writer.resources(doc)
    writer.considerations(doc)
    writer.footer(doc)
    content = writer.finish()
    logger.info("Rendered plan PDF: %d steps, %d pages", len(doc.steps), writer.page_count)
    return RenderedPdf(content=content, page_count=writer.page_count)
