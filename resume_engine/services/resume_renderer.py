"""
Résumé renderer — lays a StructuredResume out onto fresh letter-size pages.

Two modes share one drawing path:
  - multi-page: running out of vertical space starts a new page
  - strict single-page: running out of space marks the pass truncated and
    every later draw becomes a no-op

Layout order: header (name, headline, contact line), then Summary, Skills,
Experience, Education, Certifications, Projects — each only when non-empty.
All sizes come from one SizeProfile chosen per render attempt.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Tuple

import fitz  # PyMuPDF

from resume_engine.schemas.resume import StructuredResume
from resume_engine.services.canvas import BLACK, Color, LETTER_SIZE, PdfCanvas
from resume_engine.services.text_flow import TextFlow

logger = logging.getLogger(__name__)

BULLET_MARKER = "•"
EM_DASH_JOIN = " — "
COLUMN_GAP = 12.0
# Right column of a row header never starts left of this share of the content width
RIGHT_COLUMN_MIN_FRACTION = 0.55


# ─── Size profiles ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SizeProfile:
    name: str
    margin_top: float
    margin_bottom: float
    margin_left: float
    margin_right: float
    name_size: float
    headline_size: float
    contact_size: float
    section_title_size: float
    body_size: float
    line_height: float  # multiplier applied to the font size
    section_gap: float
    entry_gap: float
    bullet_indent: float
    bullet_text_indent: float
    hanging_indent: float
    rule_gap: float
    rule_thickness: float = 0.75
    page_width: float = LETTER_SIZE[0]
    page_height: float = LETTER_SIZE[1]
    regular_font: str = "Helvetica"
    bold_font: str = "Helvetica-Bold"
    text_color: Color = BLACK
    rule_color: Color = (0.25, 0.25, 0.25)
    min_font_size: float = 7.0

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right

    def step(self, font_size: float) -> float:
        return font_size * self.line_height


NORMAL = SizeProfile(
    name="normal",
    margin_top=54, margin_bottom=54, margin_left=54, margin_right=54,
    name_size=20, headline_size=11.5, contact_size=9.5,
    section_title_size=11.5, body_size=10.5, line_height=1.3,
    section_gap=10, entry_gap=6,
    bullet_indent=10, bullet_text_indent=22, hanging_indent=14,
    rule_gap=4,
)

COMPACT = SizeProfile(
    name="compact",
    margin_top=36, margin_bottom=36, margin_left=36, margin_right=36,
    name_size=16, headline_size=10, contact_size=8.5,
    section_title_size=10, body_size=9, line_height=1.2,
    section_gap=6, entry_gap=3,
    bullet_indent=8, bullet_text_indent=18, hanging_indent=12,
    rule_gap=3,
)

SIZE_PROFILES = {p.name: p for p in (NORMAL, COMPACT)}


def get_size_profile(name: str) -> SizeProfile:
    try:
        return SIZE_PROFILES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown size profile '{name}' (expected one of: {', '.join(SIZE_PROFILES)})"
        ) from None


# ─── Render state ──────────────────────────────────────────────────────────

@dataclass
class RenderCursor:
    """Per-pass drawing position. ``truncated`` never goes back to False."""
    page: fitz.Page
    page_index: int
    y: float
    truncated: bool = False


class ResumeRenderer:
    """Draws one StructuredResume onto one canvas. Not reusable across passes."""

    def __init__(self, canvas: PdfCanvas, profile: SizeProfile, allow_new_pages: bool):
        self.canvas = canvas
        self.profile = profile
        self.allow_new_pages = allow_new_pages
        self.regular = TextFlow(profile.regular_font, canvas.measure_width)
        self.bold = TextFlow(profile.bold_font, canvas.measure_width)
        page = canvas.new_page(profile.page_width, profile.page_height)
        self.cursor = RenderCursor(
            page=page, page_index=page.number,
            y=profile.page_height - profile.margin_top,
        )

    # ── space management ──

    def _reserve(self, height: float) -> bool:
        """Make sure ``height`` points fit below the cursor.

        Starts a new page when allowed, otherwise flips the pass to truncated.
        Returns False when nothing more may be drawn.
        """
        cur = self.cursor
        if cur.truncated:
            return False
        if cur.y - height >= self.profile.margin_bottom:
            return True
        if self.allow_new_pages:
            page = self.canvas.new_page(self.profile.page_width, self.profile.page_height)
            cur.page = page
            cur.page_index = page.number
            cur.y = self.profile.page_height - self.profile.margin_top
            return True
        cur.truncated = True
        logger.info(
            f"[RENDER] Out of space on page {cur.page_index + 1} "
            f"({self.profile.name} profile), truncating"
        )
        return False

    def _space(self, height: float) -> None:
        if not self.cursor.truncated:
            self.cursor.y -= height

    # ── primitives ──

    def _fit(self, flow: TextFlow, text: str, width: float, size: float) -> Tuple[float, List[str]]:
        """Wrap with an uncapped budget (the text's own wrapped length)."""
        wrapped = flow.wrap(text, width, size)
        if not wrapped:
            return size, []
        return flow.fit_to_line_budget(
            text, width, len(wrapped), size, min_font_size=self.profile.min_font_size,
        )

    def _clip(self, flow: TextFlow, text: str, width: float, size: float) -> str:
        if flow.width(text, size) <= width:
            return text
        return flow.ellipsize(text, width, size)

    def _line(self, flow: TextFlow, text: str, x: float, size: float) -> bool:
        step = self.profile.step(size)
        if not self._reserve(step):
            return False
        self.canvas.draw_text(
            self.cursor.page, text, x, self.cursor.y - size, size,
            font=flow.font, color=self.profile.text_color,
        )
        self.cursor.y -= step
        return True

    def _paragraph(self, flow: TextFlow, text: str, x: float, width: float, size: float) -> bool:
        size, lines = self._fit(flow, text, width, size)
        for line in lines:
            if not self._line(flow, line, x, size):
                return False
        return True

    def _hanging(self, text: str, size: float) -> bool:
        """First line full width, continuation lines indented."""
        p = self.profile
        text = " ".join(text.split())
        first = self.regular.wrap(text, p.content_width, size)
        if not first:
            return True
        head = self._clip(self.regular, first[0], p.content_width, size)
        if not self._line(self.regular, head, p.margin_left, size):
            return False
        rest = text[len(first[0]):].strip()
        if not rest:
            return True
        return self._paragraph(
            self.regular, rest, p.margin_left + p.hanging_indent,
            p.content_width - p.hanging_indent, size,
        )

    def _bullet(self, text: str) -> bool:
        p = self.profile
        size, lines = self._fit(
            self.regular, text, p.content_width - p.bullet_text_indent, p.body_size,
        )
        for i, line in enumerate(lines):
            step = p.step(size)
            if not self._reserve(step):
                return False
            baseline = self.cursor.y - size
            if i == 0:
                self.canvas.draw_text(
                    self.cursor.page, BULLET_MARKER, p.margin_left + p.bullet_indent,
                    baseline, size, font=self.regular.font, color=p.text_color,
                )
            self.canvas.draw_text(
                self.cursor.page, line, p.margin_left + p.bullet_text_indent,
                baseline, size, font=self.regular.font, color=p.text_color,
            )
            self.cursor.y -= step
        return True

    def _row(self, left: str, right: str, keep_with_next: bool) -> bool:
        """Bold left text with right-aligned regular text on the first line."""
        p = self.profile
        size = p.body_size
        step = p.step(size)
        right_edge = p.page_width - p.margin_right
        min_right_x = p.margin_left + p.content_width * RIGHT_COLUMN_MIN_FRACTION

        right_x = right_edge
        if right:
            right = self._clip(self.regular, right, right_edge - min_right_x, size)
            right_x = max(right_edge - self.regular.width(right, size), min_right_x)
            left_width = right_x - COLUMN_GAP - p.margin_left
        else:
            left_width = p.content_width

        size_left, left_lines = self._fit(self.bold, left, left_width, size)
        if not left_lines:
            left_lines = [""]

        if not self._reserve(step * 2 if keep_with_next else step):
            return False
        baseline = self.cursor.y - size
        if left_lines[0]:
            self.canvas.draw_text(
                self.cursor.page, left_lines[0], p.margin_left, baseline, size_left,
                font=self.bold.font, color=p.text_color,
            )
        if right:
            self.canvas.draw_text(
                self.cursor.page, right, right_x, baseline, size,
                font=self.regular.font, color=p.text_color,
            )
        self.cursor.y -= step
        for line in left_lines[1:]:
            if not self._line(self.bold, line, p.margin_left, size_left):
                return False
        return True

    def _rule(self) -> bool:
        p = self.profile
        if not self._reserve(1.5 + p.rule_thickness + p.rule_gap):
            return False
        top = self.cursor.y - 1.5
        self.canvas.draw_rectangle(
            self.cursor.page, p.margin_left, top - p.rule_thickness,
            p.content_width, p.rule_thickness, fill=p.rule_color,
        )
        self.cursor.y = top - p.rule_thickness - p.rule_gap
        return True

    # ── sections ──

    def _section(self, title: str, body: Callable[[], bool]) -> bool:
        p = self.profile
        self._space(p.section_gap)
        # Keep the heading on the same page as its first line of content
        needed = p.step(p.section_title_size) + 1.5 + p.rule_thickness + p.rule_gap + p.step(p.body_size)
        if not self._reserve(needed):
            return False
        if not self._line(self.bold, title.upper(), p.margin_left, p.section_title_size):
            return False
        if not self._rule():
            return False
        return body()

    def _header(self, doc: StructuredResume) -> bool:
        p = self.profile
        header = doc.header
        size, name_lines = self.bold.fit_to_line_budget(
            header.name, p.content_width, 1, p.name_size, min_font_size=p.min_font_size,
        )
        for line in name_lines:
            if not self._line(self.bold, line, p.margin_left, size):
                return False
        if header.headline and header.headline.strip():
            if not self._paragraph(self.regular, header.headline, p.margin_left, p.content_width, p.headline_size):
                return False
        contact = " | ".join(header.contact_parts)
        if contact:
            if not self._paragraph(self.regular, contact, p.margin_left, p.content_width, p.contact_size):
                return False
        return True

    def _summary(self, doc: StructuredResume) -> bool:
        p = self.profile
        for text in doc.summary:
            if text.strip() and not self._paragraph(self.regular, text, p.margin_left, p.content_width, p.body_size):
                return False
        return True

    def _skills(self, doc: StructuredResume) -> bool:
        for group in doc.skills:
            items = ", ".join(i.strip() for i in group.items if i.strip())
            if not items:
                continue
            if not self._hanging(f"{group.category}: {items}", self.profile.body_size):
                return False
        return True

    def _experience(self, doc: StructuredResume) -> bool:
        for entry in doc.experience:
            left = EM_DASH_JOIN.join(s for s in (entry.title, entry.company) if s)
            right = " | ".join(s for s in (entry.location, entry.dates) if s)
            bullets = [b for b in entry.bullets if b.strip()]
            if not self._row(left, right, keep_with_next=bool(bullets)):
                return False
            for bullet in bullets:
                if not self._bullet(bullet):
                    return False
            self._space(self.profile.entry_gap)
        return True

    def _education(self, doc: StructuredResume) -> bool:
        for entry in doc.education:
            left = EM_DASH_JOIN.join(s for s in (entry.degree, entry.school) if s)
            right = " | ".join(s for s in (entry.location, entry.dates) if s)
            details = [d for d in entry.details if d.strip()]
            if not self._row(left, right, keep_with_next=bool(details)):
                return False
            for detail in details:
                if not self._bullet(detail):
                    return False
            self._space(self.profile.entry_gap)
        return True

    def _certifications(self, doc: StructuredResume) -> bool:
        for cert in doc.certifications:
            text = EM_DASH_JOIN.join(s for s in (cert.name, cert.issuer) if s)
            if cert.date:
                text = f"{text} ({cert.date})"
            if not self._bullet(text):
                return False
        return True

    def _projects(self, doc: StructuredResume) -> bool:
        p = self.profile
        for project in doc.projects:
            bullets = [b for b in project.bullets if b.strip()]
            has_body = bool(bullets or project.description or project.technologies)
            if not self._row(project.name, project.link or "", keep_with_next=has_body):
                return False
            if project.description and project.description.strip():
                if not self._paragraph(self.regular, project.description, p.margin_left, p.content_width, p.body_size):
                    return False
            tech = ", ".join(t.strip() for t in project.technologies if t.strip())
            if tech and not self._hanging(f"Technologies: {tech}", p.body_size):
                return False
            for bullet in bullets:
                if not self._bullet(bullet):
                    return False
            self._space(p.entry_gap)
        return True

    def render(self, doc: StructuredResume) -> RenderCursor:
        """Draw the whole document. Returns the final cursor."""
        sections: List[Tuple[str, bool, Callable[[], bool]]] = [
            ("Summary", any(s.strip() for s in doc.summary), lambda: self._summary(doc)),
            ("Skills", any(any(i.strip() for i in g.items) for g in doc.skills), lambda: self._skills(doc)),
            ("Experience", bool(doc.experience), lambda: self._experience(doc)),
            ("Education", bool(doc.education), lambda: self._education(doc)),
            ("Certifications", bool(doc.certifications), lambda: self._certifications(doc)),
            ("Projects", bool(doc.projects), lambda: self._projects(doc)),
        ]

        if self._header(doc):
            for title, present, body in sections:
                if present and not self._section(title, body):
                    break

        logger.info(
            f"[RENDER] {self.profile.name} profile: {self.canvas.page_count} page(s), "
            f"truncated={self.cursor.truncated}"
        )
        return self.cursor


# ─── Public API ────────────────────────────────────────────────────────────

def render_multi_page(doc: StructuredResume, profile: SizeProfile = NORMAL) -> Tuple[bytes, int]:
    """Render across as many pages as needed. Never truncates."""
    canvas = PdfCanvas()
    try:
        ResumeRenderer(canvas, profile, allow_new_pages=True).render(doc)
        return canvas.save(), canvas.page_count
    finally:
        canvas.close()


def render_single_page_strict(doc: StructuredResume, profile: SizeProfile = NORMAL) -> Tuple[bytes, bool]:
    """Render onto exactly one page. Reports whether content was cut off."""
    canvas = PdfCanvas()
    try:
        cursor = ResumeRenderer(canvas, profile, allow_new_pages=False).render(doc)
        return canvas.save(), cursor.truncated
    finally:
        canvas.close()
