"""
Line grouping — turns positioned glyph runs into ordered visual lines.

Coordinates are page space: origin bottom-left, y grows upward, so "top of
page" means the largest y.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Sequence

logger = logging.getLogger(__name__)

LINE_Y_TOLERANCE = 2.0
WORD_GAP_THRESHOLD = 4.0


@dataclass(frozen=True)
class PositionedToken:
    """A single run of rendered text.

    ``y`` is the run's baseline, ``height`` the extent above it and ``descent``
    the extent below it.
    """
    text: str
    x: float
    y: float
    width: float
    height: float
    descent: float = 0.0

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.width, self.height, self.descent))


@dataclass
class TextLine:
    """A visual line: tokens sharing a baseline, ordered left to right."""
    text: str
    x0: float
    y0: float
    x1: float
    y1: float
    tokens: List[PositionedToken]
    page_index: int = 0

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def baseline(self) -> float:
        if not self.tokens:
            return self.y0
        return min(t.y for t in self.tokens)


@dataclass
class PageLayout:
    page_index: int
    width: float
    height: float
    lines: List[TextLine] = field(default_factory=list)


@dataclass
class DocumentLayout:
    pages: List[PageLayout] = field(default_factory=list)

    def all_lines(self) -> List[TextLine]:
        """Every line in document order (pages in order, top to bottom)."""
        return [line for page in self.pages for line in page.lines]

    def resume_text(self, max_chars: int = 14000) -> str:
        """Page-marked plain text of the document, for keyword grounding."""
        parts: List[str] = []
        for page in self.pages:
            parts.append(f"\n--- Page {page.page_index + 1} ---\n")
            for line in page.lines:
                text = line.text.strip()
                if text:
                    parts.append(text)
        full = "\n".join(parts)
        return full[:max_chars]


def _join_tokens(tokens: Sequence[PositionedToken], gap_threshold: float) -> str:
    text = ""
    prev = None
    for tok in tokens:
        if prev is not None:
            gap = tok.x - (prev.x + prev.width)
            if gap > gap_threshold:
                text += " "
        text += tok.text
        prev = tok
    return re.sub(r"\s+", " ", text).strip()


def _build_line(tokens: List[PositionedToken], page_index: int, gap_threshold: float) -> TextLine:
    ordered = sorted(tokens, key=lambda t: t.x)
    return TextLine(
        text=_join_tokens(ordered, gap_threshold),
        x0=min(t.x for t in ordered),
        y0=min(t.y - t.descent for t in ordered),
        x1=max(t.x + t.width for t in ordered),
        y1=max(t.y + t.height for t in ordered),
        tokens=ordered,
        page_index=page_index,
    )


def group_tokens_into_lines(
    tokens: Sequence[PositionedToken],
    page_index: int = 0,
    y_tolerance: float = LINE_Y_TOLERANCE,
    gap_threshold: float = WORD_GAP_THRESHOLD,
) -> List[TextLine]:
    """Group one page's tokens into lines, sorted top-to-bottom.

    A token joins the most recently opened line whose representative baseline (its first
    token's y) is within ``y_tolerance``; otherwise it opens a new line.
    Consecutive tokens are separated by a space only when the horizontal gap
    between them exceeds ``gap_threshold`` (split words from kerning stay
    joined). Tokens with non-finite geometry are dropped.
    """
    valid = [t for t in tokens if t.is_finite]
    dropped = len(tokens) - len(valid)
    if dropped:
        logger.debug(f"[LINES] Page {page_index}: dropped {dropped} token(s) with non-finite geometry")

    ordered = sorted(valid, key=lambda t: (-t.y, t.x))

    groups: List[List[PositionedToken]] = []
    for tok in ordered:
        for group in reversed(groups):
            if abs(group[0].y - tok.y) <= y_tolerance:
                group.append(tok)
                break
        else:
            groups.append([tok])

    # groups[i][0] is the representative token; groups open in descending y
    groups.sort(key=lambda g: -g[0].y)
    lines = [_build_line(g, page_index, gap_threshold) for g in groups]
    lines = [ln for ln in lines if ln.text]

    logger.debug(f"[LINES] Page {page_index}: {len(valid)} tokens → {len(lines)} lines")
    return lines
