"""
Bullet block detection.

A bullet block is a bullet-started line plus the indented continuation lines
that wrap beneath it. Blocks are the unit the overlay editor replaces.

The continuation thresholds (18pt vertical, 8pt indent) were tuned on ~10pt
body text and are not derived from font metrics.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Sequence

from resume_engine.services.line_grouper import TextLine

logger = logging.getLogger(__name__)

BULLET_GLYPHS = ("•", "‣", "◦", "·", "●", "-", "–", "—", "*")
MAX_BULLET_BLOCKS = 40
MAX_CONTINUATION_LINES = 6
MAX_CONTINUATION_GAP = 18.0
MIN_CONTINUATION_INDENT = 8.0

_NUMBERED_RE = re.compile(r"^\d+\.")


@dataclass
class BulletBlock:
    """An addressable bulleted item spanning one or more lines."""
    id: str
    page_index: int
    x0: float
    y0: float
    x1: float
    y1: float
    lines: List[TextLine]
    raw_text: str

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def body_text(self) -> str:
        """raw_text without its leading bullet marker."""
        return strip_bullet_marker(self.raw_text)


def is_bullet_line(text: str) -> bool:
    stripped = text.lstrip()
    if not stripped:
        return False
    return stripped[0] in BULLET_GLYPHS or bool(_NUMBERED_RE.match(stripped))


def strip_bullet_marker(text: str) -> str:
    stripped = text.lstrip()
    if not stripped:
        return ""
    m = _NUMBERED_RE.match(stripped)
    if m:
        return stripped[m.end():].strip()
    if stripped[0] in BULLET_GLYPHS:
        return stripped[1:].strip()
    return stripped.strip()


def _is_continuation(
    bullet: TextLine, last: TextLine, candidate: TextLine,
    max_gap: float, min_indent: float,
) -> bool:
    if candidate.page_index != bullet.page_index:
        return False
    if is_bullet_line(candidate.text):
        return False
    # Baseline drop from the last absorbed line (y grows upward)
    if last.baseline - candidate.baseline > max_gap:
        return False
    return candidate.x0 >= bullet.x0 + min_indent


def _make_block(block_id: str, lines: List[TextLine]) -> BulletBlock:
    return BulletBlock(
        id=block_id,
        page_index=lines[0].page_index,
        x0=min(ln.x0 for ln in lines),
        y0=min(ln.y0 for ln in lines),
        x1=max(ln.x1 for ln in lines),
        y1=max(ln.y1 for ln in lines),
        lines=list(lines),
        raw_text=" ".join(ln.text for ln in lines),
    )


def detect_bullet_blocks(
    lines: Sequence[TextLine],
    max_blocks: int = MAX_BULLET_BLOCKS,
    max_continuation: int = MAX_CONTINUATION_LINES,
    max_vertical_gap: float = MAX_CONTINUATION_GAP,
    min_indent: float = MIN_CONTINUATION_INDENT,
) -> List[BulletBlock]:
    """Merge bullet lines with their continuation lines.

    ``lines`` must be in document order: pages in order, each page top to
    bottom (as produced by ``DocumentLayout.all_lines``). A line is consumed by
    at most one block; the first bullet line above it wins.
    """
    blocks: List[BulletBlock] = []
    consumed = set()
    i = 0
    n = len(lines)

    while i < n and len(blocks) < max_blocks:
        line = lines[i]
        if i in consumed or not is_bullet_line(line.text):
            i += 1
            continue

        members = [line]
        consumed.add(i)
        j = i + 1
        while j < n and len(members) - 1 < max_continuation:
            candidate = lines[j]
            if not _is_continuation(line, members[-1], candidate, max_vertical_gap, min_indent):
                break
            members.append(candidate)
            consumed.add(j)
            j += 1

        blocks.append(_make_block(f"b{len(blocks)}", members))
        i = j

    logger.info(f"[BULLETS] Detected {len(blocks)} bullet block(s) from {n} lines")
    return blocks
