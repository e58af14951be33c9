"""
Overlay editor — replaces bullet text in an existing PDF without touching
anything else on the page.

Each edit whites out the block's bounding box and redraws the new text inside
it, shrinking the font so the block never grows taller than the original.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from resume_engine.services.bullet_blocks import BulletBlock, BULLET_GLYPHS, is_bullet_line
from resume_engine.services.canvas import BLACK, WHITE, Color, PdfCanvas
from resume_engine.services.line_grouper import DocumentLayout, TextLine
from resume_engine.services.text_flow import TextFlow

logger = logging.getLogger(__name__)

OVERLAY_PADDING = 1.5
DEFAULT_BULLET_PREFIX = "• "
MIN_MATCH_SCORE = 0.08


def _with_bullet(text: str) -> str:
    stripped = text.lstrip()
    if stripped and stripped[0] in BULLET_GLYPHS:
        return stripped
    return DEFAULT_BULLET_PREFIX + stripped


def _overlay_box(
    canvas: PdfCanvas,
    flow: TextFlow,
    page_index: int,
    box: Tuple[float, float, float, float],
    line_budget: int,
    text: str,
    font_size: float,
    line_gap: float,
    padding: float,
    fill: Color,
    color: Color,
    first_baseline: Optional[float] = None,
) -> int:
    """White-out ``box`` and draw ``text`` inside it. Returns lines drawn.

    The first line sits on ``first_baseline`` (the replaced text's own
    baseline) when known, otherwise one font size below the box top.
    """
    x0, y0, x1, y1 = box
    page = canvas.page(page_index)
    canvas.draw_rectangle(
        page,
        x0 - padding, y0 - padding,
        (x1 - x0) + 2 * padding, (y1 - y0) + 2 * padding,
        fill=fill,
    )

    size, lines = flow.fit_to_line_budget(text, x1 - x0, line_budget, font_size)
    step = size * line_gap
    baseline = first_baseline if first_baseline is not None else y1 - size
    drawn = 0
    for line in lines:
        if baseline < y0:
            break
        canvas.draw_text(page, line, x0, baseline, size, font=flow.font, color=color)
        drawn += 1
        baseline -= step
    return drawn


def apply_bullet_edits(
    pdf_bytes: bytes,
    blocks: Sequence[BulletBlock],
    edits: Mapping[str, str],
    font_size: float = 10.0,
    line_gap: float = 1.15,
    padding: float = OVERLAY_PADDING,
    font: str = "Helvetica",
    fill: Color = WHITE,
    color: Color = BLACK,
) -> bytes:
    """Overlay replacement text onto the blocks named in ``edits``.

    Blocks missing from ``edits`` or mapped to blank text are left alone.
    Returns ``pdf_bytes`` unchanged when there is nothing to apply.
    """
    if not edits:
        return pdf_bytes

    canvas = PdfCanvas(pdf_bytes)
    flow = TextFlow(font=font, measure=canvas.measure_width)
    applied = 0
    try:
        for block in blocks:
            new_text = edits.get(block.id)
            if new_text is None:
                continue
            if not new_text.strip():
                logger.info(f"[OVERLAY] Block {block.id}: blank replacement, leaving unedited")
                continue

            drawn = _overlay_box(
                canvas, flow, block.page_index,
                (block.x0, block.y0, block.x1, block.y1),
                block.line_count, _with_bullet(new_text),
                font_size, line_gap, padding, fill, color,
                first_baseline=block.lines[0].baseline if block.lines else None,
            )
            applied += 1
            logger.debug(f"[OVERLAY] Block {block.id}: drew {drawn}/{block.line_count} line(s)")

        if not applied:
            return pdf_bytes
        logger.info(f"[OVERLAY] Applied {applied} edit(s) across {len(blocks)} block(s)")
        return canvas.save()
    finally:
        canvas.close()


def sanitize_edits(
    blocks: Sequence[BulletBlock],
    raw_edits: Sequence[Mapping[str, Any]],
    max_edits: int = 12,
) -> Dict[str, str]:
    """Clean model-proposed ``{"bulletId", "to"}`` edits.

    Drops unknown ids, blank text and repeated (id, text) pairs, collapses
    whitespace, and keeps at most ``max_edits``. A later edit for the same id
    replaces an earlier one.
    """
    valid_ids = {b.id for b in blocks}
    cleaned: Dict[str, str] = {}
    seen = set()
    for edit in raw_edits:
        block_id = str(edit.get("bulletId") or "").strip()
        if not block_id or block_id not in valid_ids:
            logger.warning(f"[SANITIZE] Unknown bullet id '{block_id}', dropping")
            continue
        text = re.sub(r"\s+", " ", str(edit.get("to") or "")).strip()
        if not text:
            continue
        key = (block_id, text.lower())
        if key in seen:
            continue
        seen.add(key)
        if block_id not in cleaned and len(cleaned) >= max_edits:
            break
        cleaned[block_id] = text
    return cleaned


# ─── Free-form line replacement ─────────────────────────────────────────────

def normalize_text(text: str) -> str:
    """Fold NBSP, bullet glyphs and dashes; collapse whitespace; lowercase."""
    s = str(text or "").replace("\u00a0", " ")
    s = re.sub(r"[•·●]", "-", s)
    s = re.sub(r"[–—]", "-", s)
    return re.sub(r"\s+", " ", s).strip().lower()


def find_line_match(layout: DocumentLayout, from_text: str) -> Optional[TextLine]:
    """Best line for a snippet: exact normalised match, else closest containment."""
    target = normalize_text(from_text)
    if not target:
        return None

    lines = layout.all_lines()
    for line in lines:
        if normalize_text(line.text) == target:
            return line

    best: Optional[TextLine] = None
    best_score = 0.0
    for line in lines:
        candidate = normalize_text(line.text)
        if not candidate:
            continue
        if target not in candidate and candidate not in target:
            continue
        score = 1 / (1 + abs(len(candidate) - len(target)))
        if score > best_score:
            best_score = score
            best = line

    if best is not None and best_score >= MIN_MATCH_SCORE:
        return best
    return None


def apply_line_replacements(
    pdf_bytes: bytes,
    layout: DocumentLayout,
    replacements: Sequence[Mapping[str, str]],
    font_size: float = 10.0,
    line_gap: float = 1.15,
    font: str = "Helvetica",
) -> Tuple[bytes, List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Overlay ``{"from", "to"}`` replacements onto single matched lines.

    Returns (pdf bytes, applied, misses).
    """
    applied: List[Dict[str, Any]] = []
    misses: List[Dict[str, Any]] = []
    pending: List[Tuple[TextLine, str]] = []

    for rep in replacements:
        old = str(rep.get("from") or "").strip()
        new = str(rep.get("to") or "").strip()
        if not old or not new:
            continue
        hit = find_line_match(layout, old)
        if hit is None:
            misses.append({"from": old})
            continue
        final = _with_bullet(new) if is_bullet_line(hit.text) and not is_bullet_line(new) else new
        pending.append((hit, final))

    if not pending:
        return pdf_bytes, applied, misses

    canvas = PdfCanvas(pdf_bytes)
    flow = TextFlow(font=font, measure=canvas.measure_width)
    try:
        for line, text in pending:
            _overlay_box(
                canvas, flow, line.page_index,
                (line.x0, line.y0, line.x1, line.y1),
                1, text, font_size, line_gap, OVERLAY_PADDING, WHITE, BLACK,
                first_baseline=line.baseline,
            )
            applied.append({"from": line.text, "to": text, "pageNumber": line.page_index + 1})
        logger.info(f"[OVERLAY] Line replacements: {len(applied)} applied, {len(misses)} missed")
        return canvas.save(), applied, misses
    finally:
        canvas.close()
