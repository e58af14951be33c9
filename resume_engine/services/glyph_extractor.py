"""
Glyph extraction — PyMuPDF spans → PositionedTokens in bottom-left page space.
"""

import fitz  # PyMuPDF
import logging
from typing import List, Optional, Tuple

from resume_engine.services.line_grouper import (
    DocumentLayout,
    PageLayout,
    PositionedToken,
    group_tokens_into_lines,
)

logger = logging.getLogger(__name__)


def _open(pdf_bytes: bytes) -> fitz.Document:
    try:
        return fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise ValueError(f"Could not open PDF: {e}") from e


def _vertical_extent(span: dict) -> Tuple[float, float]:
    """Ascent and descent of a span, scaled so they add up to the font size.

    Raw font ascender/descender values often add up to well over 1 em and
    overshoot the glyphs; this is the same normalisation PyMuPDF applies
    with small glyph heights enabled.
    """
    size = span["size"]
    asc = span.get("ascender", 0.8)
    dsc = span.get("descender", -0.2)
    if asc < 1e-3 or asc - dsc <= 0:
        asc, dsc = 0.8, -0.2
    total = asc - dsc
    return size * asc / total, size * -dsc / total


def _page_tokens(page: fitz.Page) -> List[PositionedToken]:
    page_h = page.rect.height
    tokens: List[PositionedToken] = []
    blocks = page.get_text("dict", flags=fitz.TEXT_PRESERVE_WHITESPACE)["blocks"]
    for block in blocks:
        if block["type"] != 0:
            continue
        for line in block["lines"]:
            for span in line["spans"]:
                text = span["text"]
                if not text.strip():
                    continue
                x0, _, x1, _ = span["bbox"]
                ascent, descent = _vertical_extent(span)
                tokens.append(PositionedToken(
                    text=text,
                    x=x0,
                    y=page_h - span["origin"][1],
                    width=x1 - x0,
                    height=ascent,
                    descent=descent,
                ))
    return tokens


def extract_page_tokens(pdf_bytes: bytes, page_index: int) -> List[PositionedToken]:
    """All visible text runs of one page."""
    doc = _open(pdf_bytes)
    try:
        if page_index < 0 or page_index >= len(doc):
            raise IndexError(f"Page {page_index} out of range (document has {len(doc)})")
        return _page_tokens(doc[page_index])
    finally:
        doc.close()


def extract_layout(pdf_bytes: bytes, max_pages: Optional[int] = 12) -> DocumentLayout:
    """Extract and group lines for the first ``max_pages`` pages."""
    doc = _open(pdf_bytes)
    layout = DocumentLayout()
    try:
        page_count = len(doc) if max_pages is None else min(len(doc), max_pages)
        for page_index in range(page_count):
            page = doc[page_index]
            tokens = _page_tokens(page)
            lines = group_tokens_into_lines(tokens, page_index=page_index)
            layout.pages.append(PageLayout(
                page_index=page_index,
                width=page.rect.width,
                height=page.rect.height,
                lines=lines,
            ))
    finally:
        doc.close()

    total = sum(len(p.lines) for p in layout.pages)
    logger.info(f"[LAYOUT] Extracted {total} lines from {len(layout.pages)} page(s)")
    return layout
