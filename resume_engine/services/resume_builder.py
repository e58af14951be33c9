"""
Résumé PDF generation for the API: applies the one-page retry policy on top
of the renderer.

Policy: render strictly on one page with the normal profile; if anything was
cut off, render once more with the compact profile and accept that result
(truncated or not). The renderer itself never retries.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from resume_engine.schemas.resume import StructuredResume
from resume_engine.services.resume_renderer import (
    COMPACT,
    NORMAL,
    SizeProfile,
    render_multi_page,
    render_single_page_strict,
)

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    pdf_bytes: bytes
    page_count: int
    truncated: bool
    profile: str


def render_resume_pdf(
    doc: StructuredResume,
    single_page: bool = True,
    profile: Optional[SizeProfile] = None,
) -> RenderResult:
    """Render ``doc`` to PDF bytes.

    With ``single_page`` and no explicit profile, tries normal then compact.
    An explicit profile is rendered exactly once.
    """
    if not single_page:
        chosen = profile or NORMAL
        pdf_bytes, page_count = render_multi_page(doc, chosen)
        return RenderResult(pdf_bytes, page_count, False, chosen.name)

    if profile is not None:
        pdf_bytes, truncated = render_single_page_strict(doc, profile)
        return RenderResult(pdf_bytes, 1, truncated, profile.name)

    pdf_bytes, truncated = render_single_page_strict(doc, NORMAL)
    if not truncated:
        return RenderResult(pdf_bytes, 1, False, NORMAL.name)

    logger.info(f"[RENDER] '{doc.header.name}' overflowed one page at normal size, retrying compact")
    pdf_bytes, truncated = render_single_page_strict(doc, COMPACT)
    if truncated:
        logger.warning(f"[RENDER] '{doc.header.name}' still truncated at compact size")
    return RenderResult(pdf_bytes, 1, truncated, COMPACT.name)
