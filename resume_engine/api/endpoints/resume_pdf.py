# File: resume_engine/api/endpoints/resume_pdf.py
"""
Résumé PDF API — generate a PDF from structured data, list the editable
bullet blocks of an uploaded PDF, and overlay edited bullet text onto it.
"""

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from typing import Dict
import json
import logging

from resume_engine.core.config import settings
from resume_engine.schemas.resume_pdf import (
    BulletBlockOut,
    BulletBlocksResponse,
    RenderRequest,
)
from resume_engine.services.bullet_blocks import detect_bullet_blocks
from resume_engine.services.glyph_extractor import extract_layout
from resume_engine.services.overlay_editor import apply_bullet_edits, sanitize_edits
from resume_engine.services.resume_builder import render_resume_pdf
from resume_engine.services.resume_renderer import get_size_profile

router = APIRouter()
logger = logging.getLogger(__name__)


async def _read_pdf_upload(file: UploadFile) -> bytes:
    if not (file.filename or "").lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(content) > settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"PDF exceeds {settings.MAX_UPLOAD_MB} MB")
    return content


@router.post("/render")
def render_resume(request: RenderRequest) -> Response:
    """
    Render a structured resume to PDF. Single-page requests without an explicit
    profile fall back to the compact profile when the normal one overflows.
    """
    try:
        profile = get_size_profile(request.profile) if request.profile else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        result = render_resume_pdf(request.resume, request.single_page, profile)
    except Exception as e:
        logger.error(f"Error rendering resume PDF: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return Response(
        content=result.pdf_bytes,
        media_type="application/pdf",
        headers={
            "X-Page-Count": str(result.page_count),
            "X-Truncated": str(result.truncated).lower(),
            "X-Size-Profile": result.profile,
        },
    )


@router.post("/bullets", response_model=BulletBlocksResponse)
async def list_bullet_blocks(file: UploadFile = File(...)) -> BulletBlocksResponse:
    """Detect the editable bullet blocks of an uploaded PDF."""
    content = await _read_pdf_upload(file)
    try:
        layout = extract_layout(content, max_pages=settings.MAX_LAYOUT_PAGES)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    lines = layout.all_lines()
    blocks = detect_bullet_blocks(lines)
    return BulletBlocksResponse(
        blocks=[
            BulletBlockOut(
                id=b.id, page_index=b.page_index,
                x0=b.x0, y0=b.y0, x1=b.x1, y1=b.y1,
                line_count=b.line_count, raw_text=b.raw_text,
            )
            for b in blocks
        ],
        total_lines=len(lines),
        resume_text=layout.resume_text(),
    )


@router.post("/edit")
async def edit_bullet_blocks(
    file: UploadFile = File(...),
    edits: str = Form(...),  # JSON object: {"b0": "new text", ...}
) -> Response:
    """Overlay replacement text onto bullet blocks and return the edited PDF."""
    content = await _read_pdf_upload(file)
    try:
        parsed = json.loads(edits)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="edits must be a JSON object")
    if not isinstance(parsed, dict):
        raise HTTPException(status_code=400, detail="edits must be a JSON object")

    try:
        layout = extract_layout(content, max_pages=settings.MAX_LAYOUT_PAGES)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    blocks = detect_bullet_blocks(layout.all_lines())
    edit_map: Dict[str, str] = sanitize_edits(
        blocks,
        [{"bulletId": k, "to": v} for k, v in parsed.items()],
        max_edits=settings.MAX_EDITS,
    )

    try:
        edited = apply_bullet_edits(
            content, blocks, edit_map,
            font_size=settings.OVERLAY_FONT_SIZE,
            line_gap=settings.OVERLAY_LINE_GAP,
        )
    except Exception as e:
        logger.error(f"Error applying bullet edits: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return Response(
        content=edited,
        media_type="application/pdf",
        headers={"X-Edits-Applied": str(len(edit_map))},
    )
