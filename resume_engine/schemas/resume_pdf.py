# File: resume_engine/schemas/resume_pdf.py
from pydantic import BaseModel
from typing import List, Optional

from resume_engine.schemas.resume import StructuredResume


class RenderRequest(BaseModel):
    resume: StructuredResume
    single_page: bool = True
    profile: Optional[str] = None  # "normal" | "compact"; None = normal→compact retry


class BulletBlockOut(BaseModel):
    id: str
    page_index: int
    x0: float
    y0: float
    x1: float
    y1: float
    line_count: int
    raw_text: str


class BulletBlocksResponse(BaseModel):
    blocks: List[BulletBlockOut]
    total_lines: int
    resume_text: str
