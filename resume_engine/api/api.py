# File: resume_engine/api/api.py
from fastapi import APIRouter

from resume_engine.api.endpoints import resume_pdf

api_router = APIRouter(prefix="/api")
api_router.include_router(resume_pdf.router, prefix="/resume-pdf", tags=["resume-pdf"])
