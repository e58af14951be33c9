# File: resume_engine/schemas/resume.py
from pydantic import BaseModel
from typing import List, Optional


class ResumeHeader(BaseModel):
    name: str
    headline: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    links: List[str] = []

    @property
    def contact_parts(self) -> List[str]:
        parts = [self.location, self.phone, self.email, *self.links]
        return [p.strip() for p in parts if p and p.strip()]


class SkillGroup(BaseModel):
    category: str
    items: List[str] = []


class ExperienceEntry(BaseModel):
    title: str
    company: Optional[str] = None
    location: Optional[str] = None
    dates: Optional[str] = None
    bullets: List[str] = []


class EducationEntry(BaseModel):
    school: str
    degree: Optional[str] = None
    location: Optional[str] = None
    dates: Optional[str] = None
    details: List[str] = []


class Certification(BaseModel):
    name: str
    issuer: Optional[str] = None
    date: Optional[str] = None


class Project(BaseModel):
    name: str
    description: Optional[str] = None
    technologies: List[str] = []
    link: Optional[str] = None
    bullets: List[str] = []


class StructuredResume(BaseModel):
    """Input to the résumé renderer, produced upstream by the LLM pipeline."""
    header: ResumeHeader
    summary: List[str] = []
    skills: List[SkillGroup] = []
    experience: List[ExperienceEntry] = []
    education: List[EducationEntry] = []
    certifications: List[Certification] = []
    projects: List[Project] = []
