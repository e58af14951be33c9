import fitz
import pytest

from resume_engine.schemas.resume import (
    EducationEntry,
    ExperienceEntry,
    ResumeHeader,
    SkillGroup,
    StructuredResume,
)
from resume_engine.services.line_grouper import PositionedToken
from resume_engine.services.text_flow import TextFlow


@pytest.fixture
def flow() -> TextFlow:
    return TextFlow("Helvetica")


def tok(text, x, y, width=None, height=10.0) -> PositionedToken:
    """Token with a width roughly proportional to its text."""
    return PositionedToken(text=text, x=x, y=y, width=width if width is not None else len(text) * 5.0, height=height)


def make_pdf(lines, page_size=(612, 792), fontsize=10) -> bytes:
    """Build a one-page PDF. ``lines`` is [(x, top_down_baseline_y, text)]."""
    doc = fitz.open()
    page = doc.new_page(width=page_size[0], height=page_size[1])
    for x, y, text in lines:
        page.insert_text((x, y), text, fontsize=fontsize, fontname="helv")
    data = doc.tobytes()
    doc.close()
    return data


def bullet_resume_pdf() -> bytes:
    """A small resume page: heading, two wrapped bullets, one single-line bullet."""
    return make_pdf([
        (72, 72, "EXPERIENCE"),
        (72, 100, "- Built the ingestion pipeline for partner data feeds"),
        (82, 112, "processing two million records per day"),
        (72, 130, "- Cut cloud spend by consolidating idle clusters"),
        (82, 142, "across three regions"),
        (72, 160, "- Mentored four engineers"),
    ])


@pytest.fixture
def resume_pdf() -> bytes:
    return bullet_resume_pdf()


def experience_heavy_resume(entries: int = 6, bullets_per_entry: int = 7) -> StructuredResume:
    """Fits one page only with the compact profile."""
    return StructuredResume(
        header=ResumeHeader(
            name="Jordan Rivera",
            headline="Senior Backend Engineer",
            location="Austin, TX",
            phone="555-0100",
            email="jordan@example.com",
        ),
        experience=[
            ExperienceEntry(
                title="Software Engineer",
                company=f"Company {i}",
                location="Austin, TX",
                dates=f"{2010 + i} – {2011 + i}",
                bullets=[f"Delivered platform improvement {j} for team {i}" for j in range(bullets_per_entry)],
            )
            for i in range(entries)
        ],
    )


@pytest.fixture
def full_resume() -> StructuredResume:
    return StructuredResume(
        header=ResumeHeader(
            name="Jordan Rivera",
            headline="Senior Backend Engineer",
            location="Austin, TX",
            email="jordan@example.com",
            links=["github.com/jrivera"],
        ),
        summary=["Backend engineer with eight years building data-heavy services."],
        skills=[
            SkillGroup(category="Languages", items=["Python", "Go", "SQL"]),
            SkillGroup(category="Cloud", items=["AWS", "GCP", "Terraform"]),
        ],
        experience=[
            ExperienceEntry(
                title="Senior Engineer",
                company="Acme Corp",
                location="Remote",
                dates="2020 – Present",
                bullets=["Led the migration of billing to an event-sourced design"],
            ),
        ],
        education=[EducationEntry(school="UT Austin", degree="B.S. Computer Science", dates="2014")],
    )
