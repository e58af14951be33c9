"""
Glyph extraction tests — real PDFs built with PyMuPDF, read back as tokens
and lines in bottom-left page space.

Run: pytest tests/test_glyph_extractor.py -v
"""

import fitz
import pytest

from conftest import make_pdf
from resume_engine.services.glyph_extractor import extract_layout, extract_page_tokens


class TestExtractPageTokens:

    def test_baseline_converted_to_bottom_left(self):
        pdf = make_pdf([(72, 100, "Jordan Rivera")])
        tokens = extract_page_tokens(pdf, 0)
        assert len(tokens) == 1
        token = tokens[0]
        assert token.text == "Jordan Rivera"
        assert token.x == pytest.approx(72, abs=0.5)
        assert token.y == pytest.approx(792 - 100, abs=0.5)
        assert token.width > 0
        assert token.height > 0

    def test_vertical_extent_spans_one_em(self):
        token = extract_page_tokens(make_pdf([(72, 100, "Judging quality")]), 0)[0]
        assert token.descent > 0
        assert token.height > token.descent
        assert token.height + token.descent == pytest.approx(10, abs=0.01)

    def test_blank_page_has_no_tokens(self):
        doc = fitz.open()
        doc.new_page()
        pdf = doc.tobytes()
        doc.close()
        assert extract_page_tokens(pdf, 0) == []

    def test_page_out_of_range(self):
        with pytest.raises(IndexError):
            extract_page_tokens(make_pdf([(72, 100, "x")]), 3)

    def test_not_a_pdf(self):
        with pytest.raises(ValueError):
            extract_page_tokens(b"definitely not a pdf", 0)


class TestExtractLayout:

    def test_lines_top_to_bottom(self, resume_pdf):
        layout = extract_layout(resume_pdf)
        assert len(layout.pages) == 1
        texts = [ln.text for ln in layout.pages[0].lines]
        assert texts[0] == "EXPERIENCE"
        assert texts[-1] == "- Mentored four engineers"
        assert len(texts) == 6

    def test_line_box_covers_descenders(self, resume_pdf):
        line = extract_layout(resume_pdf).pages[0].lines[1]
        assert line.baseline == pytest.approx(792 - 100, abs=0.5)
        assert line.y0 < line.baseline

    def test_stacked_line_boxes_do_not_overlap(self):
        pdf = make_pdf([(72, 88 + 12 * i, f"Line {i} with descenders gjpqy") for i in range(4)])
        lines = extract_layout(pdf).pages[0].lines
        assert len(lines) == 4
        for upper, lower in zip(lines, lines[1:]):
            assert lower.y1 < upper.y0

    def test_page_size_recorded(self, resume_pdf):
        page = extract_layout(resume_pdf).pages[0]
        assert (page.width, page.height) == (612, 792)

    def test_max_pages(self):
        doc = fitz.open()
        for i in range(4):
            doc.new_page().insert_text((72, 72), f"Page {i}", fontsize=10, fontname="helv")
        pdf = doc.tobytes()
        doc.close()

        layout = extract_layout(pdf, max_pages=2)
        assert [p.page_index for p in layout.pages] == [0, 1]
        assert [ln.page_index for ln in layout.all_lines()] == [0, 1]
        assert len(extract_layout(pdf, max_pages=None).pages) == 4

    def test_resume_text(self, resume_pdf):
        text = extract_layout(resume_pdf).resume_text()
        assert text.lstrip().startswith("--- Page 1 ---")
        assert "processing two million records per day" in text

    def test_invalid_bytes(self):
        with pytest.raises(ValueError):
            extract_layout(b"<html>not a pdf</html>")
