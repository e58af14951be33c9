"""
Overlay editor tests — white-out + redraw on real PDFs generated with PyMuPDF.

Run: pytest tests/test_overlay_editor.py -v
"""

import fitz
import pytest

from conftest import tok
from resume_engine.services.bullet_blocks import detect_bullet_blocks
from resume_engine.services.canvas import PdfCanvas, WHITE
from resume_engine.services.glyph_extractor import extract_layout
from resume_engine.services.line_grouper import DocumentLayout, PageLayout, group_tokens_into_lines
from resume_engine.services.overlay_editor import (
    OVERLAY_PADDING,
    _overlay_box,
    apply_bullet_edits,
    apply_line_replacements,
    find_line_match,
    normalize_text,
    sanitize_edits,
)
from resume_engine.services.text_flow import TextFlow


def _page_text(pdf_bytes: bytes, page_index: int = 0) -> str:
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        return doc[page_index].get_text()
    finally:
        doc.close()


@pytest.fixture
def blocks(resume_pdf):
    return detect_bullet_blocks(extract_layout(resume_pdf).all_lines())


# ═══════════════════════════════════════════════════════════════════════════════
# LAYER 1: Drawing inside one box
# ═══════════════════════════════════════════════════════════════════════════════


class TestOverlayBox:

    def _draw(self, text, box, budget, font_size=10.0):
        canvas = PdfCanvas()
        canvas.new_page()
        flow = TextFlow("Helvetica", canvas.measure_width)
        drawn = _overlay_box(
            canvas, flow, 0, box, budget, text, font_size, 1.15, OVERLAY_PADDING, WHITE, (0, 0, 0),
        )
        return canvas, drawn

    def test_whiteout_rectangle_padded(self):
        canvas, _ = self._draw("• New text", (72, 650, 400, 680), 2)
        rect = canvas.operations[0]
        assert rect.kind == "rect"
        assert (rect.x, rect.y) == (72 - 1.5, 650 - 1.5)
        assert rect.width == pytest.approx(328 + 3)
        assert rect.height == pytest.approx(30 + 3)
        assert rect.color == WHITE

    def test_lines_left_aligned_top_down(self):
        text = "• " + "streamlined release process " * 6
        canvas, drawn = self._draw(text, (72, 650, 300, 690), 3)
        texts = [op for op in canvas.operations if op.kind == "text"]
        assert drawn == len(texts)
        assert 1 <= len(texts) <= 3
        assert all(op.x == 72 for op in texts)
        assert texts[0].y == pytest.approx(690 - texts[0].size)
        baselines = [op.y for op in texts]
        assert baselines == sorted(baselines, reverse=True)
        assert all(y >= 650 for y in baselines)

    def test_stops_when_baseline_leaves_box(self):
        # Box only 12pt tall but budget of 3 lines: second baseline would fall below y0
        canvas, drawn = self._draw("• " + "word " * 60, (72, 650, 200, 662), 3)
        assert drawn == 1

    def test_never_exceeds_line_budget(self):
        canvas, drawn = self._draw("• " + "x " * 400, (72, 400, 500, 700), 2)
        assert drawn <= 2


# ═══════════════════════════════════════════════════════════════════════════════
# LAYER 2: apply_bullet_edits on a real document
# ═══════════════════════════════════════════════════════════════════════════════


class TestApplyBulletEdits:

    def test_fixture_blocks(self, blocks):
        assert [b.line_count for b in blocks] == [2, 2, 1]

    def test_empty_edit_map_returns_input(self, resume_pdf, blocks):
        assert apply_bullet_edits(resume_pdf, blocks, {}) is resume_pdf

    def test_blank_replacement_leaves_document_unchanged(self, resume_pdf, blocks):
        assert apply_bullet_edits(resume_pdf, blocks, {"b0": "   "}) is resume_pdf

    def test_unknown_ids_ignored(self, resume_pdf, blocks):
        assert apply_bullet_edits(resume_pdf, blocks, {"b99": "text"}) is resume_pdf

    def test_replacement_drawn(self, resume_pdf, blocks):
        out = apply_bullet_edits(resume_pdf, blocks, {"b2": "Coached six engineers"})
        assert out != resume_pdf
        text = _page_text(out)
        assert "Coached six engineers" in text
        # untouched blocks keep their text
        assert "Cut cloud spend" in text

    def test_whiteout_drawn_over_block(self, resume_pdf, blocks):
        out = apply_bullet_edits(resume_pdf, blocks, {"b0": "Rebuilt partner ingestion"})
        doc = fitz.open(stream=out, filetype="pdf")
        try:
            fills = [d for d in doc[0].get_drawings() if d.get("fill") == (1.0, 1.0, 1.0)]
            assert fills
            page_h = doc[0].rect.height
            block = blocks[0]
            rect = fills[0]["rect"]
            assert rect.x0 == pytest.approx(block.x0 - 1.5, abs=0.01)
            assert rect.y1 == pytest.approx(page_h - (block.y0 - 1.5), abs=0.01)
        finally:
            doc.close()

    def test_only_target_page_modified(self):
        doc = fitz.open()
        for _ in range(2):
            page = doc.new_page()
            page.insert_text((72, 100), "- Original bullet text here", fontsize=10, fontname="helv")
        pdf = doc.tobytes()
        doc.close()

        blocks = detect_bullet_blocks(extract_layout(pdf).all_lines())
        assert [b.page_index for b in blocks] == [0, 1]
        out = apply_bullet_edits(pdf, blocks, {"b1": "Second page rewrite"})
        assert "Second page rewrite" not in _page_text(out, 0)
        assert "Second page rewrite" in _page_text(out, 1)


# ═══════════════════════════════════════════════════════════════════════════════
# LAYER 3: Edit sanitising and line matching
# ═══════════════════════════════════════════════════════════════════════════════


class TestSanitizeEdits:

    def test_drops_unknown_blank_and_duplicate(self, blocks):
        raw = [
            {"bulletId": "b0", "to": "  Built   the   new pipeline "},
            {"bulletId": "b0", "to": "built the new pipeline"},
            {"bulletId": "zz", "to": "nope"},
            {"bulletId": "b1", "to": "   "},
            {"bulletId": "b2", "to": "Mentored five engineers"},
        ]
        assert sanitize_edits(blocks, raw) == {
            "b0": "Built the new pipeline",
            "b2": "Mentored five engineers",
        }

    def test_caps_number_of_edits(self, blocks):
        raw = [{"bulletId": b.id, "to": f"text {b.id}"} for b in blocks]
        assert len(sanitize_edits(blocks, raw, max_edits=2)) == 2


class TestLineMatching:

    @pytest.fixture
    def layout(self):
        lines = group_tokens_into_lines([
            tok("• Built the ingestion pipeline", 72, 700, width=200),
            tok("Managed vendor relationships", 72, 680, width=180),
        ])
        return DocumentLayout(pages=[PageLayout(0, 612, 792, lines)])

    def test_normalize(self):
        assert normalize_text("•  Led the — Team") == "- led the - team"

    def test_exact_match(self, layout):
        assert find_line_match(layout, "- built the ingestion pipeline").text.startswith("•")

    def test_containment_match(self, layout):
        assert find_line_match(layout, "vendor relationships").text == "Managed vendor relationships"

    def test_no_match(self, layout):
        assert find_line_match(layout, "Kubernetes operator") is None
        assert find_line_match(layout, "   ") is None

    def test_apply_line_replacements(self, resume_pdf):
        layout = extract_layout(resume_pdf)
        out, applied, misses = apply_line_replacements(resume_pdf, layout, [
            {"from": "Mentored four engineers", "to": "Mentored a team of four"},
            {"from": "Not in the document at all", "to": "x"},
        ])
        assert len(applied) == 1
        assert applied[0]["to"].startswith("• ")
        assert applied[0]["pageNumber"] == 1
        assert misses == [{"from": "Not in the document at all"}]
        assert "Mentored a team of four" in _page_text(out)

    def test_no_hits_returns_input(self, resume_pdf):
        layout = extract_layout(resume_pdf)
        out, applied, misses = apply_line_replacements(resume_pdf, layout, [{"from": "zzz", "to": "y"}])
        assert out is resume_pdf
        assert applied == []


# ═══════════════════════════════════════════════════════════════════════════════
# LAYER 4: Rendered ink around an edited block
# ═══════════════════════════════════════════════════════════════════════════════


def _dark_pixels(pdf_bytes: bytes, clip) -> int:
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        pix = doc[0].get_pixmap(clip=fitz.Rect(clip), matrix=fitz.Matrix(8, 8), colorspace=fitz.csGRAY)
        return sum(1 for b in pix.samples if b < 128)
    finally:
        doc.close()


def _one_page_pdf(lines) -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    for x, y, text in lines:
        page.insert_text((x, y), text, fontsize=10, fontname="helv")
    data = doc.tobytes()
    doc.close()
    return data


class TestEditedBlockInk:
    """Edits at ordinary 12pt leading leave the neighbouring lines' ink alone."""

    @pytest.fixture
    def stacked_pdf(self):
        return _one_page_pdf([
            (72, 88, "Senior Engineer Acme Corp"),
            (72, 100, "- Built the ingestion pipeline"),
            (72, 112, "Education at the quay"),
        ])

    def test_line_above_untouched(self, stacked_pdf):
        blocks = detect_bullet_blocks(extract_layout(stacked_pdf).all_lines())
        assert len(blocks) == 1
        out = apply_bullet_edits(stacked_pdf, blocks, {"b0": "Rebuilt the partner ingestion path"})
        band = (72, 78, 300, 88)
        assert _dark_pixels(stacked_pdf, band) > 0
        assert _dark_pixels(out, band) == _dark_pixels(stacked_pdf, band)

    def test_line_below_untouched(self, stacked_pdf):
        blocks = detect_bullet_blocks(extract_layout(stacked_pdf).all_lines())
        out = apply_bullet_edits(stacked_pdf, blocks, {"b0": "Rebuilt the partner ingestion path"})
        band = (72, 104.5, 300, 112)
        assert _dark_pixels(stacked_pdf, band) > 0
        assert _dark_pixels(out, band) == _dark_pixels(stacked_pdf, band)

    def test_descenders_erased(self):
        pdf = _one_page_pdf([(72, 100, "- gyp jqgy pppy gggg")])
        blocks = detect_bullet_blocks(extract_layout(pdf).all_lines())
        # strip just under the baseline where only descenders have ink
        band = (80, 100.3, 180, 103.5)
        assert _dark_pixels(pdf, band) > 0
        out = apply_bullet_edits(pdf, blocks, {"b0": "AAAA"})
        assert _dark_pixels(out, band) == 0

    def test_whiteout_covers_block_glyphs(self):
        pdf = _one_page_pdf([(72, 100, "- Judging quality by the graphs")])
        blocks = detect_bullet_blocks(extract_layout(pdf).all_lines())
        block = blocks[0]
        clip = (block.x0, 792 - block.y1, block.x1, 792 - block.y0)
        assert _dark_pixels(pdf, clip) > 0
        out = apply_bullet_edits(pdf, blocks, {"b0": "anything"}, color=WHITE)
        assert _dark_pixels(out, clip) == 0

    def test_replacement_sits_on_original_baseline(self, resume_pdf, blocks):
        out = apply_bullet_edits(resume_pdf, blocks, {"b2": "Coached six engineers"})
        matched = [ln for ln in extract_layout(out).pages[0].lines if "Coached" in ln.text]
        assert len(matched) == 1
        assert matched[0].baseline == pytest.approx(blocks[2].lines[0].baseline, abs=0.1)

    def test_bullet_prefix_kept_in_text_layer(self, resume_pdf, blocks):
        out = apply_bullet_edits(resume_pdf, blocks, {"b2": "Coached six engineers"})
        assert "• Coached six engineers" in _page_text(out)


class TestSanitizeDefaults:

    def test_default_cap_is_twelve(self):
        lines = group_tokens_into_lines([tok(f"- item {i}", 72, 780 - i * 15) for i in range(15)])
        many = detect_bullet_blocks(lines)
        assert len(many) == 15
        raw = [{"bulletId": b.id, "to": f"rewrite {b.id}"} for b in many]
        cleaned = sanitize_edits(many, raw)
        assert list(cleaned) == [f"b{i}" for i in range(12)]
