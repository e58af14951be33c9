"""
Page canvas — thin PyMuPDF wrapper used by every drawing component.

All coordinates handed to the canvas are in page space with the origin at the
bottom-left corner and y increasing upward (the same space the glyph extractor
produces). PyMuPDF works top-left/y-down, so the conversion happens here and
nowhere else.

Every draw call is also appended to ``operations`` so renders can be inspected
and compared without rasterising the output.
"""

import fitz  # PyMuPDF
import functools
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

Color = Tuple[float, float, float]

WHITE: Color = (1.0, 1.0, 1.0)
BLACK: Color = (0.0, 0.0, 0.0)

# PDF base-14 fonts → PyMuPDF short names
BASE14_FONTS = {
    "Helvetica": "helv",
    "Helvetica-Bold": "hebo",
    "Helvetica-Oblique": "heit",
    "Helvetica-BoldOblique": "hebi",
    "Times-Roman": "tiro",
    "Times-Bold": "tibo",
    "Times-Italic": "tiit",
    "Times-BoldItalic": "tibi",
    "Courier": "cour",
    "Courier-Bold": "cobo",
    "Courier-Oblique": "coit",
    "Courier-BoldOblique": "cobi",
}

LETTER_SIZE = (612.0, 792.0)


class FontNotRegisteredError(KeyError):
    """Raised when a draw/measure call names a font the canvas cannot resolve."""


@dataclass(frozen=True)
class DrawOp:
    """One recorded side effect on a page."""
    kind: str  # "rect" | "text"
    page_index: int
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    text: str = ""
    font: str = ""
    size: float = 0.0
    color: Color = BLACK


def resolve_font(font: str) -> str:
    try:
        return BASE14_FONTS[font]
    except KeyError:
        raise FontNotRegisteredError(
            f"Font '{font}' is not registered (available: {', '.join(sorted(BASE14_FONTS))})"
        ) from None


@functools.lru_cache(maxsize=None)
def load_font(font: str) -> fitz.Font:
    """Unicode-capable font object for a base-14 name.

    Drawing and measuring go through ``fitz.Font`` rather than the simple
    base-14 encoding, which maps • … — – to a middle dot.
    """
    return fitz.Font(resolve_font(font))


def measure_width(font: str, text: str, size: float) -> float:
    """Rendered width of ``text`` in points."""
    return load_font(font).text_length(text, fontsize=size)


class PdfCanvas:
    """A document being drawn on. Owned by exactly one render/edit invocation."""

    def __init__(self, pdf_bytes: Optional[bytes] = None):
        if pdf_bytes is None:
            self._doc = fitz.open()
        else:
            try:
                self._doc = fitz.open(stream=pdf_bytes, filetype="pdf")
            except Exception as e:
                raise ValueError(f"Could not open PDF: {e}") from e
        self.operations: List[DrawOp] = []

    @property
    def page_count(self) -> int:
        return len(self._doc)

    def new_page(self, width: float = LETTER_SIZE[0], height: float = LETTER_SIZE[1]) -> fitz.Page:
        page = self._doc.new_page(width=width, height=height)
        logger.debug(f"[CANVAS] New page {page.number} ({width:.0f}x{height:.0f})")
        return page

    def page(self, index: int) -> fitz.Page:
        if index < 0 or index >= len(self._doc):
            raise IndexError(f"Page {index} out of range (document has {len(self._doc)})")
        return self._doc[index]

    def page_size(self, page: fitz.Page) -> Tuple[float, float]:
        return page.rect.width, page.rect.height

    def measure_width(self, font: str, text: str, size: float) -> float:
        return measure_width(font, text, size)

    def draw_rectangle(
        self, page: fitz.Page, x: float, y: float, width: float, height: float,
        fill: Color = WHITE,
    ) -> None:
        """Fill an axis-aligned rectangle whose bottom-left corner is (x, y)."""
        page_h = page.rect.height
        rect = fitz.Rect(x, page_h - (y + height), x + width, page_h - y)
        page.draw_rect(rect, color=None, fill=fill, width=0, overlay=True)
        self.operations.append(DrawOp(
            kind="rect", page_index=page.number, x=x, y=y,
            width=width, height=height, color=fill,
        ))

    def draw_text(
        self, page: fitz.Page, text: str, x: float, y: float, size: float,
        font: str = "Helvetica", color: Color = BLACK,
    ) -> None:
        """Draw a single line of text with its baseline at (x, y)."""
        writer = fitz.TextWriter(page.rect)
        writer.append(fitz.Point(x, page.rect.height - y), text, font=load_font(font), fontsize=size)
        writer.write_text(page, color=color)
        self.operations.append(DrawOp(
            kind="text", page_index=page.number, x=x, y=y,
            text=text, font=font, size=size, color=color,
        ))

    def save(self) -> bytes:
        data = self._doc.tobytes(garbage=4, deflate=True)
        logger.debug(f"[CANVAS] Saved {len(self._doc)} page(s), {len(data)} bytes")
        return data

    def close(self) -> None:
        self._doc.close()
