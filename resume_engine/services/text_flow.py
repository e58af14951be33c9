"""
Text flow: greedy word-wrap and shrink-to-fit against a line budget.

Every line returned by ``fit_to_line_budget`` fits ``max_width`` at the
returned font size and the number of lines never exceeds the budget.
"""

import logging
from typing import Callable, List, Tuple

from resume_engine.services.canvas import measure_width

logger = logging.getLogger(__name__)

ELLIPSIS = "…"
MIN_FONT_SIZE = 7.0
FONT_STEP = 0.5

MeasureFn = Callable[[str, str, float], float]


class TextFlow:
    """Wraps and fits text for one font using injected font metrics."""

    def __init__(self, font: str = "Helvetica", measure: MeasureFn = measure_width):
        self.font = font
        self._measure = measure

    def width(self, text: str, font_size: float) -> float:
        return self._measure(self.font, text, font_size)

    def wrap(self, text: str, max_width: float, font_size: float) -> List[str]:
        """Greedy word-wrap. An over-wide word sits alone on its line, unsplit."""
        words = text.split()
        if not words:
            return []

        lines: List[str] = []
        current = words[0]
        for word in words[1:]:
            candidate = f"{current} {word}"
            if self.width(candidate, font_size) <= max_width:
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)
        return lines

    def ellipsize(self, line: str, max_width: float, font_size: float) -> str:
        """Drop trailing characters until ``line + "…"`` fits."""
        while line and self.width(line + ELLIPSIS, font_size) > max_width:
            line = line[:-1]
        line = line.rstrip()
        return line + ELLIPSIS if line else ELLIPSIS

    def fit_to_line_budget(
        self,
        text: str,
        max_width: float,
        target_line_count: int,
        start_font_size: float,
        min_font_size: float = MIN_FONT_SIZE,
        step: float = FONT_STEP,
    ) -> Tuple[float, List[str]]:
        """Shrink the font until ``text`` wraps into ``target_line_count`` lines.

        Steps down by ``step`` (never below ``min_font_size``). If the text is
        still too long at the floor, keeps the first ``target_line_count`` lines
        and ellipsizes the last one.
        """
        font_size = start_font_size
        if target_line_count < 1:
            return font_size, []

        lines = self.wrap(text, max_width, font_size)
        while len(lines) > target_line_count and font_size > min_font_size:
            font_size = max(min_font_size, round(font_size - step, 4))
            lines = self.wrap(text, max_width, font_size)

        if len(lines) > target_line_count:
            logger.debug(
                f"[FLOW] {len(lines)} lines at {font_size}pt exceeds budget "
                f"{target_line_count}, truncating"
            )
            lines = lines[:target_line_count]
            lines[-1] = self.ellipsize(lines[-1], max_width, font_size)

        # A lone word wider than the box is clipped too
        lines = [
            ln if self.width(ln, font_size) <= max_width else self.ellipsize(ln, max_width, font_size)
            for ln in lines
        ]
        return font_size, lines
