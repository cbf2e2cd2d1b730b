"""
Adaptive layout solver for a month grid.

Text height is estimated from character counts rather than measured: the
average glyph is taken as 0.55 x font size, which overestimates line counts
for typical text so cells rarely overflow in the rendered PDF.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from monthgrid.entry import CalendarEntry

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS (points)
# =============================================================================

FONT_SIZES = {
    "title": 16,
    "header": 10,
    "day_number": 14,
    "entry": 8,         # Starting size for the font search
    "legend": 8,
    "footer": 7,
}

MIN_ENTRY_FONT_SIZE = 5
FONT_SIZE_STEP = 0.5

LINE_HEIGHT = 1.4               # Line height as a multiple of font size
DAY_NUMBER_LINE_HEIGHT = 1.2
AVG_CHAR_WIDTH = 0.55           # Average glyph width as a multiple of font size

CELL_PADDING = 2                # Each side of a day cell
ENTRY_TEXT_MARGIN = 1           # Each side of an entry inside its cell
ENTRY_MARGIN_V = 2 * ENTRY_TEXT_MARGIN
# Width lost between the column edge and wrapped entry text
TEXT_INSET_H = 2 * CELL_PADDING + 2 * ENTRY_TEXT_MARGIN

DAY_NUMBER_HEIGHT = FONT_SIZES["day_number"] * DAY_NUMBER_LINE_HEIGHT
MIN_ROW_HEIGHT = DAY_NUMBER_HEIGHT + 2 * CELL_PADDING

# Entries grouped per day: index 0 unused, 1-31 hold the day's entries
DaySlots = Sequence[Sequence[CalendarEntry]]


@dataclass
class LayoutSolution:
    entry_font_size: float
    row_heights: List[float]
    content_heights: List[float]
    fixed_rows: List[bool]
    fits: bool


def iter_row_days(num_rows: int, first_offset: int, total_days: int):
    """Yield (row, [days in that row]) for a month grid."""
    for row in range(num_rows):
        days = []
        for col in range(7):
            day = row * 7 + col - first_offset + 1
            if 1 <= day <= total_days:
                days.append(day)
        yield row, days


def estimate_line_count(text: str, col_width: float, font_size: float) -> int:
    chars_per_line = max(1, math.floor((col_width - TEXT_INSET_H) / (font_size * AVG_CHAR_WIDTH)))
    return max(1, math.ceil(len(text) / chars_per_line))


def estimate_row_content_heights(entries_by_day: DaySlots, num_rows: int, first_offset: int,
                                 total_days: int, col_width: float, font_size: float,
                                 show_end_time: bool = False) -> List[float]:
    """Minimum height each week row needs: the tallest of its day cells."""
    line_height = font_size * LINE_HEIGHT
    heights = []
    for _, days in iter_row_days(num_rows, first_offset, total_days):
        row_height = MIN_ROW_HEIGHT
        for day in days:
            cell_height = 2 * CELL_PADDING + DAY_NUMBER_HEIGHT
            for entry in entries_by_day[day]:
                lines = estimate_line_count(entry.display_text(show_end_time), col_width, font_size)
                cell_height += lines * line_height + ENTRY_MARGIN_V
            row_height = max(row_height, cell_height)
        heights.append(row_height)
    return heights


def _distribute(content_heights: Sequence[float], total_available: float) -> Tuple[List[float], List[bool]]:
    num_rows = len(content_heights)
    heights = [0.0] * num_rows
    fixed = [False] * num_rows
    remaining = total_available
    flex_count = num_rows

    # Each pass pins at least one row or stops
    for _ in range(num_rows):
        if flex_count == 0:
            break
        share = remaining / flex_count
        changed = False
        for i, content in enumerate(content_heights):
            if fixed[i] or content <= share:
                continue
            heights[i] = content
            fixed[i] = True
            remaining -= content
            flex_count -= 1
            changed = True
        if not changed:
            break

    share = remaining / flex_count if flex_count else 0.0
    for i in range(num_rows):
        if not fixed[i]:
            heights[i] = share
    return heights, fixed


def distribute_row_heights(content_heights: Sequence[float], total_available: float) -> List[float]:
    """Split the grid height across rows.

    Rows whose content does not fit an equal share keep their content height;
    the rest share what remains equally. When the content fits at all, the
    result sums to ``total_available``.
    """
    return _distribute(content_heights, total_available)[0]


def calculate_optimal_layout(entries_by_day: DaySlots, num_rows: int, first_offset: int,
                             total_days: int, col_width: float, grid_height: float,
                             show_end_time: bool = False,
                             start_font_size: float = FONT_SIZES["entry"],
                             min_font_size: float = MIN_ENTRY_FONT_SIZE) -> LayoutSolution:
    """Largest entry font size (in 0.5pt steps) whose content fits the grid."""
    font_size = start_font_size
    while True:
        content = estimate_row_content_heights(entries_by_day, num_rows, first_offset, total_days,
                                               col_width, font_size, show_end_time)
        fits = sum(content) <= grid_height
        if fits or font_size - FONT_SIZE_STEP < min_font_size:
            break
        font_size -= FONT_SIZE_STEP

    if not fits:
        logger.warning("Content overflows the grid even at %.1fpt (%.1f of %.1fpt)",
                       font_size, sum(content), grid_height)

    heights, fixed = _distribute(content, grid_height)
    logger.debug("Entry font %.1fpt, %d fixed row(s), row heights %s",
                 font_size, sum(fixed), [round(h, 1) for h in heights])
    return LayoutSolution(entry_font_size=font_size, row_heights=heights,
                          content_heights=content, fixed_rows=fixed, fits=fits)
