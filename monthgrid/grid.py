"""
Page geometry: paper sizes, unit conversion and the naive even month grid.

All page sizes are in millimetres; fitz draws in PDF points.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from monthgrid.dates import days_in_month, first_weekday_offset, weeks_in_month
from monthgrid.errors import InvalidOrientationError, InvalidPaperSizeError

# =============================================================================
# CONSTANTS
# =============================================================================

MM_TO_PT = 2.83465
NUM_COLS = 7


class PaperSize(str, Enum):
    A2 = "A2"
    A3 = "A3"
    A4 = "A4"
    A5 = "A5"

    @classmethod
    def parse(cls, value) -> "PaperSize":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            supported = ", ".join(p.value for p in cls)
            raise InvalidPaperSizeError(
                f"Unsupported paper size {value!r} (supported: {supported})") from None


class Orientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"

    @classmethod
    def parse(cls, value) -> "Orientation":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidOrientationError(
                f"Unsupported orientation {value!r} (use portrait or landscape)") from None


class PageSize(NamedTuple):
    width: float
    height: float


# Portrait width x height in mm
PAGE_SIZES: Dict[PaperSize, PageSize] = {
    PaperSize.A2: PageSize(420, 594),
    PaperSize.A3: PageSize(297, 420),
    PaperSize.A4: PageSize(210, 297),
    PaperSize.A5: PageSize(148, 210),
}


@dataclass(frozen=True)
class Margins:
    top: float = 10
    right: float = 10
    bottom: float = 10
    left: float = 10


# =============================================================================
# CONVERSION
# =============================================================================

def page_dimensions(paper_size, orientation) -> PageSize:
    """Page width/height in mm, swapped for landscape."""
    size = PAGE_SIZES[PaperSize.parse(paper_size)]
    if Orientation.parse(orientation) is Orientation.LANDSCAPE:
        return PageSize(size.height, size.width)
    return size


def mm_to_pt(mm: float) -> float:
    return mm * MM_TO_PT


def pt_to_mm(pt: float) -> float:
    return pt / MM_TO_PT


# =============================================================================
# NAIVE GRID
# =============================================================================

@dataclass
class GridConfig:
    month: int
    year: int
    page_width: float
    page_height: float
    week_start: int = 1
    margins: Margins = field(default_factory=Margins)
    title_height: float = 0
    header_height: float = 0
    legend_height: float = 0


@dataclass
class DayCell:
    day: int
    x: float
    y: float
    width: float
    height: float
    row: int
    col: int


@dataclass
class GridLayout:
    cells: List[DayCell]
    num_rows: int
    num_cols: int
    cell_width: float
    cell_height: float
    row_heights: List[float]
    grid_width: float
    grid_height: float
    grid_top: float
    grid_left: float


def calculate_grid(config: GridConfig) -> GridLayout:
    """Even rows and columns for the month, ignoring cell content.

    The builder's layout solver replaces the even row heights with
    content-aware ones; this grid is the plain reference layout.
    """
    total_days = days_in_month(config.year, config.month)
    offset = first_weekday_offset(config.year, config.month, config.week_start)
    num_rows = weeks_in_month(config.year, config.month, config.week_start)
    margins = config.margins

    grid_width = config.page_width - margins.left - margins.right
    grid_height = (config.page_height - margins.top - margins.bottom
                   - config.title_height - config.header_height - config.legend_height)
    grid_top = margins.top + config.title_height + config.header_height
    grid_left = margins.left

    cell_width = grid_width / NUM_COLS
    cell_height = grid_height / num_rows

    cells = []
    for day in range(1, total_days + 1):
        row, col = divmod(offset + day - 1, NUM_COLS)
        cells.append(DayCell(
            day=day,
            x=grid_left + col * cell_width,
            y=grid_top + row * cell_height,
            width=cell_width,
            height=cell_height,
            row=row,
            col=col,
        ))

    return GridLayout(
        cells=cells,
        num_rows=num_rows,
        num_cols=NUM_COLS,
        cell_width=cell_width,
        cell_height=cell_height,
        row_heights=[cell_height] * num_rows,
        grid_width=grid_width,
        grid_height=grid_height,
        grid_top=grid_top,
        grid_left=grid_left,
    )


def cell_for_day(grid: GridLayout, day: int) -> Optional[DayCell]:
    for cell in grid.cells:
        if cell.day == day:
            return cell
    return None
