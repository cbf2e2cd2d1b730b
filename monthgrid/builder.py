"""
Month calendar builder.

Collects months, categories and appointments, lays out one page per month
and hands the resulting content tree to the PDF renderer.

Page layout (top to bottom):
- Title ("April 2024")
- Weekday header row
- One row per calendar week; row heights solved from cell content
- Legend of category colors, 7 per row (optional)
- "Created" timestamp footer
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from monthgrid.colors import RGB, WHITE, ColorLike, hex_to_rgb, to_rgb
from monthgrid.content import Cell, Document, Node, PageBreak, Stack, Table, Text
from monthgrid.dates import (DAY_NAMES_SHORT, MONTH_NAMES, WeekStart, days_in_month,
                             first_weekday_offset, format_date, format_month_year,
                             iterate_date_range, weeks_in_month)
from monthgrid.entry import DEFAULT_BG_COLOR, DEFAULT_TEXT_COLOR, CalendarEntry
from monthgrid.errors import NoPageError, NoPagesError, UnknownCategoryError
from monthgrid.grid import Margins, Orientation, PaperSize, mm_to_pt, page_dimensions
from monthgrid.layout import (CELL_PADDING, DAY_NUMBER_HEIGHT, DAY_NUMBER_LINE_HEIGHT,
                              ENTRY_TEXT_MARGIN, FONT_SIZES, LINE_HEIGHT, LayoutSolution,
                              calculate_optimal_layout, iter_row_days)
from monthgrid.output import document_info
from monthgrid.renderer import PdfRenderer

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

COLOR_HEADER_BG = hex_to_rgb("#808080")
COLOR_HEADER_TEXT = WHITE
COLOR_DAY_NUMBER = hex_to_rgb("#C8C8C8")
COLOR_GRID = hex_to_rgb("#808080")
COLOR_BLANK_CELL = hex_to_rgb("#F5F5F5")
COLOR_ENTRY_RULE = hex_to_rgb("#D0D0D0")
COLOR_FOOTER = hex_to_rgb("#888888")

CONTINUATION_MARK = "..."
LEGEND_PER_ROW = 7
LEGEND_AVG_CHAR_WIDTH = 0.5     # Legend names are estimated a little narrower
LEGEND_PAD_H = 4                # Left + right inside a legend cell
LEGEND_PAD_V = 2                # Each side
LEGEND_TOP_MARGIN = 4

# Heights reserved around the grid (points)
TITLE_HEIGHT = FONT_SIZES["title"] * LINE_HEIGHT + 8
HEADER_ROW_HEIGHT = FONT_SIZES["header"] * LINE_HEIGHT + 8
LEGEND_ROW_ALLOWANCE = FONT_SIZES["legend"] * LINE_HEIGHT + 12
FOOTER_HEIGHT = FONT_SIZES["footer"] * LINE_HEIGHT + 4
GRID_BORDER = 0.5               # Per horizontal grid line
SAFETY_MARGIN = 5


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class BuilderConfig:
    orientation: Orientation = Orientation.PORTRAIT
    paper_size: PaperSize = PaperSize.A4
    week_start: int = WeekStart.MONDAY
    margins: Margins = field(default_factory=Margins)
    show_end_time: bool = False
    use_colors: bool = True
    show_legend: bool = True
    day_names: Optional[List[str]] = None      # Already in week-start order
    month_names: Optional[List[str]] = None
    author: Optional[str] = None
    creator: Optional[str] = None
    created_label: str = "Created"
    strict_categories: bool = False

    def __post_init__(self):
        self.orientation = Orientation.parse(self.orientation)
        self.paper_size = PaperSize.parse(self.paper_size)
        self.week_start = WeekStart(self.week_start)
        if self.day_names is not None and len(self.day_names) != 7:
            raise ValueError("day_names needs exactly 7 names")
        if self.month_names is not None and len(self.month_names) != 12:
            raise ValueError("month_names needs exactly 12 names")


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    text_color: RGB
    bg_color: RGB


@dataclass
class PageData:
    month: int
    year: int
    title: str
    entries: List[CalendarEntry] = field(default_factory=list)


@dataclass
class PageGeometry:
    num_rows: int
    first_offset: int
    total_days: int
    col_width: float
    header_height: float
    grid_height: float
    legend_rows: int


# =============================================================================
# ENTRY PREPARATION
# =============================================================================

def expand_multi_day_entries(entries: List[CalendarEntry], month: int, year: int) -> List[CalendarEntry]:
    """One entry per day of ``month`` that each source entry touches.

    Days other than the first get a leading continuation mark and a hidden
    start time; days other than the last get a trailing mark and a hidden
    end time. Entries outside the month are dropped.
    """
    expanded = []
    for entry in entries:
        if not entry.is_spanning_days():
            if entry.start_date.year == year and entry.start_date.month == month:
                expanded.append(entry)
            continue

        first_day = entry.start_date.date()
        last_day = entry.end_date.date()
        for current in iterate_date_range(first_day, last_day):
            if current.year != year or current.month != month:
                continue
            is_first = current == first_day
            is_last = current == last_day

            clone = entry.clone_for_day(current.day, month, year)
            if is_last:
                if entry.end_date < clone.start_date:
                    # Ends earlier in the day than it started
                    clone.start_date = clone.start_date.replace(hour=0, minute=0)
                clone.end_date = entry.end_date
            prefix = suffix = ""
            if not is_first:
                clone.hide_start_time = True
                clone.is_continuation = True
                prefix = CONTINUATION_MARK
            if not is_last:
                clone.hide_end_time = True
                suffix = CONTINUATION_MARK
            clone.message = f"{prefix}{entry.message}{suffix}"
            expanded.append(clone)
    return expanded


def sort_entries(entries: List[CalendarEntry]) -> List[CalendarEntry]:
    """By day, then start time; ties keep insertion order."""
    return sorted(entries, key=lambda e: (e.day, e.start_date))


def group_entries_by_day(entries: List[CalendarEntry]) -> List[List[CalendarEntry]]:
    """Slot list indexed by day number (index 0 is unused)."""
    slots: List[List[CalendarEntry]] = [[] for _ in range(32)]
    for entry in entries:
        slots[entry.day].append(entry)
    return slots


def rotate_day_names(names: List[str], week_start: int) -> List[str]:
    return names[week_start:] + names[:week_start]


# =============================================================================
# BUILDER
# =============================================================================

class CalendarBuilder:

    def __init__(self, config: Optional[BuilderConfig] = None, renderer=None):
        self.config = config or BuilderConfig()
        self.pages: List[PageData] = []
        self._categories: Dict[str, Category] = {}
        self.day_names = self.config.day_names or rotate_day_names(DAY_NAMES_SHORT,
                                                                   self.config.week_start)
        self.month_names = self.config.month_names or MONTH_NAMES
        self.renderer = renderer or PdfRenderer()

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    @property
    def categories(self) -> List[Category]:
        return list(self._categories.values())

    def get_category(self, category_id: str) -> Optional[Category]:
        return self._categories.get(category_id)

    def add_month(self, month: int, year: int, title: Optional[str] = None) -> PageData:
        page = PageData(month, year, title or format_month_year(month, year, self.month_names))
        self.pages.append(page)
        return page

    def add_category(self, category_id: str, name: str, text_color: ColorLike, bg_color: ColorLike):
        """Register a category, replacing any earlier one with the same id."""
        self._categories[category_id] = Category(category_id, name, to_rgb(text_color), to_rgb(bg_color))

    def add_entry(self, start_date: datetime, end_date: Optional[datetime], message: str,
                  text_color: ColorLike = DEFAULT_TEXT_COLOR,
                  bg_color: ColorLike = DEFAULT_BG_COLOR) -> CalendarEntry:
        if not self.pages:
            raise NoPageError("No month added. Call add_month() first.")
        entry = CalendarEntry(start_date, end_date, message, text_color, bg_color)
        self.pages[-1].entries.append(entry)
        return entry

    def add_entry_with_category(self, start_date: datetime, end_date: Optional[datetime],
                                message: str, category_id: str) -> CalendarEntry:
        """Add an entry colored like its category.

        Unknown ids fall back to the default colors so stale references do
        not break a run, unless the builder is configured strict.
        """
        category = self._categories.get(category_id)
        if category is None:
            if self.config.strict_categories:
                raise UnknownCategoryError(category_id)
            logger.warning("Unknown category %r for %r, using default colors", category_id, message)
            return self.add_entry(start_date, end_date, message)
        return self.add_entry(start_date, end_date, message, category.text_color, category.bg_color)

    # -------------------------------------------------------------------------
    # Geometry
    # -------------------------------------------------------------------------

    def _show_legend(self) -> bool:
        return self.config.show_legend and bool(self._categories)

    def page_geometry(self, page: PageData) -> PageGeometry:
        cfg = self.config
        width_mm, height_mm = page_dimensions(cfg.paper_size, cfg.orientation)
        margins = cfg.margins
        num_rows = weeks_in_month(page.year, page.month, cfg.week_start)

        available_width = mm_to_pt(width_mm - margins.left - margins.right)
        available_height = mm_to_pt(height_mm - margins.top - margins.bottom)

        legend_rows = math.ceil(len(self._categories) / LEGEND_PER_ROW) if self._show_legend() else 0
        legend_height = legend_rows * LEGEND_ROW_ALLOWANCE
        borders = (num_rows + 2) * GRID_BORDER
        grid_height = (available_height - TITLE_HEIGHT - HEADER_ROW_HEIGHT - legend_height
                       - FOOTER_HEIGHT - borders - SAFETY_MARGIN)

        return PageGeometry(
            num_rows=num_rows,
            first_offset=first_weekday_offset(page.year, page.month, cfg.week_start),
            total_days=days_in_month(page.year, page.month),
            col_width=available_width / 7,
            header_height=HEADER_ROW_HEIGHT,
            grid_height=grid_height,
            legend_rows=legend_rows,
        )

    def prepare_entries(self, page: PageData) -> List[List[CalendarEntry]]:
        entries = expand_multi_day_entries(page.entries, page.month, page.year)
        return group_entries_by_day(sort_entries(entries))

    def solve_layout(self, page: PageData) -> LayoutSolution:
        geometry = self.page_geometry(page)
        return calculate_optimal_layout(
            self.prepare_entries(page), geometry.num_rows, geometry.first_offset,
            geometry.total_days, geometry.col_width, geometry.grid_height,
            show_end_time=self.config.show_end_time)

    # -------------------------------------------------------------------------
    # Content tree
    # -------------------------------------------------------------------------

    def build_page_content(self, page: PageData, generated_at: Optional[datetime] = None) -> Stack:
        entries_by_day = self.prepare_entries(page)
        geometry = self.page_geometry(page)
        solution = calculate_optimal_layout(
            entries_by_day, geometry.num_rows, geometry.first_offset, geometry.total_days,
            geometry.col_width, geometry.grid_height, show_end_time=self.config.show_end_time)
        logger.debug("%s: %d rows, entry font %.1fpt", page.title, geometry.num_rows,
                     solution.entry_font_size)

        items: List[Node] = [Text(page.title, FONT_SIZES["title"], bold=True,
                                  alignment="center", margin=(0, 0, 0, 8))]

        header = [Cell([Text(name, FONT_SIZES["header"], color=COLOR_HEADER_TEXT, bold=True,
                             alignment="center")],
                       fill_color=COLOR_HEADER_BG, margin=(2, 2, 2, 2))
                  for name in self.day_names]
        body = [header]
        for row, days in iter_row_days(geometry.num_rows, geometry.first_offset, geometry.total_days):
            cells = []
            leading = geometry.first_offset if row == 0 else 0
            cells.extend(self._blank_cell() for _ in range(leading))
            for day in days:
                cells.append(self.build_day_cell(day, entries_by_day[day], solution.entry_font_size,
                                                 solution.row_heights[row]))
            cells.extend(self._blank_cell() for _ in range(7 - len(cells)))
            body.append(cells)

        items.append(Table(
            widths=[geometry.col_width] * 7,
            heights=[geometry.header_height] + solution.row_heights,
            body=body,
            line_color=COLOR_GRID,
        ))

        if self._show_legend():
            items.extend(self.build_legend(geometry.col_width))

        generated_at = generated_at or datetime.now()
        stamp = f"{format_date(generated_at)} {generated_at:%H:%M}"
        items.append(Text(f"{self.config.created_label}: {stamp}", FONT_SIZES["footer"],
                          color=COLOR_FOOTER, alignment="right", margin=(0, 4, 0, 0)))

        # One physical page per month
        return Stack(items, unbreakable=True)

    @staticmethod
    def _blank_cell() -> Cell:
        return Cell(fill_color=COLOR_BLANK_CELL, margin=(2, 2, 2, 2))

    def build_day_cell(self, day: int, entries: List[CalendarEntry], font_size: float,
                       row_height: float) -> Cell:
        """Day number pinned bottom-right, entries flowing from the top.

        The number comes first in the stack and is shifted down by the known
        row height, so the entries never need a second size estimate.
        """
        content_height = row_height - 2 * CELL_PADDING
        y_shift = max(0.0, content_height - DAY_NUMBER_HEIGHT)
        stack: List[Node] = [Text(str(day), FONT_SIZES["day_number"], color=COLOR_DAY_NUMBER,
                                  bold=True, alignment="right", y_offset=y_shift,
                                  line_height=DAY_NUMBER_LINE_HEIGHT)]
        for i, entry in enumerate(entries):
            is_last = i == len(entries) - 1
            stack.append(self.build_entry(entry, font_size, is_last))
        return Cell(stack, fill_color=WHITE, margin=(CELL_PADDING,) * 4)

    def build_entry(self, entry: CalendarEntry, font_size: float, is_last: bool) -> Text:
        if self.config.use_colors:
            text_color, bg_color = entry.text_color, entry.bg_color
        else:
            text_color, bg_color = to_rgb(DEFAULT_TEXT_COLOR), to_rgb(DEFAULT_BG_COLOR)
        return Text(
            entry.display_text(self.config.show_end_time),
            font_size,
            color=text_color,
            fill_color=bg_color,
            margin=(ENTRY_TEXT_MARGIN,) * 4,
            rule_below=None if is_last else COLOR_ENTRY_RULE,
        )

    def build_legend(self, col_width: float) -> List[Table]:
        """Legend rows of up to 7 categories spread over the full width."""
        categories = self.categories
        total_width = col_width * 7
        font_size = FONT_SIZES["legend"]
        line_height = font_size * LINE_HEIGHT
        tables = []

        for start in range(0, len(categories), LEGEND_PER_ROW):
            chunk = categories[start:start + LEGEND_PER_ROW]
            cell_width = total_width / len(chunk)
            chars_per_line = max(1, math.floor((cell_width - LEGEND_PAD_H)
                                               / (font_size * LEGEND_AVG_CHAR_WIDTH)))
            line_counts = [max(1, math.ceil(len(cat.name) / chars_per_line)) for cat in chunk]
            max_content = max(line_counts) * line_height

            cells = []
            for cat, lines in zip(chunk, line_counts):
                # Center shorter names vertically
                extra = max_content - lines * line_height
                cells.append(Cell(
                    [Text(cat.name, font_size, color=cat.text_color, alignment="center",
                          margin=(2, LEGEND_PAD_V + extra / 2, 2, LEGEND_PAD_V + extra / 2))],
                    fill_color=cat.bg_color,
                ))
            tables.append(Table(
                widths=[cell_width] * len(chunk),
                heights=[max_content + 2 * LEGEND_PAD_V],
                body=[cells],
                line_color=COLOR_GRID,
                margin=(0, LEGEND_TOP_MARGIN if start == 0 else 0, 0, 0),
            ))
        return tables

    def build_document(self, generated_at: Optional[datetime] = None) -> Document:
        if not self.pages:
            raise NoPagesError("No pages added. Call add_month() first.")
        generated_at = generated_at or datetime.now()

        content: List[Node] = []
        for i, page in enumerate(self.pages):
            if i > 0:
                content.append(PageBreak())
            content.append(self.build_page_content(page, generated_at))

        info = document_info([p.title for p in self.pages],
                             [c.name for c in self.categories],
                             author=self.config.author, creator=self.config.creator)
        return Document(info=info, paper_size=self.config.paper_size,
                        orientation=self.config.orientation, margins=self.config.margins,
                        content=content)

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate(self, generated_at: Optional[datetime] = None) -> bytes:
        """Render every month to a PDF and return its bytes."""
        document = self.build_document(generated_at)
        logger.info("Rendering %d page(s): %s", len(self.pages), document.info.title)
        return self.renderer.render(document)

    async def generate_async(self, generated_at: Optional[datetime] = None) -> bytes:
        return await asyncio.to_thread(self.generate, generated_at)
