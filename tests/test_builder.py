import asyncio
import logging
from datetime import datetime

import pytest

from monthgrid.builder import (COLOR_BLANK_CELL, CONTINUATION_MARK, BuilderConfig, CalendarBuilder,
                               expand_multi_day_entries, group_entries_by_day, rotate_day_names,
                               sort_entries)
from monthgrid.content import PageBreak, Stack, Table, Text
from monthgrid.entry import CalendarEntry
from monthgrid.errors import NoPageError, NoPagesError, UnknownCategoryError
from monthgrid.grid import Orientation, PaperSize
from monthgrid.layout import TEXT_INSET_H

GENERATED_AT = datetime(2024, 3, 20, 14, 30)


class RecordingRenderer:
    """Stands in for the PDF renderer and keeps the document it was given."""

    def __init__(self):
        self.documents = []

    def render(self, document):
        self.documents.append(document)
        return b"%PDF-fake"


@pytest.fixture
def builder():
    return CalendarBuilder(BuilderConfig(paper_size="A4", orientation="portrait"),
                           renderer=RecordingRenderer())


def retreat():
    return CalendarEntry(datetime(2024, 1, 30, 18, 45), datetime(2024, 2, 2, 12), "Retreat")


def grid_table(page_stack):
    return next(item for item in page_stack.items if isinstance(item, Table))


def texts(cell):
    return [node.text for node in cell.stack]


# -----------------------------------------------------------------------------
# Expansion, sorting, grouping
# -----------------------------------------------------------------------------

def test_expand_multi_day_against_first_month():
    january = expand_multi_day_entries([retreat()], 1, 2024)
    assert [e.day for e in january] == [30, 31]

    first, second = january
    assert not first.is_continuation
    assert first.formatted_start_time() == "18:45h"
    assert first.message == "Retreat" + CONTINUATION_MARK
    assert first.display_text() == "18:45h Retreat..."

    assert second.is_continuation
    assert second.hide_start_time and second.hide_end_time
    assert second.message == "...Retreat..."


def test_expand_multi_day_against_second_month():
    february = expand_multi_day_entries([retreat()], 2, 2024)
    assert [e.day for e in february] == [1, 2]
    assert all(e.is_continuation for e in february)

    last = february[-1]
    assert last.message == "...Retreat"
    assert last.end_date == datetime(2024, 2, 2, 12)
    assert not last.hide_end_time
    assert last.display_text(show_end_time=True) == "-12h ...Retreat"
    assert last.display_text() == "...Retreat"


def test_expand_leaves_source_entry_untouched():
    source = retreat()
    expanded = expand_multi_day_entries([source], 1, 2024)
    assert all(e is not source for e in expanded)
    assert source.message == "Retreat"
    assert all(e.original_start_date == source.start_date for e in expanded)


def test_expand_drops_entries_outside_month():
    inside = CalendarEntry(datetime(2024, 4, 10, 9), datetime(2024, 4, 10, 10), "Meeting")
    outside = CalendarEntry(datetime(2024, 5, 1, 9), None, "Later")
    assert expand_multi_day_entries([inside, outside, retreat()], 4, 2024) == [inside]


def test_expand_whole_month_span():
    span = CalendarEntry(datetime(2024, 1, 20), datetime(2024, 3, 10), "Sabbatical")
    february = expand_multi_day_entries([span], 2, 2024)
    assert [e.day for e in february] == list(range(1, 30))
    assert all(e.message == "...Sabbatical..." for e in february)


def test_sort_is_stable_by_day_then_start():
    a = CalendarEntry(datetime(2024, 4, 10, 9), None, "a")
    b = CalendarEntry(datetime(2024, 4, 2, 15), None, "b")
    c = CalendarEntry(datetime(2024, 4, 10, 9), None, "c")
    d = CalendarEntry(datetime(2024, 4, 10, 8), None, "d")
    assert [e.message for e in sort_entries([a, b, c, d])] == ["b", "d", "a", "c"]


def test_group_by_day_slots():
    entries = [CalendarEntry(datetime(2024, 1, 31, 9), None, "end"),
               CalendarEntry(datetime(2024, 1, 1, 9), None, "start")]
    slots = group_entries_by_day(entries)
    assert len(slots) == 32
    assert slots[0] == []
    assert [e.message for e in slots[31]] == ["end"]
    assert [e.message for e in slots[1]] == ["start"]


def test_rotate_day_names():
    names = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
    assert rotate_day_names(names, 1) == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    assert rotate_day_names(names, 0) == names


# -----------------------------------------------------------------------------
# Builder input
# -----------------------------------------------------------------------------

def test_config_rejects_unknown_paper_size():
    with pytest.raises(ValueError):
        BuilderConfig(paper_size="Letter")


def test_config_parses_strings():
    config = BuilderConfig(paper_size="a3", orientation="LANDSCAPE", week_start=0)
    assert config.paper_size is PaperSize.A3
    assert config.orientation is Orientation.LANDSCAPE


def test_add_entry_before_month_fails(builder):
    with pytest.raises(NoPageError):
        builder.add_entry(datetime(2024, 4, 10, 9), None, "Meeting")


def test_generate_without_months_fails(builder):
    with pytest.raises(NoPagesError):
        builder.generate()


def test_entries_go_to_latest_month(builder):
    builder.add_month(3, 2024)
    april = builder.add_month(4, 2024, "Spring")
    builder.add_entry(datetime(2024, 4, 10, 9), None, "Meeting")
    assert builder.pages[0].entries == []
    assert len(april.entries) == 1
    assert april.title == "Spring"
    assert builder.pages[0].title == "March 2024"


def test_unknown_category_falls_back_to_defaults(builder, caplog):
    builder.add_month(4, 2024)
    with caplog.at_level(logging.WARNING, logger="monthgrid.builder"):
        entry = builder.add_entry_with_category(datetime(2024, 4, 10, 9), None, "Meeting", "nope")
    assert entry.text_color == (0, 0, 0)
    assert entry.bg_color == (255, 255, 255)
    assert "nope" in caplog.text


def test_unknown_category_strict():
    builder = CalendarBuilder(BuilderConfig(strict_categories=True), renderer=RecordingRenderer())
    builder.add_month(4, 2024)
    with pytest.raises(UnknownCategoryError):
        builder.add_entry_with_category(datetime(2024, 4, 10, 9), None, "Meeting", "nope")


def test_category_colors_applied(builder):
    builder.add_category("work", "Work", "#ffffff", "#003366")
    builder.add_month(4, 2024)
    entry = builder.add_entry_with_category(datetime(2024, 4, 10, 9), None, "Meeting", "work")
    assert entry.text_color == (255, 255, 255)
    assert entry.bg_color == (0, 51, 102)
    assert builder.get_category("work").name == "Work"


# -----------------------------------------------------------------------------
# Content tree
# -----------------------------------------------------------------------------

def test_april_2024_end_to_end(builder):
    builder.add_month(4, 2024)
    builder.add_entry(datetime(2024, 4, 10, 9), datetime(2024, 4, 10, 10), "Meeting")

    document = builder.build_document(GENERATED_AT)
    assert len(document.content) == 1
    page = document.content[0]
    assert isinstance(page, Stack)
    assert page.unbreakable

    title = page.items[0]
    assert isinstance(title, Text)
    assert title.text == "April 2024"

    table = grid_table(page)
    assert len(table.body) == 1 + 5
    assert all(len(row) == 7 for row in table.body)
    assert texts(table.body[0][0]) == ["Mon"]
    assert texts(table.body[0][6]) == ["Sun"]

    # April 1st is a Monday: no leading blanks
    assert texts(table.body[1][0]) == ["1"]
    assert texts(table.body[2][2]) == ["10", "9h Meeting"]
    assert texts(table.body[5][1]) == ["30"]
    assert all(cell.fill_color == COLOR_BLANK_CELL for cell in table.body[5][2:])

    assert sum(table.widths) == pytest.approx(190 * 2.83465)
    solution = builder.solve_layout(builder.pages[0])
    assert table.heights[1:] == solution.row_heights
    assert solution.entry_font_size == 8

    footer = page.items[-1]
    assert footer.text == "Created: 20.03.2024 14:30"

    assert document.info.title == "April 2024"


def test_day_number_pinned_to_cell_bottom(builder):
    builder.add_month(4, 2024)
    page = builder.build_document(GENERATED_AT).content[0]
    table = grid_table(page)
    row_height = table.heights[1]
    number = table.body[1][0].stack[0]
    assert number.alignment == "right"
    assert number.y_offset == pytest.approx(row_height - 4 - 14 * 1.2)


def test_show_end_time(builder):
    builder.config.show_end_time = True
    builder.add_month(4, 2024)
    builder.add_entry(datetime(2024, 4, 10, 9), datetime(2024, 4, 10, 10), "Meeting")
    table = grid_table(builder.build_document(GENERATED_AT).content[0])
    assert texts(table.body[2][2]) == ["10", "9-10h Meeting"]


def test_entries_in_day_are_sorted_and_separated(builder):
    builder.add_month(4, 2024)
    builder.add_entry(datetime(2024, 4, 10, 15), None, "Late")
    builder.add_entry(datetime(2024, 4, 10, 8, 30), None, "Early")
    cell = grid_table(builder.build_document(GENERATED_AT).content[0]).body[2][2]
    assert texts(cell) == ["10", "8:30h Early", "15h Late"]
    assert cell.stack[1].rule_below is not None
    assert cell.stack[2].rule_below is None


def test_use_colors_off_renders_black_on_white():
    builder = CalendarBuilder(BuilderConfig(use_colors=False), renderer=RecordingRenderer())
    builder.add_month(4, 2024)
    builder.add_entry(datetime(2024, 4, 10, 9), None, "Meeting", "#ffffff", "#aa0000")
    entry = grid_table(builder.build_document(GENERATED_AT).content[0]).body[2][2].stack[1]
    assert entry.color == (0, 0, 0)
    assert entry.fill_color == (255, 255, 255)


def test_sunday_week_start_shifts_columns():
    builder = CalendarBuilder(BuilderConfig(week_start=0), renderer=RecordingRenderer())
    builder.add_month(4, 2024)
    table = grid_table(builder.build_document(GENERATED_AT).content[0])
    assert texts(table.body[0][0]) == ["Sun"]
    assert table.body[1][0].fill_color == COLOR_BLANK_CELL
    assert texts(table.body[1][1]) == ["1"]


def test_six_week_month():
    builder = CalendarBuilder(renderer=RecordingRenderer())
    builder.add_month(9, 2024)
    table = grid_table(builder.build_document(GENERATED_AT).content[0])
    assert len(table.heights) == 1 + 6
    assert texts(table.body[1][6]) == ["1"]


def test_legend_chunks_of_seven(builder):
    for i in range(9):
        builder.add_category(f"c{i}", f"Calendar {i}", "#000000", "#eeeeee")
    builder.add_month(4, 2024)
    page = builder.build_document(GENERATED_AT).content[0]
    tables = [item for item in page.items if isinstance(item, Table)]
    legend = tables[1:]
    assert [len(t.body[0]) for t in legend] == [7, 2]
    assert legend[0].body[0][0].stack[0].text == "Calendar 0"
    assert legend[1].body[0][1].fill_color == (238, 238, 238)
    assert sum(legend[1].widths) == pytest.approx(sum(tables[0].widths))


def test_legend_shrinks_grid_height(builder):
    builder.add_month(4, 2024)
    without = builder.page_geometry(builder.pages[0]).grid_height
    builder.add_category("a", "A", "#000000", "#ffffff")
    with_legend = builder.page_geometry(builder.pages[0]).grid_height
    assert with_legend == pytest.approx(without - (8 * 1.4 + 12))


def test_no_legend_when_disabled_or_empty():
    builder = CalendarBuilder(BuilderConfig(show_legend=False), renderer=RecordingRenderer())
    builder.add_category("a", "A", "#000000", "#ffffff")
    builder.add_month(4, 2024)
    page = builder.build_document(GENERATED_AT).content[0]
    assert len([item for item in page.items if isinstance(item, Table)]) == 1


def test_pages_in_insertion_order_with_breaks(builder):
    builder.add_month(1, 2024)
    builder.add_month(2, 2024)
    builder.add_month(3, 2024)
    document = builder.build_document(GENERATED_AT)
    assert [type(n) for n in document.content] == [Stack, PageBreak, Stack, PageBreak, Stack]
    assert [p[0].items[0].text for p in document.pages()] == ["January 2024", "February 2024",
                                                              "March 2024"]
    assert document.info.title == "January 2024 – March 2024"


def test_generate_hands_document_to_renderer(builder):
    builder.add_month(4, 2024)
    assert builder.generate(GENERATED_AT) == b"%PDF-fake"
    assert len(builder.renderer.documents) == 1


def test_generate_async(builder):
    builder.add_month(4, 2024)
    assert asyncio.run(builder.generate_async(GENERATED_AT)) == b"%PDF-fake"


def test_entry_text_width_matches_line_estimate(builder):
    builder.add_month(4, 2024)
    builder.add_entry(datetime(2024, 4, 10, 9), None, "Meeting")
    table = grid_table(builder.build_document(GENERATED_AT).content[0])
    col_width = table.widths[2]
    cell = table.body[2][2]
    entry = cell.stack[1]

    # Width the renderer wraps the entry in
    wrap_width = col_width - cell.margin[0] - cell.margin[2] - entry.margin[0] - entry.margin[2]
    assert wrap_width == pytest.approx(col_width - TEXT_INSET_H)
