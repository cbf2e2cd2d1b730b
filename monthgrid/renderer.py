"""
PDF renderer for the calendar content tree, drawn with PyMuPDF.

Every page-break separated group of nodes becomes one PDF page, so nothing
is ever split across pages. An unbreakable stack that runs past the bottom
of its page is drawn anyway and logged. Tables are drawn with the row
heights and column widths given in the tree; text that does not fit its
cell is drawn anyway.
"""

import logging
from typing import List, Optional, Tuple

import fitz

from monthgrid.colors import to_unit_rgb
from monthgrid.content import Cell, Document, Node, PageBreak, Stack, Table, Text
from monthgrid.grid import mm_to_pt, page_dimensions

logger = logging.getLogger(__name__)

# Base-14 Helvetica; always available, no font files needed
FONT_NAME_REGULAR = "helv"
FONT_NAME_BOLD = "hebo"

ENTRY_RULE_WIDTH = 0.5


class PdfRenderer:

    def __init__(self, font_file: Optional[str] = None, bold_font_file: Optional[str] = None):
        """Use Helvetica, or TrueType files registered on every page."""
        self.font_file = font_file
        self.bold_font_file = bold_font_file or font_file
        self._regular = ("MonthgridRegular", font_file) if font_file else (FONT_NAME_REGULAR, None)
        self._bold = ("MonthgridBold", self.bold_font_file) if font_file else (FONT_NAME_BOLD, None)
        self._fonts = {
            False: fitz.Font(fontfile=font_file) if font_file else fitz.Font(FONT_NAME_REGULAR),
            True: fitz.Font(fontfile=self.bold_font_file) if font_file else fitz.Font(FONT_NAME_BOLD),
        }

    # -------------------------------------------------------------------------
    # Document
    # -------------------------------------------------------------------------

    def render(self, document: Document) -> bytes:
        width_mm, height_mm = page_dimensions(document.paper_size, document.orientation)
        margins = document.margins
        left = mm_to_pt(margins.left)
        top = mm_to_pt(margins.top)
        content_width = mm_to_pt(width_mm - margins.left - margins.right)

        doc = fitz.open()
        try:
            for nodes in document.pages():
                page = doc.new_page(width=mm_to_pt(width_mm), height=mm_to_pt(height_mm))
                y = top
                for node in nodes:
                    y = self.draw_node(page, node, left, y, content_width)
            logger.debug("Rendered %d page(s)", len(doc))

            info = document.info
            doc.set_metadata({
                "title": info.title,
                "author": info.author,
                "subject": info.subject,
                "keywords": info.keywords,
                "creator": info.creator,
                "producer": "PyMuPDF",
                "creationDate": fitz.get_pdf_now(),
                "modDate": fitz.get_pdf_now(),
            })
            return doc.tobytes(garbage=3, deflate=True)
        finally:
            doc.close()

    def draw_node(self, page: fitz.Page, node: Node, x: float, y: float, width: float) -> float:
        """Draw ``node`` at (x, y) and return the y below it."""
        if isinstance(node, Text):
            return self.draw_text(page, node, x, y, width)
        if isinstance(node, Table):
            return self.draw_table(page, node, x, y)
        if isinstance(node, Stack):
            top = y
            for item in node.items:
                y = self.draw_node(page, item, x, y, width)
            if node.unbreakable and y > page.rect.height:
                logger.warning("Unbreakable block of %.1fpt runs %.1fpt past the page bottom",
                               y - top, y - page.rect.height)
            return y
        if isinstance(node, PageBreak):
            raise ValueError("Page breaks are only allowed at the top level")
        raise TypeError(f"Unknown content node: {node!r}")

    # -------------------------------------------------------------------------
    # Text
    # -------------------------------------------------------------------------

    def get_text_width(self, text: str, font_size: float, bold: bool = False) -> float:
        return self._fonts[bold].text_length(text, fontsize=font_size)

    def wrap_text(self, text: str, max_width: float, font_size: float, bold: bool = False) -> List[str]:
        """Greedy word wrap; words wider than a line are split by character."""
        lines: List[str] = []
        for paragraph in text.split("\n"):
            current = ""
            for word in paragraph.split():
                candidate = f"{current} {word}" if current else word
                if self.get_text_width(candidate, font_size, bold) <= max_width:
                    current = candidate
                    continue
                if current:
                    lines.append(current)
                current = ""
                for char in word:
                    if current and self.get_text_width(current + char, font_size, bold) > max_width:
                        lines.append(current)
                        current = ""
                    current += char
            if current:
                lines.append(current)
        return lines

    def draw_text(self, page: fitz.Page, node: Text, x: float, y: float, width: float) -> float:
        m_left, m_top, m_right, m_bottom = node.margin
        inner_width = max(1.0, width - m_left - m_right)
        lines = self.wrap_text(node.text, inner_width, node.font_size, node.bold)
        line_height = node.font_size * node.line_height
        block_height = m_top + len(lines) * line_height + m_bottom

        top = y + node.y_offset
        if node.fill_color is not None:
            page.draw_rect(fitz.Rect(x, top, x + width, top + block_height),
                           color=None, fill=to_unit_rgb(node.fill_color), width=0)

        fontname, fontfile = self._bold if node.bold else self._regular
        color = to_unit_rgb(node.color)
        line_top = top + m_top
        for line in lines:
            line_x = x + m_left
            if node.alignment != "left":
                slack = inner_width - self.get_text_width(line, node.font_size, node.bold)
                line_x += slack if node.alignment == "right" else slack / 2
            page.insert_text(fitz.Point(line_x, line_top + node.font_size), line,
                             fontsize=node.font_size, fontname=fontname, fontfile=fontfile,
                             color=color)
            line_top += line_height

        if node.rule_below is not None:
            rule_y = top + block_height
            page.draw_line(fitz.Point(x, rule_y), fitz.Point(x + width, rule_y),
                           color=to_unit_rgb(node.rule_below), width=ENTRY_RULE_WIDTH)

        # y_offset is visual only
        return y + block_height

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def draw_table(self, page: fitz.Page, table: Table, x: float, y: float) -> float:
        if len(table.heights) != len(table.body):
            raise ValueError(f"Table has {len(table.body)} rows but {len(table.heights)} heights")
        m_left, m_top, _, m_bottom = table.margin
        left = x + m_left
        top = y + m_top
        total_width = sum(table.widths)

        row_top = top
        for row, height in zip(table.body, table.heights):
            cell_left = left
            for cell, cell_width in zip(row, table.widths):
                self.draw_cell(page, cell, cell_left, row_top, cell_width, height)
                cell_left += cell_width
            row_top += height

        self._draw_grid(page, table, left, top, total_width, row_top)
        return row_top + m_bottom

    def draw_cell(self, page: fitz.Page, cell: Cell, x: float, y: float, width: float, height: float):
        if cell.fill_color is not None:
            page.draw_rect(fitz.Rect(x, y, x + width, y + height),
                           color=None, fill=to_unit_rgb(cell.fill_color), width=0)
        m_left, m_top, m_right, _ = cell.margin
        inner_y = y + m_top
        for node in cell.stack:
            inner_y = self.draw_node(page, node, x + m_left, inner_y, width - m_left - m_right)

    def _draw_grid(self, page: fitz.Page, table: Table, left: float, top: float,
                   total_width: float, bottom: float):
        if table.line_width <= 0:
            return
        color = to_unit_rgb(table.line_color)
        shape = page.new_shape()
        row_y = top
        for height in [0.0] + list(table.heights):
            row_y += height
            shape.draw_line(fitz.Point(left, row_y), fitz.Point(left + total_width, row_y))
        col_x = left
        for width in [0.0] + list(table.widths):
            col_x += width
            shape.draw_line(fitz.Point(col_x, top), fitz.Point(col_x, bottom))
        shape.finish(color=color, width=table.line_width)
        shape.commit()


def page_count(data: bytes) -> int:
    with fitz.open(stream=data, filetype="pdf") as doc:
        return len(doc)


def extract_text(data: bytes) -> Tuple[str, ...]:
    """Plain text of every page, mainly for checking generated files."""
    with fitz.open(stream=data, filetype="pdf") as doc:
        return tuple(page.get_text() for page in doc)
