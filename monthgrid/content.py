"""
Content tree handed from the builder to the renderer.

Sizes are PDF points, colors RGB triples. Tables carry explicit column
widths and row heights; the renderer uses them as given.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from monthgrid.colors import RGB
from monthgrid.grid import Margins, Orientation, PaperSize

# left, top, right, bottom
Box = Tuple[float, float, float, float]


@dataclass
class Text:
    text: str
    font_size: float
    color: RGB = (0, 0, 0)
    bold: bool = False
    alignment: str = "left"             # left | center | right
    margin: Box = (0, 0, 0, 0)
    fill_color: Optional[RGB] = None    # Background band behind the text
    y_offset: float = 0                 # Visual shift; takes no extra flow space
    rule_below: Optional[RGB] = None    # Hairline under the block
    line_height: float = 1.4


@dataclass
class Cell:
    stack: List["Node"] = field(default_factory=list)
    fill_color: Optional[RGB] = None
    margin: Box = (0, 0, 0, 0)


@dataclass
class Table:
    widths: List[float]
    heights: List[float]
    body: List[List[Cell]]
    line_width: float = 0.25
    line_color: RGB = (128, 128, 128)
    margin: Box = (0, 0, 0, 0)


@dataclass
class Stack:
    items: List["Node"] = field(default_factory=list)
    unbreakable: bool = False


@dataclass
class PageBreak:
    pass


Node = Union[Text, Table, Stack, PageBreak]


@dataclass
class DocumentInfo:
    title: str
    author: str
    creator: str
    subject: str
    keywords: str


@dataclass
class Document:
    info: DocumentInfo
    paper_size: PaperSize
    orientation: Orientation
    margins: Margins
    content: List[Node] = field(default_factory=list)

    def pages(self) -> List[List[Node]]:
        """Top-level content split at page breaks."""
        pages: List[List[Node]] = [[]]
        for node in self.content:
            if isinstance(node, PageBreak):
                pages.append([])
            else:
                pages[-1].append(node)
        return pages
