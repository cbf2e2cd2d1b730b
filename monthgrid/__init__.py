"""Adaptive month-calendar PDF generator."""

from monthgrid.builder import BuilderConfig, CalendarBuilder, Category, PageData
from monthgrid.entry import CalendarEntry
from monthgrid.errors import (CalendarError, ColorFormatError, EntryRangeError,
                              InvalidOrientationError, InvalidPaperSizeError, NoPageError,
                              NoPagesError, SourceFormatError, UnknownCategoryError)
from monthgrid.grid import Margins, Orientation, PaperSize
from monthgrid.output import generate_filename, save_document

__version__ = "1.0.0"

__all__ = [
    "BuilderConfig",
    "CalendarBuilder",
    "CalendarEntry",
    "CalendarError",
    "Category",
    "ColorFormatError",
    "EntryRangeError",
    "InvalidOrientationError",
    "InvalidPaperSizeError",
    "Margins",
    "NoPageError",
    "NoPagesError",
    "Orientation",
    "PageData",
    "PaperSize",
    "SourceFormatError",
    "UnknownCategoryError",
    "generate_filename",
    "save_document",
]
