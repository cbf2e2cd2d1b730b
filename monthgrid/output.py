"""Filenames, document metadata and writing the generated file."""

import logging
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, Union

from monthgrid.content import DocumentInfo

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "monthgrid"
DEFAULT_CREATOR = "monthgrid PDF calendar generator"
BASE_KEYWORDS = ["Calendar"]


def generate_filename(months: Sequence[Tuple[int, int]], ext: str = "pdf",
                      today: Optional[date] = None) -> str:
    """Filename stamped with the generation date.

    ``months`` holds (month, year) pairs in page order.
    """
    if not months:
        raise ValueError("At least one month is needed to name the file")
    stamp = (today or date.today()).strftime("%Y%m%d")
    first_month, first_year = months[0]
    if len(months) == 1:
        return f"calendar_{first_year}_{first_month:02d}_{stamp}.{ext}"
    last_month, last_year = months[-1]
    return (f"calendar_{first_year}{first_month:02d}-"
            f"{last_year}{last_month:02d}_{stamp}.{ext}")


def save_document(data: bytes, filename: str, directory: Union[str, Path] = ".") -> Path:
    """Write the generated bytes to ``directory/filename``."""
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / filename
    path.write_bytes(data)
    logger.info("Saved %d bytes to %s", len(data), path)
    return path


def document_title(titles: Sequence[str]) -> str:
    if not titles:
        return ""
    if len(titles) == 1:
        return titles[0]
    return f"{titles[0]} – {titles[-1]}"


def document_info(titles: Sequence[str], category_names: Iterable[str],
                  author: Optional[str] = None, creator: Optional[str] = None) -> DocumentInfo:
    title = document_title(titles)
    return DocumentInfo(
        title=title,
        author=author or DEFAULT_AUTHOR,
        creator=creator or DEFAULT_CREATOR,
        subject=f"Calendar: {title}",
        keywords=", ".join([*BASE_KEYWORDS, *category_names]),
    )
