"""Hex/RGB conversion and automatic contrast text colors."""

import re
from typing import Sequence, Tuple, Union

from monthgrid.errors import ColorFormatError

RGB = Tuple[int, int, int]
ColorLike = Union[str, Sequence[int]]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)

# Perceived brightness above this picks dark text
BRIGHTNESS_THRESHOLD = 128

_HEX_RE = re.compile(r"[0-9a-fA-F]{6}")


def hex_to_rgb(value: str) -> RGB:
    """Parse ``#RRGGBB`` or ``RRGGBB`` into an RGB triple."""
    if not isinstance(value, str):
        raise ColorFormatError(f"Color must be a hex string, got {value!r}")
    digits = value[1:] if value.startswith("#") else value
    if not _HEX_RE.fullmatch(digits):
        raise ColorFormatError(f"Invalid hex color: {value!r}")
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def validate_rgb(rgb: Sequence[int]) -> RGB:
    """Return ``rgb`` as a tuple after checking it holds three 0-255 ints."""
    try:
        components = tuple(rgb)
    except TypeError:
        raise ColorFormatError(f"Invalid RGB color: {rgb!r}") from None
    if len(components) != 3:
        raise ColorFormatError(f"RGB color needs 3 components, got {rgb!r}")
    for c in components:
        if isinstance(c, bool) or not isinstance(c, int) or not 0 <= c <= 255:
            raise ColorFormatError(f"RGB component out of range in {rgb!r}")
    return components  # type: ignore[return-value]


def rgb_to_hex(rgb: Sequence[int]) -> str:
    r, g, b = validate_rgb(rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def to_rgb(value: ColorLike) -> RGB:
    """Normalize a hex string or RGB triple to a validated RGB tuple."""
    if isinstance(value, str):
        return hex_to_rgb(value)
    return validate_rgb(value)


def brightness(rgb: Sequence[int]) -> float:
    """Perceived brightness Y = 0.299R + 0.587G + 0.114B (exact for integer input)."""
    r, g, b = validate_rgb(rgb)
    return (299 * r + 587 * g + 114 * b) / 1000


def contrast_color(rgb: Sequence[int]) -> RGB:
    """Pick black or white text for the given background.

    A brightness of exactly 128 is treated as dark and gets white text.
    """
    return BLACK if brightness(rgb) > BRIGHTNESS_THRESHOLD else WHITE


def contrast_hex(value: str) -> str:
    return rgb_to_hex(contrast_color(hex_to_rgb(value)))


def to_unit_rgb(rgb: Sequence[int]) -> Tuple[float, float, float]:
    """Convert 0-255 components to the 0-1 floats fitz draws with."""
    r, g, b = validate_rgb(rgb)
    return (r / 255, g / 255, b / 255)
