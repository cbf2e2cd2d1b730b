import pytest

from monthgrid.colors import (BLACK, WHITE, brightness, contrast_color, contrast_hex, hex_to_rgb,
                              rgb_to_hex, to_rgb, to_unit_rgb)
from monthgrid.errors import ColorFormatError


@pytest.mark.parametrize("value", ["#000000", "#FFFFFF", "#3366cc", "#A1b2C3", "00ff7f", "#808080"])
def test_hex_round_trip_normalizes_case_and_prefix(value):
    expected = "#" + value.lstrip("#").lower()
    assert rgb_to_hex(hex_to_rgb(value)) == expected


def test_hex_to_rgb_values():
    assert hex_to_rgb("#ff8000") == (255, 128, 0)
    assert hex_to_rgb("0A0B0C") == (10, 11, 12)


@pytest.mark.parametrize("value", ["", "#fff", "#12345", "#1234567", "#gg0000", "red", "##123456",
                                   "#ff8000\n", "ff8000\n", " #ff8000"])
def test_hex_to_rgb_rejects_malformed(value):
    with pytest.raises(ColorFormatError):
        hex_to_rgb(value)


def test_hex_to_rgb_rejects_non_string():
    with pytest.raises(ColorFormatError):
        hex_to_rgb(0xFFFFFF)


def test_rgb_to_hex_zero_pads():
    assert rgb_to_hex((1, 2, 3)) == "#010203"


@pytest.mark.parametrize("value", [(256, 0, 0), (-1, 0, 0), (1, 2), (1.5, 2, 3), "abc"])
def test_invalid_rgb_rejected(value):
    with pytest.raises(ColorFormatError):
        to_rgb(value)


def test_color_format_error_is_value_error():
    with pytest.raises(ValueError):
        hex_to_rgb("nope")


def test_contrast_extremes():
    assert contrast_color(hex_to_rgb("#FFFFFF")) == BLACK
    assert contrast_color(hex_to_rgb("#000000")) == WHITE


def test_contrast_boundary_at_128_is_white():
    assert brightness((128, 128, 128)) == 128
    assert contrast_color((128, 128, 128)) == WHITE
    assert contrast_color((129, 128, 128)) == BLACK


def test_contrast_uses_weighted_brightness():
    # Pure green is bright, pure blue is dark
    assert contrast_color((0, 255, 0)) == BLACK
    assert contrast_color((0, 0, 255)) == WHITE
    assert contrast_hex("#ffff00") == "#000000"
    assert contrast_hex("#800000") == "#ffffff"


def test_to_unit_rgb():
    assert to_unit_rgb((255, 0, 51)) == (1.0, 0.0, 0.2)
