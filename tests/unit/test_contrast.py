"""Unit tests for foreground color selection."""

from __future__ import annotations

import pytest

from src.annotation.contrast import parse_hex_color, text_color_for_background, yiq_brightness


@pytest.mark.parametrize(
    "background, expected",
    [
        ("#FFFFFF", "black"),
        ("#000000", "white"),
        ("#FCD34D", "black"),
        ("#1E3A8A", "white"),
        ("#7F1D1D", "white"),
        ("#111", "white"),
        ("#EEE", "black"),
    ],
)
def test_text_color_for_background(background: str, expected: str) -> None:
    assert text_color_for_background(background) == expected


def test_threshold_is_inclusive() -> None:
    # (128 * 299 + 128 * 587 + 128 * 114) / 1000 == 128
    assert yiq_brightness("#808080") == 128
    assert text_color_for_background("#808080") == "black"
    assert text_color_for_background("#7F7F7F") == "white"


def test_shorthand_expands_each_digit() -> None:
    assert parse_hex_color("#1a2") == (0x11, 0xAA, 0x22)
    assert parse_hex_color("#11AA22") == (0x11, 0xAA, 0x22)


@pytest.mark.parametrize("value", ["", "FFFFFF", "#FFFF", "#GGGGGG", "#1234567"])
def test_invalid_colors_raise(value: str) -> None:
    with pytest.raises(ValueError):
        text_color_for_background(value)
