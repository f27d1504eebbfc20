"""Foreground color selection for highlighted runs."""

from __future__ import annotations

import re

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

# YIQ brightness at or above this reads better with dark text.
YIQ_THRESHOLD = 128


def parse_hex_color(hex_color: str) -> tuple[int, int, int]:
    """Parse ``#rgb`` or ``#rrggbb`` into an ``(r, g, b)`` tuple.

    Raises:
        ValueError: If the value is not a hex color.
    """
    if not isinstance(hex_color, str) or not _HEX_COLOR.match(hex_color):
        raise ValueError(f"Expected a hex color like '#1a2b3c', got: {hex_color!r}")

    digits = hex_color[1:]
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def yiq_brightness(hex_color: str) -> float:
    r, g, b = parse_hex_color(hex_color)
    return ((r * 299) + (g * 587) + (b * 114)) / 1000


def text_color_for_background(hex_color: str) -> str:
    """Return ``"black"`` or ``"white"``, whichever is legible on ``hex_color``."""
    return "black" if yiq_brightness(hex_color) >= YIQ_THRESHOLD else "white"
