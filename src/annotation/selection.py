"""Map a raw user text selection onto the document's logical text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.annotation.locate import locate
from src.annotation.models import Segment


@dataclass(frozen=True)
class SelectionContext:
    """What the rendering layer knows about where a selection landed.

    Attributes:
        full_text: The logical text of the rendered content area.
        structural_offset: Start offset reported by the rendering layer when
            the selection begins directly inside the content area rather than
            inside a highlighted run. None when it cannot tell.
    """
    full_text: str
    structural_offset: Optional[int] = None


def map_selection(raw_selected_text: Optional[str], context: SelectionContext) -> Optional[Segment]:
    """Convert a raw selection into a ``Segment`` or None.

    The structural offset is trusted only when the full text at that offset
    is exactly the selected text. Otherwise the selected text is searched for in the full text, which
    maps a repeated phrase to its first occurrence even if the user selected a
    later one.
    """
    if not raw_selected_text or not raw_selected_text.strip():
        return None

    length = len(raw_selected_text)
    start = context.structural_offset
    if start is None or start < 0 or context.full_text[start:start + length] != raw_selected_text:
        start = locate(raw_selected_text, context.full_text)
    if start is None:
        return None

    return Segment(text=raw_selected_text, start=start, end=start + length)
