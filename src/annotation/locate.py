"""Substring location shared by theme merging and selection mapping."""

from __future__ import annotations

from typing import Optional


def locate(needle: str, haystack: Optional[str]) -> Optional[int]:
    """Return the offset of the first occurrence of ``needle`` in ``haystack``.

    Only the first occurrence is ever reported: text that repeats in a
    document always resolves to its earliest position. Matching is exact
    (case and whitespace sensitive).

    Args:
        needle: Text to find. An empty needle never matches.
        haystack: Text to search; ``None`` is treated as no text.

    Returns:
        The start offset, or None when the needle does not occur.
    """
    if not needle or not haystack:
        return None
    index = haystack.find(needle)
    return index if index != -1 else None
