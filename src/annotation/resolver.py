"""Span resolution: turn document text plus coded quotes into render runs.

Quotes may overlap. The resolver walks them in document order with a single
coverage cursor, so every character is emitted at most once:

- a quote nested entirely inside an earlier, longer quote is suppressed;
- a quote that overlaps the end of an earlier one only contributes the part
  past the cursor (the later-ending quote wins the remaining coverage);
- a quote whose code no longer exists renders nothing for its range but still
  advances the cursor.

When every quote's code is present, joining the run texts reproduces the
source text exactly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Union

from src.annotation.contrast import text_color_for_background
from src.annotation.models import Code, Quote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlainRun:
    """Uncoded text."""
    text: str


@dataclass(frozen=True)
class CodedRun:
    """Highlighted text belonging to one quote."""
    text: str
    code_id: str
    color: str
    quote_id: str
    start: int
    end: int

    @property
    def text_color(self) -> str:
        return text_color_for_background(self.color)


Run = Union[PlainRun, CodedRun]


def renderable_quotes(quotes: Iterable[Quote]) -> List[Quote]:
    """Return quotes with offsets, sorted by start (stable for ties)."""
    with_offsets = [quote for quote in quotes if quote.has_offsets]
    return sorted(with_offsets, key=lambda quote: quote.start)


def resolve(text: str, quotes: Sequence[Quote], codes: Sequence[Code]) -> List[Run]:
    """Resolve ``quotes`` over ``text`` into an ordered list of runs.

    Args:
        text: The document's offset text.
        quotes: Quotes for this document, in insertion order.
        codes: Known codes; quotes referencing other ids are orphans.

    Returns:
        Plain and coded runs in document order.
    """
    ordered = renderable_quotes(quotes)
    if not ordered:
        return [PlainRun(text)]

    codes_by_id: Dict[str, Code] = {code.id: code for code in codes}
    runs: List[Run] = []
    last_index = 0

    for quote in ordered:
        start, end = quote.start, quote.end
        if start > last_index:
            runs.append(PlainRun(text[last_index:start]))

        code = codes_by_id.get(quote.code_id)
        visible_start = max(start, last_index)
        if code is None:
            logger.debug(f"Skipping orphaned quote {quote.id} (code {quote.code_id} missing)")
        elif end > visible_start:
            runs.append(
                CodedRun(
                    text=text[visible_start:end],
                    code_id=code.id,
                    color=code.color,
                    quote_id=quote.id,
                    start=visible_start,
                    end=end,
                )
            )

        last_index = max(last_index, start, end)

    if last_index < len(text):
        runs.append(PlainRun(text[last_index:]))

    return runs


def join_runs(runs: Iterable[Run]) -> str:
    """Concatenate run texts in order."""
    return "".join(run.text for run in runs)
