"""Materialize proposed themes into codes and offset-anchored quotes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from src.annotation.locate import locate
from src.annotation.models import Code, Quote, Theme

logger = logging.getLogger(__name__)

IdFactory = Callable[[str], str]


@dataclass
class ThemeApplication:
    """Codes and quotes produced from a batch of themes, not yet committed."""
    codes: List[Code] = field(default_factory=list)
    quotes: List[Quote] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)


def apply_themes(
    themes: Sequence[Theme],
    source_text: Optional[str],
    document_id: str,
    existing_code_count: int,
    palette: Sequence[str],
    new_id: IdFactory,
) -> ThemeApplication:
    """Build one code per theme and a quote for every quote text found verbatim.

    Theme ``i`` is colored ``palette[(existing_code_count + i) % len(palette)]``
    so a batch rotates through the palette the same way sequential
    ``add_code`` calls would. Quote texts are anchored at their first
    occurrence in ``source_text``; texts that do not occur are dropped and
    the rest of the batch still applies.

    Args:
        themes: Proposed themes, in order.
        source_text: The document's offset text (None for documents without one).
        document_id: Document the quotes belong to.
        existing_code_count: Number of codes in the store before this batch.
        palette: Ordered code colors.
        new_id: Callable returning a fresh id for a given prefix.

    Returns:
        The new codes, the located quotes, and the quote texts that were dropped.
    """
    if not palette:
        raise ValueError("palette must contain at least one color")

    result = ThemeApplication()
    for index, theme in enumerate(themes):
        code = Code(
            id=new_id("code-theme"),
            name=theme.name,
            description=theme.description,
            color=palette[(existing_code_count + index) % len(palette)],
        )
        result.codes.append(code)

        for quote_text in theme.quotes:
            start = locate(quote_text, source_text)
            if start is None:
                logger.debug(f"Theme '{theme.name}': quote not found verbatim, dropping: {quote_text[:60]!r}")
                result.dropped.append(quote_text)
                continue
            result.quotes.append(
                Quote(
                    id=new_id("quote-theme"),
                    document_id=document_id,
                    code_id=code.id,
                    text=quote_text,
                    start=start,
                    end=start + len(quote_text),
                )
            )

    if result.dropped:
        logger.info(f"Applied {len(result.codes)} themes; {len(result.dropped)} quotes not found in document {document_id}")
    return result
