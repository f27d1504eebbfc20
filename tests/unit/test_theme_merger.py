"""Unit tests for turning proposed themes into codes and quotes."""

from __future__ import annotations

import itertools

import pytest

from src.annotation.models import Theme
from src.annotation.themes import apply_themes

TEXT = "The layout is intuitive. The export is confusing. The layout is intuitive again."
PALETTE = ["#A", "#B", "#C"]


@pytest.fixture
def new_id():
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}-{next(counter)}"


def test_each_theme_becomes_a_code_with_rotating_color(new_id) -> None:
    themes = [Theme("One", "d1", []), Theme("Two", "d2", []), Theme("Three", "d3", [])]

    result = apply_themes(themes, TEXT, "doc-1", existing_code_count=2, palette=PALETTE, new_id=new_id)

    assert [c.name for c in result.codes] == ["One", "Two", "Three"]
    assert [c.color for c in result.codes] == ["#C", "#A", "#B"]
    assert len({c.id for c in result.codes}) == 3


def test_quotes_anchor_at_first_occurrence(new_id) -> None:
    themes = [Theme("Usability", "", ["The layout is intuitive"])]

    result = apply_themes(themes, TEXT, "doc-1", existing_code_count=0, palette=PALETTE, new_id=new_id)

    (quote,) = result.quotes
    assert (quote.start, quote.end) == (0, len("The layout is intuitive"))
    assert TEXT[quote.start:quote.end] == quote.text
    assert quote.code_id == result.codes[0].id
    assert quote.document_id == "doc-1"


def test_missing_quote_is_dropped_but_rest_of_theme_applies(new_id) -> None:
    themes = [
        Theme("Confusion", "", ["The export is very confusing", "The export is confusing"]),
        Theme("Praise", "", ["intuitive again"]),
    ]

    result = apply_themes(themes, TEXT, "doc-1", existing_code_count=0, palette=PALETTE, new_id=new_id)

    assert [c.name for c in result.codes] == ["Confusion", "Praise"]
    assert [q.text for q in result.quotes] == ["The export is confusing", "intuitive again"]
    assert result.dropped == ["The export is very confusing"]


def test_theme_with_no_found_quotes_still_creates_code(new_id) -> None:
    result = apply_themes(
        [Theme("Ghost", "", ["not in the text"])], TEXT, "doc-1", existing_code_count=0, palette=PALETTE, new_id=new_id
    )

    assert len(result.codes) == 1
    assert result.quotes == []


def test_document_without_text_drops_every_quote(new_id) -> None:
    result = apply_themes(
        [Theme("Visual", "", ["anything"])], None, "doc-img", existing_code_count=0, palette=PALETTE, new_id=new_id
    )

    assert len(result.codes) == 1
    assert result.dropped == ["anything"]


def test_empty_palette_rejected(new_id) -> None:
    with pytest.raises(ValueError):
        apply_themes([Theme("T", "", [])], TEXT, "doc-1", existing_code_count=0, palette=[], new_id=new_id)
