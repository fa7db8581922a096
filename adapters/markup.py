"""
markup.py - composition helpers for highlight span lists.

merge_markup()  - concatenate span lists, keeping their relative order
offset_markup() - shift every span, e.g. from line-local into document coordinates
"""
from __future__ import annotations

from contracts import Markup, MarkupSpan


def span(start: int, end: int, kind: str, tooltip: str | None = None) -> MarkupSpan:
    return MarkupSpan(start=start, end=end, kind=kind, tooltip=tooltip)


def merge_markup(*markups: Markup) -> Markup:
    result: Markup = []
    for markup in markups:
        result.extend(markup)
    return result


def offset_markup(markup: Markup, offset: int) -> Markup:
    return [
        item.model_copy(update={"start": item.start + offset, "end": item.end + offset})
        for item in markup
    ]
