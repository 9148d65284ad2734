"""
Pure projection of the item collection into the currently displayed view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Iterable, Sequence

from pyuca import Collator

from narrative_visualizer.analysis import ItemCategory

from .items import WorkItem


class SortOption(str, Enum):
    APPEARANCE = "appearance"
    CATEGORY = "category"
    TITLE = "title"


@dataclass
class ViewParameters:
    """User-controlled view settings; defaults mean "show everything as produced"."""

    filters: set[ItemCategory] = field(default_factory=set)
    search_term: str = ""
    sort: SortOption = SortOption.APPEARANCE

    def reset(self) -> None:
        self.filters = set()
        self.search_term = ""
        self.sort = SortOption.APPEARANCE


@lru_cache(maxsize=1)
def _collator() -> Collator:
    return Collator()


def _collation_key(text: str) -> tuple[int, ...]:
    return _collator().sort_key(text)


def filter_by_category(
    items: Iterable[WorkItem],
    filters: Iterable[ItemCategory],
) -> list[WorkItem]:
    """Keep items whose category is selected. No selection keeps everything."""
    selected = frozenset(filters)
    if not selected:
        return list(items)
    return [item for item in items if item.category in selected]


def search_items(items: Iterable[WorkItem], search_term: str) -> list[WorkItem]:
    """Case-insensitive substring match on title or description."""
    if not search_term:
        return list(items)

    needle = search_term.lower()
    return [
        item
        for item in items
        if needle in item.title.lower() or needle in item.description.lower()
    ]


def sort_items(items: Iterable[WorkItem], sort: SortOption) -> list[WorkItem]:
    if sort is SortOption.TITLE:
        return sorted(items, key=lambda item: _collation_key(item.title))
    if sort is SortOption.CATEGORY:
        return sorted(
            items,
            key=lambda item: (
                _collation_key(item.category.value),
                _collation_key(item.title),
            ),
        )
    return list(items)


def project_items(
    items: Sequence[WorkItem],
    *,
    filters: Iterable[ItemCategory] = (),
    search_term: str = "",
    sort: SortOption = SortOption.APPEARANCE,
) -> list[WorkItem]:
    """
    Derive the displayed subset and order from the collection and view settings.

    The input is never mutated; equal sort keys keep their appearance order.
    """
    visible = filter_by_category(items, filters)
    visible = search_items(visible, search_term)
    return sort_items(visible, SortOption(sort))


def project_view(items: Sequence[WorkItem], view: ViewParameters) -> list[WorkItem]:
    return project_items(
        items,
        filters=view.filters,
        search_term=view.search_term,
        sort=view.sort,
    )
