"""
Tests for the view projection.
"""

from __future__ import annotations

import pytest

from narrative_visualizer.analysis import ItemCategory
from narrative_visualizer.pipeline import SortOption, ViewParameters, WorkItem, project_items, project_view


def make_item(item_id: str, title: str, category: ItemCategory, description: str = "") -> WorkItem:
    return WorkItem(
        id=item_id,
        title=title,
        description=description or f"Visual for {title}",
        category=category,
        original_prompt=f"Prompt for {title}",
        tags=[category.value],
    )


@pytest.fixture
def items() -> list[WorkItem]:
    return [
        make_item("1", "Storm over the ruins", ItemCategory.SCENE, "Thunder splits the ancient sky."),
        make_item("2", "Kaelen", ItemCategory.CHARACTER),
        make_item("3", "Beast", ItemCategory.CHARACTER, "A creature with many burning eyes."),
        make_item("4", "Ancient City", ItemCategory.SETTING),
        make_item("5", "Arrival", ItemCategory.SCENE, "The beast descends on the city."),
        make_item("6", "Nullifier", ItemCategory.IMPORTANT_OBJECT),
    ]


def ids(items: list[WorkItem]) -> list[str]:
    return [item.id for item in items]


def test_defaults_reproduce_appearance_order(items):
    assert ids(project_items(items)) == ["1", "2", "3", "4", "5", "6"]


def test_empty_filter_set_means_no_filtering(items):
    assert ids(project_items(items, filters=set())) == ids(items)


def test_filter_keeps_selected_categories(items):
    result = project_items(items, filters={ItemCategory.CHARACTER, ItemCategory.SETTING})

    assert ids(result) == ["2", "3", "4"]


def test_search_is_case_insensitive_on_title_and_description(items):
    assert ids(project_items(items, search_term="BEAST")) == ["3", "5"]
    assert ids(project_items(items, search_term="ancient")) == ["1", "4"]


def test_filter_and_search_compose_with_and(items):
    combined = project_items(items, filters={ItemCategory.SCENE}, search_term="beast")
    filtered_first = project_items(project_items(items, filters={ItemCategory.SCENE}), search_term="beast")
    searched_first = project_items(project_items(items, search_term="beast"), filters={ItemCategory.SCENE})

    assert ids(combined) == ["5"]
    assert ids(combined) == ids(filtered_first) == ids(searched_first)


def test_title_sort_orders_alphabetically(items):
    result = project_items(items, sort=SortOption.TITLE)

    assert [item.title for item in result] == [
        "Ancient City",
        "Arrival",
        "Beast",
        "Kaelen",
        "Nullifier",
        "Storm over the ruins",
    ]


@pytest.mark.parametrize(
    "titles, expected",
    [
        (["Zorro", "apple", "Ángel", "banana"], ["Ángel", "apple", "banana", "Zorro"]),
        (["zeta", "éclair", "Eagle"], ["Eagle", "éclair", "zeta"]),
    ],
)
def test_title_sort_ignores_case_and_accents_at_first_level(titles, expected):
    unsorted = [make_item(str(index), title, ItemCategory.CHARACTER) for index, title in enumerate(titles)]

    result = project_items(unsorted, sort=SortOption.TITLE)

    assert [item.title for item in result] == expected


def test_category_sort_breaks_ties_by_title(items):
    result = project_items(items, sort=SortOption.CATEGORY)

    assert ids(result) == ["3", "2", "6", "5", "1", "4"]


def test_equal_titles_keep_appearance_order():
    twins = [
        make_item("a", "Echo", ItemCategory.EVENT),
        make_item("b", "Echo", ItemCategory.SCENE),
        make_item("c", "Alpha", ItemCategory.EVENT),
    ]

    assert ids(project_items(twins, sort=SortOption.TITLE)) == ["c", "a", "b"]


def test_projection_is_idempotent_and_pure(items):
    snapshot = list(items)

    first = project_items(items, filters={ItemCategory.CHARACTER}, search_term="e", sort=SortOption.TITLE)
    second = project_items(items, filters={ItemCategory.CHARACTER}, search_term="e", sort=SortOption.TITLE)

    assert ids(first) == ids(second)
    assert items == snapshot


def test_sort_accepts_plain_string(items):
    assert ids(project_items(items, sort="title")) == ids(project_items(items, sort=SortOption.TITLE))


def test_project_view_uses_parameters(items):
    view = ViewParameters(filters={ItemCategory.SCENE}, search_term="", sort=SortOption.TITLE)

    assert ids(project_view(items, view)) == ["5", "1"]

    view.reset()
    assert ids(project_view(items, view)) == ids(items)
