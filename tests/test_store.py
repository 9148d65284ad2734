"""
Tests for the versioned item store.
"""

from __future__ import annotations

import pytest

from narrative_visualizer.analysis import ItemCategory
from narrative_visualizer.pipeline import ItemStore, WorkItem


def make_item(item_id: str, *, generating: bool = True) -> WorkItem:
    return WorkItem(
        id=item_id,
        title=f"Title {item_id}",
        description=f"Visual for {item_id}",
        category=ItemCategory.EVENT,
        original_prompt=f"Prompt {item_id}",
        tags=["Event"],
        is_generating=generating,
    )


def test_publish_replaces_collection_and_bumps_run_id():
    store = ItemStore()
    first = store.publish([make_item("a"), make_item("b")])
    second = store.publish([make_item("c")])

    assert second == first + 1
    assert [item.id for item in store.snapshot()] == ["c"]
    assert "a" not in store


def test_publish_rejects_duplicate_ids():
    store = ItemStore()

    with pytest.raises(ValueError, match="Duplicate"):
        store.publish([make_item("a"), make_item("a")])


def test_update_from_stale_run_is_dropped():
    store = ItemStore()
    stale = store.publish([make_item("a")])
    current = store.publish([make_item("a")])

    assert store.update(stale, "a", image_url="https://old.png") is False
    assert store.get("a").image_url is None
    assert store.update(current, "a", image_url="https://new.png") is True
    assert store.get("a").image_url == "https://new.png"


def test_update_unknown_item_returns_false():
    store = ItemStore()
    run_id = store.publish([make_item("a")])

    assert store.update(run_id, "zzz", title="Nope") is False


def test_immutable_fields_cannot_be_updated():
    store = ItemStore()
    run_id = store.publish([make_item("a")])

    with pytest.raises(ValueError, match="category"):
        store.update(run_id, "a", category=ItemCategory.SCENE)


def test_try_begin_generation_is_single_flight():
    store = ItemStore()
    run_id = store.publish([make_item("a", generating=False)])
    store.update(run_id, "a", image_url="https://img.png")

    assert store.try_begin_generation(run_id, "a", clear_image=True) is True
    assert store.get("a").image_url is None
    assert store.try_begin_generation(run_id, "a", clear_image=True) is False


def test_snapshot_returns_copies():
    store = ItemStore()
    store.publish([make_item("a")])

    copy = store.snapshot()[0]
    copy.tags.append("extra")
    copy.title = "Changed"

    assert store.get("a").tags == ["Event"]
    assert store.get("a").title == "Title a"


def test_clear_empties_and_starts_new_run():
    store = ItemStore()
    run_id = store.publish([make_item("a")])

    assert store.clear() == run_id + 1
    assert len(store) == 0
    assert store.snapshot() == ()
