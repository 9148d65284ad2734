"""
Tests for analysis intake and normalization.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from narrative_visualizer.analysis import AnalysisResult, ItemCategory
from narrative_visualizer.common import AnalysisError
from narrative_visualizer.pipeline import normalize_analysis, run_intake

from .conftest import CHAPTER_TEXT, SAMPLE_PAYLOAD


def test_normalize_orders_scenes_before_entities(sample_analysis):
    items = normalize_analysis(sample_analysis, run_stamp=42)

    assert [item.id for item in items] == ["scene-1", "entity-1", "entity-2"]
    assert [item.category for item in items] == [
        ItemCategory.SCENE,
        ItemCategory.CHARACTER,
        ItemCategory.IMPORTANT_OBJECT,
    ]


def test_normalize_derives_titles_and_descriptions(sample_analysis):
    scene, kaelen, _ = normalize_analysis(sample_analysis, run_stamp=42)

    assert scene.title == "Ruins at dusk"
    assert scene.description == "Kaelen watches the horizon from the ruins of the Ancient City."
    assert scene.original_prompt == "A lone guardian on ruined city walls at dusk"
    assert kaelen.title == "Kaelen"
    assert kaelen.description == "Visual for Kaelen"
    assert kaelen.tags == ["Character"]


def test_normalize_marks_everything_as_generating(sample_analysis):
    items = normalize_analysis(sample_analysis, run_stamp=42)

    assert all(item.is_generating for item in items)
    assert all(item.image_url is None for item in items)


def test_missing_ids_get_positional_ids():
    analysis = AnalysisResult.from_mapping(
        {
            "scenes": [{"title": "Opening", "summary": "It begins.", "visualDescriptionPrompt": "Dawn"}],
            "entities": [
                {"name": "Lance", "category": "Technology", "visualDescriptionPrompt": "A shard spear"},
                {"name": "Rift", "category": "Event", "visualDescriptionPrompt": "A tear in the sky"},
            ],
        }
    )

    items = normalize_analysis(analysis, run_stamp=1700)

    assert [item.id for item in items] == ["item-1700-0", "item-1700-1", "item-1700-2"]
    assert len({item.id for item in items}) == 3


@pytest.mark.asyncio
async def test_run_intake_calls_analysis_once():
    analyze = AsyncMock(return_value=AnalysisResult.from_mapping(SAMPLE_PAYLOAD))

    items = await run_intake(analyze, CHAPTER_TEXT)

    analyze.assert_awaited_once_with(CHAPTER_TEXT)
    assert len(items) == 3


@pytest.mark.asyncio
async def test_run_intake_wraps_capability_errors():
    analyze = AsyncMock(side_effect=ValueError("Failed to parse analysis response as JSON."))

    with pytest.raises(AnalysisError, match="parse") as excinfo:
        await run_intake(analyze, CHAPTER_TEXT)

    assert isinstance(excinfo.value.__cause__, ValueError)


@pytest.mark.asyncio
async def test_run_intake_rejects_missing_payload():
    with pytest.raises(AnalysisError, match="empty or invalid"):
        await run_intake(AsyncMock(return_value=None), CHAPTER_TEXT)
