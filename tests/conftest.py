"""
Shared fixtures: scripted analysis and image capabilities that never touch the network.
"""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from narrative_visualizer.analysis import AnalysisResult
from narrative_visualizer.pipeline import IllustrationPipeline, PipelineConfig

SAMPLE_PAYLOAD: dict[str, Any] = {
    "scenes": [
        {
            "id": "scene-1",
            "title": "Ruins at dusk",
            "summary": "Kaelen watches the horizon from the ruins of the Ancient City.",
            "visualDescriptionPrompt": "A lone guardian on ruined city walls at dusk",
            "category": "Scene",
        }
    ],
    "entities": [
        {
            "id": "entity-1",
            "name": "Kaelen",
            "category": "Character",
            "visualDescriptionPrompt": "A weary star guardian in a tattered cloak",
        },
        {
            "id": "entity-2",
            "name": "Nullifier",
            "category": "ImportantObject",
            "visualDescriptionPrompt": "An artifact humming with silent power",
        },
    ],
}

CHAPTER_TEXT = "The dying sun of Xylos cast long shadows over the ruins of the Ancient City."


class ScriptedImageGenerator:
    """
    Stand-in for the image capability.

    ``outcomes[i]`` decides the i-th call: a string is returned, an exception is
    raised, ``None`` (or a missing entry) returns a unique URL. ``gates[i]`` holds
    the i-th call until the event is set.
    """

    def __init__(self, outcomes: list[Any] | None = None) -> None:
        self.prompts: list[str] = []
        self.outcomes = list(outcomes or [])
        self.gates: dict[int, asyncio.Event] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    def gate(self, index: int) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[index] = event
        return event

    async def generate_image(self, prompt: str, **model_kwargs: Any) -> str:
        index = len(self.prompts)
        self.prompts.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            gate = self.gates.get(index)
            if gate is not None:
                await gate.wait()
            else:
                await asyncio.sleep(0)

            outcome = self.outcomes[index] if index < len(self.outcomes) else None
            if isinstance(outcome, BaseException):
                raise outcome
            if outcome is None:
                return f"https://images.test/{index}.png"
            return outcome
        finally:
            self.in_flight -= 1


async def wait_until(predicate, *, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("Condition was not reached.")


@pytest.fixture
def sample_analysis() -> AnalysisResult:
    return AnalysisResult.from_mapping(SAMPLE_PAYLOAD)


@pytest.fixture
def analyzer(sample_analysis: AnalysisResult) -> MagicMock:
    mock = MagicMock()
    mock.analyze = AsyncMock(return_value=sample_analysis)
    return mock


@pytest.fixture
def image_generator() -> ScriptedImageGenerator:
    return ScriptedImageGenerator()


@pytest.fixture
def progress_events() -> list[tuple[str, dict[str, Any]]]:
    return []


@pytest.fixture
def pipeline(analyzer, image_generator, progress_events) -> IllustrationPipeline:
    return IllustrationPipeline(
        analyzer=analyzer,
        image_generator=image_generator,
        config=PipelineConfig(style_suffix="Moody."),
        progress_callback=lambda stage, payload: progress_events.append((stage, payload)),
    )
