"""
Work items tracked through the illustration pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from narrative_visualizer.ai_generation import PLACEHOLDER_IMAGE
from narrative_visualizer.analysis import ItemCategory


@dataclass
class WorkItem:
    """Represents one scene or entity and the state of its illustration."""

    id: str
    title: str
    description: str
    category: ItemCategory
    original_prompt: str
    tags: list[str] = field(default_factory=list)
    image_url: str | None = None
    is_generating: bool = False

    @property
    def has_placeholder(self) -> bool:
        return self.image_url == PLACEHOLDER_IMAGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "original_prompt": self.original_prompt,
            "tags": list(self.tags),
            "image_url": self.image_url,
            "is_generating": self.is_generating,
        }
