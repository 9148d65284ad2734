"""
Narrative analysis utilities for extracting illustratable scenes and entities.
"""

from .analyzer import NarrativeAnalyzer
from .prompting import (
    AVERAGE_WORDS_PER_SCENE,
    AnalysisPrompt,
    build_analysis_prompt,
    estimate_scene_count,
)
from .records import (
    ALL_CATEGORIES,
    AnalysisResult,
    ExtractedEntity,
    ExtractedRecord,
    ExtractedScene,
    ItemCategory,
)

__all__ = [
    "ALL_CATEGORIES",
    "AVERAGE_WORDS_PER_SCENE",
    "AnalysisPrompt",
    "AnalysisResult",
    "ExtractedEntity",
    "ExtractedRecord",
    "ExtractedScene",
    "ItemCategory",
    "NarrativeAnalyzer",
    "build_analysis_prompt",
    "estimate_scene_count",
]
