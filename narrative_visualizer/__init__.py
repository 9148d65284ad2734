"""
Narrative visualizer: turns a chapter of text into illustrated scenes and entities.
"""

from .analysis import ALL_CATEGORIES, ItemCategory, NarrativeAnalyzer
from .ai_generation import PLACEHOLDER_IMAGE, ReplicateImageGenerator
from .common import (
    AnalysisError,
    GenerationDegraded,
    GenerationUnexpectedFailure,
    IllustrationFailure,
)
from .pipeline import (
    IllustrationPipeline,
    PipelineConfig,
    RunReport,
    RunStatus,
    SortOption,
    ViewParameters,
    WorkItem,
    project_items,
)

__all__ = [
    "ALL_CATEGORIES",
    "AnalysisError",
    "GenerationDegraded",
    "GenerationUnexpectedFailure",
    "IllustrationFailure",
    "IllustrationPipeline",
    "ItemCategory",
    "NarrativeAnalyzer",
    "PLACEHOLDER_IMAGE",
    "PipelineConfig",
    "ReplicateImageGenerator",
    "RunReport",
    "RunStatus",
    "SortOption",
    "ViewParameters",
    "WorkItem",
    "project_items",
]
