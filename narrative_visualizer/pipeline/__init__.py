"""
Illustration pipeline: item store, intake, sequential sweep, and view projection.
"""

from .intake import normalize_analysis, run_intake
from .items import PLACEHOLDER_IMAGE, WorkItem
from .pipeline import (
    IllustrationPipeline,
    PipelineConfig,
    ProgressCallback,
    RunReport,
    RunStatus,
)
from .projection import SortOption, ViewParameters, project_items, project_view
from .store import ItemStore

__all__ = [
    "IllustrationPipeline",
    "ItemStore",
    "PLACEHOLDER_IMAGE",
    "PipelineConfig",
    "ProgressCallback",
    "RunReport",
    "RunStatus",
    "SortOption",
    "ViewParameters",
    "WorkItem",
    "normalize_analysis",
    "project_items",
    "project_view",
    "run_intake",
]
