"""
Error taxonomy for narrative analysis and illustration.
"""

from __future__ import annotations


class NarrativeVisualizerError(Exception):
    """Base class for all narrative visualizer errors."""


class AnalysisError(NarrativeVisualizerError):
    """
    Raised when the text analysis step cannot produce items for a run.

    This is the only failure that aborts a run.
    """


class IllustrationFailure(NarrativeVisualizerError):
    """
    Non-fatal, per-item illustration failure.

    Instances are recorded by the pipeline rather than raised to the caller.
    """

    def __init__(
        self,
        *,
        item_id: str,
        title: str,
        during_regeneration: bool = False,
        detail: str | None = None,
    ) -> None:
        self.item_id = item_id
        self.title = title
        self.during_regeneration = during_regeneration
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        """User-visible text; subclasses specialise it per failure kind."""
        if self.detail:
            return f'Image generation failed for "{self.title}": {self.detail}'
        return f'Image generation failed for "{self.title}".'


class GenerationDegraded(IllustrationFailure):
    """The image capability answered with the placeholder sentinel."""

    @property
    def message(self) -> str:
        if self.during_regeneration:
            return (
                f'Image regeneration failed for "{self.title}", showing placeholder. '
                "This might be due to API limits."
            )
        return f'Image generation failed for "{self.title}", using placeholder.'


class GenerationUnexpectedFailure(IllustrationFailure):
    """The image capability raised; the original exception is chained as ``__cause__``."""

    @property
    def message(self) -> str:
        if self.during_regeneration:
            return f"Unexpected error regenerating image for {self.title}: {self.detail}"
        return f"Unexpected error for {self.title}."
