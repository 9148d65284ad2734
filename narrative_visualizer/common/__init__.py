"""
Common utilities shared across narrative visualizer modules.
"""

from .errors import (
    AnalysisError,
    GenerationDegraded,
    GenerationUnexpectedFailure,
    IllustrationFailure,
    NarrativeVisualizerError,
)
from .llm import ChatResult, CompletionCallable, call_chat_completion

__all__ = [
    "AnalysisError",
    "ChatResult",
    "CompletionCallable",
    "GenerationDegraded",
    "GenerationUnexpectedFailure",
    "IllustrationFailure",
    "NarrativeVisualizerError",
    "call_chat_completion",
]
