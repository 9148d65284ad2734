"""
AI image generation package for chapter illustrations.
"""

from .prompting import (
    DEFAULT_IMAGE_PROMPT_SUFFIX,
    REGENERATION_MIN_DESCRIPTION_LENGTH,
    build_illustration_prompt,
    select_regeneration_source,
)
from .replicate_service import PLACEHOLDER_IMAGE, ReplicateImageGenerator, normalize_image_outputs

__all__ = [
    "DEFAULT_IMAGE_PROMPT_SUFFIX",
    "PLACEHOLDER_IMAGE",
    "REGENERATION_MIN_DESCRIPTION_LENGTH",
    "ReplicateImageGenerator",
    "build_illustration_prompt",
    "normalize_image_outputs",
    "select_regeneration_source",
]
