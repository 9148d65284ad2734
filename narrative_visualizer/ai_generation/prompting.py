"""
Prompt construction utilities for illustration requests.
"""

from __future__ import annotations

DEFAULT_IMAGE_PROMPT_SUFFIX = (
    "Dark moody aesthetic, cinematic lighting, ultra-realistic details, "
    "professional digital painting, high resolution."
)

REGENERATION_MIN_DESCRIPTION_LENGTH = 20


def build_illustration_prompt(
    source: str,
    *,
    style_suffix: str = DEFAULT_IMAGE_PROMPT_SUFFIX,
) -> str:
    """
    Append the shared style suffix to a visual description.
    """
    if not source or not source.strip():
        raise ValueError("Illustration prompt source must be a non-empty string.")

    suffix = style_suffix.strip()
    if not suffix:
        return source.strip()
    return f"{source.strip()} {suffix}"


def select_regeneration_source(
    description: str,
    original_prompt: str,
    *,
    min_description_length: int = REGENERATION_MIN_DESCRIPTION_LENGTH,
) -> str:
    """
    Prefer a sufficiently detailed (possibly user-edited) description over the
    model's original visual prompt.
    """
    if len(description) > min_description_length:
        return description
    return original_prompt
