"""
Integration with Replicate for chapter illustration generation.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable as IterableABC
from typing import Any, Callable

import replicate
from replicate.exceptions import ModelError

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "placeholder_image_identifier"

DEFAULT_MODEL_IDENTIFIER = "google/imagen-3"


def _build_imagen_input(*, prompt: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": "16:9",
        "output_format": "png",
        "safety_filter_level": "block_only_high",
    }


def _build_flux_input(*, prompt: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": "16:9",
        "output_format": "png",
        "num_outputs": 1,
    }


_MODEL_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "google/imagen-3": _build_imagen_input,
    "google/imagen-3-fast": _build_imagen_input,
    "black-forest-labs/flux-schnell": _build_flux_input,
    "black-forest-labs/flux-dev": _build_flux_input,
}


def _resolve_input_builder(model_identifier: str) -> Callable[..., dict[str, Any]]:
    normalized_identifier = model_identifier.strip().lower()
    builder = _MODEL_INPUT_BUILDERS.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = _MODEL_INPUT_BUILDERS.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(_MODEL_INPUT_BUILDERS))
        raise ValueError(
            "Model identifier "
            f"'{model_identifier}' is not configured with a default input payload. "
            f"Supported models: {supported_models}."
        )

    return builder


def _build_replicate_input_payload(*, model_identifier: str, prompt: str) -> dict[str, Any]:
    return _resolve_input_builder(model_identifier)(prompt=prompt)


class ReplicateImageGenerator:
    """
    Async wrapper around the Replicate client producing one illustration per prompt.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Model string in the ``owner/model`` or ``owner/model:version`` format. Falls back
        to ``REPLICATE_MODEL`` and then to ``google/imagen-3``.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        client: replicate.Client | None = None,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._model_identifier = (
            model_identifier or os.getenv("REPLICATE_MODEL") or DEFAULT_MODEL_IDENTIFIER
        )
        _resolve_input_builder(self._model_identifier)

        self._client = client or replicate.Client(api_token=self._api_token)

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    async def generate_image(self, prompt: str, **model_kwargs: Any) -> str:
        """
        Generate a single illustration and return its reference.

        Returns
        -------
        str
            The first image URL produced by the model, or ``PLACEHOLDER_IMAGE`` when
            the model failed on its side or produced nothing. Any other error
            (network, authentication, invalid input) propagates to the caller.
        """
        replicate_input = _build_replicate_input_payload(
            model_identifier=self._model_identifier,
            prompt=prompt,
        )
        # Allow the caller to tweak model-specific knobs (e.g., aspect_ratio, seed).
        replicate_input.update(model_kwargs)

        try:
            outputs = await self._client.async_run(
                self._model_identifier,
                input=replicate_input,
            )
        except ModelError as exc:
            logger.warning("Replicate model %s failed: %s", self._model_identifier, exc)
            return PLACEHOLDER_IMAGE

        references = normalize_image_outputs(outputs)
        if not references:
            logger.warning("Replicate model %s returned no image.", self._model_identifier)
            return PLACEHOLDER_IMAGE
        return references[0]


def normalize_image_outputs(raw: Any) -> list[str]:
    """
    Normalize the image outputs returned by Replicate into a list of URL strings.
    """

    if raw is None:
        return []

    if isinstance(raw, str):
        return [raw] if raw else []

    if isinstance(raw, bytes):
        return [raw.decode("utf-8", errors="ignore")]

    # FileOutput objects iterate over their bytes; use their URL instead.
    url = getattr(raw, "url", None)
    if isinstance(url, str) and url:
        return [url]

    if isinstance(raw, IterableABC):
        collected = list(raw)
        if not collected:
            return []

        if all(isinstance(item, str) and len(item) == 1 for item in collected):
            return ["".join(collected)]

        normalized: list[str] = []
        for item in collected:
            normalized.extend(normalize_image_outputs(item))
        return normalized

    return [str(raw)]
