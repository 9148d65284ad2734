"""
Service layer for extracting scenes and entities via LiteLLM-compatible models.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any

from narrative_visualizer.common import ChatResult, CompletionCallable, call_chat_completion

from .prompting import AVERAGE_WORDS_PER_SCENE, AnalysisPrompt, build_analysis_prompt
from .records import AnalysisResult

logger = logging.getLogger(__name__)

_CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class NarrativeAnalyzer:
    """
    Turns a chapter of narrative text into ordered scene and entity records.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
        words_per_scene: int = AVERAGE_WORDS_PER_SCENE,
    ) -> None:
        self._api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("LITELLM_API_KEY")
        self._model = (
            model
            or os.getenv("NARRATIVE_VISUALIZER_ANALYSIS_MODEL")
            or os.getenv("LITELLM_MODEL")
            or "gemini/gemini-2.5-flash"
        )
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion
        self._words_per_scene = words_per_scene

    @property
    def model(self) -> str:
        """Return the model identifier in use."""
        return self._model

    async def analyze(
        self,
        text: str,
        *,
        temperature: float = 0.3,
        max_output_tokens: int | None = 8000,
        **response_kwargs: Any,
    ) -> AnalysisResult | None:
        """
        Invoke the configured LLM once and parse its JSON answer.

        Returns ``None`` when the model answered with no content.
        """
        prompt: AnalysisPrompt = build_analysis_prompt(
            text,
            words_per_scene=self._words_per_scene,
        )

        result: ChatResult = await self._completion_fn(
            model=self._model,
            messages=[
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            temperature=temperature,
            max_tokens=max_output_tokens,
            api_key=self._api_key,
            **response_kwargs,
        )

        if not result.text:
            logger.warning("Analysis model %s returned an empty response.", self._model)
            return None

        payload = self._parse_analysis_json(result.text)
        analysis = AnalysisResult.from_mapping(payload)
        logger.info(
            "Analysis extracted %d scene(s) and %d entities.",
            len(analysis.scenes),
            len(analysis.entities),
        )
        return analysis

    def _parse_analysis_json(self, text: str) -> dict[str, Any]:
        cleaned = text.strip()
        match = _CODE_FENCE_PATTERN.match(cleaned)
        if match:
            cleaned = match.group(1)
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise ValueError("Failed to parse analysis response as JSON.") from exc
