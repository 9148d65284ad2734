"""
Prompt construction utilities for the narrative analysis call.
"""

from __future__ import annotations

from dataclasses import dataclass

from .records import ALL_CATEGORIES, ItemCategory

AVERAGE_WORDS_PER_SCENE = 250

RESPONSE_SCHEMA_GUIDANCE = """Return valid JSON with exactly this shape:
{
  "scenes": [
    {
      "id": "string, short unique identifier such as 'scene-1'",
      "title": "string, a short evocative scene title",
      "summary": "string, 2-3 sentences summarizing what happens",
      "visualDescriptionPrompt": "string, a self-contained visual description an image model can render",
      "category": "Scene"
    }
  ],
  "entities": [
    {
      "id": "string, short unique identifier such as 'entity-1'",
      "name": "string, the entity's name as it appears in the text",
      "category": "one of: %s",
      "visualDescriptionPrompt": "string, a self-contained visual description an image model can render"
    }
  ]
}"""


@dataclass(frozen=True)
class AnalysisPrompt:
    """
    Container for the system and user prompts passed to the analysis model.
    """

    system: str
    user: str


def estimate_scene_count(text: str, *, words_per_scene: int = AVERAGE_WORDS_PER_SCENE) -> int:
    """
    Suggest how many scenes a chapter of this length should be split into.
    """
    word_count = len(text.split())
    return max(1, round(word_count / words_per_scene))


def build_analysis_prompt(
    text: str,
    *,
    words_per_scene: int = AVERAGE_WORDS_PER_SCENE,
) -> AnalysisPrompt:
    """
    Build the prompt pair used to extract scenes and entities from a chapter.
    """
    if not text or not text.strip():
        raise ValueError("Narrative text must be a non-empty string.")

    entity_categories = ", ".join(
        category.value for category in ALL_CATEGORIES if category is not ItemCategory.SCENE
    )
    scene_count = estimate_scene_count(text, words_per_scene=words_per_scene)

    system_prompt = f"""You are a narrative art director who breaks a book chapter into illustratable pieces.

Responsibilities:
- Split the chapter into its key scenes, in the order they happen.
- Identify the recurring entities worth illustrating on their own: characters, settings, important objects, technology, and pivotal events.
- For every scene and entity, write a visual description prompt that stands on its own: subject, setting, lighting, mood, and notable details. Never refer to "the text" or "the chapter".
- Keep names exactly as written in the source text; write descriptions in the language of the source text.
- Do not invent plot points or entities that are not supported by the text.

{RESPONSE_SCHEMA_GUIDANCE % entity_categories}

Do not include commentary outside the JSON.
"""

    user_prompt = f"""Analyze the following chapter. Aim for about {scene_count} scene(s), roughly one per {words_per_scene} words, and list every entity that deserves its own illustration.

Chapter text:
\"\"\"
{text.strip()}
\"\"\"

Respond with the JSON object only."""

    return AnalysisPrompt(system=system_prompt, user=user_prompt)
