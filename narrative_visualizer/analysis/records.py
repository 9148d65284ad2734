"""
Structured representations of the scenes and entities extracted from narrative text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping, Sequence


class ItemCategory(str, Enum):
    """Fixed set of item categories an extracted record can belong to."""

    SCENE = "Scene"
    CHARACTER = "Character"
    SETTING = "Setting"
    IMPORTANT_OBJECT = "ImportantObject"
    TECHNOLOGY = "Technology"
    EVENT = "Event"

    @classmethod
    def parse(cls, value: Any) -> "ItemCategory":
        """
        Resolve a category from its value, its name, or a Spanish label.
        """
        if isinstance(value, cls):
            return value

        key = _normalize_category_key(value)
        category = _CATEGORY_ALIASES.get(key)
        if category is None:
            raise ValueError(f"Unknown item category: {value!r}")
        return category


ALL_CATEGORIES: tuple[ItemCategory, ...] = (
    ItemCategory.SCENE,
    ItemCategory.CHARACTER,
    ItemCategory.SETTING,
    ItemCategory.IMPORTANT_OBJECT,
    ItemCategory.TECHNOLOGY,
    ItemCategory.EVENT,
)


def _normalize_category_key(value: Any) -> str:
    text = str(value).strip().lower()
    for source, target in (("í", "i"), ("é", "e"), (" ", ""), ("_", ""), ("-", "")):
        text = text.replace(source, target)
    return text


_CATEGORY_ALIASES: dict[str, ItemCategory] = {}
for _category in ItemCategory:
    _CATEGORY_ALIASES[_normalize_category_key(_category.value)] = _category
    _CATEGORY_ALIASES[_normalize_category_key(_category.name)] = _category
for _label, _category in (
    ("Escena", ItemCategory.SCENE),
    ("Personaje", ItemCategory.CHARACTER),
    ("Entorno", ItemCategory.SETTING),
    ("ObjetoImportante", ItemCategory.IMPORTANT_OBJECT),
    ("Tecnología", ItemCategory.TECHNOLOGY),
    ("Evento", ItemCategory.EVENT),
    ("Object", ItemCategory.IMPORTANT_OBJECT),
    ("Environment", ItemCategory.SETTING),
):
    _CATEGORY_ALIASES[_normalize_category_key(_label)] = _category


def _coerce_optional_str(value: Any) -> str | None:
    if value is None:
        return None

    text = str(value).strip()
    return text or None


def _require_str(payload: Mapping[str, Any], *keys: str, record: str) -> str:
    for key in keys:
        text = _coerce_optional_str(payload.get(key))
        if text:
            return text
    raise ValueError(f"{record} record is missing '{keys[0]}': {dict(payload)!r}")


@dataclass(frozen=True)
class ExtractedScene:
    """
    A narrative scene returned by the analysis model. Always category Scene.
    """

    id: str | None
    title: str
    summary: str
    visual_description_prompt: str
    category: ItemCategory = field(default=ItemCategory.SCENE, init=False)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ExtractedScene":
        if not isinstance(payload, Mapping):
            raise ValueError(f"Scene record must be a mapping, got {type(payload).__name__}.")

        return cls(
            id=_coerce_optional_str(payload.get("id")),
            title=_require_str(payload, "title", "name", record="Scene"),
            summary=_coerce_optional_str(payload.get("summary")) or "",
            visual_description_prompt=_require_str(
                payload,
                "visualDescriptionPrompt",
                "visual_description_prompt",
                record="Scene",
            ),
        )


@dataclass(frozen=True)
class ExtractedEntity:
    """
    A character, setting, object, technology, or event returned by the analysis model.
    """

    id: str | None
    name: str
    category: ItemCategory
    visual_description_prompt: str

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ExtractedEntity":
        if not isinstance(payload, Mapping):
            raise ValueError(f"Entity record must be a mapping, got {type(payload).__name__}.")

        raw_category = payload.get("category")
        if raw_category is None:
            raise ValueError(f"Entity record is missing 'category': {dict(payload)!r}")

        return cls(
            id=_coerce_optional_str(payload.get("id")),
            name=_require_str(payload, "name", "title", record="Entity"),
            category=ItemCategory.parse(raw_category),
            visual_description_prompt=_require_str(
                payload,
                "visualDescriptionPrompt",
                "visual_description_prompt",
                record="Entity",
            ),
        )


ExtractedRecord = ExtractedScene | ExtractedEntity


@dataclass(frozen=True)
class AnalysisResult:
    """
    Ordered scenes and entities produced by a single analysis call.
    """

    scenes: Sequence[ExtractedScene] = ()
    entities: Sequence[ExtractedEntity] = ()

    def items(self) -> Iterator[ExtractedRecord]:
        """Yield records in appearance order: scenes first, then entities."""
        yield from self.scenes
        yield from self.entities

    def __len__(self) -> int:
        return len(self.scenes) + len(self.entities)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "AnalysisResult":
        """
        Build a result from the decoded JSON payload of the analysis model.

        The payload must carry at least one of ``scenes`` or ``entities``.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("Analysis payload must deserialize to a mapping.")
        if "scenes" not in payload and "entities" not in payload:
            raise ValueError("Analysis payload must include 'scenes' or 'entities'.")

        scenes_payload = payload.get("scenes") or []
        entities_payload = payload.get("entities") or []
        if not isinstance(scenes_payload, Sequence) or isinstance(scenes_payload, (str, bytes)):
            raise ValueError("'scenes' must be a list of scene records.")
        if not isinstance(entities_payload, Sequence) or isinstance(entities_payload, (str, bytes)):
            raise ValueError("'entities' must be a list of entity records.")

        return cls(
            scenes=tuple(ExtractedScene.from_mapping(entry) for entry in scenes_payload),
            entities=tuple(ExtractedEntity.from_mapping(entry) for entry in entities_payload),
        )
