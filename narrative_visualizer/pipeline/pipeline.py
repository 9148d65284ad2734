"""
Orchestrates a chapter run: analysis intake, sequential illustration, and regeneration.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

import yaml

from narrative_visualizer.ai_generation import (
    DEFAULT_IMAGE_PROMPT_SUFFIX,
    PLACEHOLDER_IMAGE,
    REGENERATION_MIN_DESCRIPTION_LENGTH,
    ReplicateImageGenerator,
    build_illustration_prompt,
    select_regeneration_source,
)
from narrative_visualizer.analysis import NarrativeAnalyzer
from narrative_visualizer.common import (
    AnalysisError,
    GenerationDegraded,
    GenerationUnexpectedFailure,
    IllustrationFailure,
)

from .intake import run_intake
from .items import WorkItem
from .projection import ViewParameters, project_view
from .store import ItemStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]


@dataclass(frozen=True)
class PipelineConfig:
    """
    Knobs shared by the initial sweep and regeneration requests.

    Attributes
    ----------
    style_suffix:
        Appended to every image prompt.
    regeneration_min_description_length:
        A description longer than this is used as the regeneration prompt source
        instead of the model's original visual prompt.
    image_kwargs:
        Extra keyword arguments forwarded to every image request.
    """

    style_suffix: str = DEFAULT_IMAGE_PROMPT_SUFFIX
    regeneration_min_description_length: int = REGENERATION_MIN_DESCRIPTION_LENGTH
    image_kwargs: Mapping[str, Any] = field(default_factory=dict)


class RunStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    ILLUSTRATING = "illustrating"
    COMPLETE = "complete"
    FAILED = "failed"
    DISCARDED = "discarded"


@dataclass
class RunReport:
    """Outcome of a single :meth:`IllustrationPipeline.start_run` call."""

    run_id: int
    status: RunStatus
    items: tuple[WorkItem, ...]
    warnings: tuple[IllustrationFailure, ...] = ()
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "error_message": self.error_message,
            "warnings": [warning.message for warning in self.warnings],
            "items": [item.to_dict() for item in self.items],
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)


class IllustrationPipeline:
    """
    Owns the item collection of the current run and everything that mutates it.

    Images are requested one at a time during the initial sweep. Regeneration
    requests run independently of the sweep; the per-item ``is_generating`` flag
    is the only coordination between them.
    """

    def __init__(
        self,
        *,
        analyzer: NarrativeAnalyzer | None = None,
        image_generator: ReplicateImageGenerator | None = None,
        config: PipelineConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self._analyzer = analyzer or NarrativeAnalyzer()
        self._image_generator = image_generator or ReplicateImageGenerator()
        self._config = config or PipelineConfig()
        self._progress_callback = progress_callback

        self._store = ItemStore()
        self._view = ViewParameters()
        self._status = RunStatus.IDLE
        self._error_message: str | None = None
        self._warnings: list[IllustrationFailure] = []
        self._regenerations: set[asyncio.Task[None]] = set()

    @property
    def run_id(self) -> int:
        return self._store.run_id

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def items(self) -> tuple[WorkItem, ...]:
        """Copies of the current items in appearance order."""
        return self._store.snapshot()

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def warnings(self) -> tuple[IllustrationFailure, ...]:
        return tuple(self._warnings)

    @property
    def view(self) -> ViewParameters:
        return self._view

    def visible_items(self) -> list[WorkItem]:
        """Items as they should currently be displayed."""
        return project_view(self._store.snapshot(), self._view)

    def illustrated_items(self) -> list[WorkItem]:
        """Items that already have an image or placeholder, in appearance order."""
        return [item for item in self._store.snapshot() if item.image_url]

    async def start_run(self, text: str) -> RunReport:
        """
        Analyze ``text`` and illustrate every extracted item, one request at a time.

        Raises
        ------
        ValueError
            When ``text`` is empty; the current state is left untouched.
        AnalysisError
            When analysis fails. The run is left ``failed`` with no items.
        """
        if not text or not text.strip():
            raise ValueError("Chapter text cannot be empty.")

        run_id = self._store.clear()
        self._error_message = None
        self._warnings = []
        self._status = RunStatus.ANALYZING
        self._notify("run:analyzing", run_id=run_id, characters=len(text))

        try:
            items = await run_intake(self._analyzer.analyze, text)
        except AnalysisError as exc:
            if self._store.is_current(run_id):
                self._status = RunStatus.FAILED
                self._error_message = str(exc)
                self._notify("run:failed", run_id=run_id, error=str(exc))
            raise

        if not self._store.is_current(run_id):
            logger.info("Run %d was discarded during analysis; dropping %d item(s).", run_id, len(items))
            return RunReport(run_id=run_id, status=RunStatus.DISCARDED, items=())

        run_id = self._store.publish(items)
        self._status = RunStatus.ILLUSTRATING
        self._notify("run:published", run_id=run_id, total_items=len(items))

        await self._run_initial_sweep(run_id, [item.id for item in items])

        if not self._store.is_current(run_id):
            return RunReport(run_id=run_id, status=RunStatus.DISCARDED, items=())

        self._status = RunStatus.COMPLETE
        self._notify(
            "run:complete",
            run_id=run_id,
            total_items=len(items),
            warnings=len(self._warnings),
        )
        return RunReport(
            run_id=run_id,
            status=self._status,
            items=self._store.snapshot(),
            warnings=tuple(self._warnings),
            error_message=self._error_message,
        )

    async def _run_initial_sweep(self, run_id: int, item_ids: list[str]) -> None:
        total_items = len(item_ids)
        for index, item_id in enumerate(item_ids, start=1):
            if not self._store.is_current(run_id):
                logger.info("Run %d was discarded; stopping the sweep at item %d.", run_id, index)
                return

            item = self._store.get(item_id)
            if item is None:
                continue

            self._notify(
                "item:processing",
                run_id=run_id,
                item_id=item_id,
                item_index=index,
                total_items=total_items,
                title=item.title,
            )
            image_url, failure = await self._request_image(
                item,
                item.original_prompt,
                during_regeneration=False,
            )

            if not self._store.update(run_id, item_id, image_url=image_url, is_generating=False):
                self._notify("item:discarded", run_id=run_id, item_id=item_id)
                return

            if failure is not None:
                self._warnings.append(failure)
                self._error_message = (
                    f"{self._error_message}; {failure.message}"
                    if self._error_message
                    else failure.message
                )
                self._notify("item:degraded", run_id=run_id, item_id=item_id, message=failure.message)

            self._notify(
                "item:done",
                run_id=run_id,
                item_id=item_id,
                item_index=index,
                total_items=total_items,
                image_url=image_url,
            )

    async def regenerate(self, item_id: str) -> bool:
        """
        Request a fresh image for one item and wait for it to settle.

        Returns ``False`` without changing anything when the id is unknown or a
        request for that item is already in flight.
        """
        run_id = self._store.run_id
        item = self._begin_regeneration(run_id, item_id)
        if item is None:
            return False
        await self._complete_regeneration(run_id, item)
        return True

    def schedule_regeneration(self, item_id: str) -> asyncio.Task[None] | None:
        """
        Like :meth:`regenerate`, but returns the background task instead of awaiting it.

        The item is marked as generating before this method returns.
        """
        run_id = self._store.run_id
        item = self._begin_regeneration(run_id, item_id)
        if item is None:
            return None

        task = asyncio.create_task(self._complete_regeneration(run_id, item))
        self._regenerations.add(task)
        task.add_done_callback(self._regenerations.discard)
        return task

    async def wait_for_regenerations(self) -> None:
        """Wait until every scheduled regeneration has settled."""
        while self._regenerations:
            await asyncio.gather(*list(self._regenerations))

    def _begin_regeneration(self, run_id: int, item_id: str) -> WorkItem | None:
        item = self._store.get(item_id)
        if item is None:
            logger.debug("Ignoring regeneration for unknown item %r.", item_id)
            return None

        if not self._store.try_begin_generation(run_id, item_id, clear_image=True):
            logger.info("Image for %r is already being generated; ignoring request.", item_id)
            return None

        self._error_message = None
        self._notify("item:regenerating", run_id=run_id, item_id=item_id, title=item.title)
        return item

    async def _complete_regeneration(self, run_id: int, item: WorkItem) -> None:
        source = select_regeneration_source(
            item.description,
            item.original_prompt,
            min_description_length=self._config.regeneration_min_description_length,
        )
        image_url, failure = await self._request_image(item, source, during_regeneration=True)

        if not self._store.update(run_id, item.id, image_url=image_url, is_generating=False):
            self._notify("item:discarded", run_id=run_id, item_id=item.id)
            return

        if failure is not None:
            self._warnings.append(failure)
            self._error_message = failure.message
            self._notify("item:degraded", run_id=run_id, item_id=item.id, message=failure.message)

        self._notify("item:regenerated", run_id=run_id, item_id=item.id, image_url=image_url)

    async def _request_image(
        self,
        item: WorkItem,
        source: str,
        *,
        during_regeneration: bool,
    ) -> tuple[str, IllustrationFailure | None]:
        try:
            prompt = build_illustration_prompt(source, style_suffix=self._config.style_suffix)
            image_url = await self._image_generator.generate_image(
                prompt,
                **self._config.image_kwargs,
            )
        except Exception as exc:
            logger.exception("Unexpected error during image generation for %s.", item.title)
            failure = GenerationUnexpectedFailure(
                item_id=item.id,
                title=item.title,
                during_regeneration=during_regeneration,
                detail=str(exc),
            )
            failure.__cause__ = exc
            return PLACEHOLDER_IMAGE, failure

        if not image_url or image_url == PLACEHOLDER_IMAGE:
            logger.warning("Image generation degraded for %s; using placeholder.", item.title)
            return PLACEHOLDER_IMAGE, GenerationDegraded(
                item_id=item.id,
                title=item.title,
                during_regeneration=during_regeneration,
            )

        return image_url, None

    def update_fields(
        self,
        item_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> bool:
        """Overwrite an item's title and/or description immediately."""
        updates: dict[str, str] = {}
        if title is not None:
            updates["title"] = title
        if description is not None:
            updates["description"] = description
        if not updates:
            return item_id in self._store
        return self._store.update(self._store.run_id, item_id, **updates)

    def reset(self) -> None:
        """
        Discard the run: items, errors, and view parameters go back to defaults.

        In-flight requests are not cancelled; their results are dropped on arrival.
        """
        run_id = self._store.clear()
        self._error_message = None
        self._warnings = []
        self._view.reset()
        self._status = RunStatus.IDLE
        self._notify("run:reset", run_id=run_id)

    def _notify(self, stage: str, **payload: Any) -> None:
        if self._progress_callback is not None:
            self._progress_callback(stage, payload)
