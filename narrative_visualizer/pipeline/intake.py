"""
Analysis intake: one analysis call normalized into pipeline-ready work items.
"""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from narrative_visualizer.analysis import AnalysisResult, ExtractedRecord, ExtractedScene
from narrative_visualizer.common import AnalysisError

from .items import WorkItem

logger = logging.getLogger(__name__)

AnalyzeCallable = Callable[[str], Awaitable[AnalysisResult | None]]

EMPTY_ANALYSIS_MESSAGE = "Failed to analyze narrative text. The response was empty or invalid."


def _to_work_item(record: ExtractedRecord, *, fallback_id: str) -> WorkItem:
    if isinstance(record, ExtractedScene):
        title = record.title
        description = record.summary or f"Visual for {record.title}"
    else:
        title = record.name
        description = f"Visual for {record.name}"

    return WorkItem(
        id=record.id or fallback_id,
        title=title,
        description=description,
        category=record.category,
        original_prompt=record.visual_description_prompt,
        tags=[record.category.value],
        image_url=None,
        is_generating=True,
    )


def normalize_analysis(
    analysis: AnalysisResult,
    *,
    run_stamp: int | None = None,
) -> list[WorkItem]:
    """
    Flatten scenes then entities into work items in appearance order.

    Records without an id get ``item-{run_stamp}-{index}``. A later record that
    reuses an earlier id replaces that item's content but keeps its position.
    """
    stamp = run_stamp if run_stamp is not None else time.time_ns() // 1_000_000

    ordered: dict[str, WorkItem] = {}
    for index, record in enumerate(analysis.items()):
        item = _to_work_item(record, fallback_id=f"item-{stamp}-{index}")
        if item.id in ordered:
            logger.warning(
                "Analysis returned duplicate id %r; keeping the later record (%s).",
                item.id,
                item.title,
            )
        ordered[item.id] = item
    return list(ordered.values())


async def run_intake(analyze: AnalyzeCallable, text: str) -> list[WorkItem]:
    """
    Call the analysis capability exactly once and normalize its answer.

    Raises
    ------
    AnalysisError
        When the capability raises, answers with nothing, or answers with a
        structurally invalid payload.
    """
    try:
        analysis = await analyze(text)
    except AnalysisError:
        raise
    except Exception as exc:
        logger.exception("Narrative analysis failed.")
        raise AnalysisError(str(exc) or "An unknown error occurred during chapter processing.") from exc

    if analysis is None:
        raise AnalysisError(EMPTY_ANALYSIS_MESSAGE)

    return normalize_analysis(analysis)
