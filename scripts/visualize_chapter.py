"""
CLI example to analyze a chapter and illustrate its scenes and entities.

Usage:
    python scripts/visualize_chapter.py chapter.txt \
        --sort category \
        --output chapter_report.yaml

Environment variables:
    GEMINI_API_KEY / LITELLM_API_KEY  - credentials for the analysis model
    REPLICATE_API_TOKEN               - required unless you pass --image-token
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from narrative_visualizer import (  # noqa: E402
    AnalysisError,
    IllustrationPipeline,
    ItemCategory,
    NarrativeAnalyzer,
    PipelineConfig,
    ReplicateImageGenerator,
    SortOption,
)


class ProgressTracker:
    """
    Provides user-friendly command-line progress updates for a chapter run.
    """

    def __init__(self) -> None:
        self._item_bar: tqdm | None = None

    def __call__(self, stage: str, payload: Dict[str, Any]) -> None:
        match stage:
            case "run:analyzing":
                self._write("[1/3] Analyzing chapter text...")
            case "run:failed":
                self._write(f"[1/3] Analysis failed: {payload.get('error')}")
            case "run:published":
                total = payload.get("total_items", 0)
                self._write(f"[2/3] Found {total} items. Generating illustrations...")
                self._item_bar = tqdm(total=total, desc="Illustrations", unit="item")
            case "item:processing":
                if self._item_bar is not None:
                    title = payload.get("title") or ""
                    truncated = (title[:45] + "…") if len(title) > 45 else title
                    self._item_bar.set_description(truncated)
            case "item:degraded":
                self._write(f"  ! {payload.get('message')}")
            case "item:done":
                if self._item_bar is not None:
                    self._item_bar.update(1)
            case "run:complete":
                self.close()
                warnings = payload.get("warnings", 0)
                self._write(f"[3/3] Run complete ({warnings} warning(s)).")

    def close(self) -> None:
        if self._item_bar is not None:
            self._item_bar.close()
            self._item_bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract scenes and entities from a chapter and illustrate them."
    )
    parser.add_argument("chapter", help="Path to a UTF-8 text file with the chapter.")
    parser.add_argument(
        "--analysis-model",
        default=None,
        help="LiteLLM model used for scene/entity extraction.",
    )
    parser.add_argument(
        "--image-model",
        default=None,
        help="Replicate model identifier used for illustrations.",
    )
    parser.add_argument(
        "--image-token",
        default=None,
        help="Optional Replicate API token override (otherwise uses environment variable).",
    )
    parser.add_argument(
        "--image-arg",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Additional key=value overrides forwarded to the Replicate model.",
    )
    parser.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="CATEGORY",
        help="Only list items of this category (repeatable).",
    )
    parser.add_argument("--search", default="", help="Only list items matching this text.")
    parser.add_argument(
        "--sort",
        choices=[option.value for option in SortOption],
        default=SortOption.APPEARANCE.value,
        help="Order of the printed item list.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Optional YAML file receiving the run report.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def parse_image_kwargs(pairs: list[str]) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Invalid --image-arg '{pair}', expected KEY=VALUE.")
        key, value = pair.split("=", 1)
        kwargs[key] = value
    return kwargs


async def run(args: argparse.Namespace) -> int:
    text = Path(args.chapter).read_text(encoding="utf-8")
    tracker = ProgressTracker()

    pipeline = IllustrationPipeline(
        analyzer=NarrativeAnalyzer(model=args.analysis_model),
        image_generator=ReplicateImageGenerator(
            api_token=args.image_token,
            model_identifier=args.image_model,
        ),
        config=PipelineConfig(image_kwargs=parse_image_kwargs(args.image_arg)),
        progress_callback=tracker,
    )

    try:
        report = await pipeline.start_run(text)
    except AnalysisError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        tracker.close()

    pipeline.view.filters = {ItemCategory.parse(value) for value in args.filter}
    pipeline.view.search_term = args.search
    pipeline.view.sort = SortOption(args.sort)

    for item in pipeline.visible_items():
        marker = "placeholder" if item.has_placeholder else item.image_url
        print(f"- [{item.category.value}] {item.title}: {marker}")

    if pipeline.error_message:
        print(f"Warnings: {pipeline.error_message}", file=sys.stderr)

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(report.to_yaml(), encoding="utf-8")
        print(f"Saved run report to {output_path}")
    return 0


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
