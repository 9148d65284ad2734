"""
Versioned, in-memory store for the work items of the current run.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable

from .items import WorkItem

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = frozenset({"title", "description", "image_url", "is_generating"})


class ItemStore:
    """
    Owns the shared item collection for one run at a time.

    Every :meth:`publish` or :meth:`clear` starts a new run id. Updates carry the
    run id they were issued for, so settlements that arrive after the collection
    was replaced are dropped instead of leaking into the new run.
    """

    def __init__(self) -> None:
        self._run_id = 0
        self._items: list[WorkItem] = []
        self._index: dict[str, WorkItem] = {}

    @property
    def run_id(self) -> int:
        return self._run_id

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._index

    def publish(self, items: Iterable[WorkItem]) -> int:
        """Atomically replace the collection and return the new run id."""
        collected = list(items)
        index: dict[str, WorkItem] = {}
        for item in collected:
            if item.id in index:
                raise ValueError(f"Duplicate work item id: {item.id!r}")
            index[item.id] = item

        self._run_id += 1
        self._items = collected
        self._index = index
        logger.debug("Published run %d with %d item(s).", self._run_id, len(collected))
        return self._run_id

    def clear(self) -> int:
        """Discard the collection and start a fresh, empty run."""
        return self.publish(())

    def is_current(self, run_id: int) -> bool:
        return run_id == self._run_id

    def get(self, item_id: str) -> WorkItem | None:
        """Return a copy of the item, or ``None`` when the id is unknown."""
        item = self._index.get(item_id)
        return replace(item, tags=list(item.tags)) if item is not None else None

    def snapshot(self) -> tuple[WorkItem, ...]:
        """Return copies of all items in appearance order."""
        return tuple(replace(item, tags=list(item.tags)) for item in self._items)

    def update(self, run_id: int, item_id: str, **fields: Any) -> bool:
        """
        Apply field updates to a single item of the given run.

        Returns ``False`` (and changes nothing) when the run is stale or the id
        is unknown.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        if not self.is_current(run_id):
            logger.debug("Dropping update for %r from stale run %d.", item_id, run_id)
            return False

        item = self._index.get(item_id)
        if item is None:
            return False

        for name, value in fields.items():
            setattr(item, name, value)
        return True

    def try_begin_generation(self, run_id: int, item_id: str, *, clear_image: bool) -> bool:
        """
        Mark an item as generating unless a request for it is already in flight.
        """
        if not self.is_current(run_id):
            return False

        item = self._index.get(item_id)
        if item is None or item.is_generating:
            return False

        item.is_generating = True
        if clear_image:
            item.image_url = None
        return True
