"""
Background polling for server-generated clothing render images.

After an outfit is saved, thumbnails for its extracted clothing items are
generated asynchronously and written back to the wardrobe row. The backend
has no completion callback, so a session watches the rows that still have
entries without ``renderImageUrl`` and merges new URLs into its local copy.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from ratemyfit.config import (
    WARDROBE_NOTICE_INTERVAL_SECONDS,
    WARDROBE_POLL_INTERVAL_SECONDS,
    logger,
)
from ratemyfit.core.notifications import Notifier

WardrobeItem = Dict[str, Any]
FetchClothingItems = Callable[
    [List[str]], Awaitable[Dict[str, List[Dict[str, Any]]]]
]
LocalUpdate = Callable[[List[WardrobeItem]], None]


def _log(level: int, message: str, **context: Any) -> None:
    logger.log(level, "%s | context=%s", message, context)


def _clothing_items(item: WardrobeItem) -> List[Any]:
    clothing = item.get("extracted_clothing_items")
    return clothing if isinstance(clothing, list) else []


def _is_pending_entry(entry: Any) -> bool:
    return (
        isinstance(entry, dict)
        and bool(entry.get("name"))
        and not entry.get("renderImageUrl")
    )


def needs_polling(item: WardrobeItem) -> bool:
    """True when some clothing entry has a name but no render image yet."""
    return any(_is_pending_entry(entry) for entry in _clothing_items(item))


def count_pending_images(items: List[WardrobeItem]) -> int:
    return sum(
        1
        for item in items
        for entry in _clothing_items(item)
        if _is_pending_entry(entry)
    )


def count_new_renders(previous: List[Any], current: List[Any]) -> int:
    """Count entries that gained a ``renderImageUrl``, compared index by index."""
    added = 0
    for index, entry in enumerate(current):
        if not isinstance(entry, dict) or not entry.get("renderImageUrl"):
            continue
        original = previous[index] if index < len(previous) else None
        if not (isinstance(original, dict) and original.get("renderImageUrl")):
            added += 1
    return added


class WardrobePoller:
    """
    Cancellable periodic task scoped to the view (session) that owns it.

    ``update_items`` is the dependency-change entry point: it always tears
    down the running timer before deciding whether a new one is needed.
    Ticks are launched by the timer as independent tasks, so a hung fetch
    never delays the next tick. Each tick is numbered and only a response
    newer than the last applied one is merged.
    """

    def __init__(
        self,
        fetch_items: FetchClothingItems,
        local_update: LocalUpdate,
        notifier: Notifier,
        on_items_updated: Optional[Callable[[], None]] = None,
        interval_seconds: float = WARDROBE_POLL_INTERVAL_SECONDS,
        notice_interval_seconds: float = WARDROBE_NOTICE_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch_items = fetch_items
        self._local_update = local_update
        self._notifier = notifier
        self._on_items_updated = on_items_updated
        self.interval_seconds = interval_seconds
        self.notice_interval_seconds = notice_interval_seconds
        self._clock = clock

        self._items: List[WardrobeItem] = []
        self._pending_ids: List[str] = []
        self._timer_task: Optional[asyncio.Task] = None
        self._tick_tasks: Set[asyncio.Task] = set()
        self._generation = 0
        self._tick_seq = 0
        self._applied_seq = 0
        self._last_notice_at: Optional[float] = None
        self.tick_count = 0

    @property
    def items(self) -> List[WardrobeItem]:
        return list(self._items)

    @property
    def pending_ids(self) -> List[str]:
        return list(self._pending_ids)

    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    def update_items(self, items: List[WardrobeItem]) -> None:
        self.stop()

        self._items = list(items)
        self._pending_ids = [item["id"] for item in self._items if needs_polling(item)]

        if not self._pending_ids:
            _log(logging.DEBUG, "wardrobe_polling_not_needed", items=len(self._items))
            return

        _log(
            logging.INFO,
            "wardrobe_polling_setup",
            items=len(self._pending_ids),
            interval_seconds=self.interval_seconds,
        )
        self._notify_pending()
        self.start()

    def _notify_pending(self) -> None:
        now = self._clock()
        if (
            self._last_notice_at is not None
            and now - self._last_notice_at < self.notice_interval_seconds
        ):
            return
        self._last_notice_at = now

        pending_images = count_pending_images(self._items)
        self._notifier.info(
            f"Generating {pending_images} clothing image(s). "
            "They will appear automatically when ready."
        )

    def start(self) -> None:
        if self.is_running or not self._pending_ids:
            return
        loop = asyncio.get_running_loop()
        self._timer_task = loop.create_task(self._run_timer(self._generation))

    def stop(self) -> None:
        """Cancel the timer and every in-flight tick."""
        self._generation += 1

        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None

        current = asyncio.current_task() if self._has_running_loop() else None
        for task in list(self._tick_tasks):
            if task is not current:
                task.cancel()
        self._tick_tasks.clear()

    async def aclose(self) -> None:
        timer = self._timer_task
        ticks = list(self._tick_tasks)
        self.stop()

        pending = [task for task in [timer, *ticks] if task is not None]
        current = asyncio.current_task()
        pending = [task for task in pending if task is not current]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        _log(logging.DEBUG, "wardrobe_polling_closed")

    async def __aenter__(self) -> "WardrobePoller":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @staticmethod
    def _has_running_loop() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    async def _run_timer(self, generation: int) -> None:
        while generation == self._generation:
            await asyncio.sleep(self.interval_seconds)
            if generation != self._generation:
                break
            task = asyncio.create_task(self._tick(generation))
            self._tick_tasks.add(task)
            task.add_done_callback(self._tick_tasks.discard)

    async def run_tick(self) -> int:
        """Run one check-and-merge now; returns the number of new images."""
        return await self._tick(self._generation)

    async def _tick(self, generation: int) -> int:
        item_ids = list(self._pending_ids)
        if not item_ids or generation != self._generation:
            return 0

        self._tick_seq += 1
        seq = self._tick_seq
        self.tick_count += 1

        try:
            fetched = await self._fetch_items(item_ids)
        except Exception as exc:
            _log(
                logging.ERROR,
                "wardrobe_poll_fetch_failed",
                tick=seq,
                items=len(item_ids),
                error=str(exc),
            )
            return 0

        if generation != self._generation:
            _log(logging.DEBUG, "wardrobe_poll_result_discarded", tick=seq)
            return 0

        if seq <= self._applied_seq:
            _log(
                logging.DEBUG,
                "wardrobe_poll_out_of_order",
                tick=seq,
                applied=self._applied_seq,
            )
            return 0
        self._applied_seq = seq

        new_images = 0
        updated_items: List[WardrobeItem] = []
        for item in self._items:
            fresh = fetched.get(item["id"])
            if isinstance(fresh, list):
                added = count_new_renders(_clothing_items(item), fresh)
                if added:
                    _log(
                        logging.INFO,
                        "wardrobe_new_render_images",
                        item_id=item["id"],
                        added=added,
                    )
                    new_images += added
                    item = {**item, "extracted_clothing_items": fresh}
            updated_items.append(item)

        if not new_images:
            return 0

        self._items = updated_items
        self._pending_ids = [
            item["id"] for item in updated_items if needs_polling(item)
        ]

        self._local_update(list(updated_items))
        self._notifier.success(f"{new_images} new clothing image(s) ready!")
        if self._on_items_updated is not None:
            self._on_items_updated()

        if generation == self._generation and not self._pending_ids:
            _log(logging.INFO, "wardrobe_polling_complete", ticks=self.tick_count)
            self.stop()

        return new_images
