"""
The upload tracker: an insertion-ordered registry of in-flight and finished
uploads with a small per-item state machine.

    UPLOADING --finalize--> SUCCEEDED
    UPLOADING --finalize--> FAILED

Contract for stale references: `advance`, `finalize` and `remove` on an id
that is not tracked (never was, or has been removed) are silent no-ops, and so
are `advance`/`finalize` on an item that is already terminal. Progress drivers
outlive the items they report on, and removal is the engine's cancellation
mechanism, so a late call from a driver is expected and not an error.

Every public mutator is synchronous. On a single event loop that makes each
call atomic with respect to every other call, without locks.
"""

import asyncio
import itertools
import logging
from collections.abc import Callable, Iterable
from contextlib import suppress
from dataclasses import replace
from typing import TYPE_CHECKING

from upload_tracker.exceptions import TrackerClosedError
from upload_tracker.models.stats import UploadStats
from upload_tracker.models.upload import (
    DEFAULT_ERROR_MESSAGE,
    PayloadRef,
    UploadItem,
    UploadState,
)

if TYPE_CHECKING:
    from upload_tracker.utils.structured_logger import UploadLogger

    from .driver import ProgressDriver

log = logging.getLogger(__name__)

Snapshot = tuple[UploadItem, ...]
Subscriber = Callable[[Snapshot], None]


def sequential_ids(prefix: str = "upload") -> Callable[[], str]:
    """Returns a factory producing `upload-1`, `upload-2`, ... for one tracker."""
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


class UploadTracker:
    """Owns the mapping from item id to item state and notifies subscribers."""

    def __init__(
        self,
        driver: "ProgressDriver | None" = None,
        id_factory: Callable[[], str] | None = None,
        event_log: "UploadLogger | None" = None,
    ):
        """
        Initializes the tracker.

        Args:
            driver: Spawns a progress task for every enqueued item. Without one
                the tracker is a plain state machine driven by the caller.
            id_factory: Produces item ids. Defaults to a monotonic counter.
            event_log: Optional structured logger for item lifecycle events.
        """
        self.driver = driver
        self.event_log = event_log
        self.stats = UploadStats()
        self._next_id = id_factory or sequential_ids()
        self._items: dict[str, UploadItem] = {}
        self._subscribers: list[Subscriber] = []
        self._tasks: dict[str, asyncio.Task] = {}
        self._closed = False

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    @property
    def active_count(self) -> int:
        """Number of tracked items still uploading."""
        return sum(1 for item in self._items.values() if not item.is_terminal)

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, item_id: str) -> UploadItem | None:
        return self._items.get(item_id)

    def snapshot(self) -> Snapshot:
        """Returns all tracked items in insertion order."""
        return tuple(self._items.values())

    # --- Notifications ---

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Registers a callback invoked with a fresh snapshot after every change.

        Returns:
            A function that unregisters the callback.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            with suppress(ValueError):
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                log.exception("Tracker subscriber raised; continuing with the rest")

    # --- State transitions ---

    def enqueue(self, payloads: Iterable[PayloadRef]) -> list[str]:
        """
        Starts tracking a batch of payloads, each as an independent item.

        An empty batch is a no-op. When a driver is attached, one progress task
        per item is spawned on the running loop; this call does not wait for
        any of them.

        Returns:
            The ids assigned to the new items, in submission order.

        Raises:
            TrackerClosedError: If a non-empty batch arrives after aclose().
            ValueError: If the id factory hands out an id that is already
                tracked or repeated within the batch. Nothing from the batch
                is tracked in that case.
        """
        payloads = list(payloads)
        if not payloads:
            return []
        if self._closed:
            raise TrackerClosedError("Cannot enqueue items on a closed tracker.")
        if self.driver is not None:
            # Fail before touching state rather than leave items with no driver
            asyncio.get_running_loop()

        new_ids = [self._next_id() for _ in payloads]
        for item_id in new_ids:
            if item_id in self._items or new_ids.count(item_id) > 1:
                raise ValueError(f"Id factory produced duplicate id {item_id!r}.")

        for item_id, payload in zip(new_ids, payloads):
            self._items[item_id] = UploadItem(id=item_id, payload=payload)
            self.stats.record_enqueued(payload.size, self.active_count)
            if self.event_log:
                self.event_log.upload_enqueued(item_id, payload.name, payload.size)

        log.debug(f"Enqueued {len(new_ids)} item(s): {', '.join(new_ids)}")
        self._notify()

        if self.driver is not None:
            for item_id in new_ids:
                self._spawn(item_id)
        return new_ids

    def enqueue_one(self, payload: PayloadRef) -> str:
        return self.enqueue([payload])[0]

    def advance(self, item_id: str, progress: float) -> None:
        """Raises an uploading item's progress. Never changes its state."""
        item = self._items.get(item_id)
        if item is None or item.is_terminal:
            log.debug(f"Ignoring progress for inactive item {item_id}")
            return

        progress = max(item.progress, min(max(progress, 0.0), 100.0))
        if progress == item.progress:
            return
        self._items[item_id] = replace(item, progress=progress)
        self._notify()

    def finalize(
        self,
        item_id: str,
        state: UploadState,
        error_message: str | None = None,
    ) -> None:
        """
        Moves an uploading item to a terminal state with progress pinned to 100.
        The error message is kept only for failures.
        """
        if not state.is_terminal:
            raise ValueError(f"Cannot finalize an item to non-terminal state {state}.")

        item = self._items.get(item_id)
        if item is None or item.is_terminal:
            log.debug(f"Ignoring finalize for inactive item {item_id}")
            return

        if state is UploadState.FAILED:
            error_message = error_message or DEFAULT_ERROR_MESSAGE
        else:
            error_message = None

        self._items[item_id] = replace(
            item, state=state, progress=100.0, error_message=error_message
        )
        self.stats.record_finalized(state)

        if state is UploadState.SUCCEEDED:
            log.info(f"[green]✓ Uploaded:[/green] {item.payload.name}")
            if self.event_log:
                self.event_log.upload_succeeded(item_id, item.payload.name)
        else:
            log.info(f"[red]✗ Failed:[/red] {item.payload.name} ({error_message})")
            if self.event_log:
                self.event_log.upload_failed(item_id, item.payload.name, error_message)

        self._notify()

    def remove(self, item_id: str) -> bool:
        """
        Stops tracking an item whatever its state. Its driver is not signalled;
        any later reports from it are ignored.

        Returns:
            True if an item was removed.
        """
        item = self._items.pop(item_id, None)
        if item is None:
            return False

        self.stats.record_removed(was_in_flight=not item.is_terminal)
        log.debug(f"Removed {item_id} ({item.state.value}, {item.progress:.0f}%)")
        if self.event_log:
            self.event_log.upload_removed(item_id, item.payload.name, item.state.value)

        self._notify()
        return True

    def clear(self) -> int:
        """Removes every tracked item at once. Returns how many were removed."""
        removed = list(self._items.values())
        if not removed:
            return 0

        self._items.clear()
        for item in removed:
            self.stats.record_removed(was_in_flight=not item.is_terminal)
            if self.event_log:
                self.event_log.upload_removed(
                    item.id, item.payload.name, item.state.value
                )
        log.debug(f"Cleared {len(removed)} tracked item(s)")

        self._notify()
        return len(removed)

    # --- Driver task management ---

    def _spawn(self, item_id: str) -> None:
        task = self.driver.start(self, item_id)
        self._tasks[item_id] = task
        task.add_done_callback(
            lambda t, item_id=item_id: self._on_task_done(item_id, t)
        )

    def _on_task_done(self, item_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(item_id, None)
        if task.cancelled():
            return
        if exc := task.exception():
            log.error(f"[red]Progress driver for {item_id} crashed: {exc}[/red]")

    async def join(self) -> None:
        """Waits until every spawned progress task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()))

    async def aclose(self) -> None:
        """Cancels outstanding progress tasks and refuses further enqueues."""
        self._closed = True
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        # Crashes were already logged by _on_task_done
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        if tasks:
            log.debug(f"Cancelled {len(tasks)} outstanding progress task(s)")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
