"""
Bulk Pharmacy Sync Orchestrator
===============================

Walks a list of cities one at a time, calling the external places sync
endpoint for each and recording the outcome.

Per-task state machine
----------------------
  PENDING -> SYNCING -> SUCCESS                      (terminal)
                     -> ERROR -> PENDING (requeued)  while retry_count < max_retries
                     -> ERROR -> failed list         otherwise (terminal)

Failed tasks go to the **back** of the queue so a rate-limited upstream
gets the rest of the cities in between attempts.

Concurrency
-----------
* Exactly one sync call is in flight; the run loop awaits it, then sleeps
  ``delay_seconds`` before dispatching the next city.
* ``stop()`` does not cancel the in-flight call.  Every ``start()`` bumps an
  epoch; a call that settles after ``stop()`` or under an older epoch is
  discarded instead of being applied to the state.
* Everything runs on the one event loop, so state needs no locking.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Mapping, Optional

from src.config import settings
from src.domain.entities import DEFAULT_MAX_RETRIES, SyncResult, SyncTask
from src.domain.enums import SyncStatus
from src.infrastructure.places_client import PlacesSyncClient

logger = logging.getLogger(__name__)

SyncCityFn = Callable[[str], Awaitable[SyncResult]]


class SyncAlreadyRunning(RuntimeError):
    """Raised when a bulk sync is requested while one is in progress."""


@dataclass
class SyncQueueState:
    pending: deque[SyncTask] = field(default_factory=deque)
    current: Optional[SyncTask] = None
    completed: list[SyncTask] = field(default_factory=list)
    failed: list[SyncTask] = field(default_factory=list)
    in_progress: bool = False
    total_cities: int = 0

    @property
    def queue(self) -> list[str]:
        return [task.city_slug for task in self.pending]

    @property
    def processed_cities(self) -> int:
        return len(self.completed) + len(self.failed)

    @property
    def progress_percent(self) -> int:
        if not self.total_cities:
            return 0
        # halves round up: 1 of 8 is 13
        return math.floor(self.processed_cities / self.total_cities * 100 + 0.5)

    @property
    def finished(self) -> bool:
        return (
            not self.in_progress
            and self.total_cities > 0
            and self.processed_cities == self.total_cities
        )

    def summary(self) -> str:
        return (
            f"{len(self.completed)} cities synced successfully, "
            f"{len(self.failed)} failed."
        )


class SyncOrchestrator:
    def __init__(
        self,
        sync_city: SyncCityFn,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        delay_seconds: float = 1.0,
    ):
        self._sync_city = sync_city
        self.max_retries = max_retries
        self.delay_seconds = delay_seconds
        self.state = SyncQueueState()
        self._epoch = 0
        self._task: asyncio.Task | None = None

    @property
    def in_progress(self) -> bool:
        return self.state.in_progress

    # ── Public API ────────────────────────────────────────────────────

    def start(
        self,
        city_slugs: Iterable[str],
        city_names: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Begin a new run.  Must be called from within the event loop."""
        if self.state.in_progress:
            raise SyncAlreadyRunning("A bulk sync is already running")
        slugs = list(city_slugs)
        if not slugs:
            raise ValueError("No cities to sync")

        names = city_names or {}
        self._epoch += 1
        self.state = SyncQueueState(
            pending=deque(
                SyncTask(slug, names.get(slug, ""), max_retries=self.max_retries)
                for slug in slugs
            ),
            in_progress=True,
            total_cities=len(slugs),
        )
        self._task = asyncio.create_task(self._run(self._epoch))
        logger.info("Bulk sync started for %d cities", len(slugs))

    def stop(self) -> None:
        if not self.state.in_progress:
            return
        self.state.in_progress = False
        logger.info(
            "Bulk sync stopped by user after %d/%d cities",
            self.state.processed_cities,
            self.state.total_cities,
        )

    def clear(self) -> None:
        """Forget the results of the last run."""
        if self.state.in_progress:
            raise SyncAlreadyRunning("Cannot clear results while a sync is running")
        self.state = SyncQueueState()

    async def advance(self) -> None:
        """Dispatch the next queued city and record its outcome."""
        epoch = self._epoch
        state = self.state
        if not state.in_progress:
            return

        if not state.pending:
            if state.current is None:
                state.in_progress = False
                logger.info("Bulk sync finished: %s", state.summary())
            return

        task = state.pending.popleft()
        task.transition_to(SyncStatus.SYNCING)
        state.current = task

        try:
            result = await self._sync_city(task.city_slug)
        except Exception as exc:
            if self._is_stale(epoch):
                logger.debug("Discarding late failure for %s", task.city_slug)
                return
            self._record_failure(task, exc)
        else:
            if self._is_stale(epoch):
                logger.debug("Discarding late result for %s", task.city_slug)
                return
            self._record_success(task, result)

    async def wait(self) -> None:
        """Wait for the current run loop to exit."""
        if self._task is not None:
            await self._task

    async def shutdown(self) -> None:
        self.stop()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    # ── Internals ─────────────────────────────────────────────────────

    def _is_stale(self, epoch: int) -> bool:
        return epoch != self._epoch or not self.state.in_progress

    async def _run(self, epoch: int) -> None:
        while not self._is_stale(epoch):
            await self.advance()
            if self._is_stale(epoch):
                break
            await asyncio.sleep(self.delay_seconds)

    def _record_success(self, task: SyncTask, result: SyncResult) -> None:
        task.transition_to(SyncStatus.SUCCESS)
        task.result = result
        task.error = None
        if result.city_name:
            task.city_name = result.city_name
        self.state.completed.append(task)
        self.state.current = None
        logger.info(
            "Synced %s: %d processed, %d created, %d updated",
            task.city_slug,
            result.processed,
            result.created,
            result.updated,
        )

    def _record_failure(self, task: SyncTask, exc: Exception) -> None:
        task.transition_to(SyncStatus.ERROR)
        task.error = str(exc) or exc.__class__.__name__

        if task.can_retry:
            task.retry_count += 1
            task.transition_to(SyncStatus.PENDING)
            self.state.pending.append(task)
            logger.warning(
                "Sync failed for %s (retry %d/%d): %s",
                task.city_slug,
                task.retry_count,
                task.max_retries,
                task.error,
            )
        else:
            self.state.failed.append(task)
            logger.error(
                "Sync failed permanently for %s after %d retries: %s",
                task.city_slug,
                task.retry_count,
                task.error,
            )
        self.state.current = None


# ── Application-wide instance ─────────────────────────────────────────

_orchestrator: SyncOrchestrator | None = None


def get_places_client() -> PlacesSyncClient:
    return PlacesSyncClient(
        settings.places_sync_url,
        api_key=settings.places_api_key,
        timeout=settings.sync_timeout_seconds,
    )


def get_orchestrator() -> SyncOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = SyncOrchestrator(
            get_places_client().sync_city,
            max_retries=settings.sync_max_retries,
            delay_seconds=settings.sync_delay_seconds,
        )
    return _orchestrator


async def shutdown_orchestrator() -> None:
    if _orchestrator is not None:
        await _orchestrator.shutdown()
    logger.info("Sync orchestrator stopped")
