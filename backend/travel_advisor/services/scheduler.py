"""Advisory Scheduler — periodic batched global refresh inside the API process.

Invariants:
    - Fixed delay: the next run starts `interval` after the previous one FINISHED
    - Runs never overlap: run_once() skips (and logs) while another run holds the lock
    - A failing run is logged and the loop keeps going; only stop() ends it
    - stop() cancels both the refresh loop and the heartbeat and waits for them

Design Decisions:
    - asyncio tasks over an external scheduler: one process, one job, no extra infra
    - orchestrator_factory instead of an orchestrator: each run gets fresh wiring,
      so a reinitialized upstream/client is picked up without restarting the loop
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

from travel_advisor.config import Settings
from travel_advisor.services.refresh_orchestrator import RefreshOrchestrator

logger = logging.getLogger(__name__)

HEARTBEAT_SECONDS = 60.0


class AdvisoryScheduler:
    """Owns the background tasks that keep stored advisories fresh."""

    def __init__(
        self,
        orchestrator_factory: Callable[[], RefreshOrchestrator],
        settings: Settings,
        heartbeat_seconds: float = HEARTBEAT_SECONDS,
    ):
        self._factory = orchestrator_factory
        self._initial_delay = settings.scheduler_initial_delay_ms / 1000
        self._interval = settings.scheduler_sync_all_interval_ms / 1000
        self._batch_size = settings.scheduler_batch_size
        self._concurrency = settings.scheduler_concurrency
        self._tz = ZoneInfo(settings.scheduler_timezone)
        self._heartbeat_seconds = heartbeat_seconds
        self._lock = asyncio.Lock()
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        if self.running:
            logger.warning("Scheduler already running")
            return
        self._tasks = [
            asyncio.create_task(self._loop(), name="advisory-refresh"),
            asyncio.create_task(self._heartbeat(), name="advisory-heartbeat"),
        ]
        logger.info(
            f"Scheduler started: first run in {self._initial_delay}s, "
            f"then every {self._interval}s after completion"
        )

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Scheduler stopped")

    async def run_once(self) -> int | None:
        """One batched global refresh. Returns the synced count, None when skipped."""
        if self._lock.locked():
            logger.warning("Refresh already in progress, skipping this trigger")
            return None
        async with self._lock:
            started = datetime.now(self._tz)
            logger.info(f"Batched refresh started at {started.isoformat()}")
            orchestrator = self._factory()
            count = 0
            async for _ in orchestrator.refresh_all_in_batches(
                self._batch_size, self._concurrency,
            ):
                count += 1
            finished = datetime.now(self._tz)
            logger.info(
                f"Batched refresh finished at {finished.isoformat()}, {count} synced",
                extra={
                    "count": count,
                    "duration_ms": int((finished - started).total_seconds() * 1000),
                },
            )
            return count

    async def _loop(self) -> None:
        await asyncio.sleep(self._initial_delay)
        while True:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Scheduled refresh failed: {e}", exc_info=True)
            await asyncio.sleep(self._interval)

    async def _heartbeat(self) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_seconds)
            logger.debug(f"Scheduler alive at {datetime.now(self._tz).isoformat()}")
