import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from globetrotter.core.core import Service

logger = structlog.get_logger(__name__)


class MaintenanceService(Service):
    """Runs periodic background jobs in the application's event loop.

    Each job runs once on startup and then every ``interval`` seconds. A failing
    run is logged and the next one is scheduled as usual.
    """

    _tasks: list[asyncio.Task[None]]

    async def on_start(self) -> None:
        self._tasks = []
        config = self.core.config
        if not config.maintenance_enabled:
            logger.info("maintenance_disabled")
            return
        self._schedule("session_cleanup", config.session_cleanup_interval, self.core.services.session.sweep_stale_sessions)
        self._schedule("trip_status_update", config.trip_status_interval, self.core.services.trip.update_trip_statuses)

    async def on_stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []

    def _schedule(self, name: str, interval: int, job: Callable[[], Awaitable[Any]]) -> None:
        task = asyncio.create_task(self._run_periodically(name, interval, job), name=f"maintenance:{name}")
        self._tasks.append(task)
        logger.debug("maintenance_job_scheduled", job=name, interval=interval)

    async def _run_periodically(self, name: str, interval: int, job: Callable[[], Awaitable[Any]]) -> None:
        while True:
            await run_job(name, job)
            await asyncio.sleep(interval)


async def run_job(name: str, job: Callable[[], Awaitable[Any]]) -> bool:
    """Run one job, logging instead of raising on failure. Returns whether it succeeded."""
    try:
        result = await job()
    except Exception:
        logger.exception("maintenance_job_failed", job=name)
        return False
    logger.debug("maintenance_job_finished", job=name, result=result)
    return True
