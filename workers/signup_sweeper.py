"""
Periodic sweep of abandoned signups.

Runs inside the API process (started from the app lifespan) on its own
schedule. Each pass is a single bulk conditional delete, so a pass cut short
by shutdown leaves nothing half-done; the next pass picks up the rest.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

from pymongo.errors import PyMongoError

from services.maintenance import MaintenanceService
from shared.logging import get_logger

log = get_logger(__name__)


class SignupSweeper:
    def __init__(self, maintenance: MaintenanceService, interval_seconds: float) -> None:
        self._maintenance = maintenance
        self._interval = interval_seconds
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> int:
        try:
            return await self._maintenance.sweep_abandoned_signups()
        except PyMongoError as e:
            log.error(
                "signup_sweep_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return 0

    async def run(self) -> None:
        log.info("signup_sweeper_started", interval_seconds=self._interval)
        while not self._stop.is_set():
            await self.run_once()
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
        log.info("signup_sweeper_stopped")

    def start(self) -> asyncio.Task:
        self._stop.clear()
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None
