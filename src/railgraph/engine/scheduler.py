from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from railgraph.engine.movement import MovementEngine
from railgraph.engine.orchestrator import ExpansionOrchestrator, ExpansionOutcome
from railgraph.graph.graph_store import GraphStore
from railgraph.utils.time import is_even_utc_hour, utc_now

logger = logging.getLogger("railgraph.scheduler")

AUTO_SETTING = "auto_enabled"


async def _sleep_or_stop(stop: asyncio.Event, seconds: float) -> None:
    try:
        await asyncio.wait_for(stop.wait(), timeout=max(seconds, 0.0))
    except asyncio.TimeoutError:
        pass


async def run_movement_loop(engine: MovementEngine, stop: asyncio.Event) -> None:
    """
    Tick ``engine`` on a fixed period until ``stop`` is set.

    Ticks never overlap: the next one is scheduled after the previous
    one has finished, keeping the original cadence when it can.
    """
    loop = asyncio.get_running_loop()
    period = engine.config.tick_ms / 1000.0
    next_at = loop.time()

    logger.info("movement loop started (%.0f ms)", engine.config.tick_ms)
    while not stop.is_set():
        try:
            await engine.tick()
        except Exception:
            logger.exception("movement tick failed; continuing")
        next_at = max(next_at + period, loop.time())
        await _sleep_or_stop(stop, next_at - loop.time())
    logger.info("movement loop stopped")


class AutoExpansionScheduler:
    """
    Runs an expansion cycle at every even UTC hour while auto mode is on.

    The on/off switch is persisted as a store setting so it survives restarts.
    """

    def __init__(
        self,
        store: GraphStore,
        orchestrator: ExpansionOrchestrator,
        *,
        poll_seconds: float = 60.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.orchestrator = orchestrator
        self.poll_seconds = poll_seconds
        self._clock = clock
        self._last_hour: Optional[datetime] = None

    @property
    def enabled(self) -> bool:
        return self.store.get_setting(AUTO_SETTING, "false") == "true"

    async def set_enabled(self, enabled: bool) -> Optional[ExpansionOutcome]:
        """
        Switching auto mode on triggers one cycle straight away.
        """
        self.store.set_setting(AUTO_SETTING, "true" if enabled else "false")
        logger.info("auto expansion %s", "enabled" if enabled else "disabled")
        if not enabled:
            return None
        return await self.orchestrator.run_expansion_cycle()

    async def check(self, now: Optional[datetime] = None) -> Optional[ExpansionOutcome]:
        if not self.enabled:
            return None

        now = now or self._clock()
        if not is_even_utc_hour(now):
            return None

        hour = now.replace(minute=0, second=0, microsecond=0)
        if hour == self._last_hour:
            return None

        self._last_hour = hour
        logger.info("scheduled expansion for %s", hour.strftime("%H:00 UTC"))
        return await self.orchestrator.run_expansion_cycle()

    async def run(self, stop: asyncio.Event) -> None:
        while not stop.is_set():
            try:
                await self.check()
            except Exception:
                logger.exception("scheduled expansion failed")
            await _sleep_or_stop(stop, self.poll_seconds)
