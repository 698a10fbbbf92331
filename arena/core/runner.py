"""Fixed-cadence scheduler driving the simulation engine."""
import asyncio
import inspect
from typing import Any, Callable, Optional

import structlog

from arena.core.engine import SimulationEngine
from arena.core.models import TickResult

logger = structlog.get_logger(__name__)

TickCallback = Callable[[TickResult], Any]


class SimulationRunner:
    """
    Calls ``engine.tick()`` every ``interval`` seconds on the event loop.

    Ticks are synchronous, so stopping never interrupts one: cancellation
    lands on the sleep between ticks. A tick that raises is logged and the
    cadence continues.
    """

    def __init__(
        self,
        engine: SimulationEngine,
        interval: float = 1.5,
        on_tick: Optional[TickCallback] = None,
    ):
        self.engine = engine
        self.interval = interval
        self.on_tick = on_tick

        self.ticks_run = 0
        self.errors = 0

        self._running = False
        self._main_task: Optional[asyncio.Task] = None
        self._max_ticks: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self, max_ticks: Optional[int] = None):
        """Start ticking in the background."""
        if self._running:
            logger.warning("runner.already_running")
            return

        logger.info("runner.starting", interval=self.interval, max_ticks=max_ticks)
        self._running = True
        self._max_ticks = max_ticks
        self._main_task = asyncio.create_task(self._main_loop())
        logger.info("runner.started")

    async def stop(self):
        """Stop ticking; the tick in progress (if any) completes first."""
        logger.info("runner.stopping")
        self._running = False

        if self._main_task:
            self._main_task.cancel()
            try:
                await self._main_task
            except asyncio.CancelledError:
                pass
            self._main_task = None

        logger.info("runner.stopped", ticks_run=self.ticks_run, errors=self.errors)

    async def run_for(self, ticks: int):
        """Run exactly ``ticks`` ticks at the configured cadence, then stop."""
        if ticks <= 0:
            return
        if self._running:
            logger.warning("runner.already_running", requested_ticks=ticks)
            return
        await self.start(max_ticks=ticks)
        if self._main_task:
            await self._main_task
        self._main_task = None
        self._running = False

    async def _main_loop(self):
        attempts = 0
        while self._running:
            attempts += 1
            try:
                result = self.engine.tick()
                self.ticks_run += 1
                if self.on_tick is not None:
                    outcome = self.on_tick(result)
                    if inspect.isawaitable(outcome):
                        await outcome
            except Exception as e:
                self.errors += 1
                logger.error("runner.tick_error", error=str(e), exc_info=True)

            if self._max_ticks is not None and attempts >= self._max_ticks:
                self._running = False
                break

            await asyncio.sleep(self.interval)
