"""
Game session lifecycle.

A session owns the orchestrator for one active game and runs two
background tasks: periodic reconciliation and the one-second tick that
drives the timers and the autopilot.
"""
import asyncio
import logging
from typing import Callable, List, Optional

from tycoon.client.config import clamp_poll_interval, settings as default_settings
from tycoon.client.core.actions import PropertyActions, TradeDesk
from tycoon.client.core.autopilot import Autopilot
from tycoon.client.core.dice import Dice
from tycoon.client.core.notices import NotificationSink
from tycoon.client.core.orchestrator import TurnOrchestrator
from tycoon.client.network.service import GameService

logger = logging.getLogger(__name__)

TICK_INTERVAL = 1.0


class GameSession:
    """One active game: orchestrator, autopilot, desks and the background loops."""

    def __init__(self, orchestrator: TurnOrchestrator, poll_interval: Optional[float] = None,
                 tick_interval: float = TICK_INTERVAL):
        self.orchestrator = orchestrator
        self.autopilot = Autopilot(orchestrator)
        self.properties = PropertyActions(orchestrator)
        self.trades = TradeDesk(orchestrator)
        self.poll_interval = clamp_poll_interval(poll_interval or orchestrator.settings.poll_interval)
        self.tick_interval = tick_interval
        self._tasks: List[asyncio.Task] = []

    @classmethod
    def create(cls, service: GameService, code: str, player_id: str, settings=None,
               dice: Optional[Dice] = None, sink: Optional[NotificationSink] = None,
               drive_ai: bool = False, clock: Optional[Callable[[], float]] = None) -> "GameSession":
        kwargs = {"clock": clock} if clock is not None else {}
        orchestrator = TurnOrchestrator(
            service, code, player_id,
            dice=dice,
            settings=settings or default_settings,
            sink=sink,
            drive_ai=drive_ai,
            **kwargs,
        )
        return cls(orchestrator)

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        """Fetch the first snapshot and start the background loops."""
        if self.running:
            return
        await self.orchestrator.reconcile(force=True)
        await self.trades.refresh()
        self._tasks = [
            asyncio.create_task(self._poll_loop(), name=f"poll-{self.orchestrator.code}"),
            asyncio.create_task(self._tick_loop(), name=f"tick-{self.orchestrator.code}"),
        ]
        logger.info(f"Session for game {self.orchestrator.code} started "
                    f"(poll every {self.poll_interval}s)")

    async def poll(self) -> None:
        await self.orchestrator.reconcile()
        await self.trades.refresh()
        await self.orchestrator.votes.refresh()

    async def tick(self) -> None:
        await self.orchestrator.tick()
        await self.autopilot.step()

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                await self.poll()
            except Exception as e:
                logger.error(f"Poll failed: {e}", exc_info=True)

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Tick failed: {e}", exc_info=True)

    async def close(self) -> None:
        """Stop the background loops; the service itself is left open."""
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info(f"Session for game {self.orchestrator.code} closed")
