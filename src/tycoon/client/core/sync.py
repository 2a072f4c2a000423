"""
Synchronization helpers: the local action lock and snapshot reconciliation.
"""
import asyncio
import logging
import time
from typing import Callable, List, Optional

from tycoon.client.network.service import GameService, ServiceError
from tycoon.shared.enums import ActionLockKind
from tycoon.shared.models import GameSnapshot

logger = logging.getLogger(__name__)


class ActionLock:
    """
    Single-flight guard for the turn-critical operations (ROLL and END).

    Acquiring while anything is held is rejected straight away, nothing
    queues behind the holder.
    """

    def __init__(self):
        self._held: Optional[ActionLockKind] = None

    @property
    def held(self) -> Optional[ActionLockKind]:
        return self._held

    @property
    def is_free(self) -> bool:
        return self._held is None

    def acquire(self, kind: ActionLockKind) -> bool:
        if self._held is not None:
            logger.debug(f"Action lock busy ({self._held.value}), rejecting {kind.value}")
            return False
        self._held = kind
        return True

    def release(self, kind: Optional[ActionLockKind] = None) -> None:
        if kind is not None and self._held not in (None, kind):
            logger.warning(f"Releasing {kind.value} but lock is held by {self._held.value}")
            return
        self._held = None


SnapshotListener = Callable[[GameSnapshot], None]


class Reconciler:
    """
    Pulls authoritative snapshots and hands them to listeners.

    Last fetch wins: each snapshot replaces the previous one wholesale.
    Unforced refreshes closer together than min_gap are skipped, and a
    refresh already in flight is shared by concurrent callers.
    """

    def __init__(self, service: GameService, code: str, min_gap: float = 2.0,
                 clock: Callable[[], float] = time.monotonic):
        self.service = service
        self.code = code
        self.min_gap = min_gap
        self._clock = clock
        self._last_fetch: Optional[float] = None
        self._inflight: Optional[asyncio.Future] = None
        self._listeners: List[SnapshotListener] = []
        self.snapshot: Optional[GameSnapshot] = None
        self.failures = 0

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def throttled(self) -> bool:
        if self._last_fetch is None:
            return False
        return self._clock() - self._last_fetch < self.min_gap

    async def refresh(self, force: bool = False) -> Optional[GameSnapshot]:
        """
        Fetch and publish the current snapshot.

        Returns:
            The new snapshot, or None when skipped or the fetch failed
        """
        if self._inflight is not None and not force:
            return await asyncio.shield(self._inflight)
        if not force and self.throttled():
            return None

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._inflight = future
        self._last_fetch = self._clock()
        snapshot = None
        try:
            snapshot = await self.service.get_game(self.code)
            self.failures = 0
        except ServiceError as e:
            self.failures += 1
            logger.warning(f"Sync failed for game {self.code}: {e}")
        finally:
            if self._inflight is future:
                self._inflight = None
            future.set_result(snapshot)

        if snapshot is not None:
            self.publish(snapshot)
        return snapshot

    def publish(self, snapshot: GameSnapshot) -> None:
        self.snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Snapshot listener failed: {e}", exc_info=True)
