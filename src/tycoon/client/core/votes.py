"""
Timeout strikes and player votes.

Covers recording a timed-out turn, voting an idle player out, and the
unanimous end-by-net-worth vote of untimed games.
"""
import logging
from typing import Dict, List, Optional

from tycoon.client.core.notices import ActionResult
from tycoon.client.core.phases import TurnKey
from tycoon.client.network.service import ServiceError
from tycoon.shared.constants import TWO_PLAYER_VOTE_STRIKES
from tycoon.shared.models import Player

logger = logging.getLogger(__name__)


def timeouts_needed(player_count: int) -> int:
    """Consecutive timeouts before a player can be voted out."""
    return TWO_PLAYER_VOTE_STRIKES if player_count == 2 else 1


class VoteDesk:
    """Vote and timeout operations for the local player of an orchestrator."""

    def __init__(self, orchestrator):
        self.orchestrator = orchestrator
        self.statuses: Dict[str, dict] = {}
        self.networth_status: Optional[dict] = None
        self._reported: Optional[TurnKey] = None

    @property
    def _service(self):
        return self.orchestrator.service

    @property
    def _code(self) -> str:
        return self.orchestrator.code

    @property
    def _me(self) -> str:
        return self.orchestrator.player_id

    def can_vote_against(self, target: Optional[Player]) -> bool:
        snapshot = self.orchestrator.snapshot
        if snapshot is None or target is None or target.id == self._me:
            return False
        if snapshot.player(self._me) is None:
            return False
        return target.consecutive_timeouts >= timeouts_needed(len(snapshot.players))

    def eligible_targets(self) -> List[Player]:
        snapshot = self.orchestrator.snapshot
        if snapshot is None:
            return []
        return [p for p in snapshot.players if self.can_vote_against(p)]

    async def record_timeout(self, target: Player) -> ActionResult:
        """Report the target's expired turn, once per turn_start."""
        if self.orchestrator.removed:
            return ActionResult.fail("You are no longer in the game")
        key = (target.id, target.turn_start)
        if key == self._reported:
            return ActionResult.ok("Timeout already reported", duplicate=True)
        self._reported = key
        try:
            result = await self._service.record_timeout(self._code, self._me, target.id)
        except ServiceError as e:
            logger.warning(f"Failed to record timeout for {target.id}: {e}")
            return ActionResult.fail(e.message)

        if result.get("recorded"):
            strikes = result.get("consecutive_timeouts", 0)
            self.orchestrator.notify(f"{target.username} ran out of time ({strikes} in a row)")
        await self.orchestrator.reconcile(force=True)
        return ActionResult.ok("Timeout recorded", **result)

    async def vote_to_remove(self, target_id: str) -> ActionResult:
        snapshot = self.orchestrator.snapshot
        target = snapshot.player(target_id) if snapshot else None
        if target is None:
            return ActionResult.fail("Player is no longer in the game")
        if not self.can_vote_against(target):
            needed = timeouts_needed(len(snapshot.players))
            message = f"{target.username} needs {needed} consecutive timeouts before a vote"
            self.orchestrator.notify.error(message)
            return ActionResult.fail(message)

        try:
            result = await self._service.vote_to_remove(self._code, self._me, target_id)
        except ServiceError as e:
            self.orchestrator.notify.error(f"Vote failed: {e.message}")
            return ActionResult.fail(e.message)

        self.statuses[target_id] = result
        if result.get("removed"):
            self.statuses.pop(target_id, None)
            self.orchestrator.notify.success(f"{target.username} was voted out")
            await self.orchestrator.reconcile(force=True)
        else:
            self.orchestrator.notify(
                f"Vote against {target.username} recorded "
                f"({result.get('vote_count')}/{result.get('required_votes')})"
            )
        return ActionResult.ok("Vote recorded", **result)

    async def vote_end_by_networth(self) -> ActionResult:
        snapshot = self.orchestrator.snapshot
        if snapshot is None:
            return ActionResult.fail("No game")
        if snapshot.duration:
            message = "Time-boxed games end when the clock runs out"
            self.orchestrator.notify.error(message)
            return ActionResult.fail(message)

        try:
            result = await self._service.vote_end_by_networth(self._code, self._me)
        except ServiceError as e:
            self.orchestrator.notify.error(f"Vote failed: {e.message}")
            return ActionResult.fail(e.message)

        self.networth_status = result
        if result.get("all_voted"):
            self.orchestrator.game_result = {
                "winner_id": result.get("winner_id"),
                "valid_win": result.get("valid_win"),
            }
            self.orchestrator.notify.success("Everyone agreed to end the game by net worth")
            await self.orchestrator.reconcile(force=True)
        else:
            self.orchestrator.notify(
                f"Net worth vote recorded ({result.get('vote_count')}/{result.get('required_votes')})"
            )
        return ActionResult.ok("Vote recorded", **result)

    async def refresh(self) -> None:
        """Background refresh of vote summaries; failures are only logged."""
        snapshot = self.orchestrator.snapshot
        if snapshot is None:
            return
        present = {p.id for p in snapshot.players}
        for target_id in list(self.statuses):
            if target_id not in present:
                del self.statuses[target_id]
        for target in snapshot.players:
            if target.id == self._me or target.consecutive_timeouts < 1:
                continue
            try:
                self.statuses[target.id] = await self._service.vote_status(self._code, target.id)
            except ServiceError as e:
                logger.warning(f"Vote status refresh failed for {target.id}: {e}")
        if not snapshot.duration:
            try:
                self.networth_status = await self._service.end_by_networth_status(self._code)
            except ServiceError as e:
                logger.warning(f"Net worth vote refresh failed: {e}")
