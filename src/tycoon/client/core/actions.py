"""
Human-initiated property and trade actions.

Property management is only offered on the local player's own turn.
Cash and card shortfalls are caught locally, before any service call.
"""
import logging
from typing import Awaitable, Callable, Iterable, List, Optional

from tycoon.client.core.autopilot import answer_trade
from tycoon.client.core.board import square_at
from tycoon.client.core.notices import ActionResult
from tycoon.client.core.strategy import unmortgage_cost
from tycoon.client.network.service import ServiceError
from tycoon.shared.enums import TradeStatus
from tycoon.shared.models import Player, TradeOffer

logger = logging.getLogger(__name__)


class PropertyActions:
    """Develop, downgrade, mortgage, unmortgage and sell for the local player."""

    def __init__(self, orchestrator):
        self.orchestrator = orchestrator

    def _player_on_turn(self) -> Optional[Player]:
        orch = self.orchestrator
        if not orch.is_my_turn or orch.removed:
            return None
        return orch.me

    async def _call(self, operation: Callable[..., Awaitable[dict]], player: Player,
                    property_id: int, success_message: str) -> ActionResult:
        orch = self.orchestrator
        orch.inactivity.touch()
        try:
            data = await operation(orch.code, player.id, property_id)
        except ServiceError as e:
            orch.notify.error(e.message)
            return ActionResult.fail(e.message)
        orch.notify.success(success_message)
        await orch.reconcile(force=True)
        return ActionResult.ok(success_message, **(data or {}))

    async def develop(self, property_id: int) -> ActionResult:
        player = self._player_on_turn()
        if player is None:
            return ActionResult.fail("You can only build on your turn")
        square = square_at(property_id)
        if player.balance < square.cost_of_house:
            message = f"You need ${square.cost_of_house} to build on {square.name}"
            self.orchestrator.notify.error(message)
            return ActionResult.fail(message)
        return await self._call(self.orchestrator.service.develop, player, property_id,
                                f"Built on {square.name}")

    async def downgrade(self, property_id: int) -> ActionResult:
        player = self._player_on_turn()
        if player is None:
            return ActionResult.fail("You can only sell buildings on your turn")
        square = square_at(property_id)
        return await self._call(self.orchestrator.service.downgrade, player, property_id,
                                f"Sold a building on {square.name}")

    async def mortgage(self, property_id: int) -> ActionResult:
        player = self._player_on_turn()
        if player is None:
            return ActionResult.fail("You can only mortgage on your turn")
        square = square_at(property_id)
        return await self._call(self.orchestrator.service.mortgage, player, property_id,
                                f"Mortgaged {square.name}")

    async def unmortgage(self, property_id: int) -> ActionResult:
        player = self._player_on_turn()
        if player is None:
            return ActionResult.fail("You can only unmortgage on your turn")
        square = square_at(property_id)
        cost = unmortgage_cost(property_id)
        if player.balance < cost:
            message = f"You need ${cost} to unmortgage {square.name}"
            self.orchestrator.notify.error(message)
            return ActionResult.fail(message)
        return await self._call(self.orchestrator.service.unmortgage, player, property_id,
                                f"Unmortgaged {square.name}")

    async def sell(self, property_id: int) -> ActionResult:
        player = self._player_on_turn()
        if player is None:
            return ActionResult.fail("You can only sell property on your turn")
        square = square_at(property_id)
        return await self._call(self.orchestrator.service.sell_property, player, property_id,
                                f"Sold {square.name} to the bank")

    async def declare_bankruptcy(self) -> ActionResult:
        if self.orchestrator.me is None:
            return ActionResult.fail("You are not in the game")
        return await self.orchestrator.declare_bankruptcy(self.orchestrator.player_id)


class TradeDesk:
    """Trades of the local player; offers to autonomous players are answered at once."""

    def __init__(self, orchestrator):
        self.orchestrator = orchestrator
        self.pending: List[TradeOffer] = []

    @property
    def incoming(self) -> List[TradeOffer]:
        return [t for t in self.pending if t.target == self.orchestrator.player_id]

    @property
    def outgoing(self) -> List[TradeOffer]:
        return [t for t in self.pending if t.proposer == self.orchestrator.player_id]

    def _validate(self, player: Player, offered_properties: List[int], offered_cash: int) -> Optional[str]:
        owned = {r.id for r in self.orchestrator.snapshot.properties_of(player.id)}
        for property_id in offered_properties:
            if property_id not in owned:
                return f"You do not own {square_at(property_id).name}"
        if offered_cash < 0:
            return "Cash amounts must not be negative"
        if offered_cash > player.balance:
            return f"You only have ${player.balance}"
        return None

    async def create(self, target_id: str, offered_properties: Iterable[int] = (), offered_cash: int = 0,
                     requested_properties: Iterable[int] = (), requested_cash: int = 0) -> ActionResult:
        orch = self.orchestrator
        me = orch.me
        target = orch.snapshot.player(target_id) if orch.snapshot else None
        if me is None or target is None or target.id == me.id:
            return ActionResult.fail("Choose another player to trade with")

        offered = list(offered_properties)
        reason = self._validate(me, offered, offered_cash)
        if reason:
            orch.notify.error(reason)
            return ActionResult.fail(reason)

        payload = {
            "proposer": me.id,
            "target": target.id,
            "offered_properties": offered,
            "offered_cash": offered_cash,
            "requested_properties": list(requested_properties),
            "requested_cash": requested_cash,
        }
        try:
            trade = await orch.service.create_trade(orch.code, payload)
        except ServiceError as e:
            orch.notify.error(f"Trade failed: {e.message}")
            return ActionResult.fail(e.message)

        if target.is_ai:
            trade = await answer_trade(orch.service, orch.code, trade, orch.snapshot.properties)
            if trade.status == TradeStatus.ACCEPTED:
                orch.notify.success(f"{target.username} accepted your trade")
            elif trade.status == TradeStatus.DECLINED:
                orch.notify(f"{target.username} declined your trade")
        else:
            orch.notify.success(f"Trade offer sent to {target.username}")

        await self.refresh()
        await orch.reconcile(force=True)
        return ActionResult.ok("Trade created", trade=trade.to_dict())

    def _find(self, trade_id: str) -> Optional[TradeOffer]:
        for trade in self.pending:
            if trade.id == trade_id:
                return trade
        return None

    async def accept(self, trade_id: str) -> ActionResult:
        orch = self.orchestrator
        trade = self._find(trade_id)
        me = orch.me
        if trade is not None and me is not None and trade.requested_cash > me.balance:
            message = f"You need ${trade.requested_cash} to accept this trade"
            orch.notify.error(message)
            return ActionResult.fail(message)
        return await self._answer(orch.service.accept_trade, trade_id, "Trade accepted")

    async def decline(self, trade_id: str) -> ActionResult:
        return await self._answer(self.orchestrator.service.decline_trade, trade_id, "Trade declined")

    async def _answer(self, operation: Callable[..., Awaitable[TradeOffer]], trade_id: str,
                      success_message: str) -> ActionResult:
        orch = self.orchestrator
        try:
            trade = await operation(orch.code, trade_id)
        except ServiceError as e:
            orch.notify.error(e.message)
            return ActionResult.fail(e.message)
        orch.notify.success(success_message)
        await self.refresh()
        await orch.reconcile(force=True)
        return ActionResult.ok(success_message, trade=trade.to_dict())

    async def counter(self, trade_id: str, offered_properties: Iterable[int] = (), offered_cash: int = 0,
                      requested_properties: Iterable[int] = (), requested_cash: int = 0) -> ActionResult:
        """
        Counter a trade addressed to the local player.

        The counter is a new offer from the local player back to the
        original proposer; the original is marked as countered.
        """
        orch = self.orchestrator
        me = orch.me
        if me is None:
            return ActionResult.fail("You are not in the game")
        offered = list(offered_properties)
        reason = self._validate(me, offered, offered_cash)
        if reason:
            orch.notify.error(reason)
            return ActionResult.fail(reason)

        offer = {
            "offered_properties": offered,
            "offered_cash": offered_cash,
            "requested_properties": list(requested_properties),
            "requested_cash": requested_cash,
        }
        try:
            counter = await orch.service.counter_trade(orch.code, trade_id, offer)
        except ServiceError as e:
            orch.notify.error(f"Counter offer failed: {e.message}")
            return ActionResult.fail(e.message)

        target = orch.snapshot.player(counter.target)
        if target is not None and target.is_ai:
            counter = await answer_trade(orch.service, orch.code, counter, orch.snapshot.properties)
        orch.notify.success("Counter offer sent")
        await self.refresh()
        await orch.reconcile(force=True)
        return ActionResult.ok("Counter offer sent", trade=counter.to_dict())

    async def refresh(self) -> None:
        """Background refresh of pending trades; failures are only logged."""
        orch = self.orchestrator
        try:
            self.pending = await orch.service.list_trades(orch.code, orch.player_id)
        except ServiceError as e:
            logger.warning(f"Trade refresh failed for {orch.player_id}: {e}")
