"""
Autopilot for autonomous players.

Runs the pre-roll strategy pass once per turn (unmortgage, trades,
building), then drives the same roll/land/buy/end machinery a human
uses. Debt triggers the liquidation cascade, and bankruptcy when the
cascade cannot restore a non-negative balance.
"""
import logging
from typing import List, Optional, Set

from tycoon.client.core.acquisition import should_ai_buy
from tycoon.client.core.board import square_at
from tycoon.client.core.jail import ai_jail_option
from tycoon.client.core.liquidation import plan_liquidation, run_liquidation
from tycoon.client.core.strategy import pick_unmortgage, plan_build, plan_trades, should_accept_trade
from tycoon.client.network.service import GameService, ServiceError
from tycoon.shared.constants import MAX_TRADE_ATTEMPTS
from tycoon.shared.enums import JailOption, TurnPhase
from tycoon.shared.models import GameProperty, Player, TradeOffer

logger = logging.getLogger(__name__)

# Phases in which the actor can be interrupted for liquidation
SETTLED_PHASES = (
    TurnPhase.AWAITING_ROLL,
    TurnPhase.JAIL_AWAITING_CHOICE,
    TurnPhase.JAIL_CHOICE_REQUIRED,
    TurnPhase.AWAITING_BUY_DECISION,
    TurnPhase.TURN_COMPLETING,
)


async def answer_trade(service: GameService, code: str, trade: TradeOffer,
                       properties: List[GameProperty]) -> TradeOffer:
    """
    Accept or decline a trade on behalf of its autonomous target.

    Returns:
        The trade as the service left it; unchanged if the answer failed
    """
    accept = should_accept_trade(trade, trade.target, properties)
    try:
        if accept:
            answered = await service.accept_trade(code, trade.id)
        else:
            answered = await service.decline_trade(code, trade.id)
    except ServiceError as e:
        logger.warning(f"Answering trade {trade.id} for {trade.target} failed: {e}")
        return trade
    logger.info(f"{trade.target} {answered.status.value} trade {trade.id}")
    return answered


class Autopilot:
    """Takes the next action for an autonomous actor the orchestrator drives."""

    def __init__(self, orchestrator, max_trade_attempts: int = MAX_TRADE_ATTEMPTS):
        self.orchestrator = orchestrator
        self.max_trade_attempts = max_trade_attempts
        self._busy = False
        self._liquidating: Set[str] = set()

    def _actor(self) -> Optional[Player]:
        actor = self.orchestrator.actor
        if actor is None or not self.orchestrator.is_autonomous(actor):
            return None
        return actor

    async def step(self) -> bool:
        """
        Take one action.

        Returns:
            True if something was attempted and another step may follow
        """
        if self._busy or not self.orchestrator.lock.is_free:
            return False
        actor = self._actor()
        if actor is None:
            return False
        self._busy = True
        try:
            return await self._step(actor)
        finally:
            self._busy = False

    async def run_turn(self, max_steps: int = 50) -> int:
        """Step until the actor has nothing left to do; returns the step count."""
        steps = 0
        while steps < max_steps and await self.step():
            steps += 1
        return steps

    async def _step(self, actor: Player) -> bool:
        orch = self.orchestrator
        machine = orch.machine
        phase = machine.phase

        if actor.balance < 0 and phase in SETTLED_PHASES:
            return await self.handle_distress(actor)

        if phase in (TurnPhase.AWAITING_ROLL, TurnPhase.JAIL_AWAITING_CHOICE):
            if not machine.context.strategy_ran:
                await self.run_strategy(actor)
                return True
            return (await orch.roll()).success

        if phase == TurnPhase.JAIL_CHOICE_REQUIRED:
            option = ai_jail_option(actor, phase)
            if option == JailOption.PAY_FINE:
                return (await orch.pay_fine()).success
            return (await orch.stay()).success

        if phase == TurnPhase.AWAITING_BUY_DECISION:
            return await self._decide_buy(actor)

        if phase == TurnPhase.TURN_COMPLETING and not machine.context.turn_ended:
            return (await orch.end_turn()).success

        return False

    async def _decide_buy(self, actor: Player) -> bool:
        orch = self.orchestrator
        prompt = orch.buy_prompt
        if prompt is not None:
            square = square_at(prompt.property_id)
            if should_ai_buy(square, actor, orch.snapshot.properties):
                if (await orch.buy()).success:
                    return True
            else:
                logger.info(f"{actor.username} passes on {square.name}")
        return (await orch.skip()).success

    # ------------------------------------------------------------------
    # Strategy pass
    # ------------------------------------------------------------------

    async def run_strategy(self, actor: Player) -> None:
        """Pre-roll pass; runs at most once per turn."""
        ctx = self.orchestrator.machine.context
        if ctx.strategy_ran:
            return
        ctx.strategy_ran = True
        logger.info(f"Strategy pass for {actor.username}")

        await self._unmortgage(actor)
        actor = self._fresh(actor)
        await self._trade(actor)
        actor = self._fresh(actor)
        await self._build(actor)
        await self.orchestrator.reconcile(force=True)

    def _fresh(self, actor: Player) -> Player:
        snapshot = self.orchestrator.snapshot
        return (snapshot.player(actor.id) if snapshot else None) or actor

    async def _unmortgage(self, actor: Player) -> None:
        orch = self.orchestrator
        target = pick_unmortgage(actor, orch.snapshot.properties)
        if target is None:
            return
        try:
            await orch.service.unmortgage(orch.code, actor.id, target)
        except ServiceError as e:
            logger.warning(f"{actor.username} could not unmortgage {target}: {e}")
            return
        orch.notify(f"{actor.username} redeemed {square_at(target).name}")
        await orch.reconcile(force=True)

    async def _trade(self, actor: Player) -> None:
        orch = self.orchestrator
        ctx = orch.machine.context
        remaining = self.max_trade_attempts - ctx.trade_attempts
        if remaining <= 0:
            return
        snapshot = orch.snapshot
        for plan in plan_trades(actor, snapshot.players, snapshot.properties, max_attempts=remaining):
            ctx.trade_attempts += 1
            try:
                trade = await orch.service.create_trade(orch.code, plan.to_payload(actor.id))
            except ServiceError as e:
                logger.warning(f"{actor.username} could not propose a trade to {plan.target}: {e}")
                continue
            target = snapshot.player(plan.target)
            names = ", ".join(square_at(p).name for p in plan.requested_properties)
            orch.notify(f"{actor.username} offers ${plan.offered_cash} to "
                        f"{target.username if target else plan.target} for {names}")
            if target is not None and target.is_ai:
                await answer_trade(orch.service, orch.code, trade, snapshot.properties)
        await orch.reconcile(force=True)

    async def _build(self, actor: Player) -> None:
        """Build on the first group where a house goes up; one group per turn."""
        orch = self.orchestrator
        balance = actor.balance
        for step in plan_build(actor, orch.snapshot.properties):
            built = 0
            for property_id in step.property_ids:
                if balance < step.house_cost:
                    break
                try:
                    await orch.service.develop(orch.code, actor.id, property_id)
                except ServiceError as e:
                    logger.warning(f"{actor.username} could not build on {property_id}: {e}")
                    break
                balance -= step.house_cost
                built += 1
            if built:
                orch.notify(f"{actor.username} built {built} house(s) on the {step.group} set")
                await orch.reconcile(force=True)
                return

    # ------------------------------------------------------------------
    # Debt
    # ------------------------------------------------------------------

    async def handle_distress(self, actor: Player) -> bool:
        """
        Liquidate, and declare bankruptcy if that is not enough.

        Guarded per player so refreshes during the cascade do not start it
        again.
        """
        orch = self.orchestrator
        if actor.id in self._liquidating or actor.id in orch.processing_bankruptcy:
            return False
        self._liquidating.add(actor.id)
        try:
            plan = plan_liquidation(actor, orch.snapshot.properties)
            if plan.steps:
                raised = await run_liquidation(orch.service, orch.code, actor.id, plan)
                orch.notify(f"{actor.username} raised ${raised} to cover debts")
            await orch.reconcile(force=True)
            fresh = orch.snapshot.player(actor.id) if orch.snapshot else None
            if fresh is None or fresh.balance >= 0:
                return True
            logger.info(f"{actor.username} is still ${-fresh.balance} short, declaring bankruptcy")
            return (await orch.declare_bankruptcy(actor.id)).success
        finally:
            self._liquidating.discard(actor.id)
