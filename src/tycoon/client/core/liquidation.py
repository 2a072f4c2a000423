"""
Bankruptcy and liquidation cascade.

When a player's balance goes negative the cascade sells buildings
(highest hotel rent first), then mortgages undeveloped holdings (highest
price first) until the projected balance is back to zero. If that is not
enough the player goes bankrupt and its holdings pass to the creditor or
back to the bank.
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from tycoon.client.core.board import square_at
from tycoon.client.network.service import GameService, ServiceError
from tycoon.shared.enums import LiquidationKind
from tycoon.shared.models import GameProperty, Player

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidationStep:
    kind: LiquidationKind
    property_id: int
    amount: int


@dataclass
class LiquidationPlan:
    steps: List[LiquidationStep]
    starting_balance: int

    @property
    def raised(self) -> int:
        return sum(step.amount for step in self.steps)

    @property
    def projected_balance(self) -> int:
        return self.starting_balance + self.raised

    @property
    def solvent(self) -> bool:
        return self.projected_balance >= 0


def plan_liquidation(player: Player, properties: List[GameProperty]) -> LiquidationPlan:
    """
    Build the ordered list of sales and mortgages for an indebted player.

    Args:
        player: The debtor
        properties: Current ownership records

    Returns:
        LiquidationPlan; empty when the player is not in debt
    """
    plan = LiquidationPlan(steps=[], starting_balance=player.balance)
    if player.balance >= 0:
        return plan

    owned = [r for r in properties if r.owner == player.id]
    remaining = {r.id: r.development for r in owned}

    developed = sorted(
        (r for r in owned if r.development > 0),
        key=lambda r: square_at(r.id).rent_hotel,
        reverse=True,
    )
    for record in developed:
        house_cost = square_at(record.id).cost_of_house
        if not house_cost:
            continue
        for _ in range(record.development):
            if plan.solvent:
                return plan
            plan.steps.append(LiquidationStep(
                LiquidationKind.SELL_BUILDING, record.id, math.floor(house_cost / 2)
            ))
            remaining[record.id] -= 1

    mortgageable = sorted(
        (r for r in owned if not r.mortgaged and remaining[r.id] == 0 and square_at(r.id).price),
        key=lambda r: square_at(r.id).price,
        reverse=True,
    )
    for record in mortgageable:
        if plan.solvent:
            return plan
        plan.steps.append(LiquidationStep(
            LiquidationKind.MORTGAGE, record.id, math.floor(square_at(record.id).price / 2)
        ))
    return plan


def find_creditor(debtor: Player, players: List[Player], properties: List[GameProperty]) -> Optional[Player]:
    """Owner of the square the debtor is standing on, if that is another player."""
    for record in properties:
        if record.id == debtor.position and record.owner and record.owner != debtor.id:
            for player in players:
                if player.id == record.owner:
                    return player
    return None


def assets_of(player_id: str, properties: List[GameProperty]) -> List[int]:
    return [r.id for r in properties if r.owner == player_id]


async def run_liquidation(service: GameService, code: str, player_id: str, plan: LiquidationPlan) -> int:
    """
    Execute a liquidation plan step by step.

    A failed step is logged and skipped; the remaining steps still run.

    Returns:
        Cash actually raised
    """
    raised = 0
    for step in plan.steps:
        try:
            if step.kind == LiquidationKind.SELL_BUILDING:
                await service.downgrade(code, player_id, step.property_id)
            else:
                await service.mortgage(code, player_id, step.property_id)
        except ServiceError as e:
            logger.warning(f"Liquidation step {step.kind.value} on {step.property_id} failed for {player_id}: {e}")
            continue
        raised += step.amount
    logger.info(f"Liquidation for {player_id} raised ${raised} in {len(plan.steps)} steps")
    return raised


async def settle_bankruptcy(service: GameService, code: str, debtor: Player, players: List[Player],
                            properties: List[GameProperty]) -> Optional[Player]:
    """
    Hand a bankrupt player's holdings over.

    Holdings go to a human creditor when there is one; otherwise, or when
    the creditor is autonomous, they go back to the bank.

    Returns:
        The creditor that received the holdings, if any
    """
    creditor = find_creditor(debtor, players, properties)
    recipient = creditor if creditor is not None and not creditor.is_ai else None
    for property_id in assets_of(debtor.id, properties):
        try:
            if recipient is not None:
                await service.transfer_property(code, debtor.id, recipient.id, property_id)
            else:
                await service.return_property(code, debtor.id, property_id)
        except ServiceError as e:
            logger.warning(f"Could not settle property {property_id} of {debtor.id}: {e}")
    return recipient
