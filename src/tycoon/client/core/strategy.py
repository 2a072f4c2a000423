"""
AI strategic layer.

Pure decision helpers for autonomous players: which color groups are
complete or close to complete, what trade to propose, whether to accept
an incoming trade, where to build and what to redeem from mortgage.
Nothing here talks to the service; the autopilot executes the plans.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from tycoon.client.core.board import all_groups, group, group_of, is_group_complete, records_by_id, square_at
from tycoon.shared.constants import (
    AI_UNMORTGAGE_MIN_BALANCE,
    BUILD_PRIORITY,
    MAX_DEVELOPMENT,
    MAX_TRADE_ATTEMPTS,
    TRADE_ACCEPT_THRESHOLD,
    TRADE_CASH_RESERVE,
    TRADE_COMPLETING_MULTIPLIER,
    TRADE_OFFERED_PROPERTY_WEIGHT,
    TRADE_PARTIAL_MULTIPLIER,
    TRADE_SECOND_TO_LAST_BONUS,
    TRADE_THIRD_TO_LAST_BONUS,
    UNMORTGAGE_RATE,
)
from tycoon.shared.models import GameProperty, Player, TradeOffer


def _priority(group_name: str) -> int:
    try:
        return BUILD_PRIORITY.index(group_name)
    except ValueError:
        return len(BUILD_PRIORITY)


def complete_groups(owner: str, properties: List[GameProperty]) -> List[str]:
    """
    Buildable groups the owner holds outright with nothing mortgaged.

    Returns:
        Group names in build-priority order
    """
    complete = [
        grp.name for grp in all_groups()
        if grp.is_buildable and is_group_complete(grp, owner, properties)
    ]
    return sorted(complete, key=_priority)


@dataclass
class MissingProperty:
    id: int
    name: str
    owner: Optional[str]


@dataclass
class Opportunity:
    """A color group the actor is one or two squares away from."""

    group: str
    needs: int
    missing: List[MissingProperty] = field(default_factory=list)


def near_complete_opportunities(owner: str, properties: List[GameProperty]) -> List[Opportunity]:
    """Groups missing exactly 1 or 2 members, fewest missing first."""
    by_id = records_by_id(properties)
    opportunities = []
    for grp in all_groups():
        if not grp.is_buildable:
            continue
        missing_ids = [
            prop_id for prop_id in grp.ids
            if prop_id not in by_id or by_id[prop_id].owner != owner
        ]
        needs = len(missing_ids)
        if needs not in (1, 2):
            continue
        missing = [
            MissingProperty(
                id=prop_id,
                name=square_at(prop_id).name,
                owner=by_id[prop_id].owner if prop_id in by_id else None,
            )
            for prop_id in missing_ids
        ]
        opportunities.append(Opportunity(group=grp.name, needs=needs, missing=missing))

    opportunities.sort(key=lambda o: (o.needs, _priority(o.group)))
    return opportunities


def fair_cash_offer(price: int, completes_set: bool) -> int:
    multiplier = TRADE_COMPLETING_MULTIPLIER if completes_set else TRADE_PARTIAL_MULTIPLIER
    return math.floor(price * multiplier)


def property_to_offer(owner: str, properties: List[GameProperty],
                      exclude_groups: Tuple[str, ...] = ()) -> Optional[int]:
    """Cheapest undeveloped holding outside the excluded groups."""
    candidates = []
    for record in properties:
        if record.owner != owner or record.development > 0:
            continue
        grp = group_of(record.id)
        if grp is None or grp.name in exclude_groups:
            continue
        candidates.append(record.id)
    if not candidates:
        return None
    return min(candidates, key=lambda prop_id: square_at(prop_id).price)


@dataclass
class TradePlan:
    """A trade the actor wants to send, not yet created on the service."""

    target: str
    group: str
    offered_properties: List[int]
    offered_cash: int
    requested_properties: List[int]
    requested_cash: int = 0

    def to_payload(self, proposer: str) -> dict:
        return {
            "proposer": proposer,
            "target": self.target,
            "offered_properties": list(self.offered_properties),
            "offered_cash": self.offered_cash,
            "requested_properties": list(self.requested_properties),
            "requested_cash": self.requested_cash,
        }


def plan_trades(actor: Player, players: List[Player], properties: List[GameProperty],
                max_attempts: int = MAX_TRADE_ATTEMPTS) -> List[TradePlan]:
    """
    Synthesize trade proposals for near-complete groups.

    Only squares held by another player still in the game are targeted.
    When cash cannot cover the offer plus the reserve, the cheapest
    eligible holding outside the target group is added to the offer.
    """
    present = {p.id for p in players}
    plans: List[TradePlan] = []
    for opportunity in near_complete_opportunities(actor.id, properties):
        for missing in opportunity.missing:
            if len(plans) >= max_attempts:
                return plans
            if not missing.owner or missing.owner == actor.id or missing.owner not in present:
                continue
            price = square_at(missing.id).price or 200
            cash = fair_cash_offer(price, opportunity.needs == 1)
            offered: List[int] = []
            if actor.balance < cash + TRADE_CASH_RESERVE:
                extra = property_to_offer(actor.id, properties, (opportunity.group,))
                if extra is not None:
                    offered.append(extra)
            plans.append(TradePlan(
                target=missing.owner,
                group=opportunity.group,
                offered_properties=offered,
                offered_cash=cash,
                requested_properties=[missing.id],
            ))
    return plans


def trade_favorability(offer: TradeOffer, receiver: str, properties: List[GameProperty]) -> float:
    """
    Score a trade from the receiver's side.

    Cash difference, plus the value of each requested square (boosted when
    the receiver holds all but one or two of its group), minus the
    weighted value of each offered square.
    """
    by_id = records_by_id(properties)
    score: float = offer.offered_cash - offer.requested_cash

    for prop_id in offer.requested_properties:
        square = square_at(prop_id)
        score += square.price
        grp = group_of(prop_id)
        if grp is None or not grp.is_buildable:
            continue
        held = sum(
            1 for gid in grp.ids
            if gid in by_id and by_id[gid].owner == receiver
        )
        if held == len(grp) - 1:
            score += TRADE_SECOND_TO_LAST_BONUS
        elif held == len(grp) - 2:
            score += TRADE_THIRD_TO_LAST_BONUS

    for prop_id in offer.offered_properties:
        score -= square_at(prop_id).price * TRADE_OFFERED_PROPERTY_WEIGHT

    return score


def should_accept_trade(offer: TradeOffer, receiver: str, properties: List[GameProperty]) -> bool:
    return trade_favorability(offer, receiver, properties) >= TRADE_ACCEPT_THRESHOLD


@dataclass
class BuildStep:
    group: str
    property_ids: List[int]
    house_cost: int


def plan_build(player: Player, properties: List[GameProperty]) -> List[BuildStep]:
    """
    Candidate build passes over complete groups, in priority order.

    A group qualifies when its development is even (max within one of
    min, min below a hotel) and the balance covers a full round of houses.
    Each step lists the least developed members.
    """
    by_id = records_by_id(properties)
    steps = []
    for group_name in complete_groups(player.id, properties):
        grp = group(group_name)
        levels: Dict[int, int] = {prop_id: by_id[prop_id].development for prop_id in grp.ids}
        low, high = min(levels.values()), max(levels.values())
        if high > low + 1 or low >= MAX_DEVELOPMENT:
            continue
        house_cost = square_at(grp.ids[0]).cost_of_house
        if house_cost <= 0:
            continue
        if player.balance // house_cost < len(grp):
            continue
        steps.append(BuildStep(
            group=group_name,
            property_ids=[prop_id for prop_id, level in levels.items() if level == low],
            house_cost=house_cost,
        ))
    return steps


def unmortgage_cost(property_id: int) -> int:
    return math.floor(square_at(property_id).price / 2 * UNMORTGAGE_RATE)


def pick_unmortgage(player: Player, properties: List[GameProperty]) -> Optional[int]:
    """Highest base-rent mortgaged holding, when rich enough to redeem it."""
    if player.balance <= AI_UNMORTGAGE_MIN_BALANCE:
        return None
    mortgaged = [
        r.id for r in properties
        if r.owner == player.id and r.mortgaged and square_at(r.id).price
    ]
    if not mortgaged:
        return None
    target = max(mortgaged, key=lambda prop_id: square_at(prop_id).rent_site_only)
    if player.balance < unmortgage_cost(target):
        return None
    return target
