"""
Landing and acquisition policy.

Decides whether a buy prompt is shown for the landed square and, for
autonomous players, whether to buy it.
"""
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional

from tycoon.client.core.board import group_of, landing_rank, owned_in_group, records_by_id, square_at
from tycoon.shared.constants import (
    AI_BUY_CASH_MULTIPLIER,
    AI_BUY_SCORE_THRESHOLD,
    BUY_SCORE_MAX,
    BUY_SCORE_MIN,
)
from tycoon.shared.models import GameProperty, Player, Property


@dataclass(frozen=True)
class BuyPrompt:
    """Purchase offer shown after landing on an unowned property."""

    property_id: int
    name: str
    price: int
    affordable: bool

    def to_dict(self) -> dict:
        return {
            "property_id": self.property_id,
            "name": self.name,
            "price": self.price,
            "affordable": self.affordable,
        }


def is_buy_eligible(position: int, properties: List[GameProperty]) -> bool:
    """Unowned and of a purchasable type."""
    square = square_at(position)
    if not square.is_purchasable:
        return False
    record = records_by_id(properties).get(position)
    return record is None or record.owner is None


def buy_prompt_for(position: int, properties: List[GameProperty], balance: int) -> Optional[BuyPrompt]:
    if not is_buy_eligible(position, properties):
        return None
    square = square_at(position)
    return BuyPrompt(
        property_id=square.id,
        name=square.name,
        price=square.price,
        affordable=balance >= square.price,
    )


def _owned_of_color(player_id: str, color: str, properties: List[GameProperty]) -> int:
    return sum(
        1 for record in properties
        if record.owner == player_id and square_at(record.id).color == color
    )


def calculate_buy_score(square: Property, player: Player, properties: List[GameProperty]) -> int:
    """
    Score how attractive a purchase is for an autonomous player.

    Args:
        square: The property being considered
        player: The would-be buyer
        properties: Current ownership records

    Returns:
        Score clamped to 0..95; non-purchasable squares score 0
    """
    if not square.is_purchasable or not square.price:
        return 0

    price = square.price
    cash = player.balance
    score = 30

    if cash < price * 1.5:
        score -= 80
    elif cash < price * 2:
        score -= 40
    elif cash > price * 4:
        score += 35
    elif cash > price * 3:
        score += 15

    group = group_of(square.id)
    by_id = records_by_id(properties)

    if group and group.is_buildable:
        owned = owned_in_group(group, player.id, properties)
        if owned == len(group) - 1:
            score += 120
        elif owned == len(group) - 2:
            score += 60
        elif owned >= 1:
            score += 25

    if square.color == "railroad":
        score += 22 * _owned_of_color(player.id, "railroad", properties)
    elif square.color == "utility":
        score += 28 * _owned_of_color(player.id, "utility", properties)

    score += 35 - landing_rank(square.id)

    roi = square.rent_site_only / price
    if roi > 0.14:
        score += 30
    elif roi > 0.10:
        score += 15

    # Deny an opponent who is one square away from the set
    if group and len(group) <= 3:
        holders = Counter(
            by_id[prop_id].owner for prop_id in group.ids
            if prop_id in by_id and by_id[prop_id].owner not in (None, player.id)
        )
        if holders and max(holders.values()) == len(group) - 1:
            score += 70

    return max(BUY_SCORE_MIN, min(BUY_SCORE_MAX, score))


def should_ai_buy(square: Property, player: Player, properties: List[GameProperty]) -> bool:
    score = calculate_buy_score(square, player, properties)
    return score >= AI_BUY_SCORE_THRESHOLD and player.balance > square.price * AI_BUY_CASH_MULTIPLIER
