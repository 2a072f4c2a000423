"""
Rent and valuation rules used by the local game service.
"""
from typing import List

from tycoon.shared.constants import COLOR_GROUPS
from tycoon.shared.enums import SpaceType
from tycoon.shared.models import GameProperty, Player, Property


def _owned_count(owner: str, ids: List[int], properties: List[GameProperty]) -> int:
    return sum(1 for r in properties if r.id in ids and r.owner == owner)


def calculate_rent(square: Property, record: GameProperty, properties: List[GameProperty],
                   dice_total: int = 0) -> int:
    """
    Rent owed for landing on an owned square.

    Args:
        square: Static square data
        record: Ownership record of the square
        properties: All ownership records (for group and set counts)
        dice_total: Pips of the landing roll, used for utilities

    Returns:
        Rent amount, 0 when unowned or mortgaged
    """
    if record.owner is None or record.mortgaged:
        return 0

    if square.type == SpaceType.RAILWAY:
        count = _owned_count(record.owner, COLOR_GROUPS["railroad"], properties)
        return 25 * (2 ** (count - 1)) if count else 0

    if square.type == SpaceType.UTILITY:
        count = _owned_count(record.owner, COLOR_GROUPS["utility"], properties)
        multiplier = 10 if count >= 2 else 4
        return dice_total * multiplier

    if record.development > 0:
        return square.rent_for(record.development)

    group_ids = COLOR_GROUPS.get(square.color, [])
    if group_ids and _owned_count(record.owner, group_ids, properties) == len(group_ids):
        return square.rent_site_only * 2
    return square.rent_site_only


def net_worth(player: Player, properties: List[GameProperty]) -> int:
    """Cash plus property value (half for mortgaged) plus buildings at cost."""
    total = player.balance
    for record in properties:
        if record.owner != player.id:
            continue
        square = Property.from_board(record.id)
        total += square.price // 2 if record.mortgaged else square.price
        total += record.development * square.cost_of_house
    return total
