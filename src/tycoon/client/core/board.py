"""
Static board topology: squares, color groups and ownership queries.
"""
from functools import lru_cache
from typing import Dict, List, Optional

from tycoon.shared.constants import BOARD_SIZE, DEFAULT_LANDING_RANK, LANDING_RANK
from tycoon.shared.models import ColorGroup, GameProperty, Property, color_groups

_GROUPS: Dict[str, ColorGroup] = color_groups()
_GROUP_BY_ID: Dict[int, ColorGroup] = {
    prop_id: group for group in _GROUPS.values() for prop_id in group.ids
}


@lru_cache(maxsize=None)
def square_at(position: int) -> Property:
    """
    Get the static square at a board position.

    Raises:
        ValueError: position outside 0..39
    """
    if not 0 <= position < BOARD_SIZE:
        raise ValueError(f"Position out of range: {position}")
    return Property.from_board(position)


def group_of(property_id: int) -> Optional[ColorGroup]:
    """Color group a square belongs to, or None for non-property squares."""
    return _GROUP_BY_ID.get(property_id)


def group(name: str) -> ColorGroup:
    return _GROUPS[name]


def all_groups() -> List[ColorGroup]:
    return list(_GROUPS.values())


def is_purchasable(position: int) -> bool:
    return square_at(position).is_purchasable


def landing_rank(position: int) -> int:
    return LANDING_RANK.get(position, DEFAULT_LANDING_RANK)


def records_by_id(properties: List[GameProperty]) -> Dict[int, GameProperty]:
    return {p.id: p for p in properties}


def owned_in_group(group_: ColorGroup, owner: str, properties: List[GameProperty]) -> int:
    """Count members of a group held by an owner."""
    by_id = records_by_id(properties)
    return sum(
        1 for prop_id in group_.ids
        if prop_id in by_id and by_id[prop_id].owner == owner
    )


def is_group_complete(group_: ColorGroup, owner: str, properties: List[GameProperty]) -> bool:
    """A group is complete when one owner holds every member and none is mortgaged."""
    by_id = records_by_id(properties)
    for prop_id in group_.ids:
        record = by_id.get(prop_id)
        if record is None or record.owner != owner or record.mortgaged:
            return False
    return True
