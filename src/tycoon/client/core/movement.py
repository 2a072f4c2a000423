"""
Dice and movement resolution.

Turns a roll into a destination square and the per-step path used to
pace the token animation.
"""
from dataclasses import dataclass, field
from typing import List

from tycoon.shared.constants import BOARD_SIZE
from tycoon.client.core.dice import DiceResult


def move(position: int, steps: int) -> int:
    return (position + steps) % BOARD_SIZE


def path_between(position: int, steps: int) -> List[int]:
    """Every square visited, one per pip, ending on the destination."""
    return [(position + i) % BOARD_SIZE for i in range(1, steps + 1)]


@dataclass
class MoveResolution:
    """Outcome of resolving a roll from a given position."""

    start: int
    destination: int
    steps: int
    path: List[int] = field(default_factory=list)
    rolled_double: bool = False
    extra_roll: bool = False      # doubles outside jail: roll again before moving
    pending_roll: int = 0         # carry to add to the next roll
    jail_escape: bool = False
    needs_jail_check: bool = False  # jailed non-double, the service decides

    @property
    def passed_go(self) -> bool:
        return self.steps > 0 and self.start + self.steps >= BOARD_SIZE


def resolve_move(position: int, roll: DiceResult, in_jail: bool, pending_roll: int = 0) -> MoveResolution:
    """
    Resolve a roll.

    Outside jail a double is banked into pending_roll and the actor rolls
    again without moving; the next non-double moves by its total plus the
    carry. In jail a double escapes and moves by the rolled total at once,
    while a non-double stays put until the service reports the outcome.

    Args:
        position: Current square
        roll: The dice result
        in_jail: Whether the actor is flagged as jailed
        pending_roll: Pips carried from earlier doubles this turn

    Returns:
        MoveResolution describing the move
    """
    if in_jail:
        if roll.is_double:
            return MoveResolution(
                start=position,
                destination=move(position, roll.total),
                steps=roll.total,
                path=path_between(position, roll.total),
                rolled_double=True,
                jail_escape=True,
            )
        return MoveResolution(
            start=position,
            destination=position,
            steps=0,
            needs_jail_check=True,
        )

    if roll.is_double:
        return MoveResolution(
            start=position,
            destination=position,
            steps=0,
            rolled_double=True,
            extra_roll=True,
            pending_roll=pending_roll + roll.total,
        )

    steps = roll.total + pending_roll
    return MoveResolution(
        start=position,
        destination=move(position, steps),
        steps=steps,
        path=path_between(position, steps),
    )
