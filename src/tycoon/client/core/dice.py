"""
Dice rolling.

A total of 12 can optionally be treated as a forced reroll: the roll is
discarded, nothing moves and the actor rolls again.
"""
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class DiceResult:
    """Result of rolling two dice."""

    die1: int
    die2: int
    total: int
    is_double: bool

    @classmethod
    def of(cls, die1: int, die2: int) -> "DiceResult":
        return cls(die1, die2, die1 + die2, die1 == die2)

    def to_dict(self) -> dict:
        return {
            "die1": self.die1,
            "die2": self.die2,
            "total": self.total,
            "is_double": self.is_double,
        }


class Dice:
    """Two six-sided dice."""

    def __init__(self, seed: Optional[int] = None, reroll_on_twelve: bool = False):
        self._rng = random.Random(seed)
        self.reroll_on_twelve = reroll_on_twelve

    def _throw(self) -> Tuple[int, int]:
        return self._rng.randint(1, 6), self._rng.randint(1, 6)

    def roll(self) -> Optional[DiceResult]:
        """
        Roll both dice.

        Returns:
            The result, or None when the roll must be thrown again
        """
        result = DiceResult.of(*self._throw())
        if self.reroll_on_twelve and result.total == 12:
            return None
        return result


class ScriptedDice(Dice):
    """Dice that replay a fixed sequence of throws, then fall back to random."""

    def __init__(self, throws: Iterable[Tuple[int, int]], seed: Optional[int] = None,
                 reroll_on_twelve: bool = False):
        super().__init__(seed=seed, reroll_on_twelve=reroll_on_twelve)
        self._throws: List[Tuple[int, int]] = list(throws)

    def _throw(self) -> Tuple[int, int]:
        if self._throws:
            return self._throws.pop(0)
        return super()._throw()


def total_to_dice(total: int) -> Tuple[int, int]:
    """Split an observed total back into a plausible pair of faces."""
    if total == 2:
        return 1, 1
    if total == 12:
        return 6, 6
    die1 = total // 2
    return die1, total - die1
