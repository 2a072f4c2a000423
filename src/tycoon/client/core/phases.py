"""
Turn state machine.

A single phase value describes where the local actor is in its turn.
Flags the presentation layer needs (buy prompt shown, jail choice
required, turn end scheduled, rolling) are read off the phase instead of
being tracked separately.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from tycoon.client.core.dice import DiceResult
from tycoon.shared.enums import TurnPhase

logger = logging.getLogger(__name__)

P = TurnPhase

# Any live phase may drop to OBSERVING when reconciliation shows the turn moved on
TRANSITIONS: Dict[TurnPhase, FrozenSet[TurnPhase]] = {
    P.OBSERVING: frozenset({P.AWAITING_ROLL, P.JAIL_AWAITING_CHOICE, P.GAME_OVER}),
    P.AWAITING_ROLL: frozenset({P.ROLLING, P.JAIL_AWAITING_CHOICE, P.TURN_COMPLETING, P.OBSERVING, P.GAME_OVER}),
    P.ROLLING: frozenset({P.MOVING, P.AWAITING_ROLL, P.TURN_COMPLETING, P.OBSERVING, P.GAME_OVER}),
    P.MOVING: frozenset({P.LANDED, P.TURN_COMPLETING, P.OBSERVING, P.GAME_OVER}),
    P.LANDED: frozenset({P.AWAITING_BUY_DECISION, P.TURN_COMPLETING, P.OBSERVING, P.GAME_OVER}),
    P.AWAITING_BUY_DECISION: frozenset({P.TURN_COMPLETING, P.OBSERVING, P.GAME_OVER}),
    P.TURN_COMPLETING: frozenset({P.OBSERVING, P.GAME_OVER}),
    P.JAIL_AWAITING_CHOICE: frozenset({P.JAIL_ROLLING, P.AWAITING_ROLL, P.TURN_COMPLETING, P.OBSERVING, P.GAME_OVER}),
    P.JAIL_ROLLING: frozenset({
        P.MOVING, P.JAIL_CHOICE_REQUIRED, P.JAIL_AWAITING_CHOICE, P.TURN_COMPLETING, P.OBSERVING, P.GAME_OVER,
    }),
    P.JAIL_CHOICE_REQUIRED: frozenset({P.AWAITING_ROLL, P.TURN_COMPLETING, P.OBSERVING, P.GAME_OVER}),
    P.GAME_OVER: frozenset(),
}

ROLLED_PHASES = frozenset({P.MOVING, P.LANDED, P.AWAITING_BUY_DECISION, P.TURN_COMPLETING, P.JAIL_CHOICE_REQUIRED})


class InvalidPhaseTransition(Exception):
    """Raised when code asks for a transition the table does not allow."""

    def __init__(self, current: TurnPhase, target: TurnPhase):
        super().__init__(f"Illegal turn phase transition {current.value} -> {target.value}")
        self.current = current
        self.target = target


# (next player id, turn_start) identifies one turn
TurnKey = Tuple[Optional[str], Optional[float]]


@dataclass
class TurnContext:
    """Per-turn scratch state, discarded when the next turn begins."""

    key: TurnKey = (None, None)
    pending_roll: int = 0
    strategy_ran: bool = False
    trade_attempts: int = 0
    last_roll: Optional[DiceResult] = None
    landed_position: Optional[int] = None
    roll_acknowledged: bool = False
    turn_ended: bool = False
    timeout_recorded: bool = False


class TurnStateMachine:
    """Owns the current phase and validates every change to it."""

    def __init__(self, on_change: Optional[Callable[[TurnPhase, TurnPhase], None]] = None):
        self._phase = TurnPhase.OBSERVING
        self._on_change = on_change
        self.context = TurnContext()
        self.history: List[TurnPhase] = [self._phase]

    @property
    def phase(self) -> TurnPhase:
        return self._phase

    def can_transition(self, target: TurnPhase) -> bool:
        return target in TRANSITIONS[self._phase]

    def transition(self, target: TurnPhase) -> None:
        """
        Move to a new phase.

        Raises:
            InvalidPhaseTransition: the move is not in the table
        """
        if target == self._phase:
            return
        if not self.can_transition(target):
            raise InvalidPhaseTransition(self._phase, target)
        previous = self._phase
        self._phase = target
        self.history.append(target)
        logger.debug(f"Turn phase {previous.value} -> {target.value}")
        if self._on_change:
            self._on_change(previous, target)

    def begin_turn(self, key: TurnKey, jailed: bool) -> None:
        """Start a fresh local turn for the actor."""
        if self._phase != TurnPhase.OBSERVING:
            self.transition(TurnPhase.OBSERVING)
        self.context = TurnContext(key=key)
        self.transition(TurnPhase.JAIL_AWAITING_CHOICE if jailed else TurnPhase.AWAITING_ROLL)

    def observe(self, key: TurnKey) -> None:
        """Someone else is acting; track their turn without owning it."""
        if self._phase not in (TurnPhase.OBSERVING, TurnPhase.GAME_OVER):
            self.transition(TurnPhase.OBSERVING)
        if self.context.key != key:
            self.context = TurnContext(key=key)

    def finish_game(self) -> None:
        if self._phase != TurnPhase.GAME_OVER:
            self.transition(TurnPhase.GAME_OVER)

    # Derived flags

    @property
    def buy_prompted(self) -> bool:
        return self._phase == TurnPhase.AWAITING_BUY_DECISION

    @property
    def jail_choice_required(self) -> bool:
        return self._phase == TurnPhase.JAIL_CHOICE_REQUIRED

    @property
    def turn_end_scheduled(self) -> bool:
        return self._phase == TurnPhase.TURN_COMPLETING

    @property
    def can_roll(self) -> bool:
        return self._phase in (TurnPhase.AWAITING_ROLL, TurnPhase.JAIL_AWAITING_CHOICE)

    @property
    def has_rolled(self) -> bool:
        return self._phase in ROLLED_PHASES

    @property
    def is_acting(self) -> bool:
        return self._phase not in (TurnPhase.OBSERVING, TurnPhase.GAME_OVER)
