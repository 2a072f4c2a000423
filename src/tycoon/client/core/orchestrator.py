"""
Turn orchestrator.

One instance per active game session. It owns the turn state machine,
the action lock, the turn timers and the reconciliation listener, and
turns intents (roll, buy, skip, jail choices, end turn) into calls on the
authoritative game service. Local state is a cache of the last fetched
snapshot; nothing is committed without a confirmed round-trip.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from tycoon.client.config import settings as default_settings
from tycoon.client.core.acquisition import BuyPrompt, buy_prompt_for
from tycoon.client.core.dice import Dice, DiceResult, total_to_dice
from tycoon.client.core.jail import JailAffordances, check_jail_option, jail_affordances, preferred_card
from tycoon.client.core.liquidation import settle_bankruptcy
from tycoon.client.core.movement import MoveResolution, resolve_move
from tycoon.client.core.notices import ActionResult, NotificationSink, Notifier
from tycoon.client.core.phases import TurnKey, TurnStateMachine
from tycoon.client.core.sync import ActionLock, Reconciler
from tycoon.client.core.timers import InactivityTimer, TurnTimer
from tycoon.client.core.votes import VoteDesk
from tycoon.client.network.service import GameService, ServiceError
from tycoon.shared.constants import JAIL_FINE, SALARY_AMOUNT
from tycoon.shared.enums import ActionLockKind, GameStatus, JailCardType, JailOption, TurnPhase
from tycoon.shared.models import GameSnapshot, Player

logger = logging.getLogger(__name__)


@dataclass
class TurnView:
    """What the presentation layer needs to draw the current turn."""

    phase: TurnPhase
    current_player_id: Optional[str]
    is_my_turn: bool
    display_roll: Optional[Tuple[int, int]] = None
    animated_positions: Dict[str, int] = field(default_factory=dict)
    buy_prompt: Optional[BuyPrompt] = None
    jail: JailAffordances = field(default_factory=JailAffordances)
    turn_time_left: Optional[float] = None
    pending_roll: int = 0
    vote_statuses: Dict[str, dict] = field(default_factory=dict)
    networth_status: Optional[dict] = None
    game_result: Optional[dict] = None
    removed: bool = False

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "current_player_id": self.current_player_id,
            "is_my_turn": self.is_my_turn,
            "display_roll": list(self.display_roll) if self.display_roll else None,
            "animated_positions": dict(self.animated_positions),
            "buy_prompt": self.buy_prompt.to_dict() if self.buy_prompt else None,
            "jail": self.jail.to_dict(),
            "turn_time_left": self.turn_time_left,
            "pending_roll": self.pending_roll,
            "vote_statuses": dict(self.vote_statuses),
            "networth_status": self.networth_status,
            "game_result": self.game_result,
            "removed": self.removed,
        }


ViewListener = Callable[[TurnView], None]


class TurnOrchestrator:
    """
    Drives the turns this client is responsible for.

    The local player's turns are always driven here. With drive_ai set,
    turns of autonomous players (bot usernames) are driven too, which is
    how offline games against the computer run.
    """

    def __init__(self, service: GameService, code: str, player_id: str, dice: Optional[Dice] = None,
                 settings=None, sink: Optional[NotificationSink] = None,
                 clock: Callable[[], float] = time.time, drive_ai: bool = False):
        self.service = service
        self.code = code
        self.player_id = player_id
        self.settings = settings or default_settings
        self.dice = dice or Dice(reroll_on_twelve=self.settings.reroll_on_twelve)
        self.drive_ai = drive_ai
        self.clock = clock

        self.notify = Notifier(sink)
        self.machine = TurnStateMachine(on_change=self._phase_changed)
        self.lock = ActionLock()
        self.reconciler = Reconciler(service, code, min_gap=self.settings.poll_min_gap)
        self.reconciler.add_listener(self.apply_snapshot)
        self.turn_timer = TurnTimer(self.settings.turn_total_seconds, clock)
        self.inactivity = InactivityTimer(self.settings.inactivity_seconds, clock)
        self.votes = VoteDesk(self)

        self.snapshot: Optional[GameSnapshot] = None
        self.animated_positions: Dict[str, int] = {}
        self.buy_prompt: Optional[BuyPrompt] = None
        self.processing_bankruptcy: Set[str] = set()
        self.removed = False
        self.game_result: Optional[dict] = None
        self._end_in_flight = False
        self._finish_requested = False
        self._listeners: List[ViewListener] = []

    # ------------------------------------------------------------------
    # Who is acting
    # ------------------------------------------------------------------

    @property
    def current_player(self) -> Optional[Player]:
        return self.snapshot.current_player if self.snapshot else None

    @property
    def me(self) -> Optional[Player]:
        return self.snapshot.player(self.player_id) if self.snapshot else None

    @property
    def is_my_turn(self) -> bool:
        return self.snapshot is not None and self.snapshot.current_player_id == self.player_id

    def controls(self, player: Optional[Player]) -> bool:
        if player is None:
            return False
        if player.id == self.player_id:
            return not self.removed
        return self.drive_ai and bool(player.is_ai)

    def is_autonomous(self, player: Optional[Player]) -> bool:
        return self.controls(player) and bool(player.is_ai)

    @property
    def actor(self) -> Optional[Player]:
        """The current player, when this client drives its turn."""
        player = self.current_player
        return player if self.controls(player) else None

    def _still(self, key: TurnKey) -> bool:
        """The turn an operation started in is still the one being tracked."""
        return self.machine.context.key == key and self.machine.is_acting

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: ViewListener) -> None:
        self._listeners.append(listener)

    def _emit(self) -> None:
        if not self._listeners:
            return
        view = self.view()
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception as e:
                logger.error(f"View listener failed: {e}", exc_info=True)

    def _phase_changed(self, previous: TurnPhase, current: TurnPhase) -> None:
        self._emit()

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def reconcile(self, force: bool = False) -> Optional[GameSnapshot]:
        return await self.reconciler.refresh(force=force)

    def apply_snapshot(self, snapshot: GameSnapshot) -> None:
        """
        Replace local state with an authoritative snapshot.

        A change of (current player, turn_start) starts a fresh turn: the
        machine begins the actor's turn when this client drives it, and
        otherwise observes.
        """
        was_present = self.snapshot is not None and self.snapshot.player(self.player_id) is not None
        self.snapshot = snapshot
        if self.machine.phase != TurnPhase.MOVING:
            self.animated_positions.clear()

        if was_present and snapshot.player(self.player_id) is None and not self.removed:
            self.removed = True
            logger.info(f"Player {self.player_id} is no longer in game {self.code}")
            self.notify.error("You have been removed from the game")

        if snapshot.status == GameStatus.FINISHED:
            if self.game_result is None:
                self.game_result = {"winner_id": snapshot.winner_id, "valid_win": None}
            self.machine.finish_game()
            self._emit()
            return

        current = snapshot.current_player
        key: TurnKey = (current.id, current.turn_start) if current else (None, None)
        if current is not None:
            self.turn_timer.start(current.turn_start)
            if current.rolled is not None:
                self.turn_timer.freeze()

        if key != self.machine.context.key:
            self.inactivity.disarm()
            self.buy_prompt = None
            if current is not None and self.controls(current):
                logger.info(f"Turn of {current.username} begins (jailed={current.in_jail})")
                self.machine.begin_turn(key, jailed=current.in_jail)
            else:
                self.machine.observe(key)
        self._emit()

    # ------------------------------------------------------------------
    # Rolling and movement
    # ------------------------------------------------------------------

    async def roll(self) -> ActionResult:
        """
        Roll for the actor and carry the result through movement and landing.

        Returns:
            ActionResult; failed silently when rolling is not possible now
        """
        actor = self.actor
        if actor is None or not self.machine.can_roll:
            return ActionResult.fail("Cannot roll now")
        if self.is_autonomous(actor) and not self.machine.context.strategy_ran:
            return ActionResult.fail("Strategy pass has not run yet")
        if not self.lock.acquire(ActionLockKind.ROLL):
            return ActionResult.fail("Another action is in progress")

        key = self.machine.context.key
        try:
            result = await self._roll_locked(actor, key)
        finally:
            self.lock.release(ActionLockKind.ROLL)

        if result.data.get("force_end") and self.machine.context.key == key:
            await self.end_turn()
        return result

    async def _roll_locked(self, actor: Player, key: TurnKey) -> ActionResult:
        jailed = self.machine.phase == TurnPhase.JAIL_AWAITING_CHOICE
        self.machine.transition(TurnPhase.JAIL_ROLLING if jailed else TurnPhase.ROLLING)
        self.inactivity.touch()
        if self.settings.roll_delay:
            await asyncio.sleep(self.settings.roll_delay)
            if not self._still(key):
                return ActionResult.fail("Turn moved on")

        roll = self.dice.roll()
        if roll is None:
            self.machine.transition(TurnPhase.JAIL_AWAITING_CHOICE if jailed else TurnPhase.AWAITING_ROLL)
            self.notify("Rolled 12, roll again")
            return ActionResult.ok("Reroll", reroll=True)

        ctx = self.machine.context
        ctx.last_roll = roll
        resolution = resolve_move(actor.position, roll, jailed, ctx.pending_roll)
        logger.info(f"{actor.username} rolled {roll.die1}+{roll.die2}={roll.total}"
                    f"{' (double)' if roll.is_double else ''}{' in jail' if jailed else ''}")

        if resolution.extra_roll:
            ctx.pending_roll = resolution.pending_roll
            self.machine.transition(TurnPhase.AWAITING_ROLL)
            self.notify(f"{actor.username} rolled doubles, roll again")
            return ActionResult.ok("Doubles", roll=roll.to_dict(), pending_roll=ctx.pending_roll)
        if resolution.needs_jail_check:
            return await self._roll_in_jail(actor, roll, key)
        return await self._move(actor, roll, resolution, key)

    def _acknowledge_roll(self) -> None:
        self.machine.context.roll_acknowledged = True
        self.turn_timer.freeze()
        self.inactivity.arm()

    async def _move(self, actor: Player, roll: DiceResult, resolution: MoveResolution,
                    key: TurnKey) -> ActionResult:
        self.machine.transition(TurnPhase.MOVING)
        for square in resolution.path:
            self.animated_positions[actor.id] = square
            if self.settings.move_step_delay:
                await asyncio.sleep(self.settings.move_step_delay)
        self._emit()

        try:
            response = await self.service.change_position(
                self.code, actor.id, resolution.destination, resolution.steps, roll.is_double
            )
        except ServiceError as e:
            logger.error(f"Move of {actor.id} to {resolution.destination} failed: {e}")
            self.animated_positions.pop(actor.id, None)
            self.notify.error(f"Move failed: {e.message}")
            if self._still(key):
                self.machine.transition(TurnPhase.TURN_COMPLETING)
            return ActionResult.fail(e.message, force_end=True)

        if not self._still(key):
            return ActionResult.fail("Turn moved on")
        self.machine.context.pending_roll = 0
        self._acknowledge_roll()
        landed = int(response.get("position", resolution.destination))
        self.machine.context.landed_position = landed
        self.machine.transition(TurnPhase.LANDED)

        await self.reconcile(force=True)
        self.animated_positions.pop(actor.id, None)
        if not self._still(key):
            return ActionResult.ok(f"Moved to {landed}", position=landed, roll=roll.to_dict())

        fresh = self.snapshot.player(actor.id) or actor
        self._report_landing(fresh, response)
        if resolution.passed_go:
            self.notify(f"{fresh.username} passed GO and collected ${SALARY_AMOUNT}")
        prompt = None
        if not response.get("sent_to_jail"):
            prompt = buy_prompt_for(landed, self.snapshot.properties, fresh.balance)

        if prompt is not None:
            self.buy_prompt = prompt
            self.machine.transition(TurnPhase.AWAITING_BUY_DECISION)
            if not prompt.affordable and not fresh.is_ai:
                self.notify.error(f"Insufficient funds to buy {prompt.name} (${prompt.price})")
        else:
            self.machine.transition(TurnPhase.TURN_COMPLETING)
        return ActionResult.ok(
            f"Moved to {landed}",
            position=landed,
            roll=roll.to_dict(),
            buy_prompt=prompt.to_dict() if prompt else None,
        )

    def _report_landing(self, player: Player, response: dict) -> None:
        if response.get("sent_to_jail"):
            self.notify(f"{player.username} was sent to jail")
        if response.get("rent_paid"):
            self.notify(f"{player.username} paid ${response['rent_paid']} rent")
        if response.get("tax"):
            self.notify(f"{player.username} paid ${response['tax']} tax")
        card = response.get("card")
        if card:
            self.notify(f"{player.username} drew: {card.get('text', '')}")
        if player.balance < 0 and not player.is_ai:
            self.notify.error("You are in debt: raise funds or declare bankruptcy")

    async def _roll_in_jail(self, actor: Player, roll: DiceResult, key: TurnKey) -> ActionResult:
        try:
            response = await self.service.change_position(
                self.code, actor.id, actor.position, roll.total, False
            )
        except ServiceError as e:
            logger.error(f"Jail roll of {actor.id} failed: {e}")
            self.notify.error(f"Roll failed: {e.message}")
            if self._still(key):
                self.machine.transition(TurnPhase.TURN_COMPLETING)
            return ActionResult.fail(e.message, force_end=True)

        if not self._still(key):
            return ActionResult.fail("Turn moved on")
        self._acknowledge_roll()
        await self.reconcile(force=True)
        if not self._still(key):
            return ActionResult.fail("Turn moved on")

        if response.get("still_in_jail"):
            self.machine.transition(TurnPhase.JAIL_CHOICE_REQUIRED)
            if not actor.is_ai:
                self.notify(f"No doubles. Pay ${JAIL_FINE}, use a card or stay in jail")
            return ActionResult.ok("Still in jail", still_in_jail=True, roll=roll.to_dict())

        self.machine.transition(TurnPhase.TURN_COMPLETING)
        self.notify(f"{actor.username} paid ${JAIL_FINE} after three failed attempts and is free")
        return ActionResult.ok("Released from jail", released=True, roll=roll.to_dict())

    # ------------------------------------------------------------------
    # Buy decision
    # ------------------------------------------------------------------

    async def buy(self) -> ActionResult:
        actor = self.actor
        prompt = self.buy_prompt
        if actor is None or prompt is None or not self.machine.buy_prompted:
            return ActionResult.fail("Nothing to buy")
        if actor.balance < prompt.price:
            message = f"Insufficient funds to buy {prompt.name}"
            self.notify.error(message)
            return ActionResult.fail(message)

        key = self.machine.context.key
        self.inactivity.touch()
        try:
            data = await self.service.buy_property(self.code, actor.id, prompt.property_id)
        except ServiceError as e:
            self.notify.error(f"Could not buy {prompt.name}: {e.message}")
            return ActionResult.fail(e.message)

        self.notify.success(f"{actor.username} bought {prompt.name} for ${prompt.price}")
        if self._still(key):
            self.buy_prompt = None
            self.machine.transition(TurnPhase.TURN_COMPLETING)
        await self.reconcile(force=True)
        return ActionResult.ok(f"Bought {prompt.name}", **data)

    async def skip(self) -> ActionResult:
        if self.actor is None or not self.machine.buy_prompted:
            return ActionResult.fail("Nothing to skip")
        self.buy_prompt = None
        self.inactivity.touch()
        self.machine.transition(TurnPhase.TURN_COMPLETING)
        return ActionResult.ok("Skipped")

    # ------------------------------------------------------------------
    # Ending the turn
    # ------------------------------------------------------------------

    def _complete_turn(self) -> None:
        if not self.machine.is_acting:
            return
        if self.machine.phase != TurnPhase.TURN_COMPLETING:
            self.machine.transition(TurnPhase.TURN_COMPLETING)
        self.machine.transition(TurnPhase.OBSERVING)

    async def end_turn(self, timed_out: bool = False, player_id: Optional[str] = None) -> ActionResult:
        """
        End the current turn on the service.

        Idempotent: a second call while the first is in flight, or after it
        succeeded, is a successful no-op. The next turn starts when
        reconciliation shows the new current player.

        Args:
            timed_out: Report the end as a timeout strike
            player_id: Whose turn to end; defaults to the actor
        """
        ctx = self.machine.context
        if ctx.turn_ended or self._end_in_flight:
            return ActionResult.ok("Turn already ended", duplicate=True)

        if player_id is None:
            actor = self.actor
            if actor is None:
                return ActionResult.fail("Not your turn")
            if not timed_out and not (self.machine.has_rolled or ctx.roll_acknowledged):
                return ActionResult.fail("Roll before ending the turn")
            player_id = actor.id

        if not self.lock.acquire(ActionLockKind.END):
            return ActionResult.fail("Another action is in progress")
        self._end_in_flight = True
        try:
            response = await self.service.end_turn(self.code, player_id, timed_out)
        except ServiceError as e:
            logger.error(f"End turn for {player_id} failed: {e}")
            self.notify.error(f"Failed to end turn: {e.message}")
            return ActionResult.fail(e.message)
        finally:
            self._end_in_flight = False
            self.lock.release(ActionLockKind.END)

        ctx.turn_ended = True
        if self.machine.context is ctx:
            self._complete_turn()
        self.inactivity.disarm()
        self.buy_prompt = None
        logger.info(f"Turn of {player_id} ended{' (timed out)' if timed_out else ''}")
        await self.reconcile(force=True)
        return ActionResult.ok("Turn ended", **(response or {}))

    # ------------------------------------------------------------------
    # Jail
    # ------------------------------------------------------------------

    async def pay_fine(self) -> ActionResult:
        return await self._leave_jail(JailOption.PAY_FINE)

    async def use_card(self, card_type: Optional[JailCardType] = None) -> ActionResult:
        return await self._leave_jail(JailOption.USE_CARD, card_type)

    async def _leave_jail(self, option: JailOption, card_type: Optional[JailCardType] = None) -> ActionResult:
        actor = self.actor
        if actor is None or self.machine.phase not in (TurnPhase.JAIL_AWAITING_CHOICE,
                                                       TurnPhase.JAIL_CHOICE_REQUIRED):
            return ActionResult.fail("Not in jail")
        if option == JailOption.USE_CARD and card_type is None:
            card_type = preferred_card(actor)
        reason = check_jail_option(actor, option, card_type)
        if reason:
            self.notify.error(reason)
            return ActionResult.fail(reason)
        if not self.lock.acquire(ActionLockKind.ROLL):
            return ActionResult.fail("Another action is in progress")

        key = self.machine.context.key
        try:
            if option == JailOption.PAY_FINE:
                data = await self.service.pay_to_leave_jail(self.code, actor.id)
            else:
                data = await self.service.use_jail_card(self.code, actor.id, card_type)
        except ServiceError as e:
            self.notify.error(f"Could not leave jail: {e.message}")
            return ActionResult.fail(e.message)
        finally:
            self.lock.release(ActionLockKind.ROLL)

        if self._still(key):
            self.machine.transition(TurnPhase.AWAITING_ROLL)
        self.inactivity.touch()
        if option == JailOption.PAY_FINE:
            self.notify.success(f"Paid ${JAIL_FINE} to leave jail. You may now roll")
        else:
            self.notify.success("Used a Get Out of Jail Free card. You may now roll")
        await self.reconcile(force=True)
        return ActionResult.ok("Left jail", **(data or {}))

    async def stay(self) -> ActionResult:
        """Stay in jail after a failed roll; this ends the turn."""
        actor = self.actor
        if actor is None or not self.machine.jail_choice_required:
            return ActionResult.fail("No jail choice pending")
        if not self.lock.acquire(ActionLockKind.END):
            return ActionResult.fail("Another action is in progress")

        key = self.machine.context.key
        try:
            await self.service.stay_in_jail(self.code, actor.id)
        except ServiceError as e:
            self.notify.error(f"Could not stay in jail: {e.message}")
            return ActionResult.fail(e.message)
        finally:
            self.lock.release(ActionLockKind.END)

        if self._still(key):
            self.machine.transition(TurnPhase.TURN_COMPLETING)
        return await self.end_turn()

    # ------------------------------------------------------------------
    # Bankruptcy and game end
    # ------------------------------------------------------------------

    async def declare_bankruptcy(self, player_id: Optional[str] = None) -> ActionResult:
        """
        Settle a bankrupt player's holdings, end its turn and remove it.

        Re-entry for a player already being processed is rejected.
        """
        player_id = player_id or self.player_id
        if player_id in self.processing_bankruptcy:
            return ActionResult.fail("Bankruptcy already in progress")
        player = self.snapshot.player(player_id) if self.snapshot else None
        if player is None:
            return ActionResult.fail("Player is not in the game")
        self.processing_bankruptcy.add(player_id)

        creditor = await settle_bankruptcy(
            self.service, self.code, player, self.snapshot.players, self.snapshot.properties
        )
        if creditor is not None:
            self.notify(f"{player.username} is bankrupt; holdings go to {creditor.username}")
        else:
            self.notify(f"{player.username} is bankrupt; holdings return to the bank")

        if self.snapshot.current_player_id == player_id and self.controls(player):
            if self.machine.can_transition(TurnPhase.TURN_COMPLETING):
                self.machine.transition(TurnPhase.TURN_COMPLETING)
            await self.end_turn(player_id=player_id)

        try:
            await self.service.leave_game(self.code, player_id, reason="bankruptcy")
        except ServiceError as e:
            logger.error(f"Removing bankrupt player {player_id} failed: {e}")
            self.processing_bankruptcy.discard(player_id)
            return ActionResult.fail(e.message)

        await self.reconcile(force=True)
        return ActionResult.ok("Bankrupt", creditor_id=creditor.id if creditor else None)

    def time_is_up(self) -> bool:
        snapshot = self.snapshot
        if snapshot is None or not snapshot.duration or snapshot.started_at is None:
            return False
        return self.clock() - snapshot.started_at >= snapshot.duration * 60

    async def finish_by_time(self) -> ActionResult:
        if self._finish_requested:
            return ActionResult.ok("Already finishing", duplicate=True)
        self._finish_requested = True
        try:
            result = await self.service.finish_by_time(self.code)
        except ServiceError as e:
            self._finish_requested = False
            logger.warning(f"Finish by time failed for {self.code}: {e}")
            return ActionResult.fail(e.message)

        self.game_result = dict(result)
        winner = self.snapshot.player(result.get("winner_id")) if self.snapshot else None
        name = winner.username if winner else result.get("winner_id")
        suffix = "" if result.get("valid_win") else " (too few turns for a valid win)"
        self.notify.success(f"Time is up. {name} wins{suffix}")
        self.machine.finish_game()
        await self.reconcile(force=True)
        return ActionResult.ok("Game finished", **result)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    async def tick(self) -> None:
        """
        One pass over the wall-clock timers; called about once a second.

        Handles the time box, the turn budget, post-roll inactivity and
        the automatic end of a completed turn.
        """
        snapshot = self.snapshot
        if snapshot is None or self.machine.phase == TurnPhase.GAME_OVER:
            return
        if self.time_is_up():
            await self.finish_by_time()
            return

        current = snapshot.current_player
        if current is None or not self.lock.is_free:
            return
        if self.turn_timer.claim_expiry((current.id, current.turn_start)):
            await self._turn_expired(current)
            return

        actor = self.actor
        if actor is None:
            return
        if self.inactivity.expired():
            self.inactivity.disarm()
            logger.info(f"{actor.username} inactive after rolling, ending turn")
            self.notify(f"{actor.username}'s turn ended after inactivity")
            if self.machine.can_transition(TurnPhase.TURN_COMPLETING):
                self.machine.transition(TurnPhase.TURN_COMPLETING)
            await self.end_turn()
            return
        if (self.settings.auto_end_turn and self.machine.turn_end_scheduled
                and not self.machine.context.turn_ended and not self.is_autonomous(actor)
                and actor.balance >= 0):
            await self.end_turn()

    async def _turn_expired(self, current: Player) -> None:
        logger.info(f"Turn budget of {current.username} expired")
        if len(self.snapshot.players) == 2:
            self.notify(f"{current.username} ran out of time")
            if self.controls(current) and self.machine.can_transition(TurnPhase.TURN_COMPLETING):
                self.machine.transition(TurnPhase.TURN_COMPLETING)
            await self.end_turn(timed_out=True, player_id=current.id)
        else:
            await self.votes.record_timeout(current)

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def display_roll(self) -> Optional[Tuple[int, int]]:
        """Local roll on turns driven here, else derived from the authoritative total."""
        current = self.current_player
        if current is None:
            return None
        last = self.machine.context.last_roll
        if self.controls(current) and last is not None:
            return last.die1, last.die2
        if current.rolled:
            return total_to_dice(current.rolled)
        return None

    def view(self) -> TurnView:
        actor = self.actor
        current = self.current_player
        return TurnView(
            phase=self.machine.phase,
            current_player_id=current.id if current else None,
            is_my_turn=self.is_my_turn,
            display_roll=self.display_roll(),
            animated_positions=dict(self.animated_positions),
            buy_prompt=self.buy_prompt if self.machine.buy_prompted else None,
            jail=jail_affordances(actor, self.machine.phase),
            turn_time_left=self.turn_timer.time_left(),
            pending_roll=self.machine.context.pending_roll,
            vote_statuses=dict(self.votes.statuses),
            networth_status=self.votes.networth_status,
            game_result=self.game_result,
            removed=self.removed,
        )
