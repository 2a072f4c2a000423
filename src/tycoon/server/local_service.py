"""
In-process authoritative game service.

Keeps every game in memory and applies the standard rules. Offline AI
games run against it directly, and the websocket server exposes it to
remote clients. Each request completes without awaiting, so requests are
applied one at a time in arrival order.
"""
import copy
import logging
import math
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from tycoon.client.network.service import GameService, ServiceError
from tycoon.server.cards import Card, CardAction, CardManager
from tycoon.server.rules import calculate_rent, net_worth
from tycoon.shared.constants import (
    BOARD_SIZE,
    COLOR_GROUPS,
    INCOME_TAX,
    JAIL_FINE,
    JAIL_POSITION,
    LUXURY_TAX,
    MAX_DEVELOPMENT,
    MAX_JAIL_ATTEMPTS,
    MIN_TURNS_FOR_VALID_WIN,
    SALARY_AMOUNT,
    TWO_PLAYER_VOTE_STRIKES,
    UNMORTGAGE_RATE,
)
from tycoon.shared.enums import GameStatus, JailCardType, SpaceType, TradeStatus
from tycoon.shared.models import GameProperty, GameSnapshot, Player, Property, TradeOffer

logger = logging.getLogger(__name__)


@dataclass
class _Game:
    snapshot: GameSnapshot
    cards: CardManager
    trades: Dict[str, TradeOffer] = field(default_factory=dict)
    removal_votes: Dict[str, Set[str]] = field(default_factory=dict)
    networth_votes: Set[str] = field(default_factory=set)
    timeouts_recorded: Set[Tuple[str, Optional[float]]] = field(default_factory=set)
    finish_result: Optional[dict] = None
    vacated_order: int = -1  # turn_order of a current player who just left


class LocalGameService(GameService):
    """Authoritative game state held in memory."""

    def __init__(self, clock: Callable[[], float] = time.time, card_seed: Optional[int] = None,
                 draw_cards: bool = True):
        self._clock = clock
        self._card_seed = card_seed
        self.draw_cards = draw_cards
        self._games: Dict[str, _Game] = {}

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def create_game(self, code: str, players: List[Player], duration: Optional[int] = None) -> GameSnapshot:
        """
        Start a game with the given players in list order.

        Args:
            code: Game code used by every later request
            players: Participants; balances default to the starting money
            duration: Minutes for a time-boxed game, None for untimed

        Returns:
            Copy of the initial snapshot
        """
        if code in self._games:
            raise ServiceError(f"Game {code} already exists", status=409)
        if len(players) < 2:
            raise ServiceError("Need at least 2 players", status=400)

        now = self._clock()
        for order, player in enumerate(players):
            player.turn_order = order
            player.position = player.position or 0
            player.turn_start = None
        players[0].turn_start = now

        snapshot = GameSnapshot(
            code=code,
            status=GameStatus.RUNNING,
            current_player_id=players[0].id,
            players=list(players),
            duration=duration,
            started_at=now,
        )
        self._games[code] = _Game(snapshot=snapshot, cards=CardManager(seed=self._card_seed))
        logger.info(f"Game {code} created with {len(players)} players")
        return copy.deepcopy(snapshot)

    def state(self, code: str) -> GameSnapshot:
        """Live authoritative snapshot (not a copy), for setup and inspection."""
        return self._game(code).snapshot

    def set_owner(self, code: str, property_id: int, owner: Optional[str],
                  development: int = 0, mortgaged: bool = False) -> None:
        snapshot = self.state(code)
        record = snapshot.game_property(property_id)
        if record is None:
            record = GameProperty(id=property_id)
            snapshot.properties.append(record)
        record.owner = owner
        record.development = development
        record.mortgaged = mortgaged

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _game(self, code: str) -> _Game:
        game = self._games.get(code)
        if game is None:
            raise ServiceError(f"Game {code} not found", status=404)
        return game

    def _running(self, code: str) -> _Game:
        game = self._game(code)
        if game.snapshot.status != GameStatus.RUNNING:
            raise ServiceError("Game is not running", status=409)
        return game

    @staticmethod
    def _player(game: _Game, player_id: str) -> Player:
        player = game.snapshot.player(player_id)
        if player is None:
            raise ServiceError(f"Player {player_id} is not in this game", status=404)
        return player

    def _current(self, game: _Game, player_id: str) -> Player:
        player = self._player(game, player_id)
        if game.snapshot.current_player_id != player_id:
            raise ServiceError("Not your turn", status=403)
        return player

    @staticmethod
    def _owned(game: _Game, player_id: str, property_id: int) -> GameProperty:
        record = game.snapshot.game_property(property_id)
        if record is None or record.owner != player_id:
            raise ServiceError("You do not own this property", status=403)
        return record

    @staticmethod
    def _log(game: _Game, text: str) -> None:
        game.snapshot.history.append(text)
        logger.debug(f"[{game.snapshot.code}] {text}")

    def _advance_turn(self, game: _Game) -> Optional[str]:
        snapshot = game.snapshot
        if not snapshot.players:
            snapshot.current_player_id = None
            return None
        ordered = sorted(snapshot.players, key=lambda p: p.turn_order)
        ids = [p.id for p in ordered]
        if snapshot.current_player_id in ids:
            index = (ids.index(snapshot.current_player_id) + 1) % len(ids)
        else:
            later = [p for p in ordered if p.turn_order > game.vacated_order]
            index = ids.index(later[0].id) if later else 0
        for player in snapshot.players:
            player.turn_start = None
        nxt = ordered[index]
        nxt.turn_start = self._clock()
        snapshot.current_player_id = nxt.id
        return nxt.id

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def get_game(self, code: str) -> GameSnapshot:
        return copy.deepcopy(self._game(code).snapshot)

    # ------------------------------------------------------------------
    # Turn
    # ------------------------------------------------------------------

    async def change_position(self, code: str, player_id: str, position: int,
                              rolled: int, is_double: bool) -> dict:
        game = self._running(code)
        player = self._current(game, player_id)
        if not 0 <= position < BOARD_SIZE:
            raise ServiceError(f"Invalid position {position}", status=400)

        player.rolled = rolled
        game.networth_votes.clear()

        if player.in_jail:
            if not is_double:
                player.jail_attempts += 1
                if player.jail_attempts < MAX_JAIL_ATTEMPTS:
                    self._log(game, f"{player.username} rolled {rolled} in jail, no doubles")
                    return {"still_in_jail": True, "rolled": rolled, "position": player.position}
                player.balance -= JAIL_FINE
                player.in_jail = False
                player.jail_attempts = 0
                self._log(game, f"{player.username} paid ${JAIL_FINE} after {MAX_JAIL_ATTEMPTS} jail attempts")
                return {"still_in_jail": False, "released": True, "rolled": rolled, "position": player.position}
            player.in_jail = False
            player.jail_attempts = 0
            self._log(game, f"{player.username} rolled doubles and left jail")

        start = player.position
        if rolled > 0 and start + rolled >= BOARD_SIZE:
            player.balance += SALARY_AMOUNT
            self._log(game, f"{player.username} passed Go and collected ${SALARY_AMOUNT}")
        player.position = position
        outcome = self._land(game, player, rolled, allow_cards=self.draw_cards)
        outcome.update({"still_in_jail": False, "rolled": rolled, "position": player.position})
        return outcome

    def _land(self, game: _Game, player: Player, pips: int, allow_cards: bool) -> dict:
        square = Property.from_board(player.position)
        outcome: dict = {}

        if square.type == SpaceType.GOTO_JAIL:
            player.position = JAIL_POSITION
            player.in_jail = True
            player.jail_attempts = 0
            self._log(game, f"{player.username} was sent to jail")
            outcome["sent_to_jail"] = True
        elif square.type == SpaceType.INCOME_TAX:
            player.balance -= INCOME_TAX
            outcome["tax"] = INCOME_TAX
        elif square.type == SpaceType.LUXURY_TAX:
            player.balance -= LUXURY_TAX
            outcome["tax"] = LUXURY_TAX
        elif square.type in (SpaceType.CHANCE, SpaceType.COMMUNITY_CHEST) and allow_cards:
            card = game.cards.draw(JailCardType(square.type.value))
            outcome["card"] = card.to_dict()
            self._log(game, f"{player.username} drew: {card.text}")
            outcome.update(self._apply_card(game, player, card, pips))
        elif square.is_purchasable:
            record = game.snapshot.game_property(square.id)
            if record is not None and record.owner and record.owner != player.id:
                rent = calculate_rent(square, record, game.snapshot.properties, pips)
                owner = game.snapshot.player(record.owner)
                if rent and owner is not None:
                    player.balance -= rent
                    owner.balance += rent
                    self._log(game, f"{player.username} paid ${rent} rent to {owner.username}")
                    outcome["rent_paid"] = rent
                    outcome["paid_to"] = owner.id
        return outcome

    def _apply_card(self, game: _Game, player: Player, card: Card, pips: int) -> dict:
        others = [p for p in game.snapshot.players if p.id != player.id]
        if card.action == CardAction.COLLECT_MONEY:
            player.balance += card.value
        elif card.action == CardAction.PAY_MONEY:
            player.balance -= card.value
        elif card.action == CardAction.COLLECT_FROM_PLAYERS:
            for other in others:
                other.balance -= card.value
                player.balance += card.value
        elif card.action == CardAction.PAY_TO_PLAYERS:
            for other in others:
                other.balance += card.value
                player.balance -= card.value
        elif card.action == CardAction.GET_OUT_OF_JAIL:
            if card.deck == JailCardType.CHANCE:
                player.chance_jail_card += 1
            else:
                player.community_chest_jail_card += 1
        elif card.action == CardAction.GO_TO_JAIL:
            player.position = JAIL_POSITION
            player.in_jail = True
            player.jail_attempts = 0
            return {"sent_to_jail": True}
        elif card.action == CardAction.REPAIRS:
            cost = 0
            for record in game.snapshot.properties_of(player.id):
                if record.development == MAX_DEVELOPMENT:
                    cost += card.per_hotel
                else:
                    cost += record.development * card.per_house
            player.balance -= cost
        elif card.action in (CardAction.MOVE_TO, CardAction.MOVE_BACK):
            if card.action == CardAction.MOVE_TO:
                if card.value <= player.position:
                    player.balance += SALARY_AMOUNT
                player.position = card.value
            else:
                player.position = (player.position - card.value) % BOARD_SIZE
            return self._land(game, player, pips, allow_cards=False)
        return {}

    async def end_turn(self, code: str, player_id: str, timed_out: bool = False) -> dict:
        game = self._running(code)
        snapshot = game.snapshot
        if snapshot.current_player_id != player_id:
            return {"ended": False, "current_player_id": snapshot.current_player_id}

        player = self._player(game, player_id)
        player.turn_count += 1
        player.rolled = None
        if timed_out:
            player.consecutive_timeouts += 1
        else:
            player.consecutive_timeouts = 0
        next_id = self._advance_turn(game)
        self._log(game, f"{player.username} ended their turn{' (timed out)' if timed_out else ''}")
        return {"ended": True, "next_player_id": next_id}

    # ------------------------------------------------------------------
    # Property
    # ------------------------------------------------------------------

    async def buy_property(self, code: str, player_id: str, property_id: int) -> dict:
        game = self._running(code)
        player = self._current(game, player_id)
        square = Property.from_board(property_id)
        if not square.is_purchasable:
            raise ServiceError(f"{square.name} cannot be bought", status=400)
        if player.position != property_id:
            raise ServiceError("You are not on that property", status=400)
        record = game.snapshot.game_property(property_id)
        if record is not None and record.owner:
            raise ServiceError(f"{square.name} is already owned", status=409)
        if player.balance < square.price:
            raise ServiceError("Insufficient funds", status=402)

        player.balance -= square.price
        if record is None:
            game.snapshot.properties.append(GameProperty(id=property_id, owner=player_id))
        else:
            record.owner = player_id
            record.development = 0
            record.mortgaged = False
        self._log(game, f"{player.username} bought {square.name} for ${square.price}")
        return {"property_id": property_id, "balance": player.balance}

    async def develop(self, code: str, player_id: str, property_id: int) -> dict:
        game = self._running(code)
        player = self._player(game, player_id)
        record = self._owned(game, player_id, property_id)
        square = Property.from_board(property_id)
        group_ids = COLOR_GROUPS.get(square.color, [])
        if square.type != SpaceType.LAND or not group_ids:
            raise ServiceError(f"Cannot build on {square.name}", status=400)

        members = [game.snapshot.game_property(gid) for gid in group_ids]
        if any(m is None or m.owner != player_id or m.mortgaged for m in members):
            raise ServiceError("You need the complete, unmortgaged color set to build", status=400)
        if record.development >= MAX_DEVELOPMENT:
            raise ServiceError(f"{square.name} already has a hotel", status=400)
        if record.development > min(m.development for m in members):
            raise ServiceError("Build evenly across the color set", status=400)
        if player.balance < square.cost_of_house:
            raise ServiceError("Insufficient funds", status=402)

        player.balance -= square.cost_of_house
        record.development += 1
        self._log(game, f"{player.username} built on {square.name} (level {record.development})")
        return {"property_id": property_id, "development": record.development, "balance": player.balance}

    async def downgrade(self, code: str, player_id: str, property_id: int) -> dict:
        game = self._running(code)
        player = self._player(game, player_id)
        record = self._owned(game, player_id, property_id)
        if record.development <= 0:
            raise ServiceError("Nothing to sell on this property", status=400)
        square = Property.from_board(property_id)
        refund = math.floor(square.cost_of_house / 2)
        record.development -= 1
        player.balance += refund
        self._log(game, f"{player.username} sold a building on {square.name} for ${refund}")
        return {"property_id": property_id, "development": record.development, "balance": player.balance}

    async def mortgage(self, code: str, player_id: str, property_id: int) -> dict:
        game = self._running(code)
        player = self._player(game, player_id)
        record = self._owned(game, player_id, property_id)
        if record.mortgaged:
            raise ServiceError("Property is already mortgaged", status=400)
        if record.development > 0:
            raise ServiceError("Sell buildings before mortgaging", status=400)
        square = Property.from_board(property_id)
        value = math.floor(square.price / 2)
        record.mortgaged = True
        player.balance += value
        self._log(game, f"{player.username} mortgaged {square.name} for ${value}")
        return {"property_id": property_id, "balance": player.balance}

    async def unmortgage(self, code: str, player_id: str, property_id: int) -> dict:
        game = self._running(code)
        player = self._player(game, player_id)
        record = self._owned(game, player_id, property_id)
        if not record.mortgaged:
            raise ServiceError("Property is not mortgaged", status=400)
        square = Property.from_board(property_id)
        cost = math.floor(square.price / 2 * UNMORTGAGE_RATE)
        if player.balance < cost:
            raise ServiceError("Insufficient funds", status=402)
        player.balance -= cost
        record.mortgaged = False
        self._log(game, f"{player.username} redeemed {square.name} for ${cost}")
        return {"property_id": property_id, "balance": player.balance}

    async def sell_property(self, code: str, player_id: str, property_id: int) -> dict:
        game = self._running(code)
        player = self._player(game, player_id)
        record = self._owned(game, player_id, property_id)
        if record.development > 0:
            raise ServiceError("Sell buildings first", status=400)
        square = Property.from_board(property_id)
        value = math.floor(square.price / 2) if not record.mortgaged else 0
        game.snapshot.properties.remove(record)
        player.balance += value
        self._log(game, f"{player.username} sold {square.name} to the bank for ${value}")
        return {"property_id": property_id, "balance": player.balance}

    async def transfer_property(self, code: str, player_id: str, target_id: str,
                                property_id: int) -> dict:
        game = self._running(code)
        self._player(game, target_id)
        record = self._owned(game, player_id, property_id)
        record.owner = target_id
        self._log(game, f"Property {property_id} transferred from {player_id} to {target_id}")
        return {"property_id": property_id, "owner": target_id}

    async def return_property(self, code: str, player_id: str, property_id: int) -> dict:
        game = self._running(code)
        record = self._owned(game, player_id, property_id)
        game.snapshot.properties.remove(record)
        self._log(game, f"Property {property_id} returned to the bank")
        return {"property_id": property_id, "owner": None}

    # ------------------------------------------------------------------
    # Trade
    # ------------------------------------------------------------------

    def _validate_offer(self, game: _Game, offer: TradeOffer) -> None:
        proposer = self._player(game, offer.proposer)
        target = self._player(game, offer.target)
        if proposer.id == target.id:
            raise ServiceError("Cannot trade with yourself", status=400)
        for prop_id in offer.offered_properties:
            record = game.snapshot.game_property(prop_id)
            if record is None or record.owner != proposer.id:
                raise ServiceError(f"{proposer.username} does not own property {prop_id}", status=400)
            if record.development > 0:
                raise ServiceError("Developed properties cannot be traded", status=400)
        for prop_id in offer.requested_properties:
            record = game.snapshot.game_property(prop_id)
            if record is None or record.owner != target.id:
                raise ServiceError(f"{target.username} does not own property {prop_id}", status=400)
            if record.development > 0:
                raise ServiceError("Developed properties cannot be traded", status=400)
        if offer.offered_cash < 0 or offer.requested_cash < 0:
            raise ServiceError("Cash amounts must not be negative", status=400)

    def _trade(self, game: _Game, trade_id: str) -> TradeOffer:
        trade = game.trades.get(trade_id)
        if trade is None:
            raise ServiceError(f"Trade {trade_id} not found", status=404)
        if trade.status != TradeStatus.PENDING:
            raise ServiceError(f"Trade is {trade.status.value}", status=409)
        return trade

    async def create_trade(self, code: str, offer: dict) -> TradeOffer:
        game = self._running(code)
        trade = TradeOffer.from_dict({**offer, "id": str(uuid.uuid4()), "status": TradeStatus.PENDING.value})
        self._validate_offer(game, trade)
        game.trades[trade.id] = trade
        self._log(game, f"Trade {trade.id[:8]} proposed by {trade.proposer} to {trade.target}")
        return copy.deepcopy(trade)

    async def accept_trade(self, code: str, trade_id: str) -> TradeOffer:
        game = self._running(code)
        trade = self._trade(game, trade_id)
        self._validate_offer(game, trade)
        proposer = self._player(game, trade.proposer)
        target = self._player(game, trade.target)
        if proposer.balance < trade.offered_cash:
            raise ServiceError(f"{proposer.username} cannot cover the offered cash", status=402)
        if target.balance < trade.requested_cash:
            raise ServiceError(f"{target.username} cannot cover the requested cash", status=402)

        proposer.balance += trade.requested_cash - trade.offered_cash
        target.balance += trade.offered_cash - trade.requested_cash
        for prop_id in trade.offered_properties:
            game.snapshot.game_property(prop_id).owner = target.id
        for prop_id in trade.requested_properties:
            game.snapshot.game_property(prop_id).owner = proposer.id
        trade.status = TradeStatus.ACCEPTED
        self._log(game, f"Trade {trade.id[:8]} accepted")
        return copy.deepcopy(trade)

    async def decline_trade(self, code: str, trade_id: str) -> TradeOffer:
        game = self._running(code)
        trade = self._trade(game, trade_id)
        trade.status = TradeStatus.DECLINED
        self._log(game, f"Trade {trade.id[:8]} declined")
        return copy.deepcopy(trade)

    async def counter_trade(self, code: str, trade_id: str, offer: dict) -> TradeOffer:
        game = self._running(code)
        original = self._trade(game, trade_id)
        counter = TradeOffer.from_dict({
            **offer,
            "id": str(uuid.uuid4()),
            "proposer": original.target,
            "target": original.proposer,
            "status": TradeStatus.PENDING.value,
        })
        self._validate_offer(game, counter)
        original.status = TradeStatus.COUNTER
        game.trades[counter.id] = counter
        self._log(game, f"Trade {original.id[:8]} countered with {counter.id[:8]}")
        return copy.deepcopy(counter)

    async def list_trades(self, code: str, player_id: str) -> List[TradeOffer]:
        game = self._game(code)
        return [
            copy.deepcopy(t) for t in game.trades.values()
            if t.status == TradeStatus.PENDING and player_id in (t.proposer, t.target)
        ]

    # ------------------------------------------------------------------
    # Jail
    # ------------------------------------------------------------------

    async def pay_to_leave_jail(self, code: str, player_id: str) -> dict:
        game = self._running(code)
        player = self._current(game, player_id)
        if not player.in_jail:
            raise ServiceError("You are not in jail", status=400)
        if player.balance < JAIL_FINE:
            raise ServiceError("Insufficient funds", status=402)
        player.balance -= JAIL_FINE
        player.in_jail = False
        player.jail_attempts = 0
        self._log(game, f"{player.username} paid ${JAIL_FINE} to leave jail")
        return {"balance": player.balance}

    async def use_jail_card(self, code: str, player_id: str, card_type: JailCardType) -> dict:
        game = self._running(code)
        player = self._current(game, player_id)
        deck = JailCardType(card_type)
        if not player.in_jail:
            raise ServiceError("You are not in jail", status=400)
        if deck == JailCardType.CHANCE:
            if player.chance_jail_card < 1:
                raise ServiceError("No Chance jail card", status=400)
            player.chance_jail_card -= 1
        else:
            if player.community_chest_jail_card < 1:
                raise ServiceError("No Community Chest jail card", status=400)
            player.community_chest_jail_card -= 1
        game.cards.deck_for(deck).return_card()
        player.in_jail = False
        player.jail_attempts = 0
        self._log(game, f"{player.username} used a Get Out of Jail Free card")
        return {"card_type": deck.value}

    async def stay_in_jail(self, code: str, player_id: str) -> dict:
        game = self._running(code)
        player = self._current(game, player_id)
        if not player.in_jail:
            raise ServiceError("You are not in jail", status=400)
        self._log(game, f"{player.username} stays in jail")
        return {"stayed": True}

    # ------------------------------------------------------------------
    # Governance
    # ------------------------------------------------------------------

    async def record_timeout(self, code: str, reporter_id: str, target_id: str) -> dict:
        game = self._running(code)
        self._player(game, reporter_id)
        target = self._player(game, target_id)
        if game.snapshot.current_player_id != target_id:
            return {"recorded": False, "consecutive_timeouts": target.consecutive_timeouts}
        key = (target_id, target.turn_start)
        if key in game.timeouts_recorded:
            return {"recorded": False, "consecutive_timeouts": target.consecutive_timeouts}
        game.timeouts_recorded.add(key)

        target.consecutive_timeouts += 1
        target.turn_count += 1
        target.rolled = None
        self._advance_turn(game)
        self._log(game, f"{target.username} timed out ({target.consecutive_timeouts} in a row)")
        return {"recorded": True, "consecutive_timeouts": target.consecutive_timeouts}

    def _required_votes(self, game: _Game, target_id: str) -> int:
        others = [p for p in game.snapshot.players if p.id != target_id]
        return len(others) // 2 + 1 if len(others) > 1 else 1

    def _vote_summary(self, game: _Game, target_id: str) -> dict:
        voters = game.removal_votes.get(target_id, set())
        return {
            "target_id": target_id,
            "vote_count": len(voters),
            "required_votes": self._required_votes(game, target_id),
            "voters": sorted(voters),
        }

    async def vote_to_remove(self, code: str, voter_id: str, target_id: str) -> dict:
        game = self._running(code)
        self._player(game, voter_id)
        target = self._player(game, target_id)
        if voter_id == target_id:
            raise ServiceError("Cannot vote against yourself", status=400)
        needed = TWO_PLAYER_VOTE_STRIKES if len(game.snapshot.players) == 2 else 1
        if target.consecutive_timeouts < needed:
            raise ServiceError(f"{target.username} has not timed out enough to be removed", status=400)

        game.removal_votes.setdefault(target_id, set()).add(voter_id)
        summary = self._vote_summary(game, target_id)
        if summary["vote_count"] >= summary["required_votes"]:
            self._remove_player(game, target, "voted_out")
            summary["removed"] = True
        else:
            summary["removed"] = False
        return summary

    async def vote_status(self, code: str, target_id: str) -> dict:
        return self._vote_summary(self._game(code), target_id)

    def _networth_summary(self, game: _Game) -> dict:
        required = len(game.snapshot.players)
        return {
            "vote_count": len(game.networth_votes),
            "required_votes": required,
            "voters": sorted(game.networth_votes),
            "all_voted": required > 0 and len(game.networth_votes) >= required,
        }

    async def vote_end_by_networth(self, code: str, voter_id: str) -> dict:
        game = self._running(code)
        self._player(game, voter_id)
        if game.snapshot.duration:
            raise ServiceError("Time-boxed games end on the clock", status=400)
        game.networth_votes.add(voter_id)
        summary = self._networth_summary(game)
        if summary["all_voted"]:
            summary.update(self._finish(game, require_turns=False))
        return summary

    async def end_by_networth_status(self, code: str) -> dict:
        return self._networth_summary(self._game(code))

    def _finish(self, game: _Game, require_turns: bool) -> dict:
        if game.finish_result is not None:
            return dict(game.finish_result)
        snapshot = game.snapshot
        winner = max(
            snapshot.players,
            key=lambda p: net_worth(p, snapshot.properties),
            default=None,
        )
        valid = bool(winner) and (not require_turns or winner.turn_count >= MIN_TURNS_FOR_VALID_WIN)
        snapshot.status = GameStatus.FINISHED
        snapshot.winner_id = winner.id if winner else None
        game.finish_result = {
            "winner_id": snapshot.winner_id,
            "valid_win": valid,
            "net_worth": net_worth(winner, snapshot.properties) if winner else 0,
        }
        self._log(game, f"Game finished, winner {snapshot.winner_id}")
        return dict(game.finish_result)

    async def finish_by_time(self, code: str) -> dict:
        game = self._game(code)
        if game.finish_result is not None:
            return dict(game.finish_result)
        snapshot = game.snapshot
        if not snapshot.duration or snapshot.started_at is None:
            raise ServiceError("Game is not time-boxed", status=400)
        if self._clock() - snapshot.started_at < snapshot.duration * 60:
            raise ServiceError("Game time has not run out yet", status=409)
        return self._finish(game, require_turns=True)

    def _remove_player(self, game: _Game, player: Player, reason: str) -> None:
        snapshot = game.snapshot
        was_current = snapshot.current_player_id == player.id
        snapshot.properties = [r for r in snapshot.properties if r.owner != player.id]
        for trade in game.trades.values():
            if trade.status == TradeStatus.PENDING and player.id in (trade.proposer, trade.target):
                trade.status = TradeStatus.DECLINED
        game.removal_votes.pop(player.id, None)
        game.networth_votes.discard(player.id)
        game.vacated_order = player.turn_order
        snapshot.players.remove(player)
        self._log(game, f"{player.username} left the game ({reason})")

        if len(snapshot.players) == 1:
            snapshot.status = GameStatus.FINISHED
            snapshot.winner_id = snapshot.players[0].id
            snapshot.current_player_id = None
            game.finish_result = {"winner_id": snapshot.winner_id, "valid_win": True, "net_worth": 0}
        elif was_current:
            snapshot.current_player_id = None
            self._advance_turn(game)

    async def leave_game(self, code: str, player_id: str, reason: str = "left") -> dict:
        game = self._game(code)
        player = self._player(game, player_id)
        self._remove_player(game, player, reason)
        return {"left": True, "reason": reason, "status": game.snapshot.status.value}
