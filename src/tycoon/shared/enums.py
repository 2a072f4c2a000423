"""
Enumerations shared across the client core, the network layer and the
local service.
"""
from enum import Enum


class SpaceType(Enum):
    """Board square types."""
    LAND = "land"
    RAILWAY = "railway"
    UTILITY = "utility"
    COMMUNITY_CHEST = "community_chest"
    CHANCE = "chance"
    GOTO_JAIL = "goto_jail"
    VISITING_JAIL = "visiting_jail"
    START = "start"
    FREE_PARKING = "free_parking"
    INCOME_TAX = "income_tax"
    LUXURY_TAX = "luxury_tax"

    @property
    def is_purchasable(self) -> bool:
        return self in (SpaceType.LAND, SpaceType.RAILWAY, SpaceType.UTILITY)


class TurnPhase(Enum):
    """
    Phase of the turn currently being orchestrated.

    The jail members are the nested jail sub-phases; a single value is
    always active, and the boolean gates (buy prompted, jail choice
    required, turn end scheduled) are derived from it.
    """
    OBSERVING = "OBSERVING"                      # someone else's turn, or ours has ended
    AWAITING_ROLL = "AWAITING_ROLL"
    ROLLING = "ROLLING"
    MOVING = "MOVING"
    LANDED = "LANDED"
    AWAITING_BUY_DECISION = "AWAITING_BUY_DECISION"
    TURN_COMPLETING = "TURN_COMPLETING"
    JAIL_AWAITING_CHOICE = "JAIL_AWAITING_CHOICE"
    JAIL_ROLLING = "JAIL_ROLLING"
    JAIL_CHOICE_REQUIRED = "JAIL_CHOICE_REQUIRED"
    GAME_OVER = "GAME_OVER"


class JailOption(Enum):
    """Ways out of (or back into) the jail sub-phase."""
    PAY_FINE = "pay_fine"
    USE_CARD = "use_card"
    ROLL_FOR_DOUBLES = "roll_for_doubles"
    STAY = "stay"


class JailCardType(Enum):
    """Get Out of Jail Free card decks."""
    CHANCE = "chance"
    COMMUNITY_CHEST = "community_chest"


class ActionLockKind(Enum):
    """Turn-critical operations guarded by the action lock."""
    ROLL = "ROLL"
    END = "END"


class TradeStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COUNTER = "counter"


class GameStatus(Enum):
    WAITING = "WAITING"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    CANCELLED = "CANCELLED"


class NoticeLevel(Enum):
    """Severity of a user-facing notice."""
    DEFAULT = "default"
    SUCCESS = "success"
    ERROR = "error"


class LiquidationKind(Enum):
    SELL_BUILDING = "sell_building"
    MORTGAGE = "mortgage"


class MessageType(Enum):
    """
    Request types understood by the authoritative game service.

    Values double as the GameService method names.
    """
    # Reconciliation
    GET_GAME = "get_game"

    # Turn
    CHANGE_POSITION = "change_position"
    END_TURN = "end_turn"

    # Property
    BUY_PROPERTY = "buy_property"
    DEVELOP = "develop"
    DOWNGRADE = "downgrade"
    MORTGAGE = "mortgage"
    UNMORTGAGE = "unmortgage"
    SELL_PROPERTY = "sell_property"
    TRANSFER_PROPERTY = "transfer_property"
    RETURN_PROPERTY = "return_property"

    # Trade
    CREATE_TRADE = "create_trade"
    ACCEPT_TRADE = "accept_trade"
    DECLINE_TRADE = "decline_trade"
    COUNTER_TRADE = "counter_trade"
    LIST_TRADES = "list_trades"

    # Jail
    PAY_TO_LEAVE_JAIL = "pay_to_leave_jail"
    USE_JAIL_CARD = "use_jail_card"
    STAY_IN_JAIL = "stay_in_jail"

    # Governance
    RECORD_TIMEOUT = "record_timeout"
    VOTE_TO_REMOVE = "vote_to_remove"
    VOTE_STATUS = "vote_status"
    VOTE_END_BY_NETWORTH = "vote_end_by_networth"
    END_BY_NETWORTH_STATUS = "end_by_networth_status"
    FINISH_BY_TIME = "finish_by_time"
    LEAVE_GAME = "leave_game"

    # Replies
    RESPONSE = "response"
    ERROR = "error"
