"""
Contract of the authoritative game service.

The client core only ever talks to this interface. Implementations are
the websocket client (remote games) and the in-process LocalGameService
(offline games and tests).
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from tycoon.shared.enums import JailCardType
from tycoon.shared.models import GameSnapshot, TradeOffer


class ServiceError(Exception):
    """The service rejected a request."""

    def __init__(self, message: str, status: Optional[int] = None, data: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data or {}


class ServiceUnavailable(ServiceError):
    """The service could not be reached (connection lost, timeout)."""


class GameService(ABC):
    """Asynchronous request/response access to one game service."""

    # Reconciliation

    @abstractmethod
    async def get_game(self, code: str) -> GameSnapshot:
        ...

    # Turn

    @abstractmethod
    async def change_position(self, code: str, player_id: str, position: int,
                              rolled: int, is_double: bool) -> dict:
        """
        Move a player after a roll.

        Returns:
            dict with "position" and "rolled"; "still_in_jail" is true when a
            jailed player missed doubles
        """

    @abstractmethod
    async def end_turn(self, code: str, player_id: str, timed_out: bool = False) -> dict:
        """End the player's turn. Ending a turn that is not current is a no-op."""

    # Property

    @abstractmethod
    async def buy_property(self, code: str, player_id: str, property_id: int) -> dict:
        ...

    @abstractmethod
    async def develop(self, code: str, player_id: str, property_id: int) -> dict:
        ...

    @abstractmethod
    async def downgrade(self, code: str, player_id: str, property_id: int) -> dict:
        ...

    @abstractmethod
    async def mortgage(self, code: str, player_id: str, property_id: int) -> dict:
        ...

    @abstractmethod
    async def unmortgage(self, code: str, player_id: str, property_id: int) -> dict:
        ...

    @abstractmethod
    async def sell_property(self, code: str, player_id: str, property_id: int) -> dict:
        ...

    @abstractmethod
    async def transfer_property(self, code: str, player_id: str, target_id: str,
                                property_id: int) -> dict:
        ...

    @abstractmethod
    async def return_property(self, code: str, player_id: str, property_id: int) -> dict:
        """Hand a property back to the bank."""

    # Trade

    @abstractmethod
    async def create_trade(self, code: str, offer: dict) -> TradeOffer:
        ...

    @abstractmethod
    async def accept_trade(self, code: str, trade_id: str) -> TradeOffer:
        ...

    @abstractmethod
    async def decline_trade(self, code: str, trade_id: str) -> TradeOffer:
        ...

    @abstractmethod
    async def counter_trade(self, code: str, trade_id: str, offer: dict) -> TradeOffer:
        ...

    @abstractmethod
    async def list_trades(self, code: str, player_id: str) -> List[TradeOffer]:
        ...

    # Jail

    @abstractmethod
    async def pay_to_leave_jail(self, code: str, player_id: str) -> dict:
        ...

    @abstractmethod
    async def use_jail_card(self, code: str, player_id: str, card_type: JailCardType) -> dict:
        ...

    @abstractmethod
    async def stay_in_jail(self, code: str, player_id: str) -> dict:
        ...

    # Governance

    @abstractmethod
    async def record_timeout(self, code: str, reporter_id: str, target_id: str) -> dict:
        """Charge the current player a timeout strike and move the turn on."""

    @abstractmethod
    async def vote_to_remove(self, code: str, voter_id: str, target_id: str) -> dict:
        ...

    @abstractmethod
    async def vote_status(self, code: str, target_id: str) -> dict:
        ...

    @abstractmethod
    async def vote_end_by_networth(self, code: str, voter_id: str) -> dict:
        ...

    @abstractmethod
    async def end_by_networth_status(self, code: str) -> dict:
        ...

    @abstractmethod
    async def finish_by_time(self, code: str) -> dict:
        """
        Close a time-boxed game.

        Returns:
            dict with "winner_id" and "valid_win"
        """

    @abstractmethod
    async def leave_game(self, code: str, player_id: str, reason: str = "left") -> dict:
        ...

    async def close(self) -> None:
        """Release transport resources."""
