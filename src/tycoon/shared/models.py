"""
Data models exchanged between the client core and the game service.

The service owns every record; the client keeps read-mostly copies that
are replaced wholesale on each reconciliation.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from tycoon.shared.constants import BOARD_SPACES, COLOR_GROUPS, STARTING_MONEY
from tycoon.shared.enums import GameStatus, SpaceType, TradeStatus

AI_NAME_MARKERS = ("ai_", "bot", "computer")


def looks_like_ai(username: str) -> bool:
    """Usernames containing a bot marker belong to autonomous players."""
    lowered = (username or "").lower()
    return any(marker in lowered for marker in AI_NAME_MARKERS)


@dataclass
class Player:
    """A participant as seen by the service."""

    id: str
    username: str
    position: int = 0
    balance: int = STARTING_MONEY
    in_jail: bool = False
    jail_attempts: int = 0
    chance_jail_card: int = 0
    community_chest_jail_card: int = 0
    turn_order: int = 0
    turn_count: int = 0
    consecutive_timeouts: int = 0
    turn_start: Optional[float] = None
    rolled: Optional[int] = None
    is_ai: Optional[bool] = None

    def __post_init__(self):
        if self.is_ai is None:
            self.is_ai = looks_like_ai(self.username)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "position": self.position,
            "balance": self.balance,
            "in_jail": self.in_jail,
            "jail_attempts": self.jail_attempts,
            "chance_jail_card": self.chance_jail_card,
            "community_chest_jail_card": self.community_chest_jail_card,
            "turn_order": self.turn_order,
            "turn_count": self.turn_count,
            "consecutive_timeouts": self.consecutive_timeouts,
            "turn_start": self.turn_start,
            "rolled": self.rolled,
            "is_ai": self.is_ai,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        return cls(
            id=data["id"],
            username=data.get("username", ""),
            position=int(data.get("position", 0)),
            balance=int(data.get("balance", 0)),
            in_jail=bool(data.get("in_jail", False)),
            jail_attempts=int(data.get("jail_attempts", 0)),
            chance_jail_card=int(data.get("chance_jail_card", 0)),
            community_chest_jail_card=int(data.get("community_chest_jail_card", 0)),
            turn_order=int(data.get("turn_order", 0)),
            turn_count=int(data.get("turn_count", 0)),
            consecutive_timeouts=int(data.get("consecutive_timeouts", 0)),
            turn_start=data.get("turn_start"),
            rolled=data.get("rolled"),
            is_ai=data.get("is_ai"),
        )


@dataclass(frozen=True)
class Property:
    """Static description of a board square."""

    id: int
    name: str
    type: SpaceType
    price: int = 0
    rents: tuple = (0, 0, 0, 0, 0, 0)
    cost_of_house: int = 0
    color: str = ""

    @property
    def is_purchasable(self) -> bool:
        return self.type.is_purchasable

    @property
    def rent_site_only(self) -> int:
        return self.rents[0]

    @property
    def rent_hotel(self) -> int:
        return self.rents[5]

    def rent_for(self, development: int) -> int:
        """Rent for a development level (0 = site only, 5 = hotel)."""
        return self.rents[max(0, min(development, 5))]

    @classmethod
    def from_board(cls, position: int) -> "Property":
        space = BOARD_SPACES[position]
        return cls(
            id=position,
            name=space["name"],
            type=SpaceType(space["type"]),
            price=space["price"],
            rents=tuple(space["rents"]),
            cost_of_house=space["cost_of_house"],
            color=space["color"],
        )


@dataclass
class GameProperty:
    """Ownership record; absent means the bank still holds the square."""

    id: int
    owner: Optional[str] = None
    development: int = 0
    mortgaged: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner": self.owner,
            "development": self.development,
            "mortgaged": self.mortgaged,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameProperty":
        return cls(
            id=int(data["id"]),
            owner=data.get("owner"),
            development=int(data.get("development", 0)),
            mortgaged=bool(data.get("mortgaged", False)),
        )


@dataclass(frozen=True)
class ColorGroup:
    name: str
    ids: tuple

    def __len__(self) -> int:
        return len(self.ids)

    @property
    def is_buildable(self) -> bool:
        return self.name not in ("railroad", "utility")


def color_groups() -> Dict[str, ColorGroup]:
    return {name: ColorGroup(name, tuple(ids)) for name, ids in COLOR_GROUPS.items()}


@dataclass
class TradeOffer:
    """A trade proposal between two players."""

    id: str
    proposer: str
    target: str
    offered_properties: List[int] = field(default_factory=list)
    offered_cash: int = 0
    requested_properties: List[int] = field(default_factory=list)
    requested_cash: int = 0
    status: TradeStatus = TradeStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "proposer": self.proposer,
            "target": self.target,
            "offered_properties": list(self.offered_properties),
            "offered_cash": self.offered_cash,
            "requested_properties": list(self.requested_properties),
            "requested_cash": self.requested_cash,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TradeOffer":
        return cls(
            id=data["id"],
            proposer=data["proposer"],
            target=data["target"],
            offered_properties=[int(p) for p in data.get("offered_properties", [])],
            offered_cash=int(data.get("offered_cash", 0)),
            requested_properties=[int(p) for p in data.get("requested_properties", [])],
            requested_cash=int(data.get("requested_cash", 0)),
            status=TradeStatus(data.get("status", TradeStatus.PENDING.value)),
        )


@dataclass
class GameSnapshot:
    """Everything the service returns for a game fetch."""

    code: str
    status: GameStatus = GameStatus.RUNNING
    current_player_id: Optional[str] = None
    players: List[Player] = field(default_factory=list)
    properties: List[GameProperty] = field(default_factory=list)
    history: List[str] = field(default_factory=list)
    duration: Optional[int] = None  # minutes, None = untimed
    started_at: Optional[float] = None
    winner_id: Optional[str] = None

    def player(self, player_id: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    @property
    def current_player(self) -> Optional[Player]:
        return self.player(self.current_player_id)

    def game_property(self, property_id: int) -> Optional[GameProperty]:
        for prop in self.properties:
            if prop.id == property_id:
                return prop
        return None

    def owner_of(self, property_id: int) -> Optional[str]:
        prop = self.game_property(property_id)
        return prop.owner if prop else None

    def properties_of(self, player_id: str) -> List[GameProperty]:
        return [p for p in self.properties if p.owner == player_id]

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "status": self.status.value,
            "current_player_id": self.current_player_id,
            "players": [p.to_dict() for p in self.players],
            "properties": [p.to_dict() for p in self.properties],
            "history": list(self.history),
            "duration": self.duration,
            "started_at": self.started_at,
            "winner_id": self.winner_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameSnapshot":
        return cls(
            code=data["code"],
            status=GameStatus(data.get("status", GameStatus.RUNNING.value)),
            current_player_id=data.get("current_player_id"),
            players=[Player.from_dict(p) for p in data.get("players", [])],
            properties=[GameProperty.from_dict(p) for p in data.get("properties", [])],
            history=list(data.get("history", [])),
            duration=data.get("duration"),
            started_at=data.get("started_at"),
            winner_id=data.get("winner_id"),
        )
