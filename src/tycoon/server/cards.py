"""
Chance and Community Chest decks for the local game service.
"""
import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

from tycoon.shared.enums import JailCardType


class CardAction(Enum):
    """What a drawn card does to the player who drew it."""
    COLLECT_MONEY = auto()
    PAY_MONEY = auto()
    COLLECT_FROM_PLAYERS = auto()
    PAY_TO_PLAYERS = auto()
    MOVE_TO = auto()            # value is the target square
    MOVE_BACK = auto()          # value is the number of squares
    GO_TO_JAIL = auto()
    GET_OUT_OF_JAIL = auto()
    REPAIRS = auto()            # per_house / per_hotel


@dataclass
class Card:
    """A Chance or Community Chest card."""

    deck: JailCardType
    text: str
    action: CardAction
    value: int = 0  # Money amount or position
    per_house: int = 0
    per_hotel: int = 0
    keep: bool = False  # Get out of jail free cards are kept

    def to_dict(self) -> dict:
        return {
            "deck": self.deck.value,
            "text": self.text,
            "action": self.action.name,
            "value": self.value,
        }


CHANCE_CARDS = [
    Card(JailCardType.CHANCE, "Advance to Go. Collect $200.", CardAction.MOVE_TO, value=0),
    Card(JailCardType.CHANCE, "Advance to Illinois Avenue.", CardAction.MOVE_TO, value=24),
    Card(JailCardType.CHANCE, "Advance to St. Charles Place.", CardAction.MOVE_TO, value=11),
    Card(JailCardType.CHANCE, "Take a trip to Reading Railroad.", CardAction.MOVE_TO, value=5),
    Card(JailCardType.CHANCE, "Advance to Boardwalk.", CardAction.MOVE_TO, value=39),
    Card(JailCardType.CHANCE, "Bank pays you dividend of $50.", CardAction.COLLECT_MONEY, value=50),
    Card(JailCardType.CHANCE, "Get Out of Jail Free.", CardAction.GET_OUT_OF_JAIL, keep=True),
    Card(JailCardType.CHANCE, "Go back 3 spaces.", CardAction.MOVE_BACK, value=3),
    Card(JailCardType.CHANCE, "Go directly to Jail.", CardAction.GO_TO_JAIL),
    Card(JailCardType.CHANCE, "Make general repairs on all your property.", CardAction.REPAIRS,
         per_house=25, per_hotel=100),
    Card(JailCardType.CHANCE, "Speeding fine $15.", CardAction.PAY_MONEY, value=15),
    Card(JailCardType.CHANCE, "You have been elected Chairman of the Board. Pay each player $50.",
         CardAction.PAY_TO_PLAYERS, value=50),
    Card(JailCardType.CHANCE, "Your building loan matures. Collect $150.", CardAction.COLLECT_MONEY, value=150),
]

COMMUNITY_CHEST_CARDS = [
    Card(JailCardType.COMMUNITY_CHEST, "Advance to Go. Collect $200.", CardAction.MOVE_TO, value=0),
    Card(JailCardType.COMMUNITY_CHEST, "Bank error in your favor. Collect $200.", CardAction.COLLECT_MONEY, value=200),
    Card(JailCardType.COMMUNITY_CHEST, "Doctor's fee. Pay $50.", CardAction.PAY_MONEY, value=50),
    Card(JailCardType.COMMUNITY_CHEST, "From sale of stock you get $50.", CardAction.COLLECT_MONEY, value=50),
    Card(JailCardType.COMMUNITY_CHEST, "Get Out of Jail Free.", CardAction.GET_OUT_OF_JAIL, keep=True),
    Card(JailCardType.COMMUNITY_CHEST, "Go directly to Jail.", CardAction.GO_TO_JAIL),
    Card(JailCardType.COMMUNITY_CHEST, "Holiday fund matures. Receive $100.", CardAction.COLLECT_MONEY, value=100),
    Card(JailCardType.COMMUNITY_CHEST, "It is your birthday. Collect $10 from every player.",
         CardAction.COLLECT_FROM_PLAYERS, value=10),
    Card(JailCardType.COMMUNITY_CHEST, "Hospital fees. Pay $100.", CardAction.PAY_MONEY, value=100),
    Card(JailCardType.COMMUNITY_CHEST, "You are assessed for street repair.", CardAction.REPAIRS,
         per_house=40, per_hotel=115),
    Card(JailCardType.COMMUNITY_CHEST, "You inherit $100.", CardAction.COLLECT_MONEY, value=100),
]


@dataclass
class CardDeck:
    """A shuffled deck; kept cards leave the deck until returned."""

    deck: JailCardType
    rng: random.Random = field(default_factory=random.Random)
    cards: List[Card] = field(default_factory=list)
    discard: List[Card] = field(default_factory=list)

    def __post_init__(self):
        if not self.cards:
            self.reset()

    def reset(self) -> None:
        source = CHANCE_CARDS if self.deck == JailCardType.CHANCE else COMMUNITY_CHEST_CARDS
        self.cards = list(source)
        self.rng.shuffle(self.cards)
        self.discard = []

    def draw(self) -> Card:
        if not self.cards:
            self.cards = self.discard
            self.discard = []
            self.rng.shuffle(self.cards)

        card = self.cards.pop(0)
        if not card.keep:
            self.discard.append(card)
        return card

    def return_card(self) -> None:
        """Put a used Get Out of Jail Free card back into circulation."""
        source = CHANCE_CARDS if self.deck == JailCardType.CHANCE else COMMUNITY_CHEST_CARDS
        for card in source:
            if card.keep:
                self.discard.append(card)
                return


class CardManager:
    """Both decks of one game."""

    def __init__(self, seed: Optional[int] = None):
        rng = random.Random(seed)
        self.chance = CardDeck(JailCardType.CHANCE, rng=rng)
        self.community_chest = CardDeck(JailCardType.COMMUNITY_CHEST, rng=rng)

    def deck_for(self, deck: JailCardType) -> CardDeck:
        return self.chance if deck == JailCardType.CHANCE else self.community_chest

    def draw(self, deck: JailCardType) -> Card:
        return self.deck_for(deck).draw()
