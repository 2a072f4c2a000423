"""
Jail subsystem.

A jailed actor either rolls for doubles or leaves by paying the fine or
spending a Get Out of Jail Free card. A failed roll forces a second
choice: pay, use a card, or stay (which ends the turn). Paying or using
a card only clears the flag; the actor still has to roll.
"""
from dataclasses import dataclass
from typing import Optional

from tycoon.shared.constants import JAIL_FINE
from tycoon.shared.enums import JailCardType, JailOption, TurnPhase
from tycoon.shared.models import Player


@dataclass(frozen=True)
class JailAffordances:
    """Which jail controls are live for the actor right now."""

    in_jail: bool = False
    can_roll: bool = False
    can_pay_fine: bool = False
    has_chance_card: bool = False
    has_community_chest_card: bool = False
    must_choose: bool = False

    @property
    def can_use_card(self) -> bool:
        return self.has_chance_card or self.has_community_chest_card

    def to_dict(self) -> dict:
        return {
            "in_jail": self.in_jail,
            "can_roll": self.can_roll,
            "can_pay_fine": self.can_pay_fine,
            "has_chance_card": self.has_chance_card,
            "has_community_chest_card": self.has_community_chest_card,
            "can_use_card": self.can_use_card,
            "must_choose": self.must_choose,
        }


def is_jailed(player: Optional[Player]) -> bool:
    return bool(player and player.in_jail)


def card_count(player: Player, card_type: JailCardType) -> int:
    if card_type == JailCardType.CHANCE:
        return player.chance_jail_card
    return player.community_chest_jail_card


def jail_affordances(player: Optional[Player], phase: TurnPhase) -> JailAffordances:
    if player is None or phase not in (TurnPhase.JAIL_AWAITING_CHOICE, TurnPhase.JAIL_CHOICE_REQUIRED):
        return JailAffordances(in_jail=is_jailed(player))
    return JailAffordances(
        in_jail=True,
        can_roll=phase == TurnPhase.JAIL_AWAITING_CHOICE,
        can_pay_fine=player.balance >= JAIL_FINE,
        has_chance_card=player.chance_jail_card >= 1,
        has_community_chest_card=player.community_chest_jail_card >= 1,
        must_choose=phase == TurnPhase.JAIL_CHOICE_REQUIRED,
    )


def check_jail_option(player: Player, option: JailOption,
                      card_type: Optional[JailCardType] = None) -> Optional[str]:
    """
    Local precondition check for a jail option.

    Returns:
        A user-facing reason when the option is not affordable, else None
    """
    if option == JailOption.PAY_FINE and player.balance < JAIL_FINE:
        return f"You need ${JAIL_FINE} to pay the fine"
    if option == JailOption.USE_CARD:
        if card_type is None:
            return "Choose which card to use"
        if card_count(player, card_type) < 1:
            return "You have no Get Out of Jail Free card of that type"
    return None


def preferred_card(player: Player) -> Optional[JailCardType]:
    if player.chance_jail_card >= 1:
        return JailCardType.CHANCE
    if player.community_chest_jail_card >= 1:
        return JailCardType.COMMUNITY_CHEST
    return None


def ai_jail_option(player: Player, phase: TurnPhase) -> JailOption:
    """Autonomous players always try for doubles and stay when they miss."""
    if phase == TurnPhase.JAIL_CHOICE_REQUIRED:
        return JailOption.STAY
    return JailOption.ROLL_FOR_DOUBLES
