"""Action variants a player can submit to the engine."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .deck import Card, Suit


class ActionType(Enum):
    BID = "bid"
    PASS = "pass"
    TAKE_KITTY = "take_kitty"
    SNOS = "snos"
    PLAY_CARD = "play_card"
    ROSPIS = "rospis"


@dataclass(frozen=True)
class Action:
    """
    One player decision.

    - BID uses ``bid``.
    - SNOS uses ``cards`` (in legal_actions it is an empty placeholder: the
      caller picks the concrete discard).
    - PLAY_CARD uses ``card`` and optionally ``marriage_suit``.
    """

    type: ActionType
    bid: int = 0
    card: Optional[Card] = None
    cards: tuple[Card, ...] = ()
    marriage_suit: Optional[Suit] = None

    def __str__(self) -> str:
        if self.type == ActionType.BID:
            return f"bid {self.bid}"
        if self.type == ActionType.SNOS:
            return "snos " + " ".join(str(c) for c in self.cards)
        if self.type == ActionType.PLAY_CARD:
            if self.marriage_suit is not None:
                return f"play {self.card} +marriage {self.marriage_suit.name.lower()}"
            return f"play {self.card}"
        return self.type.value


def bid(value: int) -> Action:
    return Action(ActionType.BID, bid=value)


def pass_() -> Action:
    return Action(ActionType.PASS)


def take_kitty() -> Action:
    return Action(ActionType.TAKE_KITTY)


def snos(cards: Iterable[Card] = ()) -> Action:
    return Action(ActionType.SNOS, cards=tuple(cards))


def play_card(card: Card, marriage_suit: Optional[Suit] = None) -> Action:
    return Action(ActionType.PLAY_CARD, card=card, marriage_suit=marriage_suit)


def rospis() -> Action:
    return Action(ActionType.ROSPIS)


__all__ = [
    "ActionType",
    "Action",
    "bid",
    "pass_",
    "take_kitty",
    "snos",
    "play_card",
    "rospis",
]
