"""
Thousand deck: 24 cards (4 suits × 9, J, Q, K, 10, A).
Two orderings per rank: strength for winning tricks, points for scoring.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checking only
    from .rules import Rules


class Suit(IntEnum):
    """Clubs, Diamonds, Hearts, Spades. Order is the deck build order."""
    CLUBS = 0
    DIAMONDS = 1
    HEARTS = 2
    SPADES = 3


class Rank(IntEnum):
    """Ranks in trick-winning order: 9 < J < Q < K < 10 < A."""
    NINE = 0
    JACK = 1
    QUEEN = 2
    KING = 3
    TEN = 4
    ACE = 5


RANK_POINTS = {
    Rank.ACE: 11,
    Rank.TEN: 10,
    Rank.KING: 4,
    Rank.QUEEN: 3,
    Rank.JACK: 2,
    Rank.NINE: 0,
}

# Queen + King held in one suit
MARRIAGE_VALUES = {
    Suit.HEARTS: 100,
    Suit.DIAMONDS: 80,
    Suit.CLUBS: 60,
    Suit.SPADES: 40,
}

# All four Aces held
ACE_MARRIAGE_VALUE = 200

ALL_RANKS = (Rank.NINE, Rank.JACK, Rank.QUEEN, Rank.KING, Rank.TEN, Rank.ACE)

SUIT_CHARS = {Suit.CLUBS: "C", Suit.DIAMONDS: "D", Suit.HEARTS: "H", Suit.SPADES: "S"}
RANK_CHARS = {
    Rank.NINE: "9",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.TEN: "10",
    Rank.ACE: "A",
}
CHAR_TO_SUIT = {v: k for k, v in SUIT_CHARS.items()}
CHAR_TO_RANK = {v: k for k, v in RANK_CHARS.items()}


@dataclass(frozen=True)
class Card:
    """A single card. Compared by value: two AH cards are equal."""

    suit: Suit
    rank: Rank

    def strength(self) -> int:
        """1 (nine) .. 6 (ace)."""
        return int(self.rank) + 1

    def points(self) -> int:
        return RANK_POINTS[self.rank]

    def is_marriage_card(self) -> bool:
        """True for a Queen or King, the two halves of a marriage."""
        return self.rank in (Rank.QUEEN, Rank.KING)

    def __str__(self) -> str:
        return f"{RANK_CHARS[self.rank]}{SUIT_CHARS[self.suit]}"

    def __repr__(self) -> str:
        return str(self)


def parse_card(text: str) -> Card:
    """Inverse of ``str(card)``: "AH" -> Card(HEARTS, ACE), "10S" -> Card(SPADES, TEN)."""
    text = text.strip().upper()
    if len(text) < 2:
        raise ValueError(f"Invalid card: {text!r}")
    rank = CHAR_TO_RANK.get(text[:-1])
    suit = CHAR_TO_SUIT.get(text[-1])
    if rank is None or suit is None:
        raise ValueError(f"Invalid card: {text!r}")
    return Card(suit, rank)


def build_deck(rules: "Rules") -> list[Card]:
    """One card per (suit, configured rank), suit-major. No randomness."""
    return [Card(s, r) for s in Suit for r in rules.deck_ranks]


def shuffle(deck: Iterable[Card], seed: int) -> list[Card]:
    """
    Return a seeded permutation of ``deck``. The input is not modified.
    The same seed and deck always give the same order (needed for replay).
    """
    shuffled = list(deck)
    random.Random(seed).shuffle(shuffled)
    return shuffled


def cards_point_total(cards: Iterable[Card]) -> int:
    return sum(c.points() for c in cards)


def has_suit(hand: Iterable[Card], suit: Suit) -> bool:
    return any(c.suit == suit for c in hand)


def holds_marriage(hand: Iterable[Card], suit: Suit) -> bool:
    """True if the hand holds both the Queen and the King of ``suit``."""
    hand = list(hand)
    return Card(suit, Rank.QUEEN) in hand and Card(suit, Rank.KING) in hand


def marriage_suits(hand: Iterable[Card]) -> list[Suit]:
    hand = list(hand)
    return [s for s in Suit if holds_marriage(hand, s)]


def holds_all_aces(hand: Iterable[Card]) -> bool:
    hand = list(hand)
    return all(Card(s, Rank.ACE) in hand for s in Suit)
