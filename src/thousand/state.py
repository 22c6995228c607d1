"""
Mutable game state: per-round bookkeeping, per-player state and the summary
of what the last round scoring did.

Per-seat bookkeeping (bids, passes, declared marriages) is stored as lists
indexed by seat, sized from ``Rules.players``.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set

from .deck import Card, Suit
from .rules import Rules


class Phase(Enum):
    DEAL = "deal"
    BIDDING = "bidding"
    KITTY_TAKE = "kitty_take"
    SNOS = "snos"
    PLAY_TRICKS = "play_tricks"
    SCORE_ROUND = "score_round"
    GAME_OVER = "game_over"


@dataclass
class PlayerState:
    id: int
    hand: List[Card] = field(default_factory=list)
    tricks: List[List[Card]] = field(default_factory=list)
    round_pts: int = 0
    game_score: int = 0
    marriage_pts: int = 0
    # Consecutive count of rounds without a trick, reset by the penalty
    bolts: int = 0
    on_barrel: bool = False
    barrel_attempts: int = 0


@dataclass
class RoundState:
    phase: Phase = Phase.DEAL
    dealer: int = 0
    leader: int = 0
    trump: Optional[Suit] = None
    kitty: List[Card] = field(default_factory=list)
    hands_dealt: bool = False
    bids: List[Optional[int]] = field(default_factory=list)
    passed: List[bool] = field(default_factory=list)
    bid_turn: int = 0
    bid_winner: Optional[int] = None
    bid_value: int = 0
    trick_cards: List[Card] = field(default_factory=list)
    trick_order: List[int] = field(default_factory=list)
    declared_marriages: List[Set[Suit]] = field(default_factory=list)
    declared_ace_marriage: List[bool] = field(default_factory=list)

    @classmethod
    def fresh(cls, players: int, dealer: int = 0) -> "RoundState":
        return cls(
            phase=Phase.DEAL,
            dealer=dealer,
            bids=[None] * players,
            passed=[False] * players,
            declared_marriages=[set() for _ in range(players)],
            declared_ace_marriage=[False] * players,
        )

    def active_bidders(self) -> List[int]:
        return [p for p, has_passed in enumerate(self.passed) if not has_passed]

    def any_trick_completed(self, players: List[PlayerState]) -> bool:
        return any(p.tricks for p in players)


@dataclass
class RoundEffects:
    """What the last round scoring (or renounce) did, by seat index."""

    bolts: List[int] = field(default_factory=list)
    bolt_penalties: List[int] = field(default_factory=list)
    barrel_enter: List[int] = field(default_factory=list)
    barrel_exit: List[int] = field(default_factory=list)
    barrel_penalty: List[int] = field(default_factory=list)
    dumped: List[int] = field(default_factory=list)
    winner: Optional[int] = None
    rospis: Optional[int] = None


@dataclass
class GameState:
    rules: Rules
    seed: int
    round: RoundState
    players: List[PlayerState]
    last_round_points: List[int] = field(default_factory=list)
    last_round_effects: RoundEffects = field(default_factory=RoundEffects)

    def reset_round(self) -> None:
        """Back to the Deal phase with the same dealer; hands and round scores cleared."""
        self.round = RoundState.fresh(self.rules.players, dealer=self.round.dealer)
        for p in self.players:
            p.hand = []
            p.tricks = []
            p.round_pts = 0
            p.marriage_pts = 0

    def is_over(self) -> bool:
        return self.round.phase == Phase.GAME_OVER

    def needs_deal(self) -> bool:
        return self.round.phase == Phase.DEAL and not self.round.hands_dealt

    def scores(self) -> List[int]:
        return [p.game_score for p in self.players]

    def copy(self) -> "GameState":
        """Deep copy; Rules is frozen and shared."""
        return copy.deepcopy(self, {id(self.rules): self.rules})


def new_game(rules: Rules, seed: int) -> GameState:
    """A game in the Deal phase, dealer at seat 0, all scores zero."""
    return GameState(
        rules=rules,
        seed=seed,
        round=RoundState.fresh(rules.players),
        players=[PlayerState(id=i) for i in range(rules.players)],
    )


def all_cards_in_play(state: GameState) -> List[Card]:
    """Every card in hands, tricks, kitty and the trick on the table."""
    cards: List[Card] = []
    for p in state.players:
        cards.extend(p.hand)
        for trick in p.tricks:
            cards.extend(trick)
    cards.extend(state.round.kitty)
    cards.extend(state.round.trick_cards)
    return cards


__all__ = [
    "Phase",
    "PlayerState",
    "RoundState",
    "RoundEffects",
    "GameState",
    "new_game",
    "all_cards_in_play",
]
