"""
Baseline bots and the generic bot interface.

A bot reads the state and the engine's legal actions and returns one
``Action``; it never mutates the state. ``RandomBot`` picks uniformly among
legal actions, ``HeuristicBot`` bids from a hand estimate and plays
greedily. Both choose the snos discard themselves since the engine only
offers a placeholder for it.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Protocol

from .actions import Action, ActionType, bid, pass_, snos
from .deck import MARRIAGE_VALUES, Card, Suit, cards_point_total, marriage_suits
from .engine import legal_actions
from .play import build_trick_order, trick_winner
from .state import GameState, Phase


class Bot(Protocol):
    """Decision policy working directly on engine state."""

    def choose_action(self, state: GameState, player: int) -> Action:
        """
        Return one action for ``player``. Implementations must return an
        action the engine accepts and must not modify ``state``.
        """


def _card_weight(card: Card) -> int:
    return card.points() * 10 + card.strength()


def discard_lowest_points(state: GameState, player: int, count: int) -> Action:
    """Snos of the ``count`` cheapest cards, keeping Queen/King marriage pairs if possible."""
    hand = list(state.players[player].hand)
    pairs = set(marriage_suits(hand))

    def key(c: Card) -> tuple[int, int]:
        pts = c.points()
        if c.suit in pairs and c.is_marriage_card():
            pts += 20
        return pts, c.strength()

    hand.sort(key=key)
    return snos(hand[:min(count, len(hand))])


def would_win_trick(state: GameState, player: int, card: Card) -> bool:
    """True if ``card`` would currently be the best card of the trick (ignoring later plays)."""
    rnd = state.round
    order = list(rnd.trick_order) or build_trick_order(rnd.leader, state.rules.players)
    order = order[:len(rnd.trick_cards)] + [player]
    cards = list(rnd.trick_cards) + [card]
    return trick_winner(order, cards, rnd.trump) == player


def estimate_hand(hand: List[Card]) -> int:
    """Rough points a hand can take: card points, marriages, a bonus for long suits."""
    points = cards_point_total(hand)
    points += sum(MARRIAGE_VALUES[s] for s in marriage_suits(hand))
    counts = {s: 0 for s in Suit}
    for c in hand:
        counts[c.suit] += 1
    points += sum((n - 2) * 4 for n in counts.values() if n >= 3)
    return points


@dataclass
class RandomBot:
    """
    Samples uniformly among legal actions.

    Usage:
        bot = RandomBot(seed=42)
        action = bot.choose_action(state, player)
    """

    seed: int | None = None

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)

    def choose_action(self, state: GameState, player: int) -> Action:
        legal = legal_actions(state, player)
        if not legal:
            raise ValueError(f"No legal actions for player {player} in phase {state.round.phase.value}")
        if state.round.phase == Phase.SNOS:
            return discard_lowest_points(state, player, state.rules.snos_cards)
        return self._rng.choice(legal)


@dataclass
class HeuristicBot:
    """
    Greedy bot: bids its hand estimate, declares the richest marriage,
    leads its best card, wins tricks as cheaply as it can, else sheds.
    Renounces when the hand after snos is worth less than half the bid.
    """

    seed: int | None = None

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)

    def choose_action(self, state: GameState, player: int) -> Action:
        phase = state.round.phase
        legal = legal_actions(state, player)
        if not legal:
            raise ValueError(f"No legal actions for player {player} in phase {phase.value}")
        if phase == Phase.BIDDING:
            return self._bid(state, player)
        if phase == Phase.SNOS:
            return discard_lowest_points(state, player, state.rules.snos_cards)
        if phase == Phase.PLAY_TRICKS:
            return self._play(state, player, legal)
        return legal[0]

    def _bid(self, state: GameState, player: int) -> Action:
        rules = state.rules
        estimate = estimate_hand(state.players[player].hand)
        if estimate < rules.bid_min:
            return pass_()
        value = rules.bid_min + ((estimate - rules.bid_min) // rules.bid_step) * rules.bid_step
        value = min(value, rules.max_bid)
        if value <= state.round.bid_value:
            return pass_()
        # Open low and raise one step at a time up to the estimate
        if state.round.bid_winner is None:
            opening = rules.bid_min
        else:
            opening = state.round.bid_value + rules.bid_step
        return bid(min(value, opening))

    def _play(self, state: GameState, player: int, legal: List[Action]) -> Action:
        rnd = state.round
        if any(a.type == ActionType.ROSPIS for a in legal):
            if estimate_hand(state.players[player].hand) < rnd.bid_value // 2:
                return next(a for a in legal if a.type == ActionType.ROSPIS)
        plays = [a for a in legal if a.type == ActionType.PLAY_CARD and a.card is not None]

        marriage = self._best_marriage(plays)
        if marriage is not None:
            return marriage
        plays = [a for a in plays if a.marriage_suit is None]

        if not rnd.trick_cards:
            top = max(_card_weight(a.card) for a in plays)
            return self._rng.choice([a for a in plays if _card_weight(a.card) == top])

        winning = [a for a in plays if would_win_trick(state, player, a.card)]
        if winning:
            return min(winning, key=lambda a: a.card.strength())
        return min(plays, key=lambda a: _card_weight(a.card))

    @staticmethod
    def _best_marriage(plays: List[Action]) -> Optional[Action]:
        marriages = [a for a in plays if a.marriage_suit is not None]
        if not marriages:
            return None
        return max(marriages, key=lambda a: MARRIAGE_VALUES[a.marriage_suit])


BOTS = {
    "random": RandomBot,
    "heuristic": HeuristicBot,
}


def make_bot(kind: str, seed: int | None = None) -> Bot:
    try:
        return BOTS[kind](seed=seed)
    except KeyError:
        raise ValueError(f"Unknown bot kind: {kind!r} (known: {', '.join(BOTS)})") from None


__all__ = [
    "Bot",
    "RandomBot",
    "HeuristicBot",
    "BOTS",
    "make_bot",
    "discard_lowest_points",
    "would_win_trick",
    "estimate_hand",
]
