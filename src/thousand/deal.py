"""
Distribution (deal) for a Thousand round.
Shuffled pack is sliced: one hand per seat in seat order, then the kitty.
First to bid = seat after the dealer.
"""
from __future__ import annotations

from .deck import build_deck, shuffle
from .state import GameState, Phase


def next_dealer(dealer: int, players: int) -> int:
    """Dealer rotates in play direction (0 -> 1 -> 2 -> 0)."""
    return (dealer + 1) % players


def first_to_bid(dealer: int, players: int) -> int:
    """The seat after the dealer speaks first."""
    return (dealer + 1) % players


def pass_the_deal(state: GameState) -> None:
    """End the round without a winner: next dealer, back to the Deal phase."""
    state.round.dealer = next_dealer(state.round.dealer, state.rules.players)
    state.reset_round()


def deal_round(state: GameState) -> None:
    """
    Deal hands and kitty from ``shuffle(build_deck(rules), state.seed)``.

    Raises DealConfigError (before touching the state) if hand and kitty
    sizes do not use the whole deck.
    """
    rules = state.rules
    rules.check_deal_sizes()
    deck = shuffle(build_deck(rules), state.seed)

    size = rules.deal_hand_size
    for p, player in enumerate(state.players):
        player.hand = deck[p * size:(p + 1) * size]
    rnd = state.round
    rnd.kitty = deck[size * rules.players:]
    rnd.hands_dealt = True
    rnd.bids = [None] * rules.players
    rnd.passed = [False] * rules.players
    rnd.bid_turn = first_to_bid(rnd.dealer, rules.players)
    rnd.bid_winner = None
    rnd.bid_value = 0
    rnd.phase = Phase.BIDDING


__all__ = ["deal_round", "pass_the_deal", "next_dealer", "first_to_bid"]
