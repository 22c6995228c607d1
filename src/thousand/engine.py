"""
Engine entry points used by every driver (bots, session, self-play):

    player = current_player(state)
    actions = legal_actions(state, player)
    apply_action(state, player, action)   # raises ActionError, state unchanged

Phases: Deal -> Bidding -> KittyTake -> Snos -> PlayTricks -> ScoreRound
-> (Deal | GameOver). The driver calls ``deal_round`` whenever the state
is back in the Deal phase.
"""
from __future__ import annotations

from collections import Counter
from typing import Optional

from .actions import Action, ActionType, snos, take_kitty
from .bidding import apply_bid, legal_bids
from .errors import ActionError, ErrorKind, InvariantError
from .play import apply_play, expected_player, legal_plays
from .scoring import score_round
from .state import GameState, Phase, all_cards_in_play
from .deck import build_deck


def current_player(state: GameState) -> Optional[int]:
    """Seat expected to act, or None when nobody is (Deal, GameOver, between tricks)."""
    rnd = state.round
    if rnd.phase == Phase.BIDDING:
        if rnd.passed[rnd.bid_turn]:
            return None
        return rnd.bid_turn
    if rnd.phase in (Phase.KITTY_TAKE, Phase.SNOS):
        return rnd.bid_winner
    if rnd.phase == Phase.PLAY_TRICKS:
        return expected_player(state)
    return None


def legal_actions(state: GameState, player: int) -> list[Action]:
    """
    Actions ``player`` may take now. Snos is a single placeholder action:
    the caller fills in the cards to discard.
    """
    rnd = state.round
    if rnd.phase == Phase.BIDDING:
        return legal_bids(state, player)
    if rnd.phase == Phase.KITTY_TAKE:
        return [take_kitty()] if player == rnd.bid_winner else []
    if rnd.phase == Phase.SNOS:
        return [snos()] if player == rnd.bid_winner else []
    if rnd.phase == Phase.PLAY_TRICKS:
        return legal_plays(state, player)
    return []


def apply_action(state: GameState, player: int, action: Action) -> None:
    """Validate ``action`` for ``player`` and apply it. Rejections raise ActionError."""
    phase = state.round.phase
    if phase == Phase.BIDDING:
        apply_bid(state, player, action)
    elif phase == Phase.KITTY_TAKE:
        apply_kitty_take(state, player, action)
    elif phase == Phase.SNOS:
        apply_snos(state, player, action)
    elif phase == Phase.PLAY_TRICKS:
        apply_play(state, player, action)
    elif phase == Phase.SCORE_ROUND:
        score_round(state)
    else:
        raise ActionError(ErrorKind.WRONG_PHASE, f"no actions accepted in phase {phase.value}")


def apply_kitty_take(state: GameState, player: int, action: Action) -> None:
    rnd = state.round
    if player != rnd.bid_winner:
        raise ActionError(ErrorKind.WRONG_ACTOR, "only the bidder takes the kitty")
    if action.type != ActionType.TAKE_KITTY:
        raise ActionError(ErrorKind.WRONG_ACTION_TYPE, f"{action.type.value} not allowed before kitty is taken")
    state.players[player].hand.extend(rnd.kitty)
    rnd.kitty = []
    rnd.phase = Phase.SNOS


def snos_receivers(bidder: int, players: int) -> list[int]:
    """Opponents in seat order starting after the bidder."""
    return [(bidder + i) % players for i in range(1, players)]


def apply_snos(state: GameState, player: int, action: Action) -> None:
    """
    Bidder discards ``rules.snos_cards`` cards; the i-th card goes to the
    i-th opponent after the bidder. Every hand must end at the play size.
    """
    rules = state.rules
    rnd = state.round
    if player != rnd.bid_winner:
        raise ActionError(ErrorKind.WRONG_ACTOR, "only the bidder makes the snos")
    if action.type != ActionType.SNOS:
        raise ActionError(ErrorKind.WRONG_ACTION_TYPE, f"{action.type.value} not allowed during snos")
    cards = list(action.cards)
    receivers = snos_receivers(player, rules.players)
    if len(cards) != rules.snos_cards or len(cards) > len(receivers):
        raise ActionError(ErrorKind.DISCARD_COUNT, f"snos needs exactly {rules.snos_cards} cards, got {len(cards)}")

    remaining = list(state.players[player].hand)
    for c in cards:
        if c not in remaining:
            raise ActionError(ErrorKind.CARD_NOT_IN_HAND, f"{c} not in hand")
        remaining.remove(c)
    if len(remaining) != rules.play_hand_size:
        raise ActionError(
            ErrorKind.HAND_SIZE_MISMATCH,
            f"bidder would hold {len(remaining)} cards, expected {rules.play_hand_size}",
        )
    gets = dict(zip(receivers, cards))
    for seat in receivers:
        size = len(state.players[seat].hand) + (1 if seat in gets else 0)
        if size != rules.play_hand_size:
            raise ActionError(
                ErrorKind.HAND_SIZE_MISMATCH,
                f"player {seat} would hold {size} cards, expected {rules.play_hand_size}",
            )

    state.players[player].hand = remaining
    for seat, card in gets.items():
        state.players[seat].hand.append(card)
    rnd.phase = Phase.PLAY_TRICKS
    rnd.leader = player
    rnd.trick_cards = []
    rnd.trick_order = []


def check_invariants(state: GameState) -> None:
    """
    Raise InvariantError if the state breaks card conservation or the
    expected hand sizes for its phase. A state waiting for a deal is exempt.
    """
    if state.needs_deal():
        return
    rules = state.rules
    rnd = state.round

    cards = all_cards_in_play(state)
    deck_size = len(build_deck(rules))
    if len(cards) != deck_size:
        raise InvariantError(f"card count mismatch: {len(cards)} != {deck_size}")
    dupes = [c for c, n in Counter(cards).items() if n > 1]
    if dupes:
        raise InvariantError(f"duplicate cards: {dupes}")
    if len(rnd.trick_cards) >= rules.players:
        raise InvariantError(f"unresolved full trick: {rnd.trick_cards}")
    for seat, b in enumerate(rnd.bids):
        if b is not None and b > rnd.bid_value:
            raise InvariantError(f"player {seat} bid {b} above high bid {rnd.bid_value}")

    hands = [len(p.hand) for p in state.players]
    if rnd.phase in (Phase.BIDDING, Phase.KITTY_TAKE):
        if any(n != rules.deal_hand_size for n in hands):
            raise InvariantError(f"hand sizes {hands} before kitty, expected {rules.deal_hand_size}")
    elif rnd.phase == Phase.SNOS:
        for seat, n in enumerate(hands):
            want = rules.deal_hand_size + (rules.kitty_size if seat == rnd.bid_winner else 0)
            if n != want:
                raise InvariantError(f"player {seat} holds {n} cards during snos, expected {want}")
    elif rnd.phase == Phase.PLAY_TRICKS:
        completed = sum(len(p.tricks) for p in state.players)
        played_now = set(rnd.trick_order[:len(rnd.trick_cards)])
        for seat, n in enumerate(hands):
            want = rules.play_hand_size - completed - (1 if seat in played_now else 0)
            if n != want:
                raise InvariantError(f"player {seat} holds {n} cards in play, expected {want}")


__all__ = [
    "current_player",
    "legal_actions",
    "apply_action",
    "apply_kitty_take",
    "apply_snos",
    "snos_receivers",
    "check_invariants",
]
