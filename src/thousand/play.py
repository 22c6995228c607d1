"""
Trick-taking: legal moves, marriages, renounce (rospis), trick winner.
Follow the led suit if you can; a declared marriage sets trump; highest
trump wins, else highest card of the led suit.
"""
from __future__ import annotations

from typing import Optional, Sequence

from .actions import Action, ActionType, play_card, rospis
from .deal import pass_the_deal
from .deck import ACE_MARRIAGE_VALUE, MARRIAGE_VALUES, Card, Rank, Suit, has_suit, holds_all_aces, holds_marriage
from .errors import ActionError, ErrorKind
from .scoring import score_round
from .state import GameState, Phase, RoundEffects


def build_trick_order(leader: int, players: int) -> list[int]:
    return [(leader + i) % players for i in range(players)]


def trick_winner(order: Sequence[int], cards: Sequence[Card], trump: Optional[Suit]) -> int:
    """
    Seat that wins the trick. ``order[i]`` played ``cards[i]``.
    A card takes the lead if it is the first trump, a higher card of the
    current best's suit, or the first card of the led suit after an off-suit best.
    """
    if not order or not cards:
        raise ValueError("Empty trick has no winner")
    lead_suit = cards[0].suit
    best_idx = 0
    for i in range(1, len(cards)):
        c = cards[i]
        best = cards[best_idx]
        if trump is not None:
            if c.suit == trump and best.suit != trump:
                best_idx = i
                continue
            if c.suit != trump and best.suit == trump:
                continue
        if c.suit == best.suit:
            if c.strength() > best.strength():
                best_idx = i
            continue
        if best.suit != lead_suit and c.suit == lead_suit:
            best_idx = i
    return order[best_idx]


def expected_player(state: GameState) -> Optional[int]:
    """Seat due to play next in the current trick, or None once the order is used up."""
    rnd = state.round
    order = rnd.trick_order or build_trick_order(rnd.leader, state.rules.players)
    idx = len(rnd.trick_cards)
    if idx >= len(order):
        return None
    return order[idx]


def legal_cards(state: GameState, player: int) -> list[Card]:
    """Cards of ``player``'s hand that may be played on the current trick."""
    rules = state.rules
    rnd = state.round
    hand = state.players[player].hand
    if not rnd.trick_cards:
        return list(hand)

    led = rnd.trick_cards[0].suit
    trump = rnd.trump
    follows = has_suit(hand, led)
    if rules.must_follow_suit and follows:
        cards = [c for c in hand if c.suit == led]
    elif rules.must_trump_if_void and not follows and trump is not None and has_suit(hand, trump):
        cards = [c for c in hand if c.suit == trump]
    else:
        cards = list(hand)

    if rules.must_over_trump and trump is not None and cards and all(c.suit == trump for c in cards):
        trick_trumps = [c.strength() for c in rnd.trick_cards if c.suit == trump]
        if trick_trumps:
            over = [c for c in cards if c.strength() > max(trick_trumps)]
            if over:
                cards = over
    return cards


def marriage_blocker(state: GameState, player: int, suit: Suit) -> Optional[ErrorKind]:
    """None if ``player`` may declare the ``suit`` marriage now, else the reason they may not."""
    p = state.players[player]
    if suit in state.round.declared_marriages[player]:
        return ErrorKind.MARRIAGE_ALREADY_DECLARED
    if not holds_marriage(p.hand, suit):
        return ErrorKind.MARRIAGE_PRECONDITION
    if state.rules.marriage_requires_trick and not p.tricks:
        return ErrorKind.MARRIAGE_PRECONDITION
    return None


def can_rospis(state: GameState, player: int) -> bool:
    """Bidder may renounce until the first card of the round is played."""
    rnd = state.round
    return (
        player == rnd.bid_winner
        and not rnd.trick_cards
        and not rnd.any_trick_completed(state.players)
    )


def legal_plays(state: GameState, player: int) -> list[Action]:
    rnd = state.round
    if rnd.phase != Phase.PLAY_TRICKS:
        return []
    if player != expected_player(state):
        return []
    if not state.players[player].hand:
        return []
    out: list[Action] = []
    for card in legal_cards(state, player):
        out.append(play_card(card))
        if card.is_marriage_card() and marriage_blocker(state, player, card.suit) is None:
            out.append(play_card(card, card.suit))
    if can_rospis(state, player):
        out.append(rospis())
    return out


def apply_rospis(state: GameState, player: int) -> None:
    """Bidder pays the bid; each opponent gets half of it (rounded down). Round ends."""
    rnd = state.round
    if player != rnd.bid_winner:
        raise ActionError(ErrorKind.WRONG_ACTOR, "only the bidder can renounce")
    if not can_rospis(state, player):
        raise ActionError(ErrorKind.ROSPIS_TOO_LATE, "cannot renounce after play has started")

    value = rnd.bid_value
    half = value // 2
    for seat, p in enumerate(state.players):
        if seat == player:
            p.game_score -= value
        else:
            p.game_score += half
    state.last_round_points = [0] * state.rules.players
    state.last_round_effects = RoundEffects(rospis=player)
    pass_the_deal(state)


def apply_play(state: GameState, player: int, action: Action) -> None:
    if action.type == ActionType.ROSPIS:
        apply_rospis(state, player)
        return
    if action.type != ActionType.PLAY_CARD or action.card is None:
        raise ActionError(ErrorKind.WRONG_ACTION_TYPE, f"{action.type.value} not allowed while playing")

    rules = state.rules
    rnd = state.round
    order = rnd.trick_order or build_trick_order(rnd.leader, rules.players)
    idx = len(rnd.trick_cards)
    if idx >= len(order) or order[idx] != player:
        raise ActionError(ErrorKind.WRONG_TURN, f"not player {player}'s turn to play")

    p = state.players[player]
    card = action.card
    if card not in p.hand:
        raise ActionError(ErrorKind.CARD_NOT_IN_HAND, f"{card} not in hand")
    if card not in legal_cards(state, player):
        raise ActionError(ErrorKind.ILLEGAL_PLAY, f"{card} cannot be played on this trick")
    suit = action.marriage_suit
    if suit is not None:
        if card.suit != suit or not card.is_marriage_card():
            raise ActionError(
                ErrorKind.MARRIAGE_PRECONDITION,
                f"{card} is not the Queen or King of {suit.name.lower()}",
            )
        blocker = marriage_blocker(state, player, suit)
        if blocker is not None:
            raise ActionError(blocker, f"cannot declare {suit.name.lower()} marriage")

    # Validated: mutate from here on
    rnd.trick_order = order
    if suit is not None:
        value = MARRIAGE_VALUES[suit]
        p.marriage_pts += value
        p.round_pts += value
        rnd.declared_marriages[player].add(suit)
        rnd.trump = suit
    if (
        rules.ace_marriage_enabled
        and card.rank == Rank.ACE
        and not rnd.declared_ace_marriage[player]
        and holds_all_aces(p.hand)
    ):
        p.marriage_pts += ACE_MARRIAGE_VALUE
        p.round_pts += ACE_MARRIAGE_VALUE
        rnd.declared_ace_marriage[player] = True

    p.hand.remove(card)
    rnd.trick_cards.append(card)
    if len(rnd.trick_cards) == rules.players:
        _complete_trick(state)


def _complete_trick(state: GameState) -> None:
    rnd = state.round
    winner = trick_winner(rnd.trick_order, rnd.trick_cards, rnd.trump)
    state.players[winner].tricks.append(list(rnd.trick_cards))
    rnd.leader = winner
    rnd.trick_cards = []
    rnd.trick_order = []
    if not state.players[winner].hand:
        rnd.phase = Phase.SCORE_ROUND
        score_round(state)


__all__ = [
    "build_trick_order",
    "trick_winner",
    "expected_player",
    "legal_cards",
    "marriage_blocker",
    "can_rospis",
    "legal_plays",
    "apply_play",
    "apply_rospis",
]
