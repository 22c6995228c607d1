"""
Observation / action encoding for learned policies.

Flat observations describe the game from one seat's point of view:
- the seat's own hand, card by card, so a model can see suit lengths,
  marriage pairs and top cards;
- the trick on the table, the seat's own won cards and every won card;
- phase, seats (self, bidder, dealer, leader), trump, contract and scores.

The global action space is laid out as:
    [pass | bids... | take kitty | snos | rospis | 24 plays | 8 marriage plays]
Bid slots follow ``Rules.bid_values()``, so its size depends on the rules.

This module has no external dependencies; ``thousand.policies`` turns the
vectors into tensors.
"""
from __future__ import annotations

from typing import Iterable, List

from .actions import Action, ActionType, bid, pass_, play_card, rospis, take_kitty
from .agents import discard_lowest_points
from .engine import legal_actions
from .deck import Card, Rank, Suit
from .rules import Rules
from .state import GameState, Phase

NUM_CARDS: int = len(Suit) * len(Rank)  # 24
MAX_PLAYERS: int = 4
NUM_PHASES: int = len(Phase)
NUM_MARRIAGE_ACTIONS: int = len(Suit) * 2  # Queen or King of each suit

CARD_PLANES: int = 4  # hand, trick, own won cards, all won cards

_PHASES = list(Phase)

OBS_DIM: int = (
    CARD_PLANES * NUM_CARDS
    + NUM_PHASES
    + 4 * MAX_PLAYERS  # self, bidder, dealer, leader
    + len(Suit)        # trump
    + 1                # contract value
    + MAX_PLAYERS      # game scores
    + 2                # own barrel flag, own bolt count
)


def _one_hot(index: int | None, size: int) -> List[int]:
    vec = [0] * size
    if index is None:
        return vec
    if 0 <= index < size:
        vec[index] = 1
    return vec


def card_index(card: Card) -> int:
    """Stable index 0..23: suit-major, then rank in strength order."""
    return int(card.suit) * len(Rank) + int(card.rank)


def card_from_index(index: int) -> Card:
    if not 0 <= index < NUM_CARDS:
        raise ValueError(f"Invalid card index {index}")
    return Card(Suit(index // len(Rank)), Rank(index % len(Rank)))


def encode_card_set(cards: Iterable[Card]) -> List[int]:
    """Binary 24-dim vector: 1 if the card is present."""
    vec = [0] * NUM_CARDS
    for c in cards:
        vec[card_index(c)] = 1
    return vec


# ---- Action space ----


def num_bid_actions(rules: Rules) -> int:
    return len(rules.bid_values())


def take_kitty_index(rules: Rules) -> int:
    return 1 + num_bid_actions(rules)


def snos_index(rules: Rules) -> int:
    return take_kitty_index(rules) + 1


def rospis_index(rules: Rules) -> int:
    return take_kitty_index(rules) + 2


def first_card_index(rules: Rules) -> int:
    return take_kitty_index(rules) + 3


def first_marriage_index(rules: Rules) -> int:
    return first_card_index(rules) + NUM_CARDS


def num_actions(rules: Rules) -> int:
    return first_marriage_index(rules) + NUM_MARRIAGE_ACTIONS


def action_to_index(rules: Rules, action: Action) -> int:
    """Global action index. Snos maps to one slot whatever cards it carries."""
    if action.type == ActionType.PASS:
        return 0
    if action.type == ActionType.BID:
        values = rules.bid_values()
        if action.bid not in values:
            raise ValueError(f"Bid {action.bid} is not in the action space")
        return 1 + values.index(action.bid)
    if action.type == ActionType.TAKE_KITTY:
        return take_kitty_index(rules)
    if action.type == ActionType.SNOS:
        return snos_index(rules)
    if action.type == ActionType.ROSPIS:
        return rospis_index(rules)
    if action.card is None:
        raise ValueError("Play action without a card")
    if action.marriage_suit is None:
        return first_card_index(rules) + card_index(action.card)
    half = 0 if action.card.rank == Rank.QUEEN else 1
    return first_marriage_index(rules) + int(action.marriage_suit) * 2 + half


def index_to_action(state: GameState, player: int, index: int) -> Action:
    """
    Inverse of ``action_to_index`` for ``player`` in ``state``. The snos slot
    is resolved to a concrete discard of the cheapest cards.
    """
    rules = state.rules
    if not 0 <= index < num_actions(rules):
        raise ValueError(f"Invalid action index {index}")
    if index == 0:
        return pass_()
    if index < take_kitty_index(rules):
        return bid(rules.bid_values()[index - 1])
    if index == take_kitty_index(rules):
        return take_kitty()
    if index == snos_index(rules):
        return discard_lowest_points(state, player, rules.snos_cards)
    if index == rospis_index(rules):
        return rospis()
    if index < first_marriage_index(rules):
        return play_card(card_from_index(index - first_card_index(rules)))
    offset = index - first_marriage_index(rules)
    suit = Suit(offset // 2)
    rank = Rank.QUEEN if offset % 2 == 0 else Rank.KING
    return play_card(Card(suit, rank), suit)


def legal_action_mask(state: GameState, player: int) -> List[bool]:
    """Boolean mask over the global action space from ``engine.legal_actions``."""
    rules = state.rules
    mask = [False] * num_actions(rules)
    for action in legal_actions(state, player):
        mask[action_to_index(rules, action)] = True
    return mask


# ---- Observation ----


def encode_observation(state: GameState, player: int) -> List[float]:
    """Flat observation of ``state`` as seen by ``player`` (other hands stay hidden)."""
    rules = state.rules
    rnd = state.round
    me = state.players[player]

    hand_vec = encode_card_set(me.hand)
    trick_vec = encode_card_set(rnd.trick_cards)
    own_won_vec = encode_card_set(c for trick in me.tricks for c in trick)
    all_won_vec = encode_card_set(c for p in state.players for trick in p.tricks for c in trick)

    meta: List[float] = []
    meta.extend(_one_hot(_PHASES.index(rnd.phase), NUM_PHASES))
    meta.extend(_one_hot(player, MAX_PLAYERS))
    meta.extend(_one_hot(rnd.bid_winner, MAX_PLAYERS))
    meta.extend(_one_hot(rnd.dealer, MAX_PLAYERS))
    meta.extend(_one_hot(rnd.leader if rnd.phase == Phase.PLAY_TRICKS else None, MAX_PLAYERS))
    meta.extend(_one_hot(int(rnd.trump) if rnd.trump is not None else None, len(Suit)))
    meta.append(rnd.bid_value / rules.max_bid if rules.max_bid else 0.0)
    scores = [p.game_score / rules.win_score for p in state.players][:MAX_PLAYERS]
    meta.extend(scores + [0.0] * (MAX_PLAYERS - len(scores)))
    meta.append(1.0 if me.on_barrel else 0.0)
    meta.append(me.bolts / rules.bolt_every if rules.bolt_every else 0.0)

    vec = [float(x) for x in hand_vec + trick_vec + own_won_vec + all_won_vec] + [float(x) for x in meta]
    assert len(vec) == OBS_DIM
    return vec


__all__ = [
    "NUM_CARDS",
    "CARD_PLANES",
    "MAX_PLAYERS",
    "OBS_DIM",
    "card_index",
    "card_from_index",
    "encode_card_set",
    "num_actions",
    "num_bid_actions",
    "take_kitty_index",
    "snos_index",
    "rospis_index",
    "first_card_index",
    "first_marriage_index",
    "action_to_index",
    "index_to_action",
    "legal_action_mask",
    "encode_observation",
]
