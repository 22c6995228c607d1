"""
JSON-compatible projections of cards, actions and the game state.

``build_game_view`` is what a client seat is allowed to see: its own hand,
the size of every other hand, the kitty only by size, plus the public parts
of the round (bids, trick on the table, trump, scores) and its legal actions.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from .actions import Action, ActionType
from .deck import CHAR_TO_RANK, CHAR_TO_SUIT, RANK_CHARS, Card, Rank, Suit
from .engine import current_player, legal_actions
from .state import GameState

_SUIT_NAMES = {s: s.name.lower() for s in Suit}
_NAME_TO_SUIT = {v: k for k, v in _SUIT_NAMES.items()}


def _suit_from_any(value: Any) -> Suit:
    if isinstance(value, str):
        key = value.strip()
        if key.lower() in _NAME_TO_SUIT:
            return _NAME_TO_SUIT[key.lower()]
        if key.upper() in CHAR_TO_SUIT:
            return CHAR_TO_SUIT[key.upper()]
    raise ValueError(f"Invalid suit: {value!r}")


def card_to_dict(card: Card) -> Dict[str, str]:
    return {"suit": _SUIT_NAMES[card.suit], "rank": RANK_CHARS[card.rank]}


def card_from_dict(d: Dict[str, Any]) -> Card:
    if not isinstance(d, dict) or "suit" not in d or "rank" not in d:
        raise ValueError(f"Invalid card: {d!r}")
    rank: Optional[Rank] = CHAR_TO_RANK.get(str(d["rank"]).strip().upper())
    if rank is None:
        raise ValueError(f"Invalid rank: {d['rank']!r}")
    return Card(_suit_from_any(d["suit"]), rank)


def action_to_dict(action: Action) -> Dict[str, Any]:
    d: Dict[str, Any] = {"type": action.type.value}
    if action.type == ActionType.BID:
        d["bid"] = action.bid
    elif action.type == ActionType.SNOS:
        d["cards"] = [card_to_dict(c) for c in action.cards]
    elif action.type == ActionType.PLAY_CARD:
        d["card"] = card_to_dict(action.card) if action.card is not None else None
        if action.marriage_suit is not None:
            d["marriage_suit"] = _SUIT_NAMES[action.marriage_suit]
    return d


def action_from_dict(d: Dict[str, Any]) -> Action:
    """Parse a client action. Raises ValueError on anything malformed."""
    if not isinstance(d, dict) or "type" not in d:
        raise ValueError(f"Invalid action: {d!r}")
    try:
        kind = ActionType(d["type"])
    except ValueError:
        raise ValueError(f"Unknown action type: {d['type']!r}") from None

    if kind == ActionType.BID:
        value = d.get("bid")
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Bid needs an integer value, got {value!r}")
        return Action(kind, bid=value)
    if kind == ActionType.SNOS:
        cards = d.get("cards", [])
        if not isinstance(cards, list):
            raise ValueError(f"Snos cards must be a list, got {cards!r}")
        return Action(kind, cards=tuple(card_from_dict(c) for c in cards))
    if kind == ActionType.PLAY_CARD:
        if d.get("card") is None:
            raise ValueError("Play action without a card")
        suit = d.get("marriage_suit")
        return Action(
            kind,
            card=card_from_dict(d["card"]),
            marriage_suit=_suit_from_any(suit) if suit is not None else None,
        )
    return Action(kind)


def build_game_view(state: GameState, viewer: int) -> Dict[str, Any]:
    """State as seen by seat ``viewer``: other hands and the kitty are sizes only."""
    if not 0 <= viewer < state.rules.players:
        raise ValueError(f"Invalid viewer seat {viewer}")
    rnd = state.round
    turn = current_player(state)

    players: List[Dict[str, Any]] = []
    for seat, p in enumerate(state.players):
        entry: Dict[str, Any] = {
            "seat": seat,
            "hand_size": len(p.hand),
            "tricks_won": len(p.tricks),
            "round_points": p.round_pts,
            "marriage_points": p.marriage_pts,
            "game_score": p.game_score,
            "bolts": p.bolts,
            "on_barrel": p.on_barrel,
            "barrel_attempts": p.barrel_attempts,
            "bid": rnd.bids[seat] if seat < len(rnd.bids) else None,
            "passed": rnd.passed[seat] if seat < len(rnd.passed) else False,
        }
        if seat == viewer:
            entry["hand"] = [card_to_dict(c) for c in p.hand]
        players.append(entry)

    legal = legal_actions(state, viewer) if turn == viewer else []
    return {
        "viewer": viewer,
        "phase": rnd.phase.value,
        "dealer": rnd.dealer,
        "leader": rnd.leader,
        "current_player": turn,
        "trump": _SUIT_NAMES[rnd.trump] if rnd.trump is not None else None,
        "bid_winner": rnd.bid_winner,
        "bid_value": rnd.bid_value,
        "kitty_size": len(rnd.kitty),
        "trick": [
            {"seat": seat, "card": card_to_dict(c)}
            for seat, c in zip(rnd.trick_order, rnd.trick_cards)
        ],
        "players": players,
        "last_round_points": list(state.last_round_points),
        "winner": state.last_round_effects.winner if state.is_over() else None,
        "legal_actions": [action_to_dict(a) for a in legal],
    }


__all__ = [
    "card_to_dict",
    "card_from_dict",
    "action_to_dict",
    "action_from_dict",
    "build_game_view",
]
