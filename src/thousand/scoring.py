"""
Round scoring: card points + marriages, contract settlement, then the side
rules applied in order: bolts, barrel, dump, win check.

Defaults (tisyacha): contract made scores the points taken, failed costs
the bid; 3 trickless rounds cost 120; barrel at 880 needs 120 in 3 rounds;
scores at 555 or -555 drop to 0; 1000 off the barrel wins.
"""
from __future__ import annotations

from typing import List, Optional

from .deal import pass_the_deal
from .deck import cards_point_total
from .state import GameState, Phase, PlayerState, RoundEffects


def trick_points(player: PlayerState) -> int:
    return sum(cards_point_total(trick) for trick in player.tricks)


def settle_contract(state: GameState) -> None:
    """Credit or debit the bidder; every other seat adds its round points."""
    rules = state.rules
    rnd = state.round
    contract = rnd.bid_winner
    if contract is not None:
        if rnd.bid_value == 0 and rnd.bids and rnd.bids[contract] is not None:
            rnd.bid_value = rnd.bids[contract]
        bidder = state.players[contract]
        if bidder.round_pts >= rnd.bid_value:
            bidder.game_score += rnd.bid_value if rules.contract_scores_as_bid else bidder.round_pts
        else:
            bidder.game_score -= rnd.bid_value if rules.contract_fail_penalty_bid else bidder.round_pts
    for seat, p in enumerate(state.players):
        if seat != contract:
            p.game_score += p.round_pts


def apply_bolts(state: GameState, effects: RoundEffects) -> None:
    rules = state.rules
    for seat, p in enumerate(state.players):
        if p.tricks:
            continue
        p.bolts += 1
        effects.bolts.append(seat)
        if p.bolts >= rules.bolt_every:
            p.game_score -= rules.bolt_penalty
            p.bolts = 0
            effects.bolt_penalties.append(seat)


def apply_barrel(state: GameState, effects: RoundEffects) -> None:
    """
    One seat at most sits on the barrel. Anyone newly at or above the
    threshold takes it over (the previous holder leaves with attempts reset)
    before the holder's round is judged.
    """
    rules = state.rules
    players = state.players
    before = [p.on_barrel for p in players]

    owner: Optional[int] = next((i for i, p in enumerate(players) if p.on_barrel), None)
    for seat, p in enumerate(players):
        if p.game_score >= rules.barrel_threshold and seat != owner:
            if owner is not None:
                players[owner].on_barrel = False
                players[owner].barrel_attempts = 0
            p.on_barrel = True
            p.barrel_attempts = 0
            owner = seat

    if owner is not None:
        holder = players[owner]
        if holder.round_pts >= rules.barrel_target:
            holder.on_barrel = False
            holder.barrel_attempts = 0
        else:
            holder.barrel_attempts += 1
            if holder.barrel_attempts >= rules.barrel_attempts:
                holder.game_score -= rules.bolt_penalty
                holder.on_barrel = False
                holder.barrel_attempts = 0
                effects.barrel_penalty.append(owner)

    for seat, p in enumerate(players):
        if not before[seat] and p.on_barrel:
            effects.barrel_enter.append(seat)
        if before[seat] and not p.on_barrel:
            effects.barrel_exit.append(seat)


def apply_dump(state: GameState, effects: RoundEffects) -> None:
    rules = state.rules
    for seat, p in enumerate(state.players):
        if p.game_score >= rules.dump_threshold or p.game_score <= rules.dump_negative_threshold:
            p.game_score = 0
            effects.dumped.append(seat)


def find_winner(state: GameState) -> Optional[int]:
    """First seat at or above the win score that is not on the barrel."""
    for seat, p in enumerate(state.players):
        if p.game_score >= state.rules.win_score and not p.on_barrel:
            return seat
    return None


def score_round(state: GameState) -> None:
    """Settle the round; ends in GAME_OVER or a fresh Deal phase with the next dealer."""
    effects = RoundEffects()
    points: List[int] = []
    for p in state.players:
        p.round_pts = trick_points(p) + p.marriage_pts
        points.append(p.round_pts)
    state.last_round_points = points

    settle_contract(state)
    apply_bolts(state, effects)
    apply_barrel(state, effects)
    apply_dump(state, effects)
    state.last_round_effects = effects

    winner = find_winner(state)
    if winner is not None:
        effects.winner = winner
        state.round.phase = Phase.GAME_OVER
        return
    pass_the_deal(state)


__all__ = [
    "trick_points",
    "settle_contract",
    "apply_bolts",
    "apply_barrel",
    "apply_dump",
    "find_winner",
    "score_round",
]
