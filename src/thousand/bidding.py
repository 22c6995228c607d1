"""
Bidding for the contract.
Seats speak in turn starting after the dealer; a seat may pass (and is out
for the round) or bid above the current high bid. Bidding ends when one
active bidder holding the high bid remains; if everybody passes the deal
passes to the next dealer.
"""
from __future__ import annotations

from .actions import Action, ActionType, bid, pass_
from .deal import pass_the_deal
from .errors import ActionError, ErrorKind
from .state import GameState, Phase


def legal_bids(state: GameState, player: int) -> list[Action]:
    """Pass plus every allowed bid above the current high bid, for the seat whose turn it is."""
    rnd = state.round
    if player != rnd.bid_turn or rnd.passed[player]:
        return []
    out = [pass_()]
    out.extend(bid(v) for v in state.rules.bid_values() if v > rnd.bid_value)
    return out


def check_bid_value(state: GameState, value: int) -> None:
    rules = state.rules
    if value < rules.bid_min:
        raise ActionError(ErrorKind.BID_TOO_LOW, f"bid {value} below minimum {rules.bid_min}")
    if value > rules.max_bid:
        raise ActionError(ErrorKind.BID_TOO_HIGH, f"bid {value} above maximum {rules.max_bid}")
    if (value - rules.bid_min) % rules.bid_step != 0:
        raise ActionError(ErrorKind.BID_WRONG_STEP, f"bid {value} not in steps of {rules.bid_step}")
    if value <= state.round.bid_value:
        raise ActionError(
            ErrorKind.BID_NOT_HIGHER,
            f"bid {value} not higher than current {state.round.bid_value}",
        )


def next_bid_turn(state: GameState) -> int:
    """Next seat after the current one that has not passed."""
    rnd = state.round
    players = state.rules.players
    for i in range(1, players + 1):
        seat = (rnd.bid_turn + i) % players
        if not rnd.passed[seat]:
            return seat
    return rnd.bid_turn


def apply_bid(state: GameState, player: int, action: Action) -> None:
    rnd = state.round
    if player != rnd.bid_turn:
        raise ActionError(ErrorKind.WRONG_TURN, f"not player {player}'s turn to bid")
    if rnd.passed[player]:
        raise ActionError(ErrorKind.ALREADY_PASSED, f"player {player} already passed")

    if action.type == ActionType.PASS:
        rnd.passed[player] = True
    elif action.type == ActionType.BID:
        check_bid_value(state, action.bid)
        rnd.bid_value = action.bid
        rnd.bid_winner = player
        rnd.bids[player] = action.bid
    else:
        raise ActionError(ErrorKind.WRONG_ACTION_TYPE, f"{action.type.value} not allowed while bidding")

    active = rnd.active_bidders()
    if len(active) == 1 and rnd.bid_winner is not None:
        rnd.phase = Phase.KITTY_TAKE
        return
    if not active:
        pass_the_deal(state)
        return
    rnd.bid_turn = next_bid_turn(state)


__all__ = ["legal_bids", "apply_bid", "check_bid_value", "next_bid_turn"]
