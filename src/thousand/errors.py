"""
Engine error types.

Every rejected action raises ``ActionError`` with a machine-checkable
``ErrorKind``; the game state is left untouched so the caller may retry.
``DealConfigError`` is a configuration fault and is never retried.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    WRONG_TURN = "wrong_turn"
    ALREADY_PASSED = "already_passed"
    BID_TOO_LOW = "bid_too_low"
    BID_TOO_HIGH = "bid_too_high"
    BID_WRONG_STEP = "bid_wrong_step"
    BID_NOT_HIGHER = "bid_not_higher"
    WRONG_ACTOR = "wrong_actor"
    WRONG_ACTION_TYPE = "wrong_action_type"
    WRONG_PHASE = "wrong_phase"
    DISCARD_COUNT = "discard_count"
    CARD_NOT_IN_HAND = "card_not_in_hand"
    HAND_SIZE_MISMATCH = "hand_size_mismatch"
    ILLEGAL_PLAY = "illegal_play"
    MARRIAGE_ALREADY_DECLARED = "marriage_already_declared"
    MARRIAGE_PRECONDITION = "marriage_precondition"
    ROSPIS_TOO_LATE = "rospis_too_late"


class ActionError(ValueError):
    """An action was rejected. ``kind`` says why; the message is for developers."""

    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind


class DealConfigError(RuntimeError):
    """Hand and kitty sizes do not exhaust the deck."""


class InvariantError(RuntimeError):
    """A reachable state broke a conservation or hand-size invariant (engine bug)."""


__all__ = ["ErrorKind", "ActionError", "DealConfigError", "InvariantError"]
