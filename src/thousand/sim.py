"""
Self-play harness: drives whole games through the public engine API with
bots in every seat and checks the state invariants after every action.

Used by the test-suite for seeded fuzzing and by ``thousand.cli selfplay``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .actions import Action
from .agents import Bot, HeuristicBot, RandomBot
from .deal import deal_round
from .engine import apply_action, check_invariants, current_player, legal_actions
from .errors import ActionError, InvariantError
from .rules import Rules, tisyacha_preset
from .state import GameState, Phase, new_game

LOG_TAIL = 20


@dataclass
class ActionRecord:
    round: int
    step: int
    phase: Phase
    player: int
    action: Action

    def __str__(self) -> str:
        return f"[r{self.round} s{self.step} p{self.player} {self.phase.value}] {self.action}"


class SelfPlayError(RuntimeError):
    """A self-play run hit an engine error or a broken invariant."""

    def __init__(self, seed: int, round_index: int, step: int, phase: Phase,
                 player: Optional[int], reason: str, records: Sequence[ActionRecord]) -> None:
        tail = "\n".join(str(r) for r in list(records)[-LOG_TAIL:])
        super().__init__(
            f"seed={seed} round={round_index} step={step} phase={phase.value} "
            f"player={player} reason={reason}\nlast actions:\n{tail}"
        )
        self.seed = seed
        self.round_index = round_index
        self.reason = reason


@dataclass
class SelfPlayResult:
    seed: int
    rounds_played: int = 0
    steps: int = 0
    scores: List[int] = field(default_factory=list)
    game_over: bool = False
    winner: Optional[int] = None


def default_bots(seed: int, players: int) -> List[Bot]:
    """Alternate heuristic and random bots, each with its own seed."""
    bots: List[Bot] = []
    for seat in range(players):
        bot_seed = seed + 10 * (seat + 1)
        bots.append(HeuristicBot(seed=bot_seed) if seat % 2 == 0 else RandomBot(seed=bot_seed))
    return bots


def play_round(state: GameState, bots: Sequence[Bot], seed: int, round_index: int,
               max_steps: int, records: List[ActionRecord]) -> int:
    """
    Drive one dealt round until it is back in the Deal phase or the game is
    over. Returns the number of actions applied.
    """
    for step in range(max_steps):
        if state.needs_deal() or state.is_over():
            return step
        phase = state.round.phase
        player = current_player(state)
        if player is None:
            raise SelfPlayError(seed, round_index, step, phase, None, "no current player", records)
        if not legal_actions(state, player):
            raise SelfPlayError(seed, round_index, step, phase, player, "no legal actions", records)
        action = bots[player].choose_action(state, player)
        try:
            apply_action(state, player, action)
        except ActionError as exc:
            raise SelfPlayError(
                seed, round_index, step, phase, player, f"apply error: {exc} ({action})", records,
            ) from exc
        records.append(ActionRecord(round_index, step, phase, player, action))
        try:
            check_invariants(state)
        except InvariantError as exc:
            raise SelfPlayError(seed, round_index, step, state.round.phase, player, str(exc), records) from exc
    if state.needs_deal() or state.is_over():
        return max_steps
    raise SelfPlayError(seed, round_index, max_steps, state.round.phase, None,
                        f"round not finished after {max_steps} steps", records)


def run_self_play(
    seed: int,
    rounds: int,
    max_steps_per_round: int = 500,
    rules: Rules | None = None,
    bots: Sequence[Bot] | None = None,
) -> SelfPlayResult:
    """
    Play up to ``rounds`` rounds (stopping early at game over). Round ``r``
    is dealt with seed ``seed + r``. Raises SelfPlayError on any failure.
    """
    rules = rules or tisyacha_preset()
    bots = list(bots) if bots is not None else default_bots(seed, rules.players)
    if len(bots) != rules.players:
        raise ValueError(f"Need {rules.players} bots, got {len(bots)}")

    state = new_game(rules, seed)
    result = SelfPlayResult(seed=seed)
    records: List[ActionRecord] = []
    for r in range(rounds):
        if state.is_over():
            break
        state.seed = seed + r
        deal_round(state)
        try:
            check_invariants(state)
        except InvariantError as exc:
            raise SelfPlayError(seed, r, 0, state.round.phase, None, str(exc), records) from exc
        result.steps += play_round(state, bots, seed, r, max_steps_per_round, records)
        result.rounds_played += 1

    result.scores = state.scores()
    result.game_over = state.is_over()
    result.winner = state.last_round_effects.winner
    return result


__all__ = [
    "ActionRecord",
    "SelfPlayError",
    "SelfPlayResult",
    "default_bots",
    "play_round",
    "run_self_play",
]
