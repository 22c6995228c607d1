"""
A single game session: one engine state shared by human and bot seats.

Usage:
    session = GameSession()
    events = session.start(tisyacha_preset(), seed=7)
    events = session.submit("a1", 0, bid(80))
    view = session.view(0)

Every public method takes the session lock, so one session can be driven
from several threads (one per connection). Each submitted action carries a
client id; resubmitting an id that was already processed is a no-op. After
every accepted action the bot seats play until a human seat is to act, and
the next round is dealt (seed + number of deals so far) whenever the state
falls back to the Deal phase.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set

from .actions import Action, ActionType
from .agents import Bot, HeuristicBot, RandomBot
from .deal import deal_round
from .deck import ACE_MARRIAGE_VALUE, MARRIAGE_VALUES, cards_point_total
from .engine import apply_action, current_player, snos_receivers
from .errors import ActionError
from .rules import Rules
from .state import GameState, Phase, new_game
from .view import build_game_view, card_to_dict


@dataclass
class Event:
    type: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "data": dict(self.data)}


def _round_was_scored(prev: GameState, next_state: GameState) -> bool:
    """True if the action ended a round that had reached the play (or scoring) phase."""
    return (
        prev.round.phase in (Phase.PLAY_TRICKS, Phase.SCORE_ROUND)
        and next_state.round.phase in (Phase.DEAL, Phase.GAME_OVER)
    )


def build_events(prev: GameState, next_state: GameState, player: int, action: Action) -> List[Event]:
    """Describe what ``action`` by ``player`` did, comparing the states before and after it."""
    events: List[Event] = []
    if action.type == ActionType.BID:
        events.append(Event("bid_made", {"player": player, "bid": action.bid}))
    elif action.type == ActionType.PASS:
        events.append(Event("bid_passed", {"player": player}))
    elif action.type == ActionType.TAKE_KITTY:
        events.append(Event("kitty_taken", {"player": player, "cards": [card_to_dict(c) for c in prev.round.kitty]}))
    elif action.type == ActionType.SNOS:
        receivers = snos_receivers(player, prev.rules.players)
        transfers = [{"to": seat, "card": card_to_dict(c)} for seat, c in zip(receivers, action.cards)]
        events.append(Event("snos_made", {"player": player, "transfers": transfers}))
    elif action.type == ActionType.PLAY_CARD and action.card is not None:
        events.append(Event("card_played", {"player": player, "card": card_to_dict(action.card)}))
        if action.marriage_suit is not None:
            events.append(Event("marriage_declared", {
                "player": player,
                "suit": action.marriage_suit.name.lower(),
                "value": MARRIAGE_VALUES[action.marriage_suit],
            }))
    elif action.type == ActionType.ROSPIS:
        events.append(Event("rospis_declared", {"player": player, "bid": prev.round.bid_value}))

    for seat, (before, after) in enumerate(zip(prev.players, next_state.players)):
        if len(after.tricks) > len(before.tricks):
            events.append(Event("trick_won", {"player": seat, "value": cards_point_total(after.tricks[-1])}))

    # Ace marriage is declared by the engine, not by the action
    if next_state.round.phase == Phase.PLAY_TRICKS:
        for seat, (was, now) in enumerate(zip(prev.round.declared_ace_marriage, next_state.round.declared_ace_marriage)):
            if now and not was:
                events.append(Event("ace_marriage_declared", {"player": seat, "value": ACE_MARRIAGE_VALUE}))

    if _round_was_scored(prev, next_state):
        rules = next_state.rules
        effects = next_state.last_round_effects
        events.append(Event("round_scored", {
            "points": list(next_state.last_round_points),
            "scores": next_state.scores(),
        }))
        events.extend(Event("bolt_awarded", {"player": p}) for p in effects.bolts)
        events.extend(Event("bolt_penalty", {"player": p, "value": rules.bolt_penalty}) for p in effects.bolt_penalties)
        events.extend(Event("barrel_enter", {"player": p}) for p in effects.barrel_enter)
        events.extend(Event("barrel_exit", {"player": p}) for p in effects.barrel_exit)
        events.extend(Event("barrel_penalty", {"player": p, "value": rules.bolt_penalty}) for p in effects.barrel_penalty)
        events.extend(Event("dump_reset", {"player": p}) for p in effects.dumped)
        if effects.winner is not None:
            events.append(Event("game_ended", {"player": effects.winner, "scores": next_state.scores()}))
    return events


def default_bot_seats(seed: int, players: int, human: int = 0) -> Dict[int, Bot]:
    """Every seat but ``human`` gets a bot: random on the first, heuristic after that."""
    bots: Dict[int, Bot] = {}
    for n, seat in enumerate(s for s in range(players) if s != human):
        bots[seat] = RandomBot(seed=seed + seat) if n == 0 else HeuristicBot(seed=seed + seat)
    return bots


class GameSession:
    """One game plus its bot seats and the ids of actions already processed."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state: Optional[GameState] = None
        self._bots: Dict[int, Bot] = {}
        self._action_ids: Set[str] = set()
        self._seed = 0
        self._deals = 0

    # ---- lifecycle ----

    def start(
        self,
        rules: Rules,
        seed: int,
        bots: Optional[Mapping[int, Bot]] = None,
        autoplay: bool = True,
        max_actions: Optional[int] = None,
    ) -> List[Event]:
        """
        Start (or restart) a game and deal the first round. ``bots`` maps
        seat -> bot; by default seat 0 is human and the others are bots.
        Returns the events of the bot moves made before a human must act.

        With every seat a bot nothing ever hands control back (the dump
        rule can keep a game going indefinitely), so autoplay then needs a
        ``max_actions`` budget; otherwise drive the table with ``advance``.
        """
        if max_actions is not None and max_actions < 0:
            raise ValueError(f"max_actions must be >= 0, got {max_actions}")
        with self._lock:
            rules.check_deal_sizes()
            seats = dict(bots) if bots is not None else default_bot_seats(seed, rules.players)
            for seat in seats:
                if not 0 <= seat < rules.players:
                    raise ValueError(f"Bot seat {seat} out of range for {rules.players} players")
            if autoplay and max_actions is None and len(seats) >= rules.players:
                raise ValueError(
                    "Every seat is a bot: pass autoplay=False or a max_actions budget"
                )
            self._bots = seats
            self._state = new_game(rules, seed)
            self._seed = seed
            self._deals = 0
            self._action_ids = set()
            self._ensure_deal()
            return self._run_bots(max_actions) if autoplay else []

    @property
    def started(self) -> bool:
        return self._state is not None

    def snapshot(self) -> GameState:
        """Deep copy of the current state."""
        with self._lock:
            return self._require_state().copy()

    def view(self, viewer: int) -> Dict[str, Any]:
        with self._lock:
            return build_game_view(self._require_state(), viewer)

    # ---- actions ----

    def submit(self, action_id: str, player: int, action: Action) -> List[Event]:
        """
        Apply a human action, then let the bots play.

        A repeated ``action_id`` returns [] without touching the state.
        Raises ActionError (state unchanged) if the engine rejects the action.
        """
        with self._lock:
            state = self._require_state()
            if not action_id:
                raise ValueError("action_id required")
            if action_id in self._action_ids:
                return []
            if player in self._bots:
                raise ValueError(f"Seat {player} is played by a bot")
            self._action_ids.add(action_id)

            events = self._apply(state, player, action)
            events.extend(self._run_bots())
            return events

    def advance(self, max_actions: int = 1) -> List[Event]:
        """Let bot seats make up to ``max_actions`` moves (for all-bot sessions)."""
        with self._lock:
            return self._run_bots(max_actions)

    # ---- internals (lock held) ----

    def _require_state(self) -> GameState:
        if self._state is None:
            raise RuntimeError("Game not started")
        return self._state

    def _ensure_deal(self) -> None:
        state = self._require_state()
        if state.needs_deal():
            state.seed = self._seed + self._deals
            deal_round(state)
            self._deals += 1

    def _apply(self, state: GameState, player: int, action: Action) -> List[Event]:
        prev = state.copy()
        apply_action(state, player, action)
        events = build_events(prev, state, player, action)
        self._ensure_deal()
        return events

    def _run_bots(self, max_actions: Optional[int] = None) -> List[Event]:
        state = self._require_state()
        events: List[Event] = []
        made = 0
        while max_actions is None or made < max_actions:
            player = current_player(state)
            if player is None or player not in self._bots:
                break
            action = self._bots[player].choose_action(state, player)
            try:
                events.extend(self._apply(state, player, action))
            except ActionError as exc:
                raise RuntimeError(f"Bot at seat {player} chose a rejected action {action} (internal bug)") from exc
            made += 1
        return events


__all__ = [
    "Event",
    "GameSession",
    "build_events",
    "default_bot_seats",
]
