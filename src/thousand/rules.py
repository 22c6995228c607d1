"""
Per-game rule parameters, fixed when the game is created.

Presets cover the common "tysyacha" table rules; any field can be changed
with ``dataclasses.replace`` or loaded from a JSON file.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict

from .deck import ALL_RANKS, CHAR_TO_RANK, RANK_CHARS, Rank, Suit
from .errors import DealConfigError


@dataclass(frozen=True)
class Rules:
    """Immutable configuration. Field names match the JSON keys."""

    players: int = 3
    deck_ranks: tuple[Rank, ...] = ALL_RANKS
    deal_hand_size: int = 7
    play_hand_size: int = 8
    kitty_size: int = 3
    snos_cards: int = 2
    bid_min: int = 80
    bid_step: int = 10
    max_bid: int = 300
    win_score: int = 1000
    must_follow_suit: bool = True
    must_trump_if_void: bool = False
    must_over_trump: bool = False
    # True: a made contract scores the bid; False: it scores the points taken
    contract_scores_as_bid: bool = False
    # True: a failed contract costs the bid; False: it costs the points taken
    contract_fail_penalty_bid: bool = True
    marriage_requires_trick: bool = True
    ace_marriage_enabled: bool = False
    barrel_threshold: int = 880
    barrel_target: int = 120
    barrel_attempts: int = 3
    bolt_penalty: int = 120
    bolt_every: int = 3
    dump_threshold: int = 555
    dump_negative_threshold: int = -555

    def __post_init__(self) -> None:
        if self.bid_step <= 0:
            raise ValueError(f"bid_step must be positive, got {self.bid_step}")
        if self.bid_min > self.max_bid:
            raise ValueError(f"bid_min {self.bid_min} is above max_bid {self.max_bid}")

    def deck_size(self) -> int:
        return len(Suit) * len(self.deck_ranks)

    def check_deal_sizes(self) -> None:
        """Raise DealConfigError if hands plus kitty do not use exactly the whole deck."""
        dealt = self.deal_hand_size * self.players + self.kitty_size
        if dealt != self.deck_size():
            raise DealConfigError(
                f"invalid deal configuration: {self.players} hands of {self.deal_hand_size} "
                f"plus kitty {self.kitty_size} = {dealt} cards, deck has {self.deck_size()}"
            )

    def bid_values(self) -> list[int]:
        """Every bid the rules allow, ascending."""
        return list(range(self.bid_min, self.max_bid + 1, self.bid_step))


def tisyacha_preset() -> Rules:
    """Three players, 24 cards, 7 each + kitty of 3, snos of 2, play with 8."""
    return Rules()


def classic_preset() -> Rules:
    return tisyacha_preset()


def ace_marriage_preset() -> Rules:
    """Tisyacha rules with the four-aces marriage (200) enabled."""
    return Rules(ace_marriage_enabled=True)


PRESETS: Dict[str, Callable[[], Rules]] = {
    "tisyacha": tisyacha_preset,
    "classic": classic_preset,
    "ace-marriage": ace_marriage_preset,
}


def get_preset(name: str) -> Rules:
    try:
        return PRESETS[name]()
    except KeyError:
        raise ValueError(f"Unknown rules preset: {name!r} (known: {', '.join(PRESETS)})") from None


# ---- JSON I/O ----


def rules_to_dict(rules: Rules) -> Dict[str, Any]:
    d = asdict(rules)
    d["deck_ranks"] = [RANK_CHARS[r] for r in rules.deck_ranks]
    return d


def rules_from_dict(d: Dict[str, Any]) -> Rules:
    """
    Build Rules from a dict produced by ``rules_to_dict`` (or a partial one).
    Missing keys keep the tisyacha defaults; unknown keys are an error.
    """
    known = {f.name for f in fields(Rules)}
    unknown = set(d) - known
    if unknown:
        raise ValueError(f"Unknown rules keys: {sorted(unknown)}")
    kwargs: Dict[str, Any] = {}
    for f in fields(Rules):
        if f.name not in d:
            continue
        value = d[f.name]
        if f.name == "deck_ranks":
            try:
                value = tuple(CHAR_TO_RANK[str(r).upper()] for r in value)
            except KeyError as exc:
                raise ValueError(f"Unknown rank in deck_ranks: {exc.args[0]!r}") from None
        elif f.type == "bool":
            value = bool(value)
        else:
            value = int(value)
        kwargs[f.name] = value
    return Rules(**kwargs)


def load_rules(path: str | Path) -> Rules:
    with Path(path).open("r", encoding="utf-8") as f:
        return rules_from_dict(json.load(f))


def save_rules(rules: Rules, path: str | Path) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        json.dump(rules_to_dict(rules), f, indent=2)


__all__ = [
    "Rules",
    "PRESETS",
    "tisyacha_preset",
    "classic_preset",
    "ace_marriage_preset",
    "get_preset",
    "rules_to_dict",
    "rules_from_dict",
    "load_rules",
    "save_rules",
]
