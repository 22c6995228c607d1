"""
Command-line interface for the Thousand engine.

Usage examples:

    python -m thousand.cli selfplay --seeds 200 --rounds 30
    python -m thousand.cli watch --seed 7 --max-rounds 3
    python -m thousand.cli rules --preset ace-marriage > rules.json
    python -m thousand.cli selfplay --seeds 10 --rules rules.json \\
        --policy checkpoints/run1
"""
from __future__ import annotations

import argparse
import json
from typing import List, Optional

from .agents import Bot
from .rules import PRESETS, Rules, get_preset, load_rules, rules_to_dict
from .session import GameSession
from .sim import SelfPlayError, default_bots, run_self_play


def _load_rules_arg(args: argparse.Namespace) -> Rules:
    if getattr(args, "rules", None):
        return load_rules(args.rules)
    return get_preset(getattr(args, "preset", None) or "tisyacha")


def _bots_for(args: argparse.Namespace, seed: int, rules: Rules) -> Optional[List[Bot]]:
    """Default bots, with seat 0 replaced by a checkpoint policy if ``--policy`` is given."""
    if not args.policy:
        return None
    # Needs the ``rl`` extra
    from .policies import load_policy_from_checkpoint

    bots = default_bots(seed, rules.players)
    bots[0] = load_policy_from_checkpoint(args.policy, deterministic=True, seed=seed)
    return bots


def _add_selfplay_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "selfplay",
        help="Run seeded bot-vs-bot games and check engine invariants.",
    )
    parser.add_argument("--seeds", type=int, default=100, help="Number of seeds to run.")
    parser.add_argument("--start-seed", type=int, default=1, help="First seed.")
    parser.add_argument("--rounds", type=int, default=30, help="Maximum rounds per game.")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=500,
        help="Maximum actions per round before the run is declared stuck.",
    )
    parser.add_argument("--rules", type=str, default=None, help="Rules JSON file.")
    parser.add_argument(
        "--preset",
        type=str,
        default="tisyacha",
        choices=sorted(PRESETS),
        help="Rules preset when no --rules file is given.",
    )
    parser.add_argument(
        "--policy",
        type=str,
        default=None,
        help="Checkpoint directory of a network policy for seat 0 (needs the rl extra).",
    )
    parser.set_defaults(func=_cmd_selfplay)


def _cmd_selfplay(args: argparse.Namespace) -> int:
    rules = _load_rules_arg(args)
    failures = 0
    finished = 0
    wins = [0] * rules.players
    total_rounds = 0
    for seed in range(args.start_seed, args.start_seed + args.seeds):
        try:
            result = run_self_play(
                seed,
                args.rounds,
                max_steps_per_round=args.max_steps,
                rules=rules,
                bots=_bots_for(args, seed, rules),
            )
        except SelfPlayError as exc:
            failures += 1
            print(f"[FAIL] {exc}", flush=True)
            continue
        total_rounds += result.rounds_played
        if result.game_over and result.winner is not None:
            finished += 1
            wins[result.winner] += 1

    print(f"seeds={args.seeds} failures={failures} rounds={total_rounds} finished={finished}")
    print("wins by seat: " + " ".join(f"p{seat}={n}" for seat, n in enumerate(wins)))
    return 1 if failures else 0


def _add_watch_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "watch",
        help="Play an all-bot session and print its events.",
    )
    parser.add_argument("--seed", type=int, default=0, help="Game seed.")
    parser.add_argument("--max-rounds", type=int, default=5, help="Stop after this many rounds.")
    parser.add_argument("--max-actions", type=int, default=5000, help="Stop after this many actions.")
    parser.add_argument("--rules", type=str, default=None, help="Rules JSON file.")
    parser.add_argument(
        "--preset",
        type=str,
        default="tisyacha",
        choices=sorted(PRESETS),
        help="Rules preset when no --rules file is given.",
    )
    parser.set_defaults(func=_cmd_watch)


def _cmd_watch(args: argparse.Namespace) -> int:
    rules = _load_rules_arg(args)
    session = GameSession()
    bots = {seat: bot for seat, bot in enumerate(default_bots(args.seed, rules.players))}
    session.start(rules, args.seed, bots=bots, autoplay=False)

    rounds = 0
    for _ in range(args.max_actions):
        events = session.advance(1)
        if not events:
            break
        for event in events:
            print(f"{event.type:<22} {json.dumps(event.data)}", flush=True)
            if event.type == "round_scored":
                rounds += 1
        if rounds >= args.max_rounds or any(e.type == "game_ended" for e in events):
            break

    view = session.view(0)
    print("scores: " + " ".join(f"p{p['seat']}={p['game_score']}" for p in view["players"]))
    return 0


def _add_rules_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("rules", help="Print a rules preset as JSON.")
    parser.add_argument("--preset", type=str, default="tisyacha", choices=sorted(PRESETS))
    parser.set_defaults(func=_cmd_rules)


def _cmd_rules(args: argparse.Namespace) -> int:
    print(json.dumps(rules_to_dict(get_preset(args.preset)), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="thousand", description="Thousand card game engine CLI.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_selfplay_parser(subparsers)
    _add_watch_parser(subparsers)
    _add_rules_parser(subparsers)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
