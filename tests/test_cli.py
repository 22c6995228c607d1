"""Smoke tests for the thousand command-line interface."""
import json
from pathlib import Path

from thousand.cli import main
from thousand.rules import get_preset, rules_from_dict, save_rules


def test_cli_rules_prints_preset(capsys):
    assert main(["rules", "--preset", "ace-marriage"]) == 0
    out = capsys.readouterr().out
    assert rules_from_dict(json.loads(out)) == get_preset("ace-marriage")


def test_cli_selfplay_summary(capsys):
    assert main(["selfplay", "--seeds", "3", "--rounds", "4"]) == 0
    out = capsys.readouterr().out
    assert "failures=0" in out
    assert "wins by seat" in out


def test_cli_selfplay_with_rules_file(tmp_path: Path, capsys):
    path = tmp_path / "rules.json"
    save_rules(get_preset("tisyacha"), path)
    assert main(["selfplay", "--seeds", "2", "--rounds", "2", "--rules", str(path)]) == 0
    assert "seeds=2" in capsys.readouterr().out


def test_cli_watch_prints_events(capsys):
    assert main(["watch", "--seed", "3", "--max-rounds", "1"]) == 0
    out = capsys.readouterr().out
    assert "bid_" in out
    assert "scores:" in out
