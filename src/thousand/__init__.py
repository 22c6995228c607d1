"""Thousand (tysyacha) three-player trick-taking game engine."""

__version__ = "0.1.0"

from .deck import Card, Rank, Suit, build_deck, parse_card, shuffle
from .rules import Rules, get_preset, tisyacha_preset, classic_preset, ace_marriage_preset, load_rules, save_rules
from .errors import ActionError, DealConfigError, ErrorKind, InvariantError
from .actions import Action, ActionType, bid, pass_, take_kitty, snos, play_card, rospis
from .state import GameState, Phase, new_game
from .deal import deal_round
from .play import trick_winner
from .engine import apply_action, check_invariants, current_player, legal_actions
from .agents import HeuristicBot, RandomBot, make_bot
from .sim import SelfPlayError, run_self_play
from .session import Event, GameSession
