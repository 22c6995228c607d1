"""Rule tests for the thousand engine: deal, bidding, kitty/snos, tricks, scoring."""
from dataclasses import replace

import pytest

from thousand.actions import ActionType, bid, pass_, play_card, rospis, snos, take_kitty
from thousand.deal import deal_round
from thousand.deck import Card, Rank, Suit, build_deck, parse_card, shuffle
from thousand.engine import apply_action, check_invariants, current_player, legal_actions
from thousand.errors import ActionError, DealConfigError, ErrorKind, InvariantError
from thousand.play import legal_cards, trick_winner
from thousand.rules import Rules, tisyacha_preset
from thousand.scoring import score_round
from thousand.state import GameState, Phase, new_game

H, D, C, S = Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS, Suit.SPADES


def cards(text: str) -> list[Card]:
    return [parse_card(t) for t in text.split()]


def _dealt(seed: int = 42, rules: Rules | None = None) -> GameState:
    state = new_game(rules or tisyacha_preset(), seed)
    deal_round(state)
    return state


def _play_state(hands: list[str], bidder: int = 0, bid_value: int = 100, leader: int = 0,
                rules: Rules | None = None) -> GameState:
    """Hand-built PlayTricks state (not a full deck, so invariants are not checked)."""
    state = new_game(rules or tisyacha_preset(), 0)
    rnd = state.round
    rnd.phase = Phase.PLAY_TRICKS
    rnd.hands_dealt = True
    rnd.bid_winner = bidder
    rnd.bid_value = bid_value
    rnd.bids[bidder] = bid_value
    rnd.leader = leader
    for p, text in zip(state.players, hands):
        p.hand = cards(text)
    return state


def _scoring_state(rules: Rules | None = None, bid_value: int = 100) -> GameState:
    """Round over: seat 0 took every A, 10 and K (100), seat 1 has 16, seat 2 has 4."""
    state = _play_state(["", "", ""], bidder=0, bid_value=bid_value, rules=rules)
    state.round.phase = Phase.SCORE_ROUND
    state.players[0].tricks = [cards("AH 10H KH"), cards("AS 10S KS"), cards("AC 10C KC"), cards("AD 10D KD")]
    state.players[1].tricks = [cards("QH QS QC"), cards("QD JH JS")]
    state.players[2].tricks = [cards("JC JD 9H"), cards("9S 9C 9D")]
    return state


# ---- deck and deal ----


def test_deck_24_distinct_cards():
    deck = build_deck(tisyacha_preset())
    assert len(deck) == 24
    assert len(set(deck)) == 24
    assert sum(c.points() for c in deck) == 120


def test_card_text_roundtrip():
    assert str(Card(H, Rank.ACE)) == "AH"
    assert str(Card(S, Rank.TEN)) == "10S"
    assert parse_card("10s") == Card(S, Rank.TEN)
    with pytest.raises(ValueError):
        parse_card("1X")


def test_shuffle_is_deterministic_and_does_not_mutate():
    deck = build_deck(tisyacha_preset())
    original = list(deck)
    assert shuffle(deck, 7) == shuffle(deck, 7)
    assert shuffle(deck, 7) != shuffle(deck, 8)
    assert deck == original
    assert sorted(shuffle(deck, 7), key=str) == sorted(deck, key=str)


def test_deal_sizes_and_first_bidder():
    state = _dealt()
    assert [len(p.hand) for p in state.players] == [7, 7, 7]
    assert len(state.round.kitty) == 3
    assert state.round.phase == Phase.BIDDING
    assert current_player(state) == 1
    check_invariants(state)


def test_same_seed_same_deal():
    a, b = _dealt(5), _dealt(5)
    assert [p.hand for p in a.players] == [p.hand for p in b.players]
    assert a.round.kitty == b.round.kitty


def test_bad_deal_configuration_fails_before_mutation():
    state = new_game(replace(tisyacha_preset(), kitty_size=4), 1)
    with pytest.raises(DealConfigError):
        deal_round(state)
    assert state.needs_deal()
    assert all(not p.hand for p in state.players)


# ---- bidding ----


def test_bid_validation_errors_leave_state_unchanged():
    state = _dealt()
    before = state.copy()
    for player, action, kind in [
        (0, bid(80), ErrorKind.WRONG_TURN),
        (1, bid(70), ErrorKind.BID_TOO_LOW),
        (1, bid(310), ErrorKind.BID_TOO_HIGH),
        (1, bid(85), ErrorKind.BID_WRONG_STEP),
        (1, take_kitty(), ErrorKind.WRONG_ACTION_TYPE),
    ]:
        with pytest.raises(ActionError) as exc:
            apply_action(state, player, action)
        assert exc.value.kind == kind
        assert state == before

    apply_action(state, 1, bid(80))
    with pytest.raises(ActionError) as exc:
        apply_action(state, 2, bid(80))
    assert exc.value.kind == ErrorKind.BID_NOT_HIGHER


def test_legal_bids_are_above_high_bid():
    state = _dealt()
    apply_action(state, 1, bid(150))
    legal = legal_actions(state, 2)
    assert legal[0].type == ActionType.PASS
    assert [a.bid for a in legal[1:]] == list(range(160, 301, 10))
    assert legal_actions(state, 0) == []


def test_bidding_ends_with_single_bidder():
    state = _dealt()
    apply_action(state, 1, bid(80))
    apply_action(state, 2, pass_())
    apply_action(state, 0, pass_())
    assert state.round.phase == Phase.KITTY_TAKE
    assert state.round.bid_winner == 1
    assert state.round.bid_value == 80
    assert current_player(state) == 1
    assert legal_actions(state, 1) == [take_kitty()]
    assert legal_actions(state, 2) == []


def test_all_pass_moves_the_deal():
    state = _dealt()
    for player in (1, 2, 0):
        apply_action(state, player, pass_())
    assert state.needs_deal()
    assert state.round.dealer == 1
    assert all(not p.hand for p in state.players)
    assert current_player(state) is None
    assert legal_actions(state, 0) == []


# ---- kitty and snos ----


def _after_bidding(seed: int = 42, rules: Rules | None = None) -> GameState:
    state = _dealt(seed, rules)
    apply_action(state, 1, bid(80))
    apply_action(state, 2, pass_())
    apply_action(state, 0, pass_())
    return state


def test_kitty_goes_to_bidder():
    state = _after_bidding()
    kitty = list(state.round.kitty)
    with pytest.raises(ActionError) as exc:
        apply_action(state, 0, take_kitty())
    assert exc.value.kind == ErrorKind.WRONG_ACTOR
    apply_action(state, 1, take_kitty())
    assert state.round.phase == Phase.SNOS
    assert len(state.players[1].hand) == 10
    assert all(c in state.players[1].hand for c in kitty)
    assert state.round.kitty == []
    check_invariants(state)


def test_snos_distributes_one_card_per_opponent():
    state = _after_bidding()
    apply_action(state, 1, take_kitty())
    hand = state.players[1].hand
    before = state.copy()

    with pytest.raises(ActionError) as exc:
        apply_action(state, 1, snos(hand[:1]))
    assert exc.value.kind == ErrorKind.DISCARD_COUNT
    foreign = state.players[0].hand[0]
    with pytest.raises(ActionError) as exc:
        apply_action(state, 1, snos([hand[0], foreign]))
    assert exc.value.kind == ErrorKind.CARD_NOT_IN_HAND
    assert state == before

    given = hand[:2]
    apply_action(state, 1, snos(given))
    assert [len(p.hand) for p in state.players] == [8, 8, 8]
    assert given[0] in state.players[2].hand
    assert given[1] in state.players[0].hand
    assert state.round.phase == Phase.PLAY_TRICKS
    assert current_player(state) == 1
    check_invariants(state)


def _rejected_snos(rules: Rules, count: int) -> ErrorKind:
    state = _after_bidding(rules=rules)
    apply_action(state, 1, take_kitty())
    before = state.copy()
    with pytest.raises(ActionError) as exc:
        apply_action(state, 1, snos(state.players[1].hand[:count]))
    assert state == before
    return exc.value.kind


def test_snos_more_cards_than_opponents_rejected():
    rules = replace(tisyacha_preset(), snos_cards=3)
    assert _rejected_snos(rules, 3) == ErrorKind.DISCARD_COUNT


def test_snos_bidder_hand_size_mismatch():
    # 10 cards after the kitty, 2 given away: 8 left, rules want 9
    rules = replace(tisyacha_preset(), play_hand_size=9)
    assert _rejected_snos(rules, 2) == ErrorKind.HAND_SIZE_MISMATCH


def test_snos_opponent_hand_size_mismatch():
    # bidder keeps 9 as wanted, but each opponent only reaches 8
    rules = replace(tisyacha_preset(), snos_cards=1, play_hand_size=9)
    assert _rejected_snos(rules, 1) == ErrorKind.HAND_SIZE_MISMATCH


# ---- tricks ----


def test_trick_winner_examples():
    assert trick_winner([0, 1, 2], cards("AH 9S 10H"), S) == 1
    assert trick_winner([0, 1, 2], cards("AH 9S 10H"), None) == 0
    assert trick_winner([0, 1, 2], cards("9H AH AS"), None) == 1
    assert trick_winner([0, 1, 2], cards("9H AH 9S"), S) == 2
    assert trick_winner([1, 2, 0], cards("QC AS KC"), None) == 0
    assert trick_winner([2, 0, 1], cards("10D KD 9C"), C) == 1
    with pytest.raises(ValueError):
        trick_winner([], [], None)


def test_must_follow_suit():
    state = _play_state(["AH 9C", "10H KS", "JS QC"])
    apply_action(state, 0, play_card(parse_card("AH")))
    assert legal_actions(state, 1) == [play_card(parse_card("10H"))]
    before = state.copy()
    with pytest.raises(ActionError) as exc:
        apply_action(state, 1, play_card(parse_card("KS")))
    assert exc.value.kind == ErrorKind.ILLEGAL_PLAY
    assert state == before

    apply_action(state, 1, play_card(parse_card("10H")))
    # Void in hearts: anything goes
    assert {a.card for a in legal_actions(state, 2)} == set(cards("JS QC"))
    apply_action(state, 2, play_card(parse_card("QC")))
    assert state.players[0].tricks == [cards("AH 10H QC")]
    assert current_player(state) == 0


def _trick_state(on_table: str, hand: str, rules: Rules) -> GameState:
    """Seats 0.. already played ``on_table`` with spades trump; the next seat holds ``hand``."""
    state = _play_state(["", "", ""], rules=rules)
    rnd = state.round
    rnd.trump = S
    rnd.trick_cards = cards(on_table)
    rnd.trick_order = [0, 1, 2]
    state.players[len(rnd.trick_cards)].hand = cards(hand)
    return state


def test_must_trump_if_void():
    on = replace(tisyacha_preset(), must_trump_if_void=True)
    state = _trick_state("AH", "9S JC 9D", on)
    assert legal_cards(state, 1) == cards("9S")
    assert legal_actions(state, 1) == [play_card(parse_card("9S"))]
    before = state.copy()
    with pytest.raises(ActionError) as exc:
        apply_action(state, 1, play_card(parse_card("JC")))
    assert exc.value.kind == ErrorKind.ILLEGAL_PLAY
    assert state == before

    # off by default: a void hand plays anything
    assert legal_cards(_trick_state("AH", "9S JC 9D", tisyacha_preset()), 1) == cards("9S JC 9D")
    # following suit still comes first
    assert legal_cards(_trick_state("AH", "9S JH", on), 1) == cards("JH")


def test_must_over_trump():
    trump_only = replace(tisyacha_preset(), must_trump_if_void=True)
    over = replace(trump_only, must_over_trump=True)
    assert legal_cards(_trick_state("AH 10S", "9S AS 9C", trump_only), 2) == cards("9S AS")

    state = _trick_state("AH 10S", "9S AS 9C", over)
    assert legal_cards(state, 2) == cards("AS")
    assert legal_actions(state, 2) == [play_card(parse_card("AS"))]
    with pytest.raises(ActionError) as exc:
        apply_action(state, 2, play_card(parse_card("9S")))
    assert exc.value.kind == ErrorKind.ILLEGAL_PLAY
    apply_action(state, 2, play_card(parse_card("AS")))
    assert state.players[2].tricks == [cards("AH 10S AS")]

    # no trump beats the table: any trump will do
    assert legal_cards(_trick_state("AH 10S", "9S 9C", over), 2) == cards("9S")
    # trump led: followers must go over it
    assert legal_cards(_trick_state("KS", "9S AS 9C", over), 1) == cards("AS")


def test_play_out_of_turn_rejected():
    state = _play_state(["AH 9C", "10H KS", "JS QC"])
    with pytest.raises(ActionError) as exc:
        apply_action(state, 1, play_card(parse_card("10H")))
    assert exc.value.kind == ErrorKind.WRONG_TURN


def test_marriage_needs_a_won_trick():
    state = _play_state(["QH KH 9C", "9H JC 10C", "JH 9S AC"])
    assert play_card(parse_card("QH"), H) not in legal_actions(state, 0)
    with pytest.raises(ActionError) as exc:
        apply_action(state, 0, play_card(parse_card("QH"), H))
    assert exc.value.kind == ErrorKind.MARRIAGE_PRECONDITION


def test_marriage_sets_trump_and_scores_once():
    state = _play_state(["QH KH 9C", "9H JC 10C", "JH 9S AC"])
    state.players[0].tricks = [cards("AD 10D KD")]
    legal = legal_actions(state, 0)
    assert play_card(parse_card("QH"), H) in legal
    assert play_card(parse_card("KH"), H) in legal

    apply_action(state, 0, play_card(parse_card("QH"), H))
    assert state.round.trump == H
    assert state.players[0].marriage_pts == 100
    assert state.players[0].round_pts == 100
    assert H in state.round.declared_marriages[0]

    apply_action(state, 1, play_card(parse_card("9H")))
    apply_action(state, 2, play_card(parse_card("JH")))
    assert len(state.players[0].tricks) == 2
    assert current_player(state) == 0
    assert all(a.marriage_suit is None for a in legal_actions(state, 0))
    with pytest.raises(ActionError) as exc:
        apply_action(state, 0, play_card(parse_card("KH"), H))
    assert exc.value.kind == ErrorKind.MARRIAGE_ALREADY_DECLARED
    assert state.players[0].marriage_pts == 100


def test_ace_marriage_when_enabled():
    rules = replace(tisyacha_preset(), ace_marriage_enabled=True)
    state = _play_state(["AH AD AC AS", "9H JC 10C QS", "JH 9S KC QD"], rules=rules)
    apply_action(state, 0, play_card(parse_card("AH")))
    assert state.round.declared_ace_marriage[0]
    assert state.players[0].marriage_pts == 200


def test_ace_marriage_off_by_default():
    state = _play_state(["AH AD AC AS", "9H JC 10C QS", "JH 9S KC QD"])
    apply_action(state, 0, play_card(parse_card("AH")))
    assert state.players[0].marriage_pts == 0


# ---- rospis ----


def test_rospis_pays_bid_and_splits_half():
    state = _play_state(["AH 9C", "10H KS", "JS QC"], bid_value=120)
    assert legal_actions(state, 0)[-1] == rospis()
    with pytest.raises(ActionError) as exc:
        apply_action(state, 1, rospis())
    assert exc.value.kind == ErrorKind.WRONG_ACTOR

    apply_action(state, 0, rospis())
    assert state.scores() == [-120, 60, 60]
    assert state.needs_deal()
    assert state.round.dealer == 1
    assert state.last_round_effects.rospis == 0
    assert state.last_round_points == [0, 0, 0]


def test_rospis_too_late_after_first_card():
    state = _play_state(["AH 9C", "10H KS", "JS QC"], bid_value=120)
    apply_action(state, 0, play_card(parse_card("AH")))
    assert rospis() not in legal_actions(state, 1)
    with pytest.raises(ActionError) as exc:
        apply_action(state, 0, rospis())
    assert exc.value.kind == ErrorKind.ROSPIS_TOO_LATE


# ---- scoring ----


def test_contract_made_scores_points_taken():
    state = _scoring_state(bid_value=100)
    score_round(state)
    assert state.last_round_points == [100, 16, 4]
    assert state.scores() == [100, 16, 4]
    assert state.needs_deal()
    assert state.round.dealer == 1


def test_score_round_phase_accepts_any_action_as_trigger():
    state = _scoring_state(bid_value=100)
    apply_action(state, 0, pass_())
    assert state.scores() == [100, 16, 4]
    assert state.needs_deal()


def test_contract_scores_as_bid_when_configured():
    state = _scoring_state(rules=replace(tisyacha_preset(), contract_scores_as_bid=True), bid_value=90)
    score_round(state)
    assert state.scores() == [90, 16, 4]


def test_contract_failed_costs_the_bid():
    state = _scoring_state(bid_value=110)
    score_round(state)
    assert state.scores() == [-110, 16, 4]


def test_marriage_points_count_towards_contract():
    state = _scoring_state(bid_value=140)
    state.players[0].marriage_pts = 60
    score_round(state)
    assert state.last_round_points[0] == 160
    assert state.scores()[0] == 160


def test_bolt_penalty_on_third_trickless_round():
    state = _scoring_state()
    state.players[1].tricks += state.players[2].tricks
    state.players[2].tricks = []
    state.players[2].bolts = 2
    score_round(state)
    assert state.last_round_effects.bolts == [2]
    assert state.last_round_effects.bolt_penalties == [2]
    assert state.players[2].bolts == 0
    assert state.players[2].game_score == -120


def test_barrel_enter():
    state = _scoring_state(rules=replace(tisyacha_preset(), dump_threshold=5000))
    state.players[1].game_score = 870
    score_round(state)
    assert state.players[1].on_barrel
    assert state.players[1].barrel_attempts == 1
    assert state.last_round_effects.barrel_enter == [1]


def test_barrel_takeover_displaces_holder():
    state = _scoring_state(rules=replace(tisyacha_preset(), dump_threshold=5000))
    state.players[2].game_score = 870
    state.players[2].on_barrel = True
    state.players[2].barrel_attempts = 1
    state.players[1].game_score = 870
    score_round(state)
    assert state.players[1].on_barrel
    assert not state.players[2].on_barrel
    assert state.players[2].barrel_attempts == 0
    assert state.last_round_effects.barrel_enter == [1]
    assert state.last_round_effects.barrel_exit == [2]


def test_barrel_penalty_after_failed_attempts():
    rules = replace(tisyacha_preset(), dump_threshold=5000)
    state = _scoring_state(rules=rules)
    holder = state.players[1]
    holder.game_score = 900
    holder.on_barrel = True
    holder.barrel_attempts = 2
    score_round(state)
    assert state.last_round_effects.barrel_penalty == [1]
    assert state.last_round_effects.barrel_exit == [1]
    assert not holder.on_barrel
    assert holder.game_score == 900 + 16 - 120


def test_win_after_leaving_barrel():
    rules = replace(tisyacha_preset(), dump_threshold=5000)
    state = _scoring_state(rules=rules, bid_value=120)
    state.players[0].game_score = 900
    state.players[0].on_barrel = True
    state.players[0].marriage_pts = 100
    score_round(state)
    assert state.scores()[0] == 1100
    assert state.last_round_effects.barrel_exit == [0]
    assert state.last_round_effects.winner == 0
    assert state.is_over()
    assert current_player(state) is None
    with pytest.raises(ActionError) as exc:
        apply_action(state, 0, pass_())
    assert exc.value.kind == ErrorKind.WRONG_PHASE


def test_no_win_while_on_barrel():
    rules = replace(tisyacha_preset(), dump_threshold=5000)
    state = _scoring_state(rules=rules)
    state.players[1].game_score = 1000
    state.players[1].on_barrel = True
    score_round(state)
    assert state.players[1].on_barrel
    assert state.players[1].barrel_attempts == 1
    assert not state.is_over()


def test_dump_resets_to_zero():
    state = _scoring_state()
    state.players[1].game_score = 550
    state.players[2].game_score = -560
    score_round(state)
    assert state.scores()[1:] == [0, 0]
    assert state.last_round_effects.dumped == [1, 2]


# ---- invariants ----


def test_invariant_check_detects_lost_card():
    state = _dealt()
    check_invariants(state)
    state.players[0].hand.pop()
    with pytest.raises(InvariantError):
        check_invariants(state)


def test_invariant_check_detects_duplicate():
    state = _dealt()
    state.players[0].hand[0] = state.players[1].hand[0]
    with pytest.raises(InvariantError):
        check_invariants(state)
