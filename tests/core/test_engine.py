"""Tests for the round controller."""

import pytest

from core.game import RoundController
from core.game.errors import IllegalAction, InsufficientChips, SettlementError
from core.game.events import EventType
from core.game.outcome import Outcome, OutcomeReason
from core.game.state import RoundState
from core.rules import TableRules


def event_types(controller):
    return [e.event_type for e in controller.events.history]


class TestBet:
    """Tests for placing the opening bet."""

    def test_bet_deals_four_cards(self, controller):
        assert controller.bet(500)

        assert controller.state == RoundState.PLAYER_TURN
        assert len(controller.player_hand) == 2
        assert len(controller.dealer_hand) == 2
        assert controller.player.bet == 500

    def test_dealer_second_card_stays_hidden(self, controller):
        controller.bet(500)

        assert controller.dealer_hand.hidden_indexes() == [1]
        assert controller.dealer_score == 10

    def test_deal_order(self, controller):
        """Player, dealer, player, then the dealer's hole card."""
        controller.bet(500)

        appended = controller.events.of_type(EventType.CARD_APPENDED)
        assert [(e.data["side"], e.data["index"]) for e in appended] == [
            ("player", 0),
            ("dealer", 0),
            ("player", 1),
            ("dealer", 1),
        ]
        assert appended[3].data["card"] is None

    def test_cards_land_before_they_flip(self, controller):
        controller.bet(500)

        types = event_types(controller)
        first_append = types.index(EventType.CARD_APPENDED)
        assert types[first_append + 1] == EventType.CARD_REVEALED
        assert types[first_append + 2] == EventType.SCORE_UPDATED

    def test_bet_not_covered(self, controller_factory):
        controller = controller_factory("A♥ K♠", "10♦ 7♣", chips=300)

        assert controller.bet(500) is False
        assert controller.state == RoundState.READY
        assert isinstance(controller.last_rejection, InsufficientChips)
        assert controller.events.of_type(EventType.INSUFFICIENT_CHIPS)
        assert len(controller.player_hand) == 0

    def test_bet_must_match_denomination(self, controller_factory):
        controller = controller_factory(
            "A♥ K♠", "10♦ 7♣", rules=TableRules(chip_denominations=(100, 500)),
        )

        assert controller.bet(250) is False
        assert isinstance(controller.last_rejection, IllegalAction)
        assert controller.bet(500) is True

    @pytest.mark.parametrize("amount", [0, -100])
    def test_non_positive_bet_rejected(self, controller, amount):
        assert controller.bet(amount) is False
        assert controller.player.chips == 10000

    def test_bet_twice_rejected(self, controller):
        controller.bet(500)

        assert controller.bet(500) is False
        assert controller.player.bet == 500


class TestNatural:
    """A two-card 21 is signalled but does not end the round."""

    def test_blackjack_detected(self, controller):
        controller.bet(500)

        detected = controller.events.of_type(EventType.BLACKJACK_DETECTED)
        assert len(detected) == 1
        assert detected[0].data["score"] == 21

    def test_natural_waits_for_player(self, controller):
        controller.bet(500)

        assert controller.state == RoundState.PLAYER_TURN
        assert controller.result is None

    def test_no_signal_without_natural(self, controller_factory):
        controller = controller_factory("10♠ 9♥", "10♦ 7♣")
        controller.bet(500)

        assert not controller.events.of_type(EventType.BLACKJACK_DETECTED)


class TestScenarios:
    """Whole rounds played against fixed cards."""

    def test_natural_stands_and_wins(self, controller):
        controller.bet(500)
        assert controller.player_score == 21

        assert controller.stand()

        assert controller.dealer_hand.hidden_indexes() == []
        assert controller.dealer_score == 17
        assert len(controller.dealer_hand) == 2
        assert controller.state == RoundState.RESULT
        assert controller.result.outcome == Outcome.WIN
        assert controller.result.reason == OutcomeReason.HIGHER_TOTAL
        assert controller.player.chips == 10500

    def test_hit_into_bust_loses_immediately(self, controller_factory):
        controller = controller_factory("10♠ 9♥ 5♣", "10♦ 7♣")
        controller.bet(500)

        assert controller.hit()

        assert controller.player_score == 24
        assert controller.state == RoundState.RESULT
        assert controller.result.outcome == Outcome.LOSE
        assert controller.result.reason == OutcomeReason.BUST
        assert controller.player.chips == 9500
        # Dealer never played
        assert controller.dealer_hand.hidden_indexes() == [1]
        assert not controller.events.of_type(EventType.DEALER_REVEALS)
        assert EventType.PLAYER_BUSTS in event_types(controller)

    def test_bust_on_double_still_plays_dealer(self, controller_factory):
        controller = controller_factory("8♠ 6♥ 9♣", "10♦ 7♣")
        controller.bet(500)

        assert controller.double()

        assert controller.player_score == 23
        assert controller.events.of_type(EventType.PLAYER_BUSTS)
        assert controller.events.of_type(EventType.DEALER_REVEALS)
        assert controller.result.outcome == Outcome.LOSE
        assert controller.result.reason == OutcomeReason.PLAYER_BUST
        assert controller.result.dealer_score == 17
        assert controller.player.chips == 9000

    def test_double_wins_double(self, controller_factory):
        controller = controller_factory("6♠ 5♥ K♣", "10♦ 7♣")
        controller.bet(500)

        controller.double()

        assert controller.is_doubled
        assert controller.player.bet == 1000
        assert controller.result.outcome == Outcome.WIN
        assert controller.player.chips == 11000

    def test_dealer_bust(self, controller_factory):
        controller = controller_factory("10♠ 8♥", "10♦ 6♣ K♠")
        controller.bet(500)

        controller.stand()

        assert controller.dealer_score == 26
        assert controller.events.of_type(EventType.DEALER_BUSTS)
        assert controller.result.outcome == Outcome.WIN
        assert controller.result.reason == OutcomeReason.DEALER_BUST

    def test_push(self, controller_factory):
        controller = controller_factory("10♠ 7♥", "10♦ 7♣")
        controller.bet(500)

        controller.stand()

        assert controller.result.outcome == Outcome.PUSH
        assert controller.player.chips == 10000

    def test_lower_total_loses(self, controller_factory):
        controller = controller_factory("10♠ 6♥", "10♦ 7♣")
        controller.bet(500)

        controller.stand()

        assert controller.result.outcome == Outcome.LOSE
        assert controller.result.reason == OutcomeReason.LOWER_TOTAL
        assert controller.player.chips == 9500


class TestDealerPlay:
    """Tests for the dealer's automatic turn."""

    def test_dealer_draws_to_seventeen(self, controller_factory):
        controller = controller_factory("10♠ 8♥", "10♦ 2♣ 3♠ 4♥")
        controller.bet(500)

        controller.stand()

        assert controller.dealer_score == 19
        assert len(controller.events.of_type(EventType.DEALER_HITS)) == 2
        assert controller.result.outcome == Outcome.LOSE

    def test_each_dealer_card_revealed_once(self, controller_factory):
        controller = controller_factory("10♠ 8♥", "10♦ 2♣ 3♠ 4♥")
        controller.bet(500)
        controller.stand()

        revealed = [
            e.data["index"]
            for e in controller.events.of_type(EventType.CARD_REVEALED)
            if e.data["side"] == "dealer"
        ]
        assert sorted(revealed) == [0, 1, 2, 3]

    def test_dealer_stands_on_soft_seventeen(self, controller_factory):
        controller = controller_factory("10♠ 8♥", "A♦ 6♣ 5♠")
        controller.bet(500)

        controller.stand()

        assert controller.dealer_score == 17
        assert len(controller.dealer_hand) == 2

    def test_custom_standing_total(self, controller_factory):
        controller = controller_factory(
            "10♠ 8♥", "10♦ 7♣ 2♠", rules=TableRules(dealer_stands_on=18),
        )
        controller.bet(500)

        controller.stand()

        assert controller.dealer_score == 19

    def test_dealer_play_terminates_on_small_cards(self, controller_factory):
        controller = controller_factory("10♠ 8♥", "2♦ 2♣ A♠")
        controller.bet(500)

        controller.stand()

        assert controller.dealer_score >= 17
        assert len(controller.dealer_hand) <= 11


class TestRejections:
    """Illegal actions are rejected explicitly and change nothing."""

    def test_hit_before_bet(self, controller):
        assert controller.hit() is False
        error = controller.last_rejection
        assert isinstance(error, IllegalAction)
        assert error.action == "hit"

        rejected = controller.events.of_type(EventType.INVALID_ACTION)
        assert rejected[-1].data["action"] == "hit"
        assert rejected[-1].data["state"] == "READY"

    def test_stand_after_result(self, controller):
        controller.bet(500)
        controller.stand()
        chips = controller.player.chips

        assert controller.stand() is False
        assert controller.player.chips == chips

    def test_double_after_hit(self, controller_factory):
        controller = controller_factory("2♠ 3♥ 4♣", "10♦ 7♣")
        controller.bet(500)
        controller.hit()

        assert controller.can_double is False
        assert controller.double() is False
        assert controller.player.bet == 500

    def test_double_without_chips(self, controller_factory):
        controller = controller_factory("6♠ 5♥ K♣", "10♦ 7♣", chips=800)
        controller.bet(500)

        assert controller.can_double is False
        assert controller.double() is False
        error = controller.last_rejection
        assert isinstance(error, InsufficientChips)
        assert error.required == 1000
        assert error.available == 800
        assert controller.state == RoundState.PLAYER_TURN

    def test_accepted_action_clears_rejection(self, controller):
        controller.hit()
        assert controller.last_rejection is not None

        controller.bet(500)
        assert controller.last_rejection is None


class TestReentrancy:
    """Actions arriving while cards are in flight are rejected."""

    def test_hit_during_deal(self, controller):
        attempts = []

        def on_card(event):
            attempts.append(controller.hit())

        controller.subscribe(on_card, EventType.CARD_APPENDED)
        controller.bet(500)

        assert attempts == [False, False, False, False]
        assert len(controller.player_hand) == 2
        assert "while cards are being dealt" in str(controller.last_rejection)

    def test_stand_during_dealer_turn(self, controller_factory):
        controller = controller_factory("10♠ 8♥", "10♦ 2♣ 3♠ 4♥")
        attempts = []

        def on_dealer_hit(event):
            attempts.append(controller.stand())

        controller.subscribe(on_dealer_hit, EventType.DEALER_HITS)
        controller.bet(500)
        controller.stand()

        assert attempts == [False, False]
        assert controller.result.outcome == Outcome.LOSE

    def test_hit_during_hit(self, controller_factory):
        controller = controller_factory("2♠ 3♥ 4♣ 5♦", "10♦ 7♣")
        controller.bet(500)
        attempts = []

        def on_hit(event):
            attempts.append(controller.hit())

        controller.subscribe(on_hit, EventType.PLAYER_HIT)
        controller.hit()

        assert attempts == [False]
        assert len(controller.player_hand) == 3

    def test_hit_during_stand(self, controller_factory):
        controller = controller_factory("10♠ 6♥ 9♣", "10♦ 7♣")
        controller.bet(100)
        attempts = []

        def on_stand(event):
            attempts.append(controller.hit())

        controller.subscribe(on_stand, EventType.PLAYER_STAND)

        assert controller.stand() is True
        assert attempts == [False]
        assert len(controller.player_hand) == 2
        assert controller.result.reason == OutcomeReason.LOWER_TOTAL
        assert controller.player.chips == 9900

    def test_bet_during_bet(self, controller):
        attempts = []

        def on_bet(event):
            attempts.append(controller.bet(100))

        controller.subscribe(on_bet, EventType.BET_PLACED)

        assert controller.bet(500) is True
        assert attempts == [False]
        assert controller.state == RoundState.PLAYER_TURN
        assert controller.player.bet == 500
        assert len(controller.player_hand) == 2

    def test_busy_flags_clear_after_action(self, controller):
        controller.bet(500)
        controller.stand()

        assert not controller.is_busy
        assert not controller.is_player_acting
        assert not controller.is_dealer_acting


class TestSettlement:
    """Tests for settling and resetting."""

    def test_settles_once(self, controller):
        controller.bet(500)
        controller.stand()

        with pytest.raises(SettlementError):
            controller._settle(Outcome.WIN, OutcomeReason.HIGHER_TOTAL, lambda: True)
        assert controller.player.chips == 10500

    def test_settled_event(self, controller):
        controller.bet(500)
        controller.stand()

        settled = controller.events.of_type(EventType.ROUND_SETTLED)
        assert len(settled) == 1
        assert settled[0].data == {
            "outcome": "WIN",
            "reason": "higher_total",
            "player_score": 21,
            "dealer_score": 17,
            "bet": 500,
            "chips": 10500,
        }

    def test_reset_clears_table(self, controller):
        controller.bet(500)
        controller.stand()

        assert controller.reset()

        assert controller.state == RoundState.READY
        assert len(controller.player_hand) == 0
        assert len(controller.dealer_hand) == 0
        assert controller.player.bet == 0
        assert controller.result is None
        assert not controller.is_doubled
        assert controller.player.chips == 10500

    def test_reset_clears_scores(self, controller):
        controller.bet(500)
        controller.stand()
        controller.events.clear_history()

        controller.reset()

        cleared = controller.events.of_type(EventType.SCORE_UPDATED)
        assert [(e.data["side"], e.data["score"]) for e in cleared] == [
            ("player", None),
            ("dealer", None),
        ]
        assert controller.events.of_type(EventType.ROUND_RESET)

    def test_reset_drops_previous_round_history(self, controller):
        for _ in range(3):
            controller.bet(500)
            controller.stand()
            controller.reset()

        assert event_types(controller) == [
            EventType.SCORE_UPDATED,
            EventType.SCORE_UPDATED,
            EventType.ROUND_RESET,
        ]

    def test_reset_mid_round_rejected(self, controller):
        controller.bet(500)

        assert controller.reset() is False
        assert controller.state == RoundState.PLAYER_TURN

    def test_rounds_replay_fixed_cards(self, controller):
        controller.bet(500)
        controller.stand()
        controller.reset()

        controller.bet(500)

        assert controller.player_score == 21
        assert controller.dealer_score == 10

    def test_chips_carry_across_rounds(self, controller_factory):
        controller = controller_factory("10♠ 6♥", "10♦ 7♣")
        for _ in range(3):
            controller.bet(1000)
            controller.stand()
            controller.reset()

        assert controller.player.chips == 7000


class TestCapabilities:
    """Tests for the can_* queries."""

    def test_ready(self, controller):
        assert controller.can_bet
        assert not controller.can_hit
        assert not controller.can_stand
        assert not controller.can_double
        assert not controller.can_reset

    def test_player_turn(self, controller):
        controller.bet(500)

        assert not controller.can_bet
        assert controller.can_hit
        assert controller.can_stand
        assert controller.can_double
        assert not controller.can_reset

    def test_result(self, controller):
        controller.bet(500)
        controller.stand()

        assert controller.can_reset
        assert not controller.can_hit


def test_shared_emitter_sees_every_round(player, natural_source):
    from core.game.events import EventEmitter

    emitter = EventEmitter()
    controller = RoundController(player=player, draw_source=natural_source, events=emitter)
    controller.bet(500)

    assert controller.events is emitter
    assert emitter.of_type(EventType.ROUND_STARTED)
