"""Blackjack round controller with state machine."""

import logging
from typing import Callable

from transitions import Machine

from core.draw import DrawSource
from core.hand import Hand
from core.rules import TableRules
from core.table import Dealer, Player, Side
from core.game.errors import IllegalAction, InsufficientChips, RoundError, SettlementError
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.outcome import Outcome, OutcomeReason, RoundResult, determine_outcome
from core.game.payout import settle
from core.game.state import RoundState

logger = logging.getLogger(__name__)


class RoundController:
    """
    Runs one blackjack round at a time for a single seat.

    The controller is completely UI-agnostic and synchronous: every action
    runs to completion before it returns, and the presentation layer learns
    what happened from events. Reveal timing is the presentation layer's
    concern.

    Public actions return True when accepted. A rejected action changes
    nothing, records the reason in ``last_rejection`` and emits
    INVALID_ACTION or INSUFFICIENT_CHIPS.
    """

    # State machine states
    STATES = [s.name.lower() for s in RoundState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "start_dealing", "source": "ready", "dest": "dealing"},
        {"trigger": "deal_complete", "source": "dealing", "dest": "player_turn"},
        {"trigger": "player_busts", "source": "player_turn", "dest": "result"},
        {"trigger": "player_done", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "dealer_done", "source": "dealer_turn", "dest": "result"},
        {"trigger": "clear_table", "source": "result", "dest": "ready"},
    ]

    def __init__(
        self,
        player: Player,
        draw_source: DrawSource,
        dealer: Dealer | None = None,
        rules: TableRules | None = None,
        events: EventEmitter | None = None,
    ) -> None:
        """
        Seat a player at the table.

        Args:
            player: The player whose chips this controller settles
            draw_source: Supplier of cards
            dealer: The house (defaults to an unlimited bankroll)
            rules: Table rules (defaults to dealer stands on 17, any bet)
            events: Emitter to publish on (a fresh one if not provided)
        """
        self.player = player
        self.dealer = dealer or Dealer()
        self.draw_source = draw_source
        self.rules = rules or TableRules()
        self.events = events or EventEmitter()

        self.player_hand = Hand()
        self.dealer_hand = Hand()

        self._result: RoundResult | None = None
        self._player_final_score: int | None = None
        self._doubled = False
        self._player_acting = False
        self._dealer_acting = False
        self.last_rejection: RoundError | None = None

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="ready",
            auto_transitions=False,
            model_attribute="_machine_state",
            after_state_change="_log_transition",
        )

    @property
    def state(self) -> RoundState:
        """Get current round state as enum."""
        return RoundState[self._machine_state.upper()]  # type: ignore

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to round events."""
        self.events.subscribe(handler, event_type)

    # -- Actions ---------------------------------------------------------

    def bet(self, amount: int) -> bool:
        """
        Place the opening bet and deal the first four cards.

        Args:
            amount: Bet amount, which must be covered by the player's chips

        Returns:
            True if the bet was accepted
        """
        try:
            self._require_state("bet", RoundState.READY)
            if not self.rules.accepts_bet(amount):
                raise IllegalAction("bet", f"Bet of {amount} is not accepted at this table")
            if not self.player.can_cover(amount):
                raise InsufficientChips("bet", amount, self.player.chips)
        except (IllegalAction, InsufficientChips) as error:
            return self._reject(error)

        self.last_rejection = None
        self.player.bet = amount
        self.start_dealing()
        self.events.emit_new(EventType.BET_PLACED, amount=amount, chips=self.player.chips)

        self.draw_source.start_round()
        self._deal(Side.PLAYER)
        self._deal(Side.DEALER)
        self._deal(Side.PLAYER)
        if self.player_hand.is_natural:
            self.events.emit_new(EventType.BLACKJACK_DETECTED, score=21)
        self._deal(Side.DEALER, face_down=True)

        self.events.emit_new(
            EventType.ROUND_STARTED,
            player_score=self.player_score,
            dealer_score=self.dealer_score,
        )
        self.deal_complete()
        return True

    def hit(self) -> bool:
        """Player takes another card. A bust settles the round immediately."""
        try:
            self._require_state("hit", RoundState.PLAYER_TURN)
        except IllegalAction as error:
            return self._reject(error)

        self.last_rejection = None
        self._player_acting = True
        try:
            self._deal(Side.PLAYER)
            score = self.player_score or 0
            self.events.emit_new(EventType.PLAYER_HIT, score=score)

            if score > 21:
                self.events.emit_new(EventType.PLAYER_BUSTS, score=score)
                self._player_final_score = score
                self._settle(Outcome.LOSE, OutcomeReason.BUST, self.player_busts)
        finally:
            self._player_acting = False
        return True

    def stand(self) -> bool:
        """Player keeps the current hand; the dealer plays out."""
        try:
            self._require_state("stand", RoundState.PLAYER_TURN)
        except IllegalAction as error:
            return self._reject(error)

        self.last_rejection = None
        self._player_acting = True
        try:
            self._player_final_score = self.player_score or 0
            self.events.emit_new(EventType.PLAYER_STAND, score=self._player_final_score)
            self.player_done()
        finally:
            self._player_acting = False
        self._play_dealer()
        return True

    def double(self) -> bool:
        """
        Double the bet, take exactly one card, then let the dealer play.

        Only allowed on the first two cards, once per round, and when the
        player's chips cover the doubled bet. A bust on the double card is
        not settled early: the dealer still plays and the final comparison
        decides the round.
        """
        try:
            self._require_state("double", RoundState.PLAYER_TURN)
            if self._doubled:
                raise IllegalAction("double", "Bet has already been doubled")
            if self.player_hand.revealed_count != 2:
                raise IllegalAction("double", "Can only double on the first two cards")
            doubled_bet = self.player.bet * 2
            if not self.player.can_cover(doubled_bet):
                raise InsufficientChips("double", doubled_bet, self.player.chips)
        except (IllegalAction, InsufficientChips) as error:
            return self._reject(error)

        self.last_rejection = None
        self._player_acting = True
        try:
            self.player.bet = doubled_bet
            self._doubled = True
            self._deal(Side.PLAYER)
            score = self.player_score or 0
            self.events.emit_new(EventType.PLAYER_DOUBLE, bet=doubled_bet, score=score)
            if score > 21:
                self.events.emit_new(EventType.PLAYER_BUSTS, score=score)
            self._player_final_score = score
        finally:
            self._player_acting = False

        self.player_done()
        self._play_dealer()
        return True

    def reset(self) -> bool:
        """Clear the table after a settled round. Chips carry over."""
        try:
            self._require_state("reset", RoundState.RESULT)
        except IllegalAction as error:
            return self._reject(error)

        self.last_rejection = None
        # History only covers the round in play
        self.events.clear_history()
        self.player_hand.clear()
        self.dealer_hand.clear()
        self.player.bet = 0
        self._result = None
        self._player_final_score = None
        self._doubled = False

        self.clear_table()
        self.events.emit_new(EventType.SCORE_UPDATED, side=Side.PLAYER.value, score=None)
        self.events.emit_new(EventType.SCORE_UPDATED, side=Side.DEALER.value, score=None)
        self.events.emit_new(EventType.ROUND_RESET, chips=self.player.chips)
        return True

    # -- Internals -------------------------------------------------------

    def _require_state(self, action: str, state: RoundState) -> None:
        """Raise IllegalAction unless the table is idle in the given state."""
        if self.is_busy:
            raise IllegalAction(action, f"Cannot {action} while cards are being dealt")
        if self.state != state:
            raise IllegalAction(action, f"Cannot {action} during {self.state}")

    def _reject(self, error: RoundError) -> bool:
        """Record and announce a rejected action."""
        self.last_rejection = error
        logger.info("Rejected action: %s", error)

        if isinstance(error, InsufficientChips):
            self.events.emit_new(
                EventType.INSUFFICIENT_CHIPS,
                action=error.action,
                required=error.required,
                available=error.available,
            )
        else:
            self.events.emit_new(
                EventType.INVALID_ACTION,
                action=getattr(error, "action", None),
                message=str(error),
                state=self.state.name,
            )
        return False

    def _hand(self, side: Side) -> Hand:
        return self.player_hand if side == Side.PLAYER else self.dealer_hand

    def _deal(self, side: Side, face_down: bool = False) -> int:
        """Draw a card onto a hand face down, then flip it unless it stays hidden."""
        card = self.draw_source.next_card(side)
        index = self._hand(side).append(card, face_down=True)
        self.events.emit_new(
            EventType.CARD_APPENDED,
            side=side.value,
            index=index,
            card=None if face_down else str(card),
            hidden=True,
        )
        if not face_down:
            self._reveal(side, index)
        return index

    def _reveal(self, side: Side, index: int) -> None:
        """Turn one card face up and publish the new score."""
        hand = self._hand(side)
        if not hand.reveal(index):
            return
        self.events.emit_new(
            EventType.CARD_REVEALED,
            side=side.value,
            index=index,
            card=str(hand.cards[index].card),
        )
        self.events.emit_new(EventType.SCORE_UPDATED, side=side.value, score=hand.score)

    def _play_dealer(self) -> None:
        """Reveal the hole card and draw until the dealer reaches the standing total."""
        self._dealer_acting = True
        try:
            for index in self.dealer_hand.hidden_indexes():
                self._reveal(Side.DEALER, index)
            self.events.emit_new(EventType.DEALER_REVEALS, score=self.dealer_score)

            while (self.dealer_score or 0) < self.rules.dealer_stands_on:
                self._deal(Side.DEALER)
                self.events.emit_new(EventType.DEALER_HITS, score=self.dealer_score)

            dealer_score = self.dealer_score or 0
            if dealer_score > 21:
                self.events.emit_new(EventType.DEALER_BUSTS, score=dealer_score)
            else:
                self.events.emit_new(EventType.DEALER_STANDS, score=dealer_score)

            outcome, reason = determine_outcome(self._player_final_score or 0, dealer_score)
            self._settle(outcome, reason, self.dealer_done)
        finally:
            self._dealer_acting = False

    def _settle(
        self,
        outcome: Outcome,
        reason: OutcomeReason,
        transition: Callable[[], bool],
    ) -> None:
        """Fix the round's outcome, pay it out and move to RESULT."""
        if self._result is not None:
            raise SettlementError("Round has already been settled")

        self._result = RoundResult(
            outcome=outcome,
            reason=reason,
            player_score=self._player_final_score or 0,
            dealer_score=self.dealer_score,
        )
        chips_before = self.player.chips
        self.player.chips = settle(chips_before, self.player.bet, outcome)
        transition()

        logger.info(
            "Round settled: %s (%s) player=%s dealer=%s bet=%d chips %d -> %d",
            outcome.value,
            reason.value,
            self._result.player_score,
            self._result.dealer_score,
            self.player.bet,
            chips_before,
            self.player.chips,
        )
        self.events.emit_new(
            EventType.ROUND_SETTLED,
            outcome=outcome.value,
            reason=reason.value,
            player_score=self._result.player_score,
            dealer_score=self._result.dealer_score,
            bet=self.player.bet,
            chips=self.player.chips,
        )

    def _log_transition(self) -> None:
        logger.debug("Round state -> %s", self.state.name)

    # -- Queries ---------------------------------------------------------

    @property
    def player_score(self) -> int | None:
        return self.player_hand.score

    @property
    def dealer_score(self) -> int | None:
        return self.dealer_hand.score

    @property
    def result(self) -> RoundResult | None:
        """The settled result, once the round reaches RESULT."""
        return self._result

    @property
    def is_doubled(self) -> bool:
        return self._doubled

    @property
    def is_player_acting(self) -> bool:
        return self._player_acting

    @property
    def is_dealer_acting(self) -> bool:
        return self._dealer_acting

    @property
    def is_busy(self) -> bool:
        """True while dealing or while a player or dealer action is in flight."""
        return (
            self._player_acting
            or self._dealer_acting
            or self.state == RoundState.DEALING
        )

    @property
    def can_bet(self) -> bool:
        return self.state == RoundState.READY and not self.is_busy

    @property
    def can_hit(self) -> bool:
        return self.state == RoundState.PLAYER_TURN and not self.is_busy

    @property
    def can_stand(self) -> bool:
        return self.state == RoundState.PLAYER_TURN and not self.is_busy

    @property
    def can_double(self) -> bool:
        """Check if doubling is allowed."""
        if not self.can_hit or self._doubled:
            return False
        if self.player_hand.revealed_count != 2:
            return False
        return self.player.can_cover(self.player.bet * 2)

    @property
    def can_reset(self) -> bool:
        return self.state == RoundState.RESULT and not self.is_busy
