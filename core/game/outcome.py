"""Round outcomes and the final-score comparison."""

from dataclasses import dataclass
from enum import Enum


class Outcome(str, Enum):
    """Result of a round from the player's point of view."""

    WIN = "WIN"
    LOSE = "LOSE"
    PUSH = "PUSH"


class OutcomeReason(str, Enum):
    """Why a round ended the way it did."""

    BUST = "bust"  # Player bust on a hit, dealer never played
    DEALER_BUST = "dealer_bust"
    PLAYER_BUST = "player_bust"  # Player bust on a double, dealer did play
    TIE = "tie"
    HIGHER_TOTAL = "higher_total"
    LOWER_TOTAL = "lower_total"


@dataclass(frozen=True)
class RoundResult:
    """Settled outcome of one round, with the scores it was decided on."""

    outcome: Outcome
    reason: OutcomeReason
    player_score: int
    dealer_score: int | None


def determine_outcome(player_score: int, dealer_score: int) -> tuple[Outcome, OutcomeReason]:
    """
    Compare final totals once the dealer has finished drawing.

    A player bust only reaches this comparison through a double down;
    busting on a hit is settled before the dealer plays.
    """
    if dealer_score > 21 and player_score <= 21:
        return Outcome.WIN, OutcomeReason.DEALER_BUST
    if player_score > 21 and dealer_score <= 21:
        return Outcome.LOSE, OutcomeReason.PLAYER_BUST
    if player_score == dealer_score:
        return Outcome.PUSH, OutcomeReason.TIE
    if player_score > dealer_score:
        return Outcome.WIN, OutcomeReason.HIGHER_TOTAL
    return Outcome.LOSE, OutcomeReason.LOWER_TOTAL
