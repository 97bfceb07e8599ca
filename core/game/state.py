"""Round state enumeration."""

from enum import Enum, auto


class RoundState(Enum):
    """
    Round state machine states.

    Flow: READY → DEALING → PLAYER_TURN → DEALER_TURN → RESULT → READY
    A player bust goes straight from PLAYER_TURN to RESULT.
    """

    # No bet placed, no cards on the table
    READY = auto()

    # Initial four cards being dealt
    DEALING = auto()

    # Player may hit, stand or double
    PLAYER_TURN = auto()

    # Dealer reveals and draws to 17
    DEALER_TURN = auto()

    # Outcome settled, waiting for reset
    RESULT = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()
