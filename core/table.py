"""Table participants: the seated player and the house."""

from dataclasses import dataclass
from enum import Enum


class Side(str, Enum):
    """Which side of the table a card belongs to."""

    PLAYER = "player"
    DEALER = "dealer"

    def __str__(self) -> str:
        return self.value


DEFAULT_STARTING_CHIPS = 10000
DEALER_BANKROLL = 999999


@dataclass
class Player:
    """The seated player. Chips persist across rounds; the bet is per round."""

    name: str = "Mystery Player"
    chips: int = DEFAULT_STARTING_CHIPS
    bet: int = 0

    def can_cover(self, amount: int) -> bool:
        """Check whether the player's chips cover a total wager of amount."""
        return amount <= self.chips


@dataclass
class Dealer:
    """The house. Its bankroll is a display value and is never settled."""

    chips: int = DEALER_BANKROLL
