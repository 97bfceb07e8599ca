"""Table rules."""

from dataclasses import dataclass

from config import GameConfig


@dataclass(frozen=True)
class TableRules:
    """
    Rules of a single-seat even-money table.

    Only the dealer's standing total and the accepted chip denominations
    vary between tables; everything else is fixed by the round controller.
    """

    # Dealer draws while below this total, soft or hard
    dealer_stands_on: int = 17

    # Accepted opening bets; empty means any positive amount
    chip_denominations: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        """Validate rule values."""
        if not 12 <= self.dealer_stands_on <= 21:
            raise ValueError("dealer_stands_on must be between 12 and 21")
        if any(d <= 0 for d in self.chip_denominations):
            raise ValueError("chip denominations must be positive")

    def accepts_bet(self, amount: int) -> bool:
        """Check an opening bet against the table's chip denominations."""
        if amount <= 0:
            return False
        return not self.chip_denominations or amount in self.chip_denominations

    @classmethod
    def from_config(cls, game: GameConfig) -> "TableRules":
        """Rules for the configured house table."""
        return cls(
            dealer_stands_on=game.dealer_stands_on,
            chip_denominations=tuple(game.chip_denominations),
        )
