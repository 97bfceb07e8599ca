"""Draw sources: where the round controller gets its next card."""

import logging
from typing import Protocol, Sequence

from core.cards import Card, Shoe, parse_cards
from core.table import Side

logger = logging.getLogger(__name__)


class DrawSource(Protocol):
    """Supplies cards to the round controller. next_card must never fail."""

    def next_card(self, side: Side) -> Card:
        ...

    def start_round(self) -> None:
        ...


class FixedDrawSource:
    """
    Cycles through a fixed card sequence per side, wrapping on exhaustion.

    Used for replayable tests and for the demo table. Both cursors are
    rewound at the start of every round, so each round replays the same
    cards.
    """

    def __init__(self, player: Sequence[Card], dealer: Sequence[Card]) -> None:
        if not player or not dealer:
            raise ValueError("Both sides need at least one card")
        self._sequences: dict[Side, tuple[Card, ...]] = {
            Side.PLAYER: tuple(player),
            Side.DEALER: tuple(dealer),
        }
        self._cursors: dict[Side, int] = {Side.PLAYER: 0, Side.DEALER: 0}

    @classmethod
    def from_codes(cls, player: str, dealer: str) -> "FixedDrawSource":
        """Build a source from card codes, e.g. from_codes('A♥ K♠', '10♦ 7♣')."""
        return cls(parse_cards(player), parse_cards(dealer))

    @classmethod
    def reference(cls) -> "FixedDrawSource":
        """The demo table: a natural for the player against a dealer 17."""
        return cls.from_codes(
            player="A♥ K♠ 5♣ 9♦ 2♠ 3♥ 7♣ 4♦",
            dealer="10♦ 7♣ 3♣ 4♦ 9♥ 2♠ 6♦",
        )

    def next_card(self, side: Side) -> Card:
        sequence = self._sequences[side]
        card = sequence[self._cursors[side] % len(sequence)]
        self._cursors[side] += 1
        return card

    def start_round(self) -> None:
        self._cursors = {Side.PLAYER: 0, Side.DEALER: 0}

    @property
    def sequences(self) -> dict[Side, tuple[Card, ...]]:
        return dict(self._sequences)

    @property
    def cursors(self) -> dict[Side, int]:
        return dict(self._cursors)

    def seek(self, side: Side, position: int) -> None:
        """Move a side's cursor, used when restoring a persisted round."""
        self._cursors[side] = position


class ShoeDrawSource:
    """Deals from a shuffled shoe shared by both sides, never repeating a card."""

    def __init__(self, shoe: Shoe) -> None:
        self.shoe = shoe

    def next_card(self, side: Side) -> Card:
        if self.shoe.cards_remaining == 0:
            logger.info("Shoe exhausted mid-round, reshuffling")
            self.shoe.shuffle()
        return self.shoe.draw()

    def start_round(self) -> None:
        if self.shoe.needs_shuffle:
            logger.debug("Cut card reached, shuffling %d decks", self.shoe.num_decks)
            self.shoe.shuffle()
