"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator

from core.cards import Card, Rank


def evaluate(revealed_ranks: Iterable[Rank]) -> int | None:
    """
    Score a sequence of revealed ranks.

    Non-aces are summed first. Each ace then counts as 11 if the running
    total, with every ace still to come counted as 1, stays at or below 21;
    otherwise it counts as 1. The total is not clamped, so a value above 21
    means the hand is bust.

    Returns:
        The point total, or None when no ranks are given
    """
    total = 0
    aces = 0
    seen = False

    for rank in revealed_ranks:
        seen = True
        if rank.is_ace:
            aces += 1
        else:
            total += rank.blackjack_value

    if not seen:
        return None

    while aces > 0:
        if total + 11 + (aces - 1) <= 21:
            total += 11
        else:
            total += 1
        aces -= 1

    return total


@dataclass(frozen=True, slots=True)
class DealtCard:
    """A card on the table together with its visibility."""

    card: Card
    face_down: bool = False

    def revealed(self) -> "DealtCard":
        """Return the face-up version of this card."""
        return replace(self, face_down=False)

    def __str__(self) -> str:
        return "??" if self.face_down else str(self.card)


@dataclass
class Hand:
    """An ordered sequence of dealt cards belonging to one side of the table."""

    cards: list[DealtCard] = field(default_factory=list)

    def append(self, card: Card, face_down: bool = True) -> int:
        """Add a card to the hand and return its index."""
        self.cards.append(DealtCard(card, face_down=face_down))
        return len(self.cards) - 1

    def reveal(self, index: int) -> bool:
        """
        Turn the card at index face up.

        Returns:
            True if the card was face down before the call
        """
        dealt = self.cards[index]
        if not dealt.face_down:
            return False
        self.cards[index] = dealt.revealed()
        return True

    def hidden_indexes(self) -> list[int]:
        """Indexes of the cards still face down."""
        return [i for i, dealt in enumerate(self.cards) if dealt.face_down]

    def clear(self) -> None:
        """Remove all cards from the hand."""
        self.cards.clear()

    @property
    def revealed_ranks(self) -> list[Rank]:
        return [dealt.card.rank for dealt in self.cards if not dealt.face_down]

    @property
    def revealed_count(self) -> int:
        return len(self.revealed_ranks)

    @property
    def score(self) -> int | None:
        """Score of the face-up cards, or None when none are showing."""
        return evaluate(self.revealed_ranks)

    @property
    def is_busted(self) -> bool:
        score = self.score
        return score is not None and score > 21

    @property
    def is_natural(self) -> bool:
        """Check for 21 on exactly two revealed cards."""
        return self.revealed_count == 2 and self.score == 21

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[DealtCard]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(dealt) for dealt in self.cards)
        score = self.score
        if score is None:
            return cards_str
        if score > 21:
            return f"{cards_str} (BUST)"
        return f"{cards_str} ({score})"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, score={self.score})"
