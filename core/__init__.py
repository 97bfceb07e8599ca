"""Core blackjack engine - 100% UI-agnostic."""

from core.cards import Card, Shoe, Rank, Suit
from core.hand import DealtCard, Hand, evaluate
from core.table import Dealer, Player, Side

__all__ = [
    "Card",
    "Shoe",
    "Rank",
    "Suit",
    "DealtCard",
    "Hand",
    "evaluate",
    "Dealer",
    "Player",
    "Side",
]
