"""Chip settlement."""

from core.game.outcome import Outcome


def settle(chip_balance: int, bet: int, outcome: Outcome) -> int:
    """
    Apply an outcome to a chip balance.

    Wins pay even money, losses forfeit the bet, pushes leave the balance
    unchanged. The bet is not checked against the balance here; that happens
    when the bet is placed and when it is doubled.
    """
    if outcome == Outcome.WIN:
        return chip_balance + bet
    if outcome == Outcome.LOSE:
        return chip_balance - bet
    return chip_balance
