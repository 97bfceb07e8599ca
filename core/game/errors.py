"""Round errors.

IllegalAction and InsufficientChips never escape the public controller
actions: they are turned into rejection events and a False return.
"""


class RoundError(Exception):
    """Base class for round errors."""


class IllegalAction(RoundError):
    """An action was requested outside its legal state or while the table was busy."""

    def __init__(self, action: str, message: str) -> None:
        super().__init__(message)
        self.action = action


class InsufficientChips(RoundError):
    """The player's chips do not cover the requested wager."""

    def __init__(self, action: str, required: int, available: int) -> None:
        super().__init__(f"Not enough chips to {action}: need {required}, have {available}")
        self.action = action
        self.required = required
        self.available = available


class SettlementError(RoundError):
    """A round was settled twice."""
