"""Reveal pacing for streamed round events.

The engine settles a whole action synchronously. Clients watching over a
WebSocket still expect cards to land face down, flip and then be followed
by the next card, so the stream is paced here. Pauses never affect the
outcome; a scale of 0 streams everything at once.
"""

import asyncio

from config import PacingConfig, config
from core.game.events import EventType, GameEvent


class RevealPacer:
    """Decide how long to hold the stream after each event."""

    def __init__(self, pacing: PacingConfig | None = None) -> None:
        self.pacing = pacing or config.pacing
        self._pauses_ms = {
            # Card rests face down before it flips
            EventType.CARD_APPENDED: self.pacing.card_appended_ms,
            EventType.CARD_REVEALED: self.pacing.card_revealed_ms,
            EventType.DEALER_REVEALS: self.pacing.dealer_reveal_ms,
        }

    def pause_after(self, event: GameEvent) -> float:
        """Seconds to wait after delivering an event."""
        if event.event_type == EventType.CARD_APPENDED and event.data.get("card") is None:
            # The hole card stays down; nothing to flip
            return 0.0
        return self._pauses_ms.get(event.event_type, 0) * self.pacing.scale / 1000

    @property
    def glow_seconds(self) -> float:
        """How long the client should celebrate a natural."""
        return self.pacing.blackjack_glow_ms * self.pacing.scale / 1000

    async def hold(self, event: GameEvent) -> None:
        delay = self.pause_after(event)
        if delay > 0:
            await asyncio.sleep(delay)
