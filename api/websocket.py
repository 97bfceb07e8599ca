"""WebSocket connection management with paced round events."""

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from api.pacing import RevealPacer
from api.routes.game import get_game, game_state_response, save_game
from core.game import RoundController
from core.game.events import EventType, GameEvent

logger = logging.getLogger(__name__)

router = APIRouter()

# Close code sent when the session token does not verify
CLOSE_INVALID_SESSION = 4401


class ConnectionManager:
    """Manage WebSocket connections and their event streams."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._event_queues: dict[str, asyncio.Queue[GameEvent]] = {}
        self._revealing: set[str] = set()

    async def connect(self, websocket: WebSocket, session_id: str) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections[session_id] = websocket
        self._event_queues[session_id] = asyncio.Queue()

    def disconnect(self, session_id: str) -> None:
        """Remove a connection. The table itself stays in the session store."""
        self._connections.pop(session_id, None)
        self._event_queues.pop(session_id, None)
        self._revealing.discard(session_id)

    def queue_event(self, session_id: str, event: GameEvent) -> None:
        """Queue an event for paced delivery."""
        queue = self._event_queues.get(session_id)
        if queue is not None:
            queue.put_nowait(event)

    async def next_event(self, session_id: str) -> GameEvent:
        event = await self._event_queues[session_id].get()
        self._revealing.add(session_id)
        return event

    def event_done(self, session_id: str) -> bool:
        """Mark the current event delivered. Returns True once the stream is drained."""
        queue = self._event_queues.get(session_id)
        if queue is None or queue.empty():
            self._revealing.discard(session_id)
            return True
        return False

    def is_revealing(self, session_id: str) -> bool:
        """True while queued events for this session are still being paced out."""
        queue = self._event_queues.get(session_id)
        return session_id in self._revealing or (queue is not None and not queue.empty())

    async def send_message(self, session_id: str, message: dict[str, Any]) -> None:
        """Send a message to a specific session."""
        websocket = self._connections.get(session_id)
        if websocket is None:
            return
        try:
            await websocket.send_json(message)
        except (RuntimeError, WebSocketDisconnect) as exc:
            logger.debug("Dropping message for closed session: %s", exc)

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return len(self._connections)


# Global connection manager
manager = ConnectionManager()


def _state_message(game: RoundController) -> dict[str, Any]:
    return {
        "type": "state_update",
        "state": game_state_response(game).model_dump(),
    }


def _event_to_message(event: GameEvent, pacer: RevealPacer) -> dict[str, Any]:
    """Convert a round event to a WebSocket message."""
    message: dict[str, Any] = {
        "type": "event",
        "event_type": event.event_type.name,
        "data": event.data,
    }
    if event.event_type == EventType.BLACKJACK_DETECTED:
        message["glow_ms"] = int(pacer.glow_seconds * 1000)
    return message


@router.websocket("/game/{session_id}")
async def game_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for a paced view of the table.

    Messages from client:
    - {"type": "bet", "amount": 500}
    - {"type": "action", "action": "hit"|"stand"|"double"}
    - {"type": "reset"}
    - {"type": "get_state"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}}
    - {"type": "error", "message": "..."}

    Commands arriving while earlier events are still being revealed are
    rejected with an error.
    """
    try:
        game = await get_game(session_id)
    except HTTPException:
        await websocket.close(code=CLOSE_INVALID_SESSION)
        return

    await manager.connect(websocket, session_id)
    pacer = RevealPacer()

    def on_event(event: GameEvent) -> None:
        manager.queue_event(session_id, event)

    game.subscribe(on_event)
    await manager.send_message(session_id, _state_message(game))

    async def process_events() -> None:
        """Deliver queued events with reveal pauses, then the settled state."""
        while True:
            event = await manager.next_event(session_id)
            await manager.send_message(session_id, _event_to_message(event, pacer))
            await pacer.hold(event)
            if manager.event_done(session_id):
                await manager.send_message(session_id, _state_message(game))

    event_task = asyncio.create_task(process_events())

    try:
        while True:
            message = json.loads(await websocket.receive_text())
            if not isinstance(message, dict):
                await manager.send_message(session_id, {
                    "type": "error",
                    "message": "Messages must be JSON objects",
                })
                continue
            msg_type = message.get("type")

            if msg_type == "get_state":
                await manager.send_message(session_id, _state_message(game))
                continue

            if manager.is_revealing(session_id):
                await manager.send_message(session_id, {
                    "type": "error",
                    "message": "Cards are still being revealed",
                })
                continue

            if msg_type == "bet":
                try:
                    amount = int(message.get("amount", 0))
                except (TypeError, ValueError):
                    await manager.send_message(session_id, {
                        "type": "error",
                        "message": f"Invalid bet amount: {message.get('amount')!r}",
                    })
                    continue
                accepted = game.bet(amount)
            elif msg_type == "action":
                actions = {
                    "hit": game.hit,
                    "stand": game.stand,
                    "double": game.double,
                }
                action_fn = actions.get(message.get("action"))
                if action_fn is None:
                    await manager.send_message(session_id, {
                        "type": "error",
                        "message": f"Unknown action: {message.get('action')}",
                    })
                    continue
                accepted = action_fn()
            elif msg_type == "reset":
                accepted = game.reset()
            else:
                await manager.send_message(session_id, {
                    "type": "error",
                    "message": f"Unknown message type: {msg_type}",
                })
                continue

            if accepted:
                await save_game(session_id, game)
            else:
                await manager.send_message(session_id, {
                    "type": "error",
                    "message": str(game.last_rejection),
                })

    except WebSocketDisconnect:
        logger.debug("WebSocket for session closed")
    except (json.JSONDecodeError, ValueError, TypeError, AttributeError) as exc:
        await manager.send_message(session_id, {
            "type": "error",
            "message": f"Malformed message: {exc}",
        })
    finally:
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass
        game.events.unsubscribe(on_event)
        manager.disconnect(session_id)
