"""WebSocket transport streaming a session's game events."""

import asyncio
import json
import logging
from typing import Any, Awaitable

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from api.routes.game import get_game
from api.session import extract_session_id, get_session
from core.errors import InvalidBet
from core.game import BlackjackGame
from core.game.events import EventType, GameEvent

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """Track open sockets and the actions each one has running."""

    def __init__(self) -> None:
        # Keyed per socket: a session may reconnect before its old socket closes
        self._connections: dict[int, tuple[str, WebSocket]] = {}
        self._tasks: dict[int, set[asyncio.Task]] = {}

    async def connect(self, websocket: WebSocket, session_id: str) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections[id(websocket)] = (session_id, websocket)
        self._tasks[id(websocket)] = set()

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove a connection. Running actions finish on their own."""
        self._connections.pop(id(websocket), None)
        self._tasks.pop(id(websocket), None)

    def spawn(self, websocket: WebSocket, action: Awaitable[Any]) -> None:
        """
        Run a game action without blocking the receive loop.

        Messages keep being read while the dealer plays, and the game
        ignores any that arrive outside the player's turn.
        """
        task = asyncio.ensure_future(self._run(websocket, action))
        tasks = self._tasks.setdefault(id(websocket), set())
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    async def _run(self, websocket: WebSocket, action: Awaitable[Any]) -> None:
        try:
            await action
        except InvalidBet as exc:
            await self.send_message(websocket, {"type": "error", "message": exc.reason})

    async def send_message(self, websocket: WebSocket, message: dict[str, Any]) -> None:
        """Send a message to a registered socket."""
        entry = self._connections.get(id(websocket))
        if entry is None:
            return
        try:
            await websocket.send_json(message)
        except (RuntimeError, WebSocketDisconnect):
            logger.debug("Dropped message for closed socket of %s", entry[0])

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return len(self._connections)


# Global connection manager
manager = ConnectionManager()


def _state_message(game: BlackjackGame) -> dict[str, Any]:
    return {"type": "state_update", "state": game.view().to_dict()}


def _event_to_message(event: GameEvent, game: BlackjackGame) -> dict[str, Any]:
    """Convert a game event to a WebSocket message."""
    message = {
        "type": "event",
        "event_type": event.event_type.name,
        "data": event.data,
        "state": game.view().to_dict(),
    }
    if event.event_type == EventType.ROUND_SETTLED:
        message["round_result"] = {
            "outcome": event.data["outcome"],
            "payout": event.data["payout"],
            "balance": event.data["balance"],
        }
    return message


@router.websocket("/game/{session_id}")
async def game_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for real-time game updates.

    Messages from client:
    - {"type": "bet", "amount": 100}
    - {"type": "deal"}
    - {"type": "action", "action": "hit"|"stand"}
    - {"type": "new_round"}
    - {"type": "get_state"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}, "state": {...}}
    - {"type": "error", "message": "..."}
    """
    if extract_session_id(session_id) is None or await get_session(session_id) is None:
        await websocket.close(code=4401)
        return

    await manager.connect(websocket, session_id)
    game = await get_game(session_id)
    events: asyncio.Queue[GameEvent] = asyncio.Queue()

    def forward(event: GameEvent) -> None:
        events.put_nowait(event)

    game.subscribe(forward)
    await manager.send_message(websocket, _state_message(game))

    async def process_events() -> None:
        """Send game events to the client as they happen."""
        while True:
            event = await events.get()
            await manager.send_message(websocket, _event_to_message(event, game))

    event_task = asyncio.create_task(process_events())

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_message(websocket, {"type": "error", "message": "Invalid JSON"})
                continue
            msg_type = message.get("type")

            if msg_type == "get_state":
                await manager.send_message(websocket, _state_message(game))

            elif msg_type == "bet":
                try:
                    game.bet(int(message.get("amount", 0)))
                except (TypeError, ValueError):
                    await manager.send_message(websocket, {"type": "error", "message": "Invalid amount"})
                except InvalidBet as exc:
                    await manager.send_message(websocket, {"type": "error", "message": exc.reason})

            elif msg_type == "deal":
                manager.spawn(websocket, game.deal())

            elif msg_type == "action":
                action = message.get("action")
                actions = {
                    "hit": game.hit,
                    "stand": game.stand,
                }
                action_fn = actions.get(action)
                if action_fn is None:
                    await manager.send_message(websocket, {
                        "type": "error",
                        "message": f"Unknown action: {action}",
                    })
                    continue
                manager.spawn(websocket, action_fn())

            elif msg_type == "new_round":
                game.new_round()
                await manager.send_message(websocket, _state_message(game))

            else:
                await manager.send_message(websocket, {
                    "type": "error",
                    "message": f"Unknown message type: {msg_type}",
                })

    except WebSocketDisconnect:
        logger.debug("Socket %s disconnected", session_id)
    finally:
        game.events.unsubscribe(forward)
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass
        manager.disconnect(websocket)
