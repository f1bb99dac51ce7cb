"""Room and connection management for the defense server."""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable, Dict, List, Optional, Tuple

from fastapi import WebSocket, WebSocketDisconnect

from .config import RoomSettings
from .game import DefenseGame, RoomFullError
from .messages import Envelope, Intent, JoinRoom, RoomFull, normalise_room_name
from .scheduler import BROADCAST_TIMER, Scheduler, TimerCallback
from .world import DEFAULT_WORLD, World

logger = logging.getLogger(__name__)


class GameRoom:
    """Holds one room's simulation, its timers and member websockets.

    Every mutation of ``game`` happens while holding ``lock``, whether it
    comes from an intent or from a timer. Messages produced under the lock
    are sent after it is released.
    """

    def __init__(
        self,
        name: str,
        settings: RoomSettings,
        world: World = DEFAULT_WORLD,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.name = name
        self.settings = settings
        self.lock = asyncio.Lock()
        self.connections: Dict[str, WebSocket] = {}
        self.scheduler = Scheduler(runner=self._run_timer)
        self.game = DefenseGame(name, self.scheduler, settings=settings, world=world, rng=rng)
        self.closed = False

    @property
    def player_count(self) -> int:
        return len(self.game.players)

    def is_empty(self) -> bool:
        return not self.game.players

    def is_full(self) -> bool:
        return self.player_count >= self.settings.max_players

    async def admit(self, player_id: str, websocket: WebSocket) -> Tuple[bool, List[Envelope]]:
        """Add a player; returns whether it fit and the messages to deliver."""
        async with self.lock:
            try:
                self.game.add_player(player_id)
            except RoomFullError:
                logger.warning("Room %s is full, rejected %s", self.name, player_id)
                return False, []
            self.connections[player_id] = websocket
            if not self.scheduler.is_active(BROADCAST_TIMER):
                self.scheduler.every(
                    BROADCAST_TIMER, self.settings.broadcast_interval, self.game.publish_state
                )
            return True, self.game.drain()

    async def leave(self, player_id: str) -> None:
        async with self.lock:
            self.connections.pop(player_id, None)
            self.game.remove_player(player_id)
            envelopes = self.game.drain()
        await self.deliver(envelopes)

    async def handle(self, player_id: str, intent: Intent) -> None:
        async with self.lock:
            self.game.handle_intent(player_id, intent)
            envelopes = self.game.drain()
        await self.deliver(envelopes)

    async def close(self) -> None:
        """Stop every timer; the room must not be used afterwards."""
        async with self.lock:
            self.closed = True
            self.scheduler.cancel_all()
            self.connections.clear()

    async def _run_timer(self, fire: TimerCallback) -> None:
        async with self.lock:
            if self.closed:
                return
            fire()
            envelopes = self.game.drain()
        await self.deliver(envelopes)

    async def deliver(self, envelopes: List[Envelope]) -> None:
        """Send each envelope's message to its recipients in the room."""
        for envelope in envelopes:
            payload = envelope.message.serialise()
            for member in envelope.recipients(list(self.connections)):
                websocket = self.connections.get(member)
                if websocket is not None:
                    await send_message(websocket, payload, member)

    def summary(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "players": self.player_count,
            "max_players": self.settings.max_players,
            "state": self.game.match.state.value,
        }


async def send_message(websocket: WebSocket, payload: Dict, recipient: str = "") -> None:
    try:
        await websocket.send_json(payload)
    except (RuntimeError, WebSocketDisconnect) as exc:
        # The receive loop of a dead connection performs the cleanup.
        logger.debug("Send to %s failed: %s", recipient or "client", exc)


class RoomManager:
    """Registry that lazily instantiates rooms and routes connections.

    Each connection belongs to at most one room. Rooms are created on the
    first join and torn down, timers included, when the last player leaves.
    The registry has its own lock which is always taken before a room lock.
    """

    def __init__(
        self,
        settings: Optional[RoomSettings] = None,
        world: World = DEFAULT_WORLD,
        rng_factory: Callable[[], random.Random] = random.Random,
    ) -> None:
        self.settings = settings or RoomSettings()
        self.settings.validate()
        self.world = world
        self.rng_factory = rng_factory
        self.rooms: Dict[str, GameRoom] = {}
        self.memberships: Dict[str, GameRoom] = {}
        self.lock = asyncio.Lock()

    def room_of(self, connection_id: str) -> Optional[GameRoom]:
        return self.memberships.get(connection_id)

    async def dispatch(self, connection_id: str, websocket: WebSocket, intent: Intent) -> None:
        """Route an intent to the connection's room; join requests switch rooms."""
        if isinstance(intent, JoinRoom):
            await self.join_room(connection_id, websocket, intent.room)
            return
        room = self.memberships.get(connection_id)
        if room is None:
            logger.debug("Intent %s from %s outside any room ignored", intent.type, connection_id)
            return
        await room.handle(connection_id, intent)

    async def join_room(
        self, connection_id: str, websocket: WebSocket, requested_name: Optional[str] = None
    ) -> Optional[GameRoom]:
        """Move a connection into ``requested_name``.

        The target room admits the player before the current room is left,
        so a join refused as full keeps the existing membership.
        """
        name = normalise_room_name(requested_name)
        current = self.memberships.get(connection_id)
        if current is not None and current.name == name:
            return current

        async with self.lock:
            room = self.rooms.get(name)
            if room is None:
                room = GameRoom(name, self.settings, world=self.world, rng=self.rng_factory())
                self.rooms[name] = room
                logger.info("Room %s created", name)
            admitted, envelopes = await room.admit(connection_id, websocket)
            if admitted:
                self.memberships[connection_id] = room
        if not admitted:
            await self._reject(websocket, name)
            return None
        if current is not None:
            await self._depart(current, connection_id)
        await room.deliver(envelopes)
        return room

    async def leave_room(self, connection_id: str) -> None:
        """Remove a connection from its room, deleting the room once empty."""
        room = self.memberships.pop(connection_id, None)
        if room is None:
            return
        await self._depart(room, connection_id)

    async def _depart(self, room: GameRoom, connection_id: str) -> None:
        await room.leave(connection_id)
        async with self.lock:
            if room.is_empty() and self.rooms.get(room.name) is room:
                del self.rooms[room.name]
                await room.close()
                logger.info("Room %s deleted", room.name)

    async def close(self) -> None:
        async with self.lock:
            for room in list(self.rooms.values()):
                await room.close()
            self.rooms.clear()
            self.memberships.clear()

    def summaries(self) -> List[Dict[str, object]]:
        return [room.summary() for room in self.rooms.values()]

    async def _reject(self, websocket: WebSocket, name: str) -> None:
        payload = RoomFull(room=name, max_players=self.settings.max_players).serialise()
        await send_message(websocket, payload)


__all__ = ["GameRoom", "RoomManager", "send_message"]
