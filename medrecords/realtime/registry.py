"""
Connection registry for realtime delivery.

Maps user ids to the websockets currently authenticated as that user. Each
user id is a "room": emitting to it reaches every open connection of the user.
"""
import logging
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket

# Set up logging
logger = logging.getLogger(__name__)

class ConnectionRegistry:
    """
    Tracks live websocket connections per user.

    Delivery is best effort: a failed send drops that connection and nothing
    is retried or acknowledged.
    """

    def __init__(self):
        self._rooms: Dict[str, Set[WebSocket]] = {}
        self._owners: Dict[WebSocket, str] = {}

    def add(self, user_id, websocket: WebSocket) -> None:
        """Register a connection in the user's room."""
        room = str(user_id)
        previous = self._owners.get(websocket)
        if previous is not None and previous != room:
            self.remove(websocket)
        self._rooms.setdefault(room, set()).add(websocket)
        self._owners[websocket] = room
        logger.info(f"Socket joined room {room} ({len(self._rooms[room])} open)")

    def remove(self, websocket: WebSocket) -> Optional[str]:
        """Drop a connection. Returns the room it belonged to, if any."""
        room = self._owners.pop(websocket, None)
        if room is None:
            return None
        connections = self._rooms.get(room)
        if connections is not None:
            connections.discard(websocket)
            if not connections:
                del self._rooms[room]
        logger.info(f"Socket left room {room}")
        return room

    def connections(self, user_id) -> List[WebSocket]:
        return list(self._rooms.get(str(user_id), ()))

    def is_online(self, user_id) -> bool:
        return bool(self._rooms.get(str(user_id)))

    def room_of(self, websocket: WebSocket) -> Optional[str]:
        return self._owners.get(websocket)

    async def emit(self, user_id, event: str, data: Any) -> int:
        """
        Push an event to every connection in the user's room.

        Returns:
            int: Number of connections the event was written to
        """
        delivered = 0
        for websocket in self.connections(user_id):
            try:
                await websocket.send_json({"event": event, "data": data})
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping socket in room {user_id} after failed '{event}' send: {str(e)}")
                self.remove(websocket)
        if not delivered:
            logger.debug(f"No live connection for room {user_id}; '{event}' not delivered")
        return delivered

def get_connection_registry(websocket: WebSocket) -> ConnectionRegistry:
    """Dependency returning the application's connection registry."""
    return websocket.app.state.connection_registry
