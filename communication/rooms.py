"""
Room Broadcast Router

Tracks which live WebSocket connections sit in which rooms and fans events
out to them over the channel layer. One registry instance is owned by the
communication app config and handed to consumers and services.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set

from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

# Every connected session is in this group
GLOBAL_GROUP = "huddle.broadcast"

# Consumer handler the group messages are dispatched to
ROOM_EVENT = "room.event"


def group_name(room_id: str) -> str:
    """
    Channel layer group for a room.

    Room ids are channel names and may hold characters group names reject,
    so they are hashed.
    """
    return "room." + hashlib.sha1(room_id.encode("utf-8")).hexdigest()


@dataclass
class Connection:
    """A live WebSocket session."""

    channel_name: str
    user_id: str
    username: str
    rooms: Set[str] = field(default_factory=set)

    def as_user(self) -> Dict[str, str]:
        return {"id": self.user_id, "username": self.username}


class RoomRegistry:
    """
    Room membership and fan-out.

    Membership is kept in process memory next to the channel layer groups so
    room sizes can be read without a layer round trip. Sizes are a snapshot;
    a connection may leave right after they are read.
    """

    def __init__(self, channel_layer=None):
        self._channel_layer = channel_layer
        self._connections: Dict[str, Connection] = {}
        self._rooms: Dict[str, Set[str]] = {}

    @property
    def channel_layer(self):
        return self._channel_layer or get_channel_layer()

    async def connect(self, channel_name: str, user) -> Connection:
        connection = Connection(
            channel_name=channel_name,
            user_id=str(user.id),
            username=user.username,
        )
        self._connections[channel_name] = connection
        await self.channel_layer.group_add(GLOBAL_GROUP, channel_name)
        logger.debug(f"Registered connection {channel_name} for {user.username}")
        return connection

    async def disconnect(self, channel_name: str) -> None:
        """Leave every room, then drop the connection."""
        connection = self._connections.get(channel_name)
        if connection is None:
            return
        for room_id in list(connection.rooms):
            await self.leave(channel_name, room_id)
        await self.channel_layer.group_discard(GLOBAL_GROUP, channel_name)
        del self._connections[channel_name]
        logger.debug(f"Unregistered connection {channel_name}")

    def get_connection(self, channel_name: str) -> Optional[Connection]:
        return self._connections.get(channel_name)

    def rooms_of(self, channel_name: str) -> Set[str]:
        connection = self._connections.get(channel_name)
        return set(connection.rooms) if connection else set()

    def connections_of(self, user_id) -> Set[str]:
        """Channel names of every live connection belonging to ``user_id``."""
        user_id = str(user_id)
        return {
            channel_name for channel_name, connection in self._connections.items()
            if connection.user_id == user_id
        }

    def members(self, room_id: str) -> Set[str]:
        return set(self._rooms.get(room_id, ()))

    def room_size(self, room_id: str) -> int:
        return len(self._rooms.get(room_id, ()))

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def join(self, channel_name: str, room_id: str) -> None:
        """Add a connection to a room and announce it to the whole room."""
        connection = self._connections.get(channel_name)
        if connection is None:
            logger.warning(f"Join for unknown connection {channel_name}")
            return

        await self.channel_layer.group_add(group_name(room_id), channel_name)
        self._rooms.setdefault(room_id, set()).add(channel_name)
        connection.rooms.add(room_id)

        await self.broadcast(room_id, "presence", {
            "roomId": room_id,
            "action": "join",
            "user": connection.as_user(),
        })

    async def leave(self, channel_name: str, room_id: str) -> None:
        connection = self._connections.get(channel_name)
        members = self._rooms.get(room_id)
        if connection is None or members is None or channel_name not in members:
            return

        members.discard(channel_name)
        if not members:
            del self._rooms[room_id]
        connection.rooms.discard(room_id)
        await self.channel_layer.group_discard(group_name(room_id), channel_name)

        await self.broadcast(room_id, "presence", {
            "roomId": room_id,
            "action": "leave",
            "user": connection.as_user(),
        })

    async def broadcast(self, room_id: str, event: str, data: Any,
                        exclude: Optional[str] = None) -> None:
        """Send an event to every connection in a room, optionally skipping one."""
        await self.channel_layer.group_send(group_name(room_id), {
            "type": ROOM_EVENT,
            "event": event,
            "data": data,
            "room": room_id,
            "exclude": exclude,
        })

    async def broadcast_globally(self, event: str, data: Any) -> None:
        """Send an event to every connected session."""
        await self.channel_layer.group_send(GLOBAL_GROUP, {
            "type": ROOM_EVENT,
            "event": event,
            "data": data,
            "room": None,
            "exclude": None,
        })

    async def rename_room(self, old_room_id: str, new_room_id: str) -> None:
        """Move every member of ``old_room_id`` onto ``new_room_id``."""
        if old_room_id == new_room_id:
            return
        members = self._rooms.pop(old_room_id, set())
        old_group, new_group = group_name(old_room_id), group_name(new_room_id)
        for channel_name in members:
            await self.channel_layer.group_discard(old_group, channel_name)
            await self.channel_layer.group_add(new_group, channel_name)
            connection = self._connections.get(channel_name)
            if connection is not None:
                connection.rooms.discard(old_room_id)
                connection.rooms.add(new_room_id)
        if members:
            self._rooms.setdefault(new_room_id, set()).update(members)
        logger.info(f"Room {old_room_id} renamed to {new_room_id} ({len(members)} connections)")
