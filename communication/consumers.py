"""WebSocket consumer for chat and call signaling."""

import logging
from typing import Any, Dict, List

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from rest_framework.settings import api_settings

from .access import can_view
from .exceptions import HuddleError, PermissionDenied, ValidationFailed
from .models import Channel
from .serializers import MessageSerializer, SendMessageSerializer
from .services import channel_service, get_registry, message_service
from .signaling import SignalingRelay

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    One live session.

    Client frames are ``{"type": event, "data": payload}`` and are routed to
    ``handle_<event>`` with hyphens turned into underscores. Server frames
    use the same envelope.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = None
        self.registry = get_registry()
        self.relay = SignalingRelay(self.registry)

    async def connect(self):
        self.user = self.scope.get("user")

        if not self.user or isinstance(self.user, AnonymousUser):
            await self.close(code=4001)
            return

        await self.accept()
        await self.registry.connect(self.channel_name, self.user)

        rooms = await self.get_visible_rooms()
        await self.send_json({
            "type": "connected",
            "data": {
                "user": {
                    "id": str(self.user.id),
                    "username": self.user.username,
                    "role": self.user.role,
                },
                "rooms": rooms,
            }
        })

        # Notification rooms for every channel the actor can see
        for room_id in rooms:
            await self.registry.join(self.channel_name, room_id)

        logger.info(f"User {self.user.username} connected ({self.channel_name})")

    async def disconnect(self, close_code):
        if self.registry.get_connection(self.channel_name) is None:
            return
        await self.registry.disconnect(self.channel_name)
        logger.info(f"User {self.user.username} disconnected ({close_code})")

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        if not text_data:
            await self.send_error("Text frames only")
            return
        try:
            content = await self.decode_json(text_data)
        except ValueError:
            await self.send_error("Invalid JSON")
            return
        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        if not isinstance(content, dict) or not content.get("type"):
            await self.send_error("Message type is required")
            return

        event = str(content["type"])
        handler = getattr(self, f"handle_{event.replace('-', '_')}", None)
        if handler is None:
            await self.send_error(f"Unknown message type: {event}")
            return

        data = content.get("data")
        if data is None:
            data = {}
        try:
            await handler(data)
        except HuddleError as e:
            await self.send_error(e.message)
        except Exception as e:
            logger.error(f"Error handling {event} from {self.user.username}: {e}", exc_info=True)
            await self.send_error("Internal server error")

    async def send_error(self, message: str):
        await self.send_json({"type": "error", "data": {"message": message}})

    # Client events

    async def handle_join_room(self, data: Dict[str, Any]):
        room_id = self._room_id(data)
        if not await self.can_join(room_id):
            raise PermissionDenied(f"Cannot join room {room_id}")
        await self.registry.join(self.channel_name, room_id)

    async def handle_leave_room(self, data: Dict[str, Any]):
        await self.registry.leave(self.channel_name, self._room_id(data))

    async def handle_send_message(self, data: Dict[str, Any]):
        serializer = SendMessageSerializer(data=data)
        if not serializer.is_valid():
            raise ValidationFailed(self._first_error(serializer.errors))
        payload = serializer.validated_data

        result = await database_sync_to_async(message_service.send)(
            self.user,
            payload["roomId"],
            text=payload["text"],
            message_type=payload["type"],
            file_url=payload["fileUrl"],
            file_name=payload["fileName"],
        )
        if not result.accepted:
            if getattr(settings, "HUDDLE_SURFACE_SEND_DENIALS", False):
                await self.send_json({
                    "type": "send-denied",
                    "data": {"roomId": payload["roomId"], "reason": result.reason},
                })
            return

        await self.registry.broadcast(
            payload["roomId"], "receive-message", MessageSerializer(result.message).data
        )

    async def handle_mark_room_read(self, data: Dict[str, Any]):
        room_id = await self._viewable_room_id(data)
        receipt = await database_sync_to_async(message_service.mark_read)(self.user, room_id)
        await self.registry.broadcast(receipt["roomId"], "messages-read", receipt)

    async def handle_typing(self, data: Dict[str, Any]):
        room_id = await self._viewable_room_id(data)
        await self.registry.broadcast(
            room_id, "typing", self.user.username, exclude=self.channel_name
        )

    async def handle_stop_typing(self, data: Dict[str, Any]):
        room_id = await self._viewable_room_id(data)
        await self.registry.broadcast(
            room_id, "stop-typing", self.user.username, exclude=self.channel_name
        )

    async def handle_offer(self, data: Dict[str, Any]):
        await self.relay.relay("offer", data, self.channel_name)

    async def handle_answer(self, data: Dict[str, Any]):
        await self.relay.relay("answer", data, self.channel_name)

    async def handle_ice_candidate(self, data: Dict[str, Any]):
        await self.relay.relay("ice-candidate", data, self.channel_name)

    # Channel layer events

    async def room_event(self, event):
        """Forward a registry broadcast to this socket."""
        if event.get("exclude") and event["exclude"] == self.channel_name:
            return
        await self.send_json({"type": event["event"], "data": event["data"]})

    # Helpers

    def _room_id(self, data) -> str:
        room_id = data.get("roomId") if isinstance(data, dict) else None
        if not room_id:
            raise ValidationFailed("roomId is required")
        return str(room_id)

    async def _viewable_room_id(self, data) -> str:
        room_id = self._room_id(data)
        if not await self.can_join(room_id):
            raise PermissionDenied(f"Cannot access room {room_id}")
        return room_id

    @staticmethod
    def _first_error(errors) -> str:
        for field, messages in errors.items():
            message = messages[0] if isinstance(messages, list) and messages else messages
            if field == api_settings.NON_FIELD_ERRORS_KEY:
                return str(message)
            return f"{field}: {message}"
        return "Invalid payload"

    @database_sync_to_async
    def get_visible_rooms(self) -> List[str]:
        return [channel.name for channel in channel_service.visible_channels(self.user)]

    @database_sync_to_async
    def can_join(self, room_id: str) -> bool:
        """Channel rooms need view access; any other room id is a call room."""
        channel = Channel.objects.filter(name=room_id).first()
        if channel is None:
            return True
        return can_view(self.user, channel.snapshot())
