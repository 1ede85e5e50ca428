"""Communication module services."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from asgiref.sync import async_to_sync
from django.apps import apps
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q

from accounts.roles import Role, role_of
from .access import GLOBAL_CHANNELS, can_post, can_view, resolve
from .delivery import delivery_tracker, initial_status
from .exceptions import Conflict, NotFound, PermissionDenied, ValidationFailed
from .guard import check_channel_admin, check_delete_message, check_system_reset
from .models import SYSTEM_AUTHOR, Channel, Message, default_channel_roles
from .serializers import ChannelSerializer, MessageSerializer

User = get_user_model()
logger = logging.getLogger(__name__)

ALL_ROLES = [Role.USER.value, Role.ADMIN.value, Role.SUPER_ADMIN.value]

GENERAL = {
    "name": "General",
    "channel_type": Channel.ChannelType.PUBLIC,
    "description": "General discussion for everyone",
    "allowed_roles": ALL_ROLES,
    "posting_roles": ALL_ROLES,
}
ANNOUNCEMENTS = {
    "name": "Announcements",
    "channel_type": Channel.ChannelType.ANNOUNCEMENT,
    "description": "Official announcements",
    "allowed_roles": ALL_ROLES,
    "posting_roles": [Role.ADMIN.value, Role.SUPER_ADMIN.value],
}
RANDOM = {
    "name": "Random",
    "channel_type": Channel.ChannelType.PUBLIC,
    "description": "Random off-topic chat",
    "allowed_roles": ALL_ROLES,
    "posting_roles": ALL_ROLES,
}
DEFAULT_CHANNELS = [GENERAL, ANNOUNCEMENTS, RANDOM]


def get_registry():
    """The room registry owned by the communication app."""
    return apps.get_app_config("communication").registry


def find_channel(room_id: str) -> Optional[Channel]:
    return Channel.objects.filter(name=room_id).first()


def get_channel(channel_id) -> Channel:
    try:
        return Channel.objects.get(id=channel_id)
    except (Channel.DoesNotExist, ValidationError, ValueError):
        raise NotFound("Channel not found")


@dataclass(frozen=True)
class SendResult:
    """Outcome of a send attempt; a denial is a result, not an error."""

    accepted: bool
    message: Optional[Message] = None
    reason: str = ""

    @classmethod
    def denied(cls, reason: str) -> "SendResult":
        return cls(accepted=False, reason=reason)


class BaseService:
    """Holds the registry and publishes events from sync code."""

    def __init__(self, registry=None):
        self._registry = registry

    @property
    def registry(self):
        return self._registry or get_registry()

    def publish(self, room_id: str, event: str, data: Any, exclude: Optional[str] = None):
        async_to_sync(self.registry.broadcast)(room_id, event, data, exclude)

    def publish_globally(self, event: str, data: Any):
        async_to_sync(self.registry.broadcast_globally)(event, data)


class MessageService(BaseService):
    """Service for managing messages."""

    def send(self, actor, room_id: str, text: str = "", message_type: str = Message.MessageType.TEXT,
             file_url: str = "", file_name: str = "") -> SendResult:
        """
        Persist a message from ``actor`` into ``room_id``.

        The caller broadcasts the accepted message; denials are logged and
        returned so the transport can decide whether to tell the sender.
        """
        channel = find_channel(room_id)
        if channel is None:
            logger.warning(f"{actor.username} sent to unknown channel {room_id}")
            return SendResult.denied("Channel not found")

        if not can_post(actor, channel.snapshot()):
            logger.warning(
                f"User {actor.username} (role: {role_of(actor).value}) attempted to post "
                f"in {room_id} without permission"
            )
            return SendResult.denied("You cannot post in this channel")

        status = initial_status(self.registry.room_size(room_id))
        message = Message.objects.create(
            room_id=room_id,
            author=actor.username,
            text=text,
            message_type=message_type,
            file_url=file_url,
            file_name=file_name,
            status=status,
        )
        return SendResult(accepted=True, message=message)

    def mark_read(self, actor, room_id: str) -> Dict[str, Any]:
        if not room_id:
            raise ValidationFailed("roomId is required")
        delivery_tracker.mark_read(room_id, actor.username)
        return {"roomId": room_id, "readBy": actor.username}

    def history(self, actor, room_id: str):
        """Oldest-first messages of a channel the actor can view."""
        self._check_view(actor, room_id)
        limit = getattr(settings, "HUDDLE_HISTORY_LIMIT", 100)
        return Message.objects.filter(room_id=room_id).order_by("created_at")[:limit]

    def transcript(self, actor, room_id: str) -> List[Dict[str, Any]]:
        """Every message of a room, for download."""
        self._check_view(actor, room_id)
        messages = Message.objects.filter(room_id=room_id).order_by("created_at")
        return MessageSerializer(messages, many=True).data

    def delete(self, actor, message_id) -> Message:
        """Delete a message under the admin hierarchy rules."""
        if not role_of(actor).at_least(Role.ADMIN):
            raise PermissionDenied("Access denied")
        try:
            message = Message.objects.get(id=message_id)
        except (Message.DoesNotExist, ValidationError, ValueError):
            raise NotFound("Message not found")

        author_role = (
            User.objects.filter(username=message.author)
            .values_list("role", flat=True)
            .first()
        )
        check_delete_message(actor, author_role)

        deleted_id = str(message.id)
        message.delete()
        logger.info(f"Message {deleted_id} in {message.room_id} deleted by {actor.username}")
        self.publish(message.room_id, "message-deleted", deleted_id)
        return message

    def _check_view(self, actor, room_id: str) -> None:
        channel = find_channel(room_id)
        decision = resolve(actor, channel.snapshot() if channel else None)
        if not decision.can_view:
            raise PermissionDenied("Access denied: You are not a member of this group")


class ChannelService(BaseService):
    """Service for managing channels."""

    def visible_channels(self, actor):
        """Every channel for the super admin, else memberships plus the global channels."""
        queryset = Channel.objects.prefetch_related("members")
        if role_of(actor) != Role.SUPER_ADMIN:
            queryset = queryset.filter(
                Q(members=actor) | Q(name__in=GLOBAL_CHANNELS)
            ).distinct()
        return queryset.order_by("name")

    def create_channel(self, actor, data: Dict[str, Any]) -> Channel:
        check_channel_admin(actor)
        name = data["name"]
        if Channel.objects.filter(name=name).exists():
            raise Conflict("Channel name already exists")

        with transaction.atomic():
            channel = Channel.objects.create(
                name=name,
                channel_type=data.get("type", Channel.ChannelType.PUBLIC),
                description=data.get("description", ""),
                created_by=actor,
                allowed_roles=data.get("allowedRoles", default_channel_roles()),
                posting_roles=data.get("postingRoles", default_channel_roles()),
            )
            channel.members.set({*data.get("members", []), actor})

        logger.info(f"Channel {name} created by {actor.username}")
        return channel

    def update_channel(self, actor, channel_id, data: Dict[str, Any]) -> Channel:
        """
        Apply settings and membership changes.

        A rename moves the channel's messages and live room subscriptions to
        the new name. Each added or removed member gets a system message in
        the channel.
        """
        check_channel_admin(actor)
        channel = get_channel(channel_id)
        old_name = channel.name
        old_members = channel.member_ids()

        new_name = data.get("name", old_name)
        if new_name != old_name and Channel.objects.filter(name=new_name).exists():
            raise Conflict("Channel name already exists")

        with transaction.atomic():
            channel.name = new_name
            if "type" in data:
                channel.channel_type = data["type"]
            if "description" in data:
                channel.description = data["description"]
            if "allowedRoles" in data:
                channel.allowed_roles = data["allowedRoles"]
            if "postingRoles" in data:
                channel.posting_roles = data["postingRoles"]
            channel.save()
            if "members" in data:
                channel.members.set(data["members"])
            if new_name != old_name:
                Message.objects.filter(room_id=old_name).update(room_id=new_name)

        if new_name != old_name:
            async_to_sync(self.registry.rename_room)(old_name, new_name)
            logger.info(f"Channel {old_name} renamed to {new_name} by {actor.username}")

        if "members" in data:
            new_members = channel.member_ids()
            self._announce_membership(channel, actor, new_members - old_members, "added to")
            self._announce_membership(channel, actor, old_members - new_members, "removed from")
            self._evict(channel, old_members - new_members)

        self.publish_globally("channel-updated", ChannelSerializer(channel).data)
        return channel

    def delete_channel(self, actor, channel_id) -> str:
        """Delete a channel; its messages stay behind under the old room id."""
        check_channel_admin(actor)
        channel = get_channel(channel_id)
        deleted_id = str(channel.id)
        channel.delete()
        logger.info(f"Channel {channel.name} deleted by {actor.username}")
        self.publish_globally("channel-deleted", deleted_id)
        return deleted_id

    def reset_system(self, actor) -> List[Channel]:
        """Wipe every channel and recreate General and Announcements."""
        check_system_reset(actor)
        logger.warning(f"System reset triggered by {actor.username}")
        with transaction.atomic():
            Channel.objects.all().delete()
            general = Channel.objects.create(**GENERAL)
            announcements = Channel.objects.create(**ANNOUNCEMENTS)

        self.publish_globally("system-reset", {"generalId": str(general.id)})
        return [general, announcements]

    def _evict(self, channel: Channel, user_ids):
        """Drop live subscriptions of removed members who can no longer view the channel."""
        if not user_ids:
            return
        snapshot = channel.snapshot()
        for user in User.objects.filter(id__in=user_ids):
            if can_view(user, snapshot):
                continue
            for channel_name in self.registry.connections_of(user.id):
                async_to_sync(self.registry.leave)(channel_name, channel.name)
            logger.info(f"Removed {user.username} from live room {channel.name}")

    def _announce_membership(self, channel: Channel, actor, user_ids, verb: str):
        if not user_ids:
            return
        for user in User.objects.filter(id__in=user_ids).order_by("username"):
            message = Message.objects.create(
                room_id=channel.name,
                author=SYSTEM_AUTHOR,
                text=f"{user.username} was {verb} the group by {actor.username}",
                message_type=Message.MessageType.SYSTEM,
            )
            self.publish(channel.name, "receive-message", MessageSerializer(message).data)


def seed_default_channels() -> List[Channel]:
    """Create any missing default channel; existing ones are left untouched."""
    created = []
    for defaults in DEFAULT_CHANNELS:
        fields = dict(defaults)
        name = fields.pop("name")
        channel, was_created = Channel.objects.get_or_create(name=name, defaults=fields)
        if was_created:
            logger.info(f"Created default channel: {name}")
            created.append(channel)
    return created


message_service = MessageService()
channel_service = ChannelService()
