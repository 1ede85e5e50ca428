"""Communication module models."""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from accounts.roles import Role
from .access import ChannelSnapshot

SYSTEM_AUTHOR = "System"


def default_channel_roles():
    return [Role.USER.value, Role.ADMIN.value]


class Channel(models.Model):
    """Chat channel. The name doubles as the realtime room key."""

    class ChannelType(models.TextChoices):
        """Types of channels."""
        PUBLIC = "public", _("Public Channel")
        PRIVATE = "private", _("Private Channel")
        ANNOUNCEMENT = "announcement", _("Announcement Channel")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    channel_type = models.CharField(
        max_length=20,
        choices=ChannelType.choices,
        default=ChannelType.PUBLIC,
        db_index=True
    )
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_channels"
    )
    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="channels"
    )
    allowed_roles = models.JSONField(default=default_channel_roles, blank=True)
    posting_roles = models.JSONField(default=default_channel_roles, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def member_ids(self):
        return {str(user.pk) for user in self.members.all()}

    def snapshot(self) -> ChannelSnapshot:
        """Immutable view for the access resolver."""
        return ChannelSnapshot(
            name=self.name,
            channel_type=self.channel_type,
            member_ids=frozenset(self.member_ids()),
            allowed_roles=frozenset(self.allowed_roles or []),
            posting_roles=frozenset(self.posting_roles or []),
        )


class Message(models.Model):
    """A chat event persisted under the room it was sent to."""

    class MessageType(models.TextChoices):
        """Types of messages."""
        TEXT = "text", _("Text Message")
        FILE = "file", _("File Message")
        SYSTEM = "system", _("System Message")

    class Status(models.TextChoices):
        """Delivery status, in order."""
        SENT = "sent", _("Sent")
        DELIVERED = "delivered", _("Delivered")
        READ = "read", _("Read")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    room_id = models.CharField(max_length=100, db_index=True)
    author = models.CharField(max_length=150, db_index=True)
    text = models.TextField(blank=True)
    file_url = models.CharField(max_length=500, blank=True)
    file_name = models.CharField(max_length=255, blank=True)
    message_type = models.CharField(
        max_length=20,
        choices=MessageType.choices,
        default=MessageType.TEXT
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.SENT
    )
    read_by = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["room_id", "created_at"], name="message_room_created_idx"),
            models.Index(fields=["room_id", "status"], name="message_room_status_idx"),
        ]

    def __str__(self):
        return f"{self.author} in {self.room_id}: {self.text[:50]}"

    @property
    def is_system(self):
        return self.message_type == self.MessageType.SYSTEM
