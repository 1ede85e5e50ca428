"""Communication module serializers."""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from accounts.roles import Role, normalize_roles
from .models import Channel, Message

User = get_user_model()


class RoleListField(serializers.ListField):
    """A list of role names, validated and returned in rank order."""

    child = serializers.ChoiceField(choices=Role.choices)

    def to_internal_value(self, data):
        values = super().to_internal_value(data)
        return normalize_roles(values)


class ChannelSerializer(serializers.ModelSerializer):
    """Channel as clients see it."""

    type = serializers.CharField(source="channel_type", read_only=True)
    creator = serializers.UUIDField(source="created_by_id", read_only=True)
    members = serializers.SerializerMethodField()
    allowedRoles = serializers.JSONField(source="allowed_roles", read_only=True)
    postingRoles = serializers.JSONField(source="posting_roles", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Channel
        fields = [
            "id", "name", "type", "description", "creator", "members",
            "allowedRoles", "postingRoles", "createdAt"
        ]
        read_only_fields = fields

    def get_members(self, obj) -> list:
        return sorted(obj.member_ids())


class ChannelWriteSerializer(serializers.Serializer):
    """Input for channel create and update."""

    name = serializers.CharField(max_length=100)
    type = serializers.ChoiceField(
        choices=Channel.ChannelType.choices,
        default=Channel.ChannelType.PUBLIC
    )
    description = serializers.CharField(required=False, allow_blank=True, default="")
    members = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), many=True, required=False
    )
    allowedRoles = RoleListField(required=False)
    postingRoles = RoleListField(required=False)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Channel name is required")
        # Names are room ids in URL paths
        if "/" in value:
            raise serializers.ValidationError("Channel name cannot contain '/'")
        return value


class MessageSerializer(serializers.ModelSerializer):
    """Persisted chat event, shaped like the realtime payload."""

    roomId = serializers.CharField(source="room_id", read_only=True)
    user = serializers.CharField(source="author", read_only=True)
    fileUrl = serializers.CharField(source="file_url", read_only=True)
    fileName = serializers.CharField(source="file_name", read_only=True)
    type = serializers.CharField(source="message_type", read_only=True)
    readBy = serializers.JSONField(source="read_by", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Message
        fields = [
            "id", "roomId", "user", "text", "fileUrl", "fileName",
            "type", "status", "readBy", "createdAt"
        ]
        read_only_fields = fields


class SendMessageSerializer(serializers.Serializer):
    """Validates a client ``send-message`` payload."""

    roomId = serializers.CharField(max_length=100)
    text = serializers.CharField(required=False, allow_blank=True, default="")
    type = serializers.ChoiceField(
        choices=[Message.MessageType.TEXT, Message.MessageType.FILE],
        default=Message.MessageType.TEXT
    )
    fileUrl = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)
    fileName = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)

    def validate(self, attrs):
        if attrs["type"] == Message.MessageType.FILE and not attrs["fileUrl"]:
            raise serializers.ValidationError("File messages require a fileUrl")
        if attrs["type"] == Message.MessageType.TEXT and not attrs["text"].strip():
            raise serializers.ValidationError("Message text is required")
        return attrs
