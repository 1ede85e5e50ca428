"""Communication module views."""

import json

from django.http import HttpResponse
from django_filters import rest_framework as filters
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from .models import Channel
from .serializers import ChannelSerializer, ChannelWriteSerializer, MessageSerializer
from .services import channel_service, message_service


class ChannelFilter(filters.FilterSet):
    """Filter for channels."""

    search = filters.CharFilter(field_name="name", lookup_expr="icontains")
    type = filters.ChoiceFilter(field_name="channel_type", choices=Channel.ChannelType.choices)

    class Meta:
        model = Channel
        fields = ["search", "type"]


class ChannelViewSet(mixins.ListModelMixin,
                     viewsets.GenericViewSet):
    """
    Channel directory.

    Listing is filtered by visibility; writes go through the channel service,
    which applies the admin guard and publishes the realtime events.
    """

    serializer_class = ChannelSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = ChannelFilter
    pagination_class = None

    def get_queryset(self):
        return channel_service.visible_channels(self.request.user)

    def create(self, request, *args, **kwargs):
        data = self._validated(request.data)
        channel = channel_service.create_channel(request.user, data)
        return Response(ChannelSerializer(channel).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None, **kwargs):
        # Fields left out of the body keep their current value
        data = self._validated(request.data, partial=True)
        channel = channel_service.update_channel(request.user, pk, data)
        return Response(ChannelSerializer(channel).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        channel_id = channel_service.delete_channel(request.user, pk)
        return Response({"message": "Channel deleted successfully", "channelId": channel_id})

    def _validated(self, data, partial=False):
        serializer = ChannelWriteSerializer(data=data, partial=partial)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def message_history(request, room_id):
    """
    Oldest-first history of a channel

    GET /api/messages/{roomId}/
    """
    messages = message_service.history(request.user, room_id)
    return Response(MessageSerializer(messages, many=True).data)


@api_view(["DELETE"])
@permission_classes([permissions.IsAuthenticated])
def message_delete(request, message_id):
    """Delete a message under the admin hierarchy"""
    message_service.delete(request.user, message_id)
    return Response({"message": "Message deleted successfully", "messageId": str(message_id)})


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def conversation_download(request, room_id):
    """Full transcript of a room as a JSON attachment"""
    transcript = message_service.transcript(request.user, room_id)
    response = HttpResponse(
        json.dumps(transcript, indent=2, default=str),
        content_type="application/json"
    )
    response["Content-Disposition"] = f'attachment; filename="conversation-{room_id}.json"'
    return response


@api_view(["DELETE"])
@permission_classes([permissions.IsAuthenticated])
def reset_system(request):
    """Wipe every channel and recreate the defaults"""
    channels = channel_service.reset_system(request.user)
    return Response({
        "message": "System reset complete",
        "channels": ChannelSerializer(channels, many=True).data,
    })


@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def health(request):
    """Liveness probe"""
    return Response({"status": "ok"})

