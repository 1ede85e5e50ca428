"""Communication module URL configuration."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    ChannelViewSet, conversation_download, message_delete, message_history, reset_system
)

router = DefaultRouter()
router.register(r"channels", ChannelViewSet, basename="channel")

urlpatterns = [
    path("", include(router.urls)),
    path("messages/id/<uuid:message_id>/", message_delete, name="message_delete"),
    path("messages/<str:room_id>/", message_history, name="message_history"),
    path("conversations/<str:room_id>/download/", conversation_download, name="conversation_download"),
    path("admin/reset-system/", reset_system, name="reset_system"),
]

# Realtime endpoint (ASGI, see routing.py):
# ws/huddle/?token=<access token>
