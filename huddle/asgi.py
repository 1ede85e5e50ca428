"""
ASGI config for huddle.

HTTP goes to Django; WebSocket connections go through the huddle middleware
stack to the communication consumer.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'huddle.settings')

# Initialise Django before importing anything that touches models
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402

from communication.routing import websocket_urlpatterns  # noqa: E402
from huddle.websocket.middleware import WebSocketMiddlewareStack  # noqa: E402

application = ProtocolTypeRouter({
    'http': django_asgi_app,
    'websocket': WebSocketMiddlewareStack(
        URLRouter(websocket_urlpatterns)
    ),
})
