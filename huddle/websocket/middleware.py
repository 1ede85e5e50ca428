"""
WebSocket Middleware

Middleware for WebSocket connections including authentication, origin and
size checks, and logging.
"""

import logging
import time
from typing import Optional
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.conf import settings
from django.contrib.auth.models import AnonymousUser

from accounts.authentication import Unauthenticated, session_verifier

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(BaseMiddleware):
    """
    JWT authentication middleware for WebSocket connections.

    The token comes from the ``token`` query parameter or a bearer
    ``Authorization`` header. Failures leave an AnonymousUser in the scope;
    the consumer closes with 4001.
    """

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        token = self._extract_token(scope)
        scope['user'] = await self.authenticate(token)
        return await super().__call__(scope, receive, send)

    def _extract_token(self, scope) -> Optional[str]:
        query_string = scope.get('query_string', b'').decode()
        token = parse_qs(query_string).get('token')
        if token:
            return token[0]

        headers = dict(scope.get('headers', []))
        authorization = headers.get(b'authorization', b'').decode()
        if authorization.lower().startswith('bearer '):
            return authorization.split(' ', 1)[1].strip()
        return None

    @database_sync_to_async
    def authenticate(self, token: Optional[str]):
        try:
            return session_verifier.verify(token)
        except Unauthenticated as e:
            logger.info(f"WebSocket authentication failed: {e}")
            return AnonymousUser()


class LoggingMiddleware(BaseMiddleware):
    """Logs when a session opens and how long it lived."""

    async def __call__(self, scope, receive, send):
        client = scope.get('client') or ('unknown', 0)
        user = scope.get('user')
        who = user.username if user is not None and user.is_authenticated else 'anonymous'
        opened = time.monotonic()
        logger.info(f"WebSocket open {scope['path']} from {client[0]} as {who}")
        try:
            return await super().__call__(scope, receive, send)
        finally:
            logger.info(
                f"WebSocket closed for {who} after {time.monotonic() - opened:.2f}s"
            )


class OriginValidationMiddleware(BaseMiddleware):
    """
    Rejects browsers connecting from an origin outside
    WEBSOCKET_ALLOWED_ORIGINS with close code 4003.

    An empty list accepts every origin.
    """

    def __init__(self, inner):
        super().__init__(inner)
        self.allowed_origins = set(getattr(settings, 'WEBSOCKET_ALLOWED_ORIGINS', []))

    async def __call__(self, scope, receive, send):
        origin = dict(scope.get('headers', [])).get(b'origin', b'').decode()
        if not self.allowed_origins or origin in self.allowed_origins:
            return await super().__call__(scope, receive, send)

        logger.warning(f"Refusing WebSocket from origin {origin or '<none>'}")
        await send({'type': 'websocket.close', 'code': 4003})


class MessageSizeMiddleware(BaseMiddleware):
    """
    Closes the socket with 4005 when a client frame exceeds
    WEBSOCKET_MAX_MESSAGE_SIZE bytes.
    """

    def __init__(self, inner):
        super().__init__(inner)
        self.max_message_size = getattr(settings, 'WEBSOCKET_MAX_MESSAGE_SIZE', 65536)

    def frame_size(self, message) -> int:
        if message.get('bytes') is not None:
            return len(message['bytes'])
        return len((message.get('text') or '').encode('utf-8'))

    async def __call__(self, scope, receive, send):
        async def limited_receive():
            message = await receive()
            if message['type'] != 'websocket.receive':
                return message
            if self.frame_size(message) <= self.max_message_size:
                return message

            logger.warning(f"Frame over {self.max_message_size} bytes on {scope['path']}, closing")
            await send({'type': 'websocket.close', 'code': 4005})
            return {'type': 'websocket.disconnect', 'code': 4005}

        return await self.inner(scope, limited_receive, send)


def WebSocketMiddlewareStack(inner):
    """Origin check, frame limit, JWT auth and logging around ``inner``."""
    return OriginValidationMiddleware(
        MessageSizeMiddleware(
            JWTAuthMiddleware(
                LoggingMiddleware(inner)
            )
        )
    )
