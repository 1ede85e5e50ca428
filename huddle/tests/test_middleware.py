"""Tests for the WebSocket middleware stack."""

from channels.generic.websocket import AsyncJsonWebsocketConsumer
from channels.testing import WebsocketCommunicator
from django.contrib.auth import get_user_model
from django.test import TransactionTestCase, override_settings

from accounts.authentication import issue_tokens
from huddle.websocket.middleware import WebSocketMiddlewareStack

User = get_user_model()


class EchoUserConsumer(AsyncJsonWebsocketConsumer):
    """Accepts every connection and reports who the scope says it is."""

    async def connect(self):
        await self.accept()
        user = self.scope['user']
        await self.send_json({'authenticated': user.is_authenticated,
                              'username': getattr(user, 'username', '')})


class WebSocketMiddlewareTests(TransactionTestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='alice', password='password123')
        self.token = issue_tokens(self.user)['access']

    def application(self):
        return WebSocketMiddlewareStack(EchoUserConsumer.as_asgi())

    async def test_token_from_query_string(self):
        communicator = WebsocketCommunicator(self.application(), f'/ws/?token={self.token}')
        connected, _ = await communicator.connect()

        self.assertTrue(connected)
        self.assertEqual(
            await communicator.receive_json_from(), {'authenticated': True, 'username': 'alice'}
        )
        await communicator.disconnect()

    async def test_token_from_authorization_header(self):
        communicator = WebsocketCommunicator(
            self.application(), '/ws/',
            headers=[(b'authorization', f'Bearer {self.token}'.encode())]
        )
        await communicator.connect()

        self.assertTrue((await communicator.receive_json_from())['authenticated'])
        await communicator.disconnect()

    async def test_invalid_token_is_anonymous(self):
        communicator = WebsocketCommunicator(self.application(), '/ws/?token=nope')
        await communicator.connect()

        self.assertFalse((await communicator.receive_json_from())['authenticated'])
        await communicator.disconnect()

    @override_settings(WEBSOCKET_ALLOWED_ORIGINS=['https://chat.example.com'])
    async def test_origin_rejected(self):
        communicator = WebsocketCommunicator(
            self.application(), f'/ws/?token={self.token}',
            headers=[(b'origin', b'https://evil.example.com')]
        )

        connected, code = await communicator.connect()

        self.assertFalse(connected)
        self.assertEqual(code, 4003)

    @override_settings(WEBSOCKET_MAX_MESSAGE_SIZE=16)
    async def test_oversized_frame_closes(self):
        communicator = WebsocketCommunicator(self.application(), f'/ws/?token={self.token}')
        await communicator.connect()
        await communicator.receive_json_from()

        await communicator.send_to(text_data='x' * 17)

        self.assertEqual(await communicator.receive_output(), {'type': 'websocket.close', 'code': 4005})
