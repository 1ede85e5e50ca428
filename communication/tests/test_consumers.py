"""Tests for the chat WebSocket consumer."""

from unittest import mock

from channels.db import database_sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.apps import apps
from django.contrib.auth import get_user_model
from django.test import TransactionTestCase

from accounts.authentication import issue_tokens
from accounts.roles import Role
from communication.models import Channel, Message
from communication.rooms import RoomRegistry
from communication.routing import websocket_urlpatterns
from huddle.websocket.middleware import WebSocketMiddlewareStack

User = get_user_model()

application = WebSocketMiddlewareStack(URLRouter(websocket_urlpatterns))

EVERYONE = ['user', 'admin', 'super_admin']


class ChatConsumerTests(TransactionTestCase):
    """End-to-end tests through the middleware stack and channel layer."""

    def setUp(self):
        patcher = mock.patch.object(
            apps.get_app_config('communication'), 'registry', RoomRegistry()
        )
        patcher.start()
        self.addCleanup(patcher.stop)

        self.alice = User.objects.create_user(username='alice', password='password123')
        self.bob = User.objects.create_user(username='bob', password='password123')
        self.admin = User.objects.create_user(
            username='admin1', password='password123', role=Role.ADMIN
        )
        Channel.objects.create(name='General', allowed_roles=EVERYONE, posting_roles=EVERYONE)
        announcements = Channel.objects.create(
            name='Announcements',
            channel_type=Channel.ChannelType.ANNOUNCEMENT,
            allowed_roles=EVERYONE,
            posting_roles=['admin', 'super_admin'],
        )
        announcements.members.add(self.alice, self.bob, self.admin)
        Channel.objects.create(
            name='Design', channel_type=Channel.ChannelType.PRIVATE, allowed_roles=[]
        )
        self.tokens = {
            user.username: issue_tokens(user)['access']
            for user in (self.alice, self.bob, self.admin)
        }
        self.communicators = []

    async def close_all(self):
        while self.communicators:
            await self.close(self.communicators[0])

    async def open(self, user):
        """Connect as ``user`` and return the communicator and its connected frame."""
        token = self.tokens[user.username]
        communicator = WebsocketCommunicator(application, f'/ws/huddle/?token={token}')
        connected, _ = await communicator.connect()
        self.assertTrue(connected)
        self.communicators.append(communicator)
        frame = await communicator.receive_json_from()
        await self.drain(communicator)
        return communicator, frame

    async def close(self, communicator):
        self.communicators.remove(communicator)
        await communicator.disconnect()

    async def drain(self, *communicators):
        for communicator in communicators:
            while not await communicator.receive_nothing(timeout=0.1):
                await communicator.receive_json_from()

    async def send(self, communicator, event, data=None):
        await communicator.send_json_to({'type': event, 'data': data or {}})

    async def test_rejects_missing_token(self):
        communicator = WebsocketCommunicator(application, '/ws/huddle/')

        connected, code = await communicator.connect()

        self.assertFalse(connected)
        self.assertEqual(code, 4001)

    async def test_rejects_bad_token(self):
        communicator = WebsocketCommunicator(application, '/ws/huddle/?token=garbage')

        connected, code = await communicator.connect()

        self.assertFalse(connected)
        self.assertEqual(code, 4001)

    async def test_connected_frame(self):
        _, frame = await self.open(self.alice)

        self.assertEqual(frame['type'], 'connected')
        self.assertEqual(frame['data']['user'], {
            'id': str(self.alice.id), 'username': 'alice', 'role': 'user'
        })
        self.assertEqual(frame['data']['rooms'], ['Announcements', 'General'])

        await self.close_all()

    async def test_presence_on_connect(self):
        alice, _ = await self.open(self.alice)
        bob = WebsocketCommunicator(
            application, f'/ws/huddle/?token={self.tokens["bob"]}'
        )
        await bob.connect()
        self.communicators.append(bob)

        frames = [await alice.receive_json_from() for _ in range(2)]

        self.assertEqual({f['type'] for f in frames}, {'presence'})
        self.assertEqual(
            sorted(f['data']['roomId'] for f in frames), ['Announcements', 'General']
        )
        self.assertEqual(frames[0]['data']['action'], 'join')
        self.assertEqual(frames[0]['data']['user'], {'id': str(self.bob.id), 'username': 'bob'})

        await self.close_all()

    async def test_send_message_reaches_room(self):
        alice, _ = await self.open(self.alice)
        bob, _ = await self.open(self.bob)
        await self.drain(alice)

        await self.send(alice, 'send-message', {'roomId': 'General', 'text': 'hello'})

        for communicator in (alice, bob):
            frame = await communicator.receive_json_from()
            self.assertEqual(frame['type'], 'receive-message')
            self.assertEqual(frame['data']['user'], 'alice')
            self.assertEqual(frame['data']['text'], 'hello')
            self.assertEqual(frame['data']['status'], 'delivered')
        self.assertTrue(
            await database_sync_to_async(Message.objects.filter(room_id='General').exists)()
        )

        await self.close_all()

    async def test_author_is_connection_actor(self):
        alice, _ = await self.open(self.alice)

        await self.send(alice, 'send-message', {
            'roomId': 'General', 'text': 'hi', 'user': 'bob'
        })

        frame = await alice.receive_json_from()
        self.assertEqual(frame['data']['user'], 'alice')
        self.assertEqual(frame['data']['status'], 'sent')

        await self.close_all()

    async def test_denied_post_is_silent(self):
        alice, _ = await self.open(self.alice)

        await self.send(alice, 'send-message', {'roomId': 'Announcements', 'text': 'hi'})

        self.assertTrue(await alice.receive_nothing(timeout=0.2))
        self.assertFalse(await database_sync_to_async(Message.objects.exists)())

        await self.close_all()

    async def test_denied_post_surfaced_when_enabled(self):
        alice, _ = await self.open(self.alice)

        with self.settings(HUDDLE_SURFACE_SEND_DENIALS=True):
            await self.send(alice, 'send-message', {'roomId': 'Announcements', 'text': 'hi'})
            frame = await alice.receive_json_from()

        self.assertEqual(frame['type'], 'send-denied')
        self.assertEqual(frame['data']['roomId'], 'Announcements')

        await self.close_all()

    async def test_admin_posts_announcement(self):
        admin, _ = await self.open(self.admin)

        await self.send(admin, 'send-message', {'roomId': 'Announcements', 'text': 'notice'})

        frame = await admin.receive_json_from()
        self.assertEqual(frame['type'], 'receive-message')

        await self.close_all()

    async def test_invalid_send_payload(self):
        alice, _ = await self.open(self.alice)

        await self.send(alice, 'send-message', {'roomId': 'General', 'text': '   '})

        frame = await alice.receive_json_from()
        self.assertEqual(frame, {'type': 'error', 'data': {'message': 'Message text is required'}})

        await self.close_all()

    async def test_typing_excludes_sender(self):
        alice, _ = await self.open(self.alice)
        bob, _ = await self.open(self.bob)
        await self.drain(alice)

        await self.send(alice, 'typing', {'roomId': 'General'})
        await self.send(alice, 'stop-typing', {'roomId': 'General'})

        self.assertEqual(await bob.receive_json_from(), {'type': 'typing', 'data': 'alice'})
        self.assertEqual(await bob.receive_json_from(), {'type': 'stop-typing', 'data': 'alice'})
        self.assertTrue(await alice.receive_nothing(timeout=0.2))

        await self.close_all()

    async def test_mark_room_read(self):
        await database_sync_to_async(Message.objects.create)(
            room_id='General', author='bob', text='hi', status='delivered'
        )
        alice, _ = await self.open(self.alice)
        bob, _ = await self.open(self.bob)
        await self.drain(alice)

        await self.send(alice, 'mark-room-read', {'roomId': 'General'})

        expected = {'type': 'messages-read', 'data': {'roomId': 'General', 'readBy': 'alice'}}
        self.assertEqual(await alice.receive_json_from(), expected)
        self.assertEqual(await bob.receive_json_from(), expected)
        message = await database_sync_to_async(Message.objects.get)()
        self.assertEqual(message.status, 'read')
        self.assertEqual(message.read_by, ['alice'])

        await self.close_all()

    async def test_join_call_room_and_relay_offer(self):
        alice, _ = await self.open(self.alice)
        bob, _ = await self.open(self.bob)
        await self.drain(alice)

        await self.send(alice, 'join-room', {'roomId': 'call-42'})
        joined = await alice.receive_json_from()
        self.assertEqual(joined['data']['action'], 'join')
        await self.send(bob, 'join-room', {'roomId': 'call-42'})
        for communicator in (alice, bob):
            frame = await communicator.receive_json_from()
            self.assertEqual(frame['type'], 'presence')
            self.assertEqual(frame['data']['user']['username'], 'bob')

        offer = {'target': 'call-42', 'sdp': {'type': 'offer', 'sdp': 'v=0'}}
        await self.send(alice, 'offer', offer)

        self.assertEqual(await bob.receive_json_from(), {'type': 'offer', 'data': offer})
        self.assertTrue(await alice.receive_nothing(timeout=0.2))

        candidate = {'target': 'call-42', 'candidate': {'candidate': 'a=1', 'sdpMid': '0'}}
        await self.send(bob, 'ice-candidate', candidate)

        self.assertEqual(
            await alice.receive_json_from(), {'type': 'ice-candidate', 'data': candidate}
        )

        await self.close_all()

    async def test_offer_without_target(self):
        alice, _ = await self.open(self.alice)

        await self.send(alice, 'offer', {'sdp': {}})

        frame = await alice.receive_json_from()
        self.assertEqual(frame['type'], 'error')

        await self.close_all()

    async def test_join_private_channel_denied(self):
        alice, _ = await self.open(self.alice)

        await self.send(alice, 'join-room', {'roomId': 'Design'})

        frame = await alice.receive_json_from()
        self.assertEqual(frame, {'type': 'error', 'data': {'message': 'Cannot join room Design'}})

        await self.close_all()

    async def test_typing_and_read_need_view_access(self):
        alice, _ = await self.open(self.alice)

        await self.send(alice, 'typing', {'roomId': 'Design'})
        await self.send(alice, 'mark-room-read', {'roomId': 'Design'})

        for _ in range(2):
            self.assertEqual(
                await alice.receive_json_from(),
                {'type': 'error', 'data': {'message': 'Cannot access room Design'}}
            )

        await self.close_all()

    async def test_leave_room(self):
        alice, _ = await self.open(self.alice)
        bob, _ = await self.open(self.bob)
        await self.drain(alice)

        await self.send(bob, 'leave-room', {'roomId': 'General'})

        frame = await alice.receive_json_from()
        self.assertEqual(frame['data']['action'], 'leave')
        self.assertEqual(frame['data']['roomId'], 'General')

        await self.close_all()

    async def test_disconnect_announces_leave(self):
        alice, _ = await self.open(self.alice)
        bob, _ = await self.open(self.bob)
        await self.drain(alice)

        await self.close(bob)

        frames = [await alice.receive_json_from() for _ in range(2)]
        self.assertTrue(all(f['data']['action'] == 'leave' for f in frames))

        await self.close_all()

    async def test_invalid_json(self):
        alice, _ = await self.open(self.alice)

        await alice.send_to(text_data='{not json')

        self.assertEqual(
            await alice.receive_json_from(), {'type': 'error', 'data': {'message': 'Invalid JSON'}}
        )

        await self.close_all()

    async def test_unknown_and_missing_type(self):
        alice, _ = await self.open(self.alice)

        await alice.send_json_to({'type': 'dance', 'data': {}})
        await alice.send_json_to({'data': {}})

        self.assertEqual(
            (await alice.receive_json_from())['data']['message'], 'Unknown message type: dance'
        )
        self.assertEqual(
            (await alice.receive_json_from())['data']['message'], 'Message type is required'
        )

        await self.close_all()

    async def test_missing_room_id(self):
        alice, _ = await self.open(self.alice)

        await self.send(alice, 'typing', {})

        self.assertEqual(
            (await alice.receive_json_from())['data']['message'], 'roomId is required'
        )

        await self.close_all()
