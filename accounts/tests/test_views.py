"""Tests for account API views."""

from django.contrib.auth import get_user_model
from django.test import override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.roles import Role
from accounts.services import ensure_super_admin

User = get_user_model()


class LoginAPITests(APITestCase):
    """Test the login and profile endpoints."""

    def setUp(self):
        self.user = User.objects.create_user(
            username='alice', password='password123', verified=True
        )

    def test_login_returns_tokens_and_user(self):
        response = self.client.post(
            '/api/auth/login/', {'username': 'alice', 'password': 'password123'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['username'], 'alice')
        self.assertEqual(response.data['user']['role'], 'user')

        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.last_login_at)

    def test_login_bad_password(self):
        response = self.client.post(
            '/api/auth/login/', {'username': 'alice', 'password': 'wrong'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Invalid credentials')

    def test_me_with_bearer_token(self):
        login = self.client.post(
            '/api/auth/login/', {'username': 'alice', 'password': 'password123'}, format='json'
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")

        response = self.client.get('/api/auth/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'alice')

    def test_me_requires_authentication(self):
        response = self.client.get('/api/auth/me/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UserAdministrationAPITests(APITestCase):
    """Actor create/delete under the admin hierarchy."""

    def setUp(self):
        self.super_admin, _ = ensure_super_admin()
        self.admin = User.objects.create_user(
            username='admin1', password='password123', role=Role.ADMIN, verified=True
        )
        self.other_admin = User.objects.create_user(
            username='admin2', password='password123', role=Role.ADMIN, verified=True
        )
        self.user = User.objects.create_user(
            username='bob', password='password123', verified=True
        )

    def test_plain_user_cannot_list_users(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.get('/api/users/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_lists_users(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.get('/api/users/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        usernames = [u['username'] for u in response.data]
        self.assertIn('bob', usernames)
        self.assertNotIn('password', response.data[0])

    def test_admin_creates_user(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post('/api/users/', {
            'username': 'carol', 'password': 'password123', 'role': 'user'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        carol = User.objects.get(username='carol')
        self.assertTrue(carol.verified)
        self.assertTrue(carol.check_password('password123'))

    def test_admin_cannot_create_admin(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post('/api/users/', {
            'username': 'dave', 'password': 'password123', 'role': 'admin'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(User.objects.filter(username='dave').exists())

    def test_super_admin_creates_admin(self):
        self.client.force_authenticate(user=self.super_admin)

        response = self.client.post('/api/users/', {
            'username': 'dave', 'password': 'password123', 'role': 'admin'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(username='dave').role, 'admin')

    def test_duplicate_username(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post('/api/users/', {
            'username': 'bob', 'password': 'password123'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('message', response.data)

    def test_admin_deletes_user(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.delete(f'/api/users/{self.user.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(id=self.user.id).exists())

    def test_admin_cannot_delete_admin(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.delete(f'/api/users/{self.other_admin.id}/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(User.objects.filter(id=self.other_admin.id).exists())

    def test_super_admin_deletes_admin(self):
        self.client.force_authenticate(user=self.super_admin)

        response = self.client.delete(f'/api/users/{self.admin.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_distinguished_super_admin_is_never_deleted(self):
        other_super = User.objects.create_user(
            username='root2', password='password123', role=Role.SUPER_ADMIN
        )
        self.client.force_authenticate(user=other_super)

        response = self.client.delete(f'/api/users/{self.super_admin.id}/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(User.objects.filter(id=self.super_admin.id).exists())

    def test_delete_unknown_user(self):
        self.client.force_authenticate(user=self.super_admin)

        response = self.client.delete('/api/users/00000000-0000-0000-0000-000000000000/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_verified_list_open_to_users(self):
        User.objects.create_user(username='unverified', password='password123')
        self.client.force_authenticate(user=self.user)

        response = self.client.get('/api/users/verified/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        usernames = [u['username'] for u in response.data]
        self.assertIn('bob', usernames)
        self.assertNotIn('unverified', usernames)
        self.assertEqual(set(response.data[0].keys()), {'id', 'username'})


class EnsureSuperAdminTests(APITestCase):
    """Seeding of the distinguished super admin."""

    @override_settings(HUDDLE_SUPER_ADMIN_USERNAME='root')
    def test_created_once_and_role_restored(self):
        user, created = ensure_super_admin()
        self.assertTrue(created)
        self.assertEqual(user.role, Role.SUPER_ADMIN)
        self.assertTrue(user.is_distinguished_super_admin)

        user.role = Role.USER
        user.save()

        user, created = ensure_super_admin()
        self.assertFalse(created)
        self.assertEqual(user.role, Role.SUPER_ADMIN)
        self.assertEqual(User.objects.filter(username='root').count(), 1)
