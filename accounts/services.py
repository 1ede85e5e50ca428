"""
Account services: login and actor administration.
"""
import logging
from typing import Dict, Tuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from communication.exceptions import NotFound
from communication.guard import check_manage_actor
from .authentication import issue_tokens
from .models import User
from .roles import Role

logger = logging.getLogger(__name__)


class AuthenticationService:
    """Issues session tokens for verified credentials"""

    def login(self, user: User) -> Dict[str, str]:
        tokens = issue_tokens(user)
        user.last_login_at = timezone.now()
        user.save(update_fields=['last_login_at'])
        logger.info(f"User {user.username} logged in")
        return tokens


class ActorService:
    """Creates and removes actors under the admin hierarchy rules"""

    def create_actor(self, actor: User, serializer) -> User:
        target_role = Role(serializer.validated_data.get('role', Role.USER))
        check_manage_actor(actor, target_role)
        user = serializer.save()
        logger.info(f"User {user.username} created as {user.role} by {actor.username}")
        return user

    def delete_actor(self, actor: User, user_id) -> None:
        try:
            target = User.objects.get(id=user_id)
        except (User.DoesNotExist, ValidationError, ValueError):
            raise NotFound('User not found')
        check_manage_actor(actor, target.role, target=target)
        target.delete()
        logger.info(f"User {target.username} deleted by {actor.username}")


@transaction.atomic
def ensure_super_admin() -> Tuple[User, bool]:
    """
    Make sure the distinguished super admin exists.

    Any other account holding the super admin role is left alone; the
    distinguished identity is the one named by HUDDLE_SUPER_ADMIN_USERNAME.
    """
    username = settings.HUDDLE_SUPER_ADMIN_USERNAME
    user, created = User.objects.get_or_create(
        username=username,
        defaults={'role': Role.SUPER_ADMIN, 'verified': True},
    )
    if created:
        user.set_password(settings.HUDDLE_SUPER_ADMIN_PASSWORD)
        user.save()
        logger.info(f"Super admin created: {username}")
    elif user.role != Role.SUPER_ADMIN:
        user.role = Role.SUPER_ADMIN
        user.save(update_fields=['role'])
        logger.warning(f"Restored super admin role for {username}")
    return user, created


auth_service = AuthenticationService()
actor_service = ActorService()
