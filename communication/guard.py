"""
Admin hierarchy guard.

Authorization rules for destructive operations. Every check either returns
quietly or raises :class:`PermissionDenied`; callers resolve the actors and
authors involved before asking.
"""

import logging
from typing import Optional

from accounts.roles import Role, coerce_role, role_of

from .exceptions import PermissionDenied

logger = logging.getLogger(__name__)


def can_delete_message(actor, author_role: Optional[Role]) -> bool:
    """
    Message delete table, evaluated top-down.

    ``author_role`` is None when the author no longer resolves to an account
    (deleted users, the System author).
    """
    role = role_of(actor)
    if role == Role.SUPER_ADMIN:
        return True
    if role == Role.ADMIN:
        author_role = coerce_role(author_role)
        if author_role is None:
            return True
        # Admins may not touch each other's messages, nor their own
        return not author_role.at_least(Role.ADMIN)
    return False


def check_delete_message(actor, author_role: Optional[Role]) -> None:
    if not can_delete_message(actor, author_role):
        logger.warning(
            f"Message delete denied for {getattr(actor, 'username', '?')} "
            f"({role_of(actor).value}) on message by {author_role or 'unknown'}"
        )
        raise PermissionDenied("You do not have permission to delete this message")


def check_channel_admin(actor) -> None:
    """Channel create, update and delete."""
    if not role_of(actor).at_least(Role.ADMIN):
        raise PermissionDenied("Access denied")


def check_system_reset(actor) -> None:
    if not role_of(actor).at_least(Role.ADMIN):
        raise PermissionDenied("Access denied")


def check_manage_actor(actor, target_role, target=None) -> None:
    """
    Creating or deleting an actor.

    The actor must be an admin or above and must strictly outrank the role
    being created or removed. The distinguished super admin is never
    removable.
    """
    role = role_of(actor)
    if not role.at_least(Role.ADMIN):
        raise PermissionDenied("Access denied")

    if target is not None and getattr(target, "is_distinguished_super_admin", False):
        raise PermissionDenied("The super admin account cannot be deleted")

    target_role = coerce_role(target_role)
    if target_role is None:
        raise PermissionDenied("Unknown role")
    if not role.outranks(target_role):
        raise PermissionDenied(f"Only a higher role can manage {target_role.label} accounts")
