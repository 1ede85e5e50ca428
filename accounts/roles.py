"""
Actor roles.

Roles form a total order ``user < admin < super_admin``. Every authorization
decision in the workspace compares roles through this module instead of
checking string membership at the call site.
"""

from typing import Iterable, List, Optional

from django.db import models


class Role(models.TextChoices):
    """Ordered actor role."""

    USER = 'user', 'User'
    ADMIN = 'admin', 'Admin'
    SUPER_ADMIN = 'super_admin', 'Super Admin'

    @property
    def rank(self) -> int:
        return ROLE_ORDER.index(self)

    def at_least(self, other: 'Role') -> bool:
        """True if this role ranks the same as or above ``other``."""
        return self.rank >= Role(other).rank

    def outranks(self, other: 'Role') -> bool:
        """True if this role ranks strictly above ``other``."""
        return self.rank > Role(other).rank

    @property
    def has_admin_override(self) -> bool:
        """Admins and super admins bypass per-channel posting gates."""
        return self.at_least(Role.ADMIN)


ROLE_ORDER = [Role.USER, Role.ADMIN, Role.SUPER_ADMIN]


def coerce_role(value) -> Optional[Role]:
    """Return ``value`` as a Role, or None when it names no known role."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def normalize_roles(values: Iterable) -> List[str]:
    """
    Validate and de-duplicate a role list, keeping rank order.

    Raises ValueError on an unknown role name.
    """
    seen = set()
    for value in values or []:
        role = coerce_role(value)
        if role is None:
            raise ValueError(f"Unknown role: {value}")
        seen.add(role)
    return [role.value for role in ROLE_ORDER if role in seen]


def role_of(actor) -> Role:
    """Role of an actor-like object; unknown values fall back to USER."""
    return coerce_role(getattr(actor, 'role', None)) or Role.USER
