from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
import uuid

from .roles import Role


class User(AbstractUser):
    """Workspace actor with an ordered role"""

    Role = Role

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.USER)
    verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_login_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'users'
        ordering = ['username']

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def role_enum(self) -> Role:
        return Role(self.role)

    @property
    def is_super_admin(self):
        return self.role == Role.SUPER_ADMIN

    @property
    def is_workspace_admin(self):
        return self.role_enum.at_least(Role.ADMIN)

    @property
    def is_distinguished_super_admin(self):
        """The seeded super admin identity that can never be removed."""
        return self.username == settings.HUDDLE_SUPER_ADMIN_USERNAME
