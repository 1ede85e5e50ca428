"""Communication module Django app configuration."""

import logging

from django.apps import AppConfig
from django.conf import settings
from django.db.models.signals import post_migrate

logger = logging.getLogger(__name__)


class CommunicationConfig(AppConfig):
    """Configuration for the Communication module."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "communication"
    verbose_name = "Huddle Communication"

    def ready(self):
        """Initialize the app when Django starts."""
        from .rooms import RoomRegistry

        # The live connection registry for this process
        self.registry = RoomRegistry()

        post_migrate.connect(self.post_migrate_handler, sender=self)

    def post_migrate_handler(self, sender, **kwargs):
        """Seed the super admin and the default channels."""
        if not getattr(settings, "HUDDLE_SEED_DEFAULTS", True):
            return

        from accounts.services import ensure_super_admin
        from .services import seed_default_channels

        ensure_super_admin()
        seed_default_channels()
