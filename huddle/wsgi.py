"""
WSGI config for huddle.

REST only; the realtime endpoint needs the ASGI application.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'huddle.settings')

application = get_wsgi_application()
