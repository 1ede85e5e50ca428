"""
URL configuration for huddle.
"""

from django.contrib import admin
from django.urls import include, path

from communication.views import health

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/health/', health, name='health'),
    path('api/', include('accounts.urls')),
    path('api/', include('communication.urls')),
    path('api/', include('files.urls')),
]
