from .base import *

DEBUG = True

# Allowed hosts for development
ALLOWED_HOSTS = ['localhost', '127.0.0.1', 'testserver']

# Use local file storage in development
STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

# CORS settings for development
CORS_ALLOW_ALL_ORIGINS = True

LOGGING['loggers']['communication']['level'] = 'DEBUG'
