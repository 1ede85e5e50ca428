"""
Huddle Files App

Uploads for file messages. The blob store is Django's default storage:
local filesystem in development, S3 through django-storages in production.
"""
