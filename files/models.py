"""
Blobs attached to file messages.
"""
import os
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.text import get_valid_filename

SIZE_UNITS = ('B', 'KB', 'MB', 'GB', 'TB')


def generate_upload_path(instance, filename):
    """
    Storage key for an upload: ``{prefix}/{YYYY}/{MM}/{id}/{name}``.

    The record id keeps two uploads with the same name apart; the name is
    reduced to its basename and stripped of unsafe characters.
    """
    prefix = getattr(settings, 'FILE_UPLOAD_PREFIX', 'uploads')
    name = get_valid_filename(os.path.basename(filename)) or 'file'
    today = timezone.now()
    return f"{prefix}/{today:%Y}/{today:%m}/{instance.id}/{name}"


class UploadedFile(models.Model):
    """A stored blob referenced by the ``fileUrl`` of a chat message."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    file = models.FileField(upload_to=generate_upload_path, max_length=500)
    filename = models.CharField(max_length=255, help_text="Name as uploaded")
    file_size = models.BigIntegerField(help_text="Bytes")
    content_type = models.CharField(max_length=100)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='uploads'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'uploaded_files'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.filename} ({self.file_size_display})"

    @property
    def file_size_display(self) -> str:
        size = float(self.file_size)
        unit = SIZE_UNITS[0]
        for unit in SIZE_UNITS:
            if size < 1024 or unit == SIZE_UNITS[-1]:
                break
            size /= 1024
        return f"{size:.2f} {unit}"

    def get_download_url(self) -> str:
        # S3 storage signs this URL when querystring auth is on
        return self.file.url
