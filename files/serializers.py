"""
Serializers for the files app.
"""
from django.conf import settings
from rest_framework import serializers

from .models import UploadedFile


class UploadedFileSerializer(serializers.ModelSerializer):
    """An upload as the chat client uses it."""

    path = serializers.SerializerMethodField()
    fileName = serializers.CharField(source='filename', read_only=True)
    size = serializers.IntegerField(source='file_size', read_only=True)
    size_display = serializers.CharField(source='file_size_display', read_only=True)

    class Meta:
        model = UploadedFile
        fields = ['id', 'path', 'fileName', 'size', 'size_display', 'content_type', 'created_at']
        read_only_fields = fields

    def get_path(self, obj) -> str:
        url = obj.get_download_url()
        request = self.context.get('request')
        if request is not None and url.startswith('/'):
            return request.build_absolute_uri(url)
        return url


class FileUploadSerializer(serializers.ModelSerializer):
    """Serializer for file uploads."""

    file = serializers.FileField(write_only=True)

    class Meta:
        model = UploadedFile
        fields = ['file']

    def validate_file(self, file):
        max_size = getattr(settings, 'FILE_UPLOAD_MAX_SIZE', 25 * 1024 * 1024)
        if file.size > max_size:
            raise serializers.ValidationError(
                f"File size exceeds maximum allowed size of {max_size} bytes"
            )
        return file

    def create(self, validated_data):
        """Create the record with metadata taken from the upload."""
        file = validated_data['file']
        return UploadedFile.objects.create(
            file=file,
            filename=file.name,
            file_size=file.size,
            content_type=getattr(file, 'content_type', None) or 'application/octet-stream',
            uploaded_by=self.context['request'].user,
        )
