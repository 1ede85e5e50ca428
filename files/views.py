"""
Views for the files app.
"""
import logging

from rest_framework import permissions, status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from .serializers import FileUploadSerializer, UploadedFileSerializer

logger = logging.getLogger(__name__)


class FileUploadThrottle(UserRateThrottle):
    scope = 'file_upload'


class FileUploadView(APIView):
    """
    Store a file in the blob store and return its retrievable URL

    POST /api/upload/  (multipart, field "file")
    """

    permission_classes = [permissions.IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]
    throttle_classes = [FileUploadThrottle]

    def post(self, request):
        serializer = FileUploadSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        uploaded = serializer.save()
        logger.info(
            f"{request.user.username} uploaded {uploaded.filename} ({uploaded.file_size_display})"
        )
        return Response(
            UploadedFileSerializer(uploaded, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )
