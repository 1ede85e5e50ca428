"""
REST exception handling.

Domain errors carry their own status code; everything DRF already knows how
to render keeps its status, with the body reduced to ``{"message": ...}``.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from accounts.authentication import Unauthenticated
from communication.exceptions import HuddleError

logger = logging.getLogger(__name__)


def _message_from(detail) -> str:
    if isinstance(detail, dict):
        if 'detail' in detail:
            return str(detail['detail'])
        for field, errors in detail.items():
            return f"{field}: {_message_from(errors)}"
        return 'Invalid request'
    if isinstance(detail, list):
        return _message_from(detail[0]) if detail else 'Invalid request'
    return str(detail)


def exception_handler(exc, context):
    if isinstance(exc, (HuddleError, Unauthenticated)):
        message = getattr(exc, 'message', str(exc))
        return Response({'message': message}, status=exc.status_code)

    response = drf_exception_handler(exc, context)
    if response is not None:
        response.data = {'message': _message_from(response.data), 'errors': response.data}
        return response

    view = context.get('view')
    logger.error(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
        exc_info=exc
    )
    return Response({'message': 'Server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
