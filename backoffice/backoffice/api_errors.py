"""
DRF exception handler for domain errors.

Business exceptions are rendered in the ``{'success': False, 'error': {...}}``
envelope used by the fulfillment endpoints. Database errors become a
generic 500 so store details never reach the client.
"""

import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

from stock.exceptions import BusinessException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = 'An internal error occurred, please try again later'


def error_response(code, message, http_status, details=None):
    """Build the standard error envelope."""
    error = {'code': code, 'message': message}
    if details:
        error['details'] = details
    return Response({'success': False, 'error': error}, status=http_status)


def business_exception_handler(exc, context):
    """
    Convert business and database exceptions into API responses.

    Anything else is left to DRF's default handler (authentication,
    permission, validation and 404 errors keep their usual status codes).
    """
    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown view'

    if isinstance(exc, BusinessException):
        set_rollback()
        if exc.http_status >= 500:
            logger.error(f"{view_name}: {exc.code} {exc.message} {exc.details}")
            return error_response(exc.code, exc.message, exc.http_status)
        logger.info(f"{view_name}: {exc.code} {exc.message}")
        return error_response(exc.code, exc.message, exc.http_status, exc.details)

    if isinstance(exc, DatabaseError):
        set_rollback()
        logger.exception(f"{view_name}: database error")
        return error_response('INTERNAL_ERROR', GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return exception_handler(exc, context)
