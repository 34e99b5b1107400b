import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ResourceNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class AccessDenied(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not authorized to access this resource.'
    default_code = 'access_denied'


class InvalidOperation(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The operation is not valid in the current state.'
    default_code = 'invalid_operation'


class OperationConflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The operation conflicts with the current state.'
    default_code = 'conflict'


STATUS_MESSAGES = {
    400: 'Validation error',
    401: 'Authentication required',
    403: 'Permission denied',
    404: 'Resource not found',
    409: 'Conflict',
    500: 'Internal server error',
}

DOMAIN_EXCEPTIONS = (ResourceNotFound, AccessDenied, InvalidOperation, OperationConflict)


def error_envelope(status_code, details, message=None):
    """Body shared by every error answer of the API"""
    return {
        'error': True,
        'message': message or STATUS_MESSAGES.get(status_code, 'An error occurred'),
        'details': details,
        'status_code': status_code,
    }


def custom_exception_handler(exc, context):
    """
    Wrap every error in ``{error, message, details, status_code}``.

    DRF exceptions (including the domain ones above) keep their status code.
    Django validation errors answer 400, integrity errors 409 and anything
    else 500, with the exception text only exposed in DEBUG.
    """
    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, DOMAIN_EXCEPTIONS):
            view = context.get('view')
            logger.warning(f"{type(exc).__name__} in {type(view).__name__ if view else 'unknown view'}: {exc}")
        response.data = error_envelope(response.status_code, response.data)
        return response

    if isinstance(exc, ValidationError):
        logger.warning(f"Validation Error: {exc}")
        return Response(
            error_envelope(400, {'non_field_errors': exc.messages}), status=status.HTTP_400_BAD_REQUEST
        )

    if isinstance(exc, IntegrityError):
        logger.error(f"Integrity Error: {exc}")
        return Response(
            error_envelope(409, {'error': 'This operation violates database constraints'}),
            status=status.HTTP_409_CONFLICT,
        )

    logger.exception(f"Unexpected Error: {exc}")
    details = {'error': str(exc)} if settings.DEBUG else {}
    return Response(
        error_envelope(500, details, 'An unexpected error occurred'), status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
