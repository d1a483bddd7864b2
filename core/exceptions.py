"""
Core — Exception Handling

Domain exception taxonomy and the DRF exception handler that renders
every failure in the `{ok: false, err: {message, code}}` envelope.

@file core/exceptions.py
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('distribuidora')


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class DomainError(APIException):
    """
    Base for engine errors. `extra` is merged into the `err` payload
    next to `message` and `code`.
    """

    def __init__(self, detail=None, code=None, extra: dict | None = None):
        super().__init__(detail=detail, code=code)
        self.extra = extra or {}


class BusinessRuleViolation(DomainError):
    """Malformed or missing fields, bad quantity, unknown type. Never retried."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Business rule violation.'
    default_code = 'VALIDATION_ERROR'


class ReferenceNotFoundError(DomainError):
    """A referenced provider/product is missing, or a product is inactive for reception."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Referenced entity not found.'
    default_code = 'REFERENCE_NOT_FOUND'


class InsufficientStockError(DomainError):
    """One or more order lines exceed the product's stock on hand."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Stock insuficiente para algunos productos'
    default_code = 'INSUFFICIENT_STOCK'


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict with the current state of the resource.'
    default_code = 'CONFLICT'


class DuplicateDocumentError(ConflictError):
    """An active document already carries the requested number."""
    default_code = 'DUPLICATE_DOCUMENT'


class SequenceConflictError(ConflictError):
    """The sequence was taken by a concurrent writer or a reservation of another user."""
    default_code = 'SEQUENCE_CONFLICT'


class TransientStoreError(DomainError):
    """Commit failure unrelated to business rules; the whole unit was aborted."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'The operation could not be committed. Try again.'
    default_code = 'TRANSIENT_STORE_ERROR'


class ResourceNotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'RESOURCE_NOT_FOUND'


# ---------------------------------------------------------------------------
# Standard exception handler
# ---------------------------------------------------------------------------

def _first_message(data) -> str:
    """Depth-first first leaf message of a DRF error structure."""
    if isinstance(data, dict):
        for value in data.values():
            message = _first_message(value)
            if message:
                return message
        return ''
    if isinstance(data, (list, tuple)):
        for value in data:
            message = _first_message(value)
            if message:
                return message
        return ''
    return str(data) if data is not None else ''


def standard_exception_handler(exc, context):
    """
    Wraps every error response in the envelope:
      { "ok": false, "err": { "message": "...", "code": "ERROR_CODE", ... } }
    """
    if isinstance(exc, Http404):
        exc = ResourceNotFoundError()
    elif isinstance(exc, PermissionDenied):
        exc = APIException(detail='Permission denied.', code='PERMISSION_DENIED')
        exc.status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ValidationError):
        errors = exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages}
        data = {
            'ok': False,
            'err': {
                'message': _first_message(errors),
                'code': 'VALIDATION_ERROR',
                'errors': errors,
            },
        }
        return Response(data, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)

    if response is None:
        logger.exception('Unhandled exception in view: %s', exc)
        return Response(
            {'ok': False, 'err': {'message': 'Error interno del servidor.', 'code': 'INTERNAL_ERROR'}},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    code = getattr(exc, 'default_code', 'ERROR')
    err = {'message': _first_message(response.data), 'code': code}

    if isinstance(exc, DomainError):
        err['message'] = str(exc.detail)
        err.update(exc.extra)
    elif isinstance(response.data, dict) and set(response.data) - {'detail'}:
        err['code'] = 'VALIDATION_ERROR' if response.status_code == 400 else code
        err['errors'] = response.data

    response.data = {'ok': False, 'err': err}
    return response
