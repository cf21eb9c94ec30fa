"""
Error taxonomy for the medical-record engine and the API exception handler.

Every domain error is a DRF ``APIException`` so views can let them
propagate and still produce a normalized response body.
"""
from rest_framework import exceptions, status
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response


class ValidationError(exceptions.ValidationError):
    """Malformed or missing visit input. Raised before any write starts."""
    default_code = 'validation_error'


class NotFoundError(exceptions.NotFound):
    default_detail = 'Medical record not found'
    default_code = 'not_found'


class IdentityResolutionExhausted(exceptions.APIException):
    """No usable clinician identity, not even the sentinel."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'could not resolve an attending clinician'
    default_code = 'identity_unresolved'


class TransactionError(exceptions.APIException):
    """A unit of work failed and was rolled back.

    The underlying exception is available as ``__cause__``.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'medical record write failed and was rolled back'
    default_code = 'transaction_error'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    code = getattr(exc, 'default_code', None)
    if not isinstance(exc, (ValidationError, NotFoundError, IdentityResolutionExhausted, TransactionError)):
        code = 'api_error'
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code)
