# stockops/views/errors.py

"""
API ERROR NORMALIZATION

Every stock-operation endpoint answers failures with the same envelope:

    {"error": {"code": "...", "message": "...", "details": {...}}}

"details" is only present when the service attached some
(VALIDATION_FAILED carries {"reasons": [...]}).
"""

from rest_framework import status
from rest_framework.response import Response

from stockops.services.exceptions import (
    AlreadyReversedError,
    InvalidTransferTransitionError,
    OperationNotFoundError,
    OperationValidationError,
    PersistenceFailure,
    ReferenceNotFoundError,
    StockConflictError,
    StockOperationError,
    TransferRequestNotFoundError,
)

_STATUS_BY_ERROR = (
    (OperationValidationError, status.HTTP_400_BAD_REQUEST),
    (ReferenceNotFoundError, status.HTTP_404_NOT_FOUND),
    (OperationNotFoundError, status.HTTP_404_NOT_FOUND),
    (TransferRequestNotFoundError, status.HTTP_404_NOT_FOUND),
    (AlreadyReversedError, status.HTTP_409_CONFLICT),
    (InvalidTransferTransitionError, status.HTTP_409_CONFLICT),
    (StockConflictError, status.HTTP_409_CONFLICT),
    (PersistenceFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def error_response(*, code: str, message: str, http_status: int, details=None):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    if details:
        body["details"] = details
    return Response({"error": body}, status=http_status)


def status_for(exc: StockOperationError) -> int:
    for error_class, http_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def service_error_response(exc: StockOperationError):
    return error_response(
        code=exc.code,
        message=str(exc),
        http_status=status_for(exc),
        details=exc.details,
    )
