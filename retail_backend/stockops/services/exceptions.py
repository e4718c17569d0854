# stockops/services/exceptions.py

"""
STOCK OPERATION SERVICE ERRORS

Centralized domain errors for the stock operation engine.

Every error carries a stable machine `code`; views translate it into the
canonical {"error": {"code", "message"}} response.
"""

from __future__ import annotations


class StockOperationError(Exception):
    """Base exception for all stock operation failures."""

    code = "STOCK_OPERATION_FAILED"

    def __init__(self, message: str = "", *, details=None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.details = details


class OperationValidationError(StockOperationError):
    """Missing or contradictory operation input."""

    code = "VALIDATION_FAILED"

    def __init__(self, reasons):
        if isinstance(reasons, str):
            reasons = [reasons]
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons), details={"reasons": self.reasons})


class StockConflictError(StockOperationError):
    """Concurrent mutation on the same stock row; retry the request."""

    code = "CONFLICT"


class ReferenceNotFoundError(StockOperationError):
    """Referenced operation does not exist, is reversed, or cannot be referenced."""

    code = "REFERENCE_NOT_FOUND"


class OperationNotFoundError(StockOperationError):
    """Operation does not exist."""

    code = "NOT_FOUND"


class AlreadyReversedError(StockOperationError):
    """Operation has already been reversed."""

    code = "ALREADY_REVERSED"


class PersistenceFailure(StockOperationError):
    """Storage error during an atomic write; nothing was applied."""

    code = "PERSISTENCE_FAILURE"


class TransferRequestNotFoundError(StockOperationError):
    """Transfer request does not exist."""

    code = "NOT_FOUND"


class InvalidTransferTransitionError(StockOperationError):
    """Transfer request is not in a state that allows this action."""

    code = "INVALID_TRANSFER_STATE"
