"""
TRANSFER REQUEST LIFECYCLE RULES

This module defines the ONLY allowed lifecycle transitions
for TransferRequest entities.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth
"""

from stockops.models import TransferRequest
from stockops.services.exceptions import InvalidTransferTransitionError

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    TransferRequest.STATUS_APPROVED,
    TransferRequest.STATUS_DECLINED,
}

ALLOWED_TRANSITIONS = {
    TransferRequest.STATUS_PENDING: {
        TransferRequest.STATUS_APPROVED,
        TransferRequest.STATUS_DECLINED,
    },
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, transfer: TransferRequest, target_status: str):
    if not can_transition(
        from_status=transfer.status,
        to_status=target_status,
    ):
        raise InvalidTransferTransitionError(
            f"Transfer {transfer.code} is already {transfer.status.lower()} "
            f"and cannot become {target_status.lower()}."
        )
