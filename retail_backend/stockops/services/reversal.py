# stockops/services/reversal.py

"""
======================================================
PATH: stockops/services/reversal.py
======================================================
STOCK OPERATION REVERSAL SERVICE

Reversal = apply the exact inverse of what the operation committed,
then record a reversal fact and mark the operation inactive.

Guarantees:
- Deltas come from the persisted lines (operation_deltas), never from
  live stock, so unrelated later operations do not skew the inverse.
- Every touched (item, store) row is restored: source, every conversion
  destination, and both stores of a transfer.
- The operation row is locked first; an inactive operation fails with
  AlreadyReversedError and nothing is applied.
- On CONFLICT the whole transaction is retried
  (settings.STOCKOPS_REVERSAL_MAX_ATTEMPTS), otherwise it fails entirely.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.conf import settings

from inventory.models import StockMovement
from inventory.services.stock_ledger import apply_stock_deltas, lock_stock_rows
from stockops.models import OperationReversal, StockOperation
from stockops.services.exceptions import AlreadyReversedError, OperationNotFoundError
from stockops.services.ledger import operation_deltas, run_ledger_transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReversalResult:
    operation: StockOperation
    reversal: OperationReversal
    applied_deltas: list = field(default_factory=list)


def _reverse(operation_id, *, actor, reason: str) -> ReversalResult:
    operation = (
        StockOperation.objects.select_for_update()
        .filter(pk=operation_id)
        .first()
    )
    if operation is None:
        raise OperationNotFoundError("Stock operation not found.")
    if not operation.is_active:
        raise AlreadyReversedError(f"Operation {operation.code} has already been reversed.")

    inverse = [delta.inverted() for delta in operation_deltas(operation)]

    locked = lock_stock_rows(delta.key for delta in inverse)
    applied = apply_stock_deltas(
        locked=locked,
        deltas=inverse,
        reason=StockMovement.Reason.REVERSAL,
        operation=operation,
        actor=actor,
    )

    reversal = OperationReversal.objects.create(
        operation=operation,
        reason=(reason or "").strip(),
        applied_deltas=[delta.as_dict() for delta in applied],
        reversed_by=actor,
    )

    operation.is_active = False
    operation.save(update_fields=["is_active"])

    logger.info(
        "Stock operation reversed",
        extra={
            "operation_code": operation.code,
            "operation_kind": operation.kind,
            "actor_id": getattr(actor, "pk", None),
        },
    )

    return ReversalResult(operation=operation, reversal=reversal, applied_deltas=applied)


def reverse_operation(operation_id, *, actor=None, reason: str = "") -> ReversalResult:
    """
    Undo a committed operation. Fails with OperationNotFoundError or
    AlreadyReversedError; never partially applies.
    """
    attempts = getattr(settings, "STOCKOPS_REVERSAL_MAX_ATTEMPTS", 3)

    return run_ledger_transaction(
        lambda: _reverse(operation_id, actor=actor, reason=reason),
        attempts=attempts,
        label="Reversal",
    )
