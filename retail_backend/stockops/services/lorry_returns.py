# stockops/services/lorry_returns.py

"""
LORRY RETURNS

Track goods that came back from a lorry clearance (kinds 7 and 8).

Rules:
- Only active lorry operations accept returns
- return_quantity > 0, wastage_quantity >= 0
- returned + wasted can never exceed what is still outstanding
- Recording a return does NOT change stock
- A lorry stays "pending" until everything on it is returned, wasted or
  delivered; lorry_pending() lists those still open
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from inventory.services.stock_ledger import ZERO
from stockops.catalog import LORRY_KINDS
from stockops.models import LorryReturn, StockOperation, StockOperationItem
from stockops.services.exceptions import (
    OperationValidationError,
    ReferenceNotFoundError,
)
from stockops.services.ledger import run_ledger_transaction
from stockops.services.requests import parse_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LorrySummary:
    cleared: Decimal
    returned: Decimal
    wasted: Decimal

    @property
    def net_delivered(self) -> Decimal:
        return self.cleared - self.returned - self.wasted

    @property
    def status(self) -> str:
        if self.returned == 0 and self.wasted == 0:
            return LorryReturn.STATUS_PENDING
        if self.net_delivered > 0:
            return LorryReturn.STATUS_PARTIAL
        return LorryReturn.STATUS_FULL

    def as_dict(self) -> dict:
        return {
            "cleared": str(self.cleared),
            "returned": str(self.returned),
            "wasted": str(self.wasted),
            "net_delivered": str(self.net_delivered),
            "status": self.status,
        }


def lorry_summary(operation: StockOperation) -> LorrySummary:
    # What went on the lorry: the weighed main quantity, else the whole deduction.
    source = (
        operation.items.filter(role=StockOperationItem.Role.SOURCE)
        .values("main_quantity", "removed_quantity")
        .first()
    ) or {}
    cleared = source.get("main_quantity") or source.get("removed_quantity") or ZERO

    totals = operation.lorry_returns.aggregate(
        returned=Sum("return_quantity"),
        wasted=Sum("wastage_quantity"),
    )
    return LorrySummary(
        cleared=cleared,
        returned=totals["returned"] or ZERO,
        wasted=totals["wasted"] or ZERO,
    )


def record_lorry_return(
    operation_id,
    *,
    return_quantity,
    wastage_quantity=None,
    notes: str = "",
    actor=None,
) -> LorryReturn:
    returned = parse_quantity(return_quantity, field="return_quantity")
    wasted = parse_quantity(wastage_quantity, field="wastage_quantity")

    errors = []
    if returned <= 0:
        errors.append("Return quantity must be greater than 0.")
    if wasted < 0:
        errors.append("Wastage cannot be negative.")
    if errors:
        raise OperationValidationError(errors)

    def _record():
        operation = (
            StockOperation.objects.select_for_update()
            .filter(pk=operation_id)
            .first()
        )
        if operation is None or not operation.is_active:
            raise ReferenceNotFoundError("Lorry operation not found or reversed.")
        if operation.kind not in LORRY_KINDS:
            raise ReferenceNotFoundError(
                f"Operation {operation.code} is not a lorry clearance."
            )

        summary = lorry_summary(operation)
        if returned + wasted > summary.net_delivered:
            raise OperationValidationError(
                f"Only {summary.net_delivered} is still outstanding on this lorry."
            )

        lorry_return = LorryReturn.objects.create(
            operation=operation,
            return_quantity=returned,
            wastage_quantity=wasted,
            notes=notes or "",
            created_by=actor,
        )

        logger.info(
            "Lorry return recorded",
            extra={
                "operation_code": operation.code,
                "return_quantity": str(returned),
                "actor_id": getattr(actor, "pk", None),
            },
        )
        return lorry_return

    return run_ledger_transaction(_record, label="Lorry return")


OPEN_STATUSES = (LorryReturn.STATUS_PENDING, LorryReturn.STATUS_PARTIAL)


def lorry_pending(*, store_id=None, today=None) -> list[dict]:
    """
    Active lorry clearances still waiting on returns (PENDING or
    PARTIAL_RETURN), oldest first, with how many days they have been out.
    """
    today = today or timezone.localdate()

    qs = (
        StockOperation.objects.filter(is_active=True, kind__in=LORRY_KINDS)
        .select_related("store", "item")
        .order_by("created_at")
    )
    if store_id:
        qs = qs.filter(store_id=store_id)

    rows = []
    for operation in qs:
        summary = lorry_summary(operation)
        if summary.status not in OPEN_STATUSES:
            continue

        cleared_on = timezone.localdate(operation.created_at)
        rows.append(
            {
                "operation_id": str(operation.pk),
                "code": operation.code,
                "kind": operation.kind,
                "trip_id": operation.trip_id,
                "store_code": operation.store.code,
                "item_code": operation.item.code,
                "lorry_number": operation.lorry_number,
                "driver_name": operation.driver_name,
                "cleared_at": operation.created_at.isoformat(),
                "days_since_clearance": (today - cleared_on).days,
                **summary.as_dict(),
            }
        )
    return rows
