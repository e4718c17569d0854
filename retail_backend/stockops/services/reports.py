# stockops/services/reports.py

"""
STOCK OPERATION REPORTS

Read side for history and reporting screens.

Rules:
- Only ACTIVE operations count (reversed ones are history, not results)
- Wastage/surplus comes from the persisted breakdown on each operation,
  never from live stock
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from django.db.models import Count, DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce

from inventory.services.stock_ledger import ZERO
from stockops.catalog import RETURNABLE_KINDS, ClearanceType, OperationKind
from stockops.models import StockOperation, StockOperationItem

_QTY_FIELD = DecimalField(max_digits=14, decimal_places=3)
_MONEY_FIELD = DecimalField(max_digits=14, decimal_places=2)


def active_operations(*, store_id=None, date_from=None, date_to=None):
    qs = StockOperation.objects.filter(is_active=True)
    if store_id:
        qs = qs.filter(Q(store_id=store_id) | Q(destination_store_id=store_id))
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)
    return qs


def operation_summary(*, store_id=None, date_from=None, date_to=None) -> list[dict]:
    """
    Active operations grouped by (kind, clearance type):
    count, total wastage, total surplus, total sales.
    """
    rows = (
        active_operations(store_id=store_id, date_from=date_from, date_to=date_to)
        .values("kind", "clearance_type")
        .annotate(
            count=Count("id"),
            wastage=Coalesce(
                Sum("discrepancy", filter=Q(discrepancy__lt=0)),
                Value(ZERO),
                output_field=_QTY_FIELD,
            ),
            surplus=Coalesce(
                Sum("discrepancy", filter=Q(discrepancy__gt=0)),
                Value(ZERO),
                output_field=_QTY_FIELD,
            ),
            sales=Coalesce(
                Sum("bill_amount"),
                Value(Decimal("0.00")),
                output_field=_MONEY_FIELD,
            ),
        )
        .order_by("kind", "clearance_type")
    )

    return [
        {
            "kind": row["kind"],
            "kind_label": OperationKind(row["kind"]).label,
            "clearance_type": row["clearance_type"],
            "count": row["count"],
            # wastage reported as a positive loss
            "total_wastage": str(-row["wastage"]),
            "total_surplus": str(row["surplus"]),
            "total_sales": str(row["sales"]),
        }
        for row in rows
    ]


def reconstruct_discrepancy(operation: StockOperation) -> Optional[Decimal]:
    """
    Rebuild wastage/surplus from the persisted SOURCE line:
        (main or sold) + converted - previous stock
    Transfers compare what arrived with what was released.
    Returns None for kinds/modes that do not track a discrepancy.
    """
    if operation.clearance_type != ClearanceType.FULL:
        return None

    lines = list(operation.items.all())
    source = next((l for l in lines if l.role == StockOperationItem.Role.SOURCE), None)
    if source is None:
        return None

    if operation.kind == OperationKind.TRANSFER_FULL:
        arrived = sum(
            (l.added_quantity for l in lines if l.role == StockOperationItem.Role.DESTINATION),
            ZERO,
        ) + source.converted_quantity
        return arrived - source.previous_stock

    primary = source.sold_quantity if operation.kind == OperationKind.FULL_CLEAR_SALE else source.main_quantity
    return primary + source.converted_quantity - source.previous_stock


def returnable_operations(*, store_id=None, item_id=None, search: str = ""):
    """
    Candidates a Stock Return may reference: active operations of the
    returnable kinds (clears and clear + sale).
    """
    qs = (
        StockOperation.objects.filter(is_active=True, kind__in=RETURNABLE_KINDS)
        .select_related("store", "item")
        .order_by("-created_at")
    )
    if store_id:
        qs = qs.filter(store_id=store_id)
    if item_id:
        qs = qs.filter(item_id=item_id)
    search = (search or "").strip()
    if search:
        qs = qs.filter(
            Q(code__icontains=search)
            | Q(bill_code__icontains=search)
            | Q(customer_name__icontains=search)
        )
    return qs
