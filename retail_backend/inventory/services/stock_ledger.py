# inventory/services/stock_ledger.py

"""
STOCK LEDGER SERVICE

Purpose:
- The ONLY writer of ItemStock.quantity.
- Every applied delta leaves one immutable StockMovement row.

Rules:
- Rows are locked (SELECT ... FOR UPDATE) in a fixed (item_id, store_id)
  order so two writers touching overlapping rows cannot deadlock.
- Missing ItemStock rows are created at zero before locking.
- Callers MUST already be inside transaction.atomic(); these helpers never
  open their own transaction for multi-row writes.
- Zero deltas are skipped (no movement row for "nothing happened").
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable
from uuid import UUID

from django.db import transaction

from inventory.models import ItemStock, StockMovement

logger = logging.getLogger(__name__)

QUANTITY_PLACES = Decimal("0.001")
ZERO = Decimal("0.000")

StockKey = tuple  # (item_id, store_id)


class StockLedgerError(Exception):
    """Domain error for ledger write failures."""


@dataclass(frozen=True)
class StockDelta:
    item_id: UUID
    store_id: UUID
    quantity: Decimal

    @property
    def key(self) -> StockKey:
        return (self.item_id, self.store_id)

    def inverted(self) -> "StockDelta":
        return StockDelta(self.item_id, self.store_id, -self.quantity)

    def as_dict(self) -> dict:
        return {
            "item_id": str(self.item_id),
            "store_id": str(self.store_id),
            "quantity": str(self.quantity),
        }


def to_quantity(value, *, field: str = "quantity") -> Decimal:
    """
    Normalize user/db input to a 3dp Decimal.
    """
    if value is None or value == "":
        return ZERO

    if isinstance(value, bool):
        # guardrail: bool is an int subclass in Python
        raise StockLedgerError(f"{field} must be a number")

    try:
        qty = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise StockLedgerError(f"{field} must be a number")

    if not qty.is_finite():
        raise StockLedgerError(f"{field} must be a finite number")

    try:
        # quantize overflows the context precision for absurd magnitudes
        return qty.quantize(QUANTITY_PLACES)
    except InvalidOperation:
        raise StockLedgerError(f"{field} is too large")


def _sort_key(key: StockKey):
    return (str(key[0]), str(key[1]))


def lock_stock_rows(keys: Iterable[StockKey]) -> dict[StockKey, ItemStock]:
    """
    Lock (creating when missing) the ItemStock rows for the given keys.

    Returns {(item_id, store_id): locked ItemStock}.
    """
    locked: dict[StockKey, ItemStock] = {}

    for item_id, store_id in sorted(set(keys), key=_sort_key):
        ItemStock.objects.get_or_create(item_id=item_id, store_id=store_id)
        locked[(item_id, store_id)] = (
            ItemStock.objects.select_for_update().get(item_id=item_id, store_id=store_id)
        )

    return locked


def read_stock(keys: Iterable[StockKey]) -> dict[StockKey, Decimal]:
    """
    Unlocked snapshot of stock levels (missing rows read as zero).
    Advisory only: used for previews.
    """
    keys = set(keys)
    snapshot = {key: ZERO for key in keys}
    if not keys:
        return snapshot

    item_ids = {k[0] for k in keys}
    store_ids = {k[1] for k in keys}
    rows = ItemStock.objects.filter(item_id__in=item_ids, store_id__in=store_ids)
    for item_id, store_id, quantity in rows.values_list("item_id", "store_id", "quantity"):
        if (item_id, store_id) in snapshot:
            snapshot[(item_id, store_id)] = quantity
    return snapshot


def apply_stock_deltas(
    *,
    locked: dict[StockKey, ItemStock],
    deltas: Iterable[StockDelta],
    reason: str,
    operation=None,
    actor=None,
) -> list[StockDelta]:
    """
    Apply deltas to already-locked rows and write one movement per delta.

    Returns the deltas actually applied (zero deltas dropped).
    """
    applied: list[StockDelta] = []

    for delta in sorted(deltas, key=lambda d: _sort_key(d.key)):
        if delta.quantity == 0:
            continue

        row = locked.get(delta.key)
        if row is None:
            raise StockLedgerError(
                f"Stock row for item {delta.item_id} at store {delta.store_id} is not locked"
            )

        row.quantity = (row.quantity + delta.quantity).quantize(QUANTITY_PLACES)
        row.save(update_fields=["quantity", "updated_at"])

        StockMovement.objects.create(
            item_id=delta.item_id,
            store_id=delta.store_id,
            movement_type=(
                StockMovement.MovementType.IN
                if delta.quantity > 0
                else StockMovement.MovementType.OUT
            ),
            reason=reason,
            quantity=abs(delta.quantity),
            balance_after=row.quantity,
            operation=operation,
            performed_by=actor,
        )
        applied.append(delta)

    return applied


@transaction.atomic
def record_opening_balance(*, item, store, quantity, actor=None) -> ItemStock:
    """
    Load an opening balance (positive or negative) for one (item, store).
    """
    qty = to_quantity(quantity)
    if qty == 0:
        raise StockLedgerError("Opening balance cannot be 0")

    key = (item.pk, store.pk)
    locked = lock_stock_rows([key])
    apply_stock_deltas(
        locked=locked,
        deltas=[StockDelta(item.pk, store.pk, qty)],
        reason=StockMovement.Reason.OPENING,
        actor=actor,
    )

    logger.info(
        "Opening balance recorded",
        extra={"item": item.code, "store": store.code, "quantity": str(qty)},
    )
    return locked[key]
