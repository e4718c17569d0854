# stockops/services/calculator.py

"""
======================================================
PATH: stockops/services/calculator.py
======================================================
STOCK OPERATION CALCULATOR (PURE)

One formula set, used by:
- preview_operation()  -> live projection for the terminal UI
- ledger.commit        -> persisted lines + applied deltas
- reversal             -> aggregate_deltas() over persisted lines

DESIGN PRINCIPLES:
- No database access
- No side effects
- Deterministic for the same inputs

Formulas (per kind):
- Full Clear / Full Clear + Sale / Full Clear + Lorry:
    deduction = current stock
- Partial Clear / Partial Clear + Lorry:
    deduction = main quantity + converted total
- Partial Clear + Sale:
    deduction = sold quantity + converted total
- Item Conversion:
    FULL -> current stock, PARTIAL -> converted total
- Transfer:
    FULL -> current source stock
    PARTIAL -> converted total (conversion on) or main quantity
- Stock Return:
    conversion on -> 0 (only destinations gain)
    conversion off -> -return quantity (an addition)
- Cash Float Adjustment:
    0 (no stock effect)

projected = current - deduction + self_addition

self_addition is the converted quantity whose destination is the source
item itself. It never applies on the source leg of a transfer: transfer
conversions land in the destination store.

Discrepancy (full variants only):
    actual_output - previous_stock
    negative = wastage / loss, positive = surplus
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional
from uuid import UUID

from inventory.services.stock_ledger import ZERO, StockDelta
from stockops.catalog import ClearanceType, OperationKind, require_complete
from stockops.services.requests import (
    TRANSFER_VARIANTS,
    CashFloatAdjustment,
    FullClear,
    FullClearLorry,
    FullClearSale,
    ItemConversion,
    PartialClear,
    PartialClearLorry,
    PartialClearSale,
    StockReturn,
    TransferFull,
    TransferPartial,
)


# ============================================================
# PLAN
# ============================================================


@dataclass(frozen=True)
class PlannedConversion:
    source_item_id: Optional[UUID]
    dest_item_id: Optional[UUID]
    dest_store_id: Optional[UUID]
    quantity: Decimal


@dataclass(frozen=True)
class PlannedArrival:
    """Unconverted quantity landing at a transfer's destination store."""

    item_id: Optional[UUID]
    store_id: Optional[UUID]
    quantity: Decimal


@dataclass(frozen=True)
class OperationPlan:
    kind: OperationKind
    item_id: Optional[UUID]
    store_id: Optional[UUID]
    clearance_type: Optional[str]

    previous_stock: Decimal
    deduction: Decimal
    main_quantity: Decimal
    sold_quantity: Decimal
    converted_quantity: Decimal
    self_addition: Decimal
    discrepancy: Optional[Decimal]

    conversions: tuple = field(default_factory=tuple)
    arrivals: tuple = field(default_factory=tuple)

    @property
    def full(self) -> bool:
        return self.clearance_type == ClearanceType.FULL

    @property
    def projected_stock(self) -> Decimal:
        return self.previous_stock - self.deduction + self.self_addition

    @property
    def arrived_quantity(self) -> Decimal:
        return sum((a.quantity for a in self.arrivals), ZERO)

    def deltas(self) -> list[StockDelta]:
        return aggregate_deltas(
            removals=[(self.item_id, self.store_id, self.deduction)],
            additions=(
                [(c.dest_item_id, c.dest_store_id, c.quantity) for c in self.conversions]
                + [(a.item_id, a.store_id, a.quantity) for a in self.arrivals]
            ),
        )


def aggregate_deltas(*, removals: Iterable, additions: Iterable) -> list[StockDelta]:
    """
    Collapse (item_id, store_id, quantity) movements into exactly one
    StockDelta per (item, store). Zero nets are kept so callers can see
    every pair that was implicated.
    """
    totals: dict[tuple, Decimal] = {}

    for item_id, store_id, quantity in removals:
        key = (item_id, store_id)
        totals[key] = totals.get(key, ZERO) - quantity

    for item_id, store_id, quantity in additions:
        key = (item_id, store_id)
        totals[key] = totals.get(key, ZERO) + quantity

    return [
        StockDelta(item_id=key[0], store_id=key[1], quantity=qty)
        for key, qty in sorted(totals.items(), key=lambda kv: (str(kv[0][0]), str(kv[0][1])))
    ]


# ============================================================
# PER-KIND RULES
# ============================================================


@dataclass(frozen=True)
class _KindRule:
    deduction: Callable  # (request, current, converted) -> Decimal
    primary_output: Optional[Callable] = None  # (request) -> Decimal; None = no discrepancy
    main_quantity: Callable = lambda request: ZERO


def _whole_stock(request, current, converted):
    return current


def _main_plus_converted(request, current, converted):
    return request.main_quantity + converted


def _sold_plus_converted(request, current, converted):
    return request.sold_quantity + converted


def _conversion_by_mode(request, current, converted):
    return current if request.mode == ClearanceType.FULL else converted


def _transfer_partial(request, current, converted):
    return converted if request.convert else request.main_quantity


def _stock_return(request, current, converted):
    return ZERO if request.convert else -request.return_quantity


def _no_stock_effect(request, current, converted):
    return ZERO


def _main(request):
    return request.main_quantity or ZERO


_RULES: dict[type, _KindRule] = {
    FullClear: _KindRule(_whole_stock, primary_output=_main, main_quantity=_main),
    PartialClear: _KindRule(_main_plus_converted, main_quantity=_main),
    FullClearSale: _KindRule(_whole_stock, primary_output=lambda r: r.sold_quantity),
    PartialClearSale: _KindRule(_sold_plus_converted),
    TransferPartial: _KindRule(_transfer_partial, main_quantity=_main),
    # Transfer discrepancy is arrival vs release; handled in plan_operation.
    TransferFull: _KindRule(_whole_stock, main_quantity=_main),
    PartialClearLorry: _KindRule(_main_plus_converted, main_quantity=_main),
    FullClearLorry: _KindRule(_whole_stock, primary_output=_main, main_quantity=_main),
    ItemConversion: _KindRule(_conversion_by_mode, primary_output=lambda r: ZERO),
    CashFloatAdjustment: _KindRule(_no_stock_effect),
    StockReturn: _KindRule(_stock_return, main_quantity=lambda r: r.return_quantity),
}
require_complete((variant.kind for variant in _RULES), "calculator")


def _rule_for(request) -> _KindRule:
    try:
        return _RULES[type(request)]
    except KeyError:
        raise TypeError(f"Unsupported operation request: {type(request).__name__}")


def plan_operation(request, *, current_stock) -> OperationPlan:
    """
    Compute everything a commit needs from the request and the source
    (item, store) stock value.
    """
    rule = _rule_for(request)
    current = current_stock if current_stock is not None else ZERO

    lines = request.effective_conversions
    converted = sum((line.quantity for line in lines), ZERO)
    dest_store = request.destination_store_for_conversions

    conversions = tuple(
        PlannedConversion(
            source_item_id=request.item_id,
            dest_item_id=line.dest_item_id,
            dest_store_id=dest_store,
            quantity=line.quantity,
        )
        for line in lines
    )

    is_transfer = isinstance(request, TRANSFER_VARIANTS)
    if is_transfer:
        self_addition = ZERO
    else:
        self_addition = sum(
            (line.quantity for line in lines if line.dest_item_id == request.item_id),
            ZERO,
        )

    deduction = rule.deduction(request, current, converted)
    clearance = request.clearance_type

    arrivals: tuple = ()
    if is_transfer and not request.convert:
        if isinstance(request, TransferFull):
            # Unweighed full transfer: everything released arrives.
            arrived = request.main_quantity if request.main_quantity is not None else max(current, ZERO)
        else:
            arrived = request.main_quantity
        arrivals = (
            PlannedArrival(
                item_id=request.item_id,
                store_id=request.destination_store_id,
                quantity=arrived,
            ),
        )

    discrepancy = None
    if clearance == ClearanceType.FULL:
        if is_transfer:
            arrived_total = converted if request.convert else sum((a.quantity for a in arrivals), ZERO)
            discrepancy = arrived_total - current
        elif rule.primary_output is not None:
            discrepancy = rule.primary_output(request) + converted - current

    return OperationPlan(
        kind=request.kind,
        item_id=request.item_id,
        store_id=request.store_id,
        clearance_type=clearance,
        previous_stock=current,
        deduction=deduction,
        main_quantity=rule.main_quantity(request) or ZERO,
        sold_quantity=getattr(request, "sold_quantity", ZERO),
        converted_quantity=converted,
        self_addition=self_addition,
        discrepancy=discrepancy,
        conversions=conversions,
        arrivals=arrivals,
    )


# ============================================================
# PREVIEW
# ============================================================


@dataclass(frozen=True)
class StockProjection:
    current: Decimal
    projected: Decimal

    @property
    def diff(self) -> Decimal:
        return self.projected - self.current

    def as_dict(self) -> dict:
        return {
            "current": str(self.current),
            "projected": str(self.projected),
            "diff": str(self.diff),
        }


@dataclass(frozen=True)
class ConversionPreview:
    dest_item_id: Optional[UUID]
    store_id: Optional[UUID]
    quantity: Decimal
    current: Decimal
    projected: Decimal

    def as_dict(self) -> dict:
        return {
            "dest_item_id": str(self.dest_item_id) if self.dest_item_id else None,
            "store_id": str(self.store_id) if self.store_id else None,
            "quantity": str(self.quantity),
            "current": str(self.current),
            "projected": str(self.projected),
        }


@dataclass(frozen=True)
class TransferPreview:
    source: StockProjection
    destination: StockProjection

    def as_dict(self) -> dict:
        return {
            "source": self.source.as_dict(),
            "destination": self.destination.as_dict(),
        }


@dataclass(frozen=True)
class OperationPreview:
    current: Decimal
    projected: Decimal
    deduction: Decimal
    self_addition: Decimal
    wastage: Optional[Decimal]
    transfer: Optional[TransferPreview]
    conversions: tuple

    @property
    def diff(self) -> Decimal:
        return self.projected - self.current

    def as_dict(self) -> dict:
        return {
            "current": str(self.current),
            "projected": str(self.projected),
            "diff": str(self.diff),
            "deduction": str(self.deduction),
            "self_addition": str(self.self_addition),
            "wastage": str(self.wastage) if self.wastage is not None else None,
            "transfer": self.transfer.as_dict() if self.transfer else None,
            "conversions": [c.as_dict() for c in self.conversions],
        }


def preview_operation(
    request,
    *,
    current_stock,
    stock_lookup: Optional[Mapping] = None,
) -> OperationPreview:
    """
    Live projection. Pure: `stock_lookup` maps (item_id, store_id) -> stock
    for conversion destinations and the transfer destination; missing keys
    read as zero.
    """
    plan = plan_operation(request, current_stock=current_stock)
    lookup = stock_lookup or {}
    source_key = (plan.item_id, plan.store_id)

    def stock_of(key) -> Decimal:
        if key == source_key:
            return plan.previous_stock
        value = lookup.get(key)
        return value if value is not None else ZERO

    # Net per key from the same aggregation commit uses.
    net = {d.key: d.quantity for d in plan.deltas()}

    previews = []
    seen = set()
    for conv in plan.conversions:
        key = (conv.dest_item_id, conv.dest_store_id)
        if key in seen:
            continue
        seen.add(key)
        current = stock_of(key)
        previews.append(
            ConversionPreview(
                dest_item_id=conv.dest_item_id,
                store_id=conv.dest_store_id,
                quantity=sum(
                    (c.quantity for c in plan.conversions if (c.dest_item_id, c.dest_store_id) == key),
                    ZERO,
                ),
                current=current,
                projected=current + net.get(key, ZERO),
            )
        )

    transfer = None
    if isinstance(request, TRANSFER_VARIANTS):
        dest_key = (request.item_id, request.destination_store_id)
        dest_current = stock_of(dest_key)
        transfer = TransferPreview(
            source=StockProjection(plan.previous_stock, plan.projected_stock),
            destination=StockProjection(dest_current, dest_current + net.get(dest_key, ZERO)),
        )

    return OperationPreview(
        current=plan.previous_stock,
        projected=plan.projected_stock,
        deduction=plan.deduction,
        self_addition=plan.self_addition,
        wastage=plan.discrepancy,
        transfer=transfer,
        conversions=tuple(previews),
    )
