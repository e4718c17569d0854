# stockops/services/ledger.py

"""
======================================================
PATH: stockops/services/ledger.py
======================================================
STOCK OPERATION COMMIT SERVICE

Purpose:
- Turn a validated operation request into persisted facts and stock deltas.

Atomic unit (all or nothing):
1) lock every (item, store) stock row the request can touch, sorted
2) read the source stock from the LOCKED row (never from the client)
3) plan with the same calculator the preview uses
4) persist header + item lines + conversion lines
5) derive deltas from the persisted lines and apply them through the
   stock ledger (one movement row per non-zero delta)

Error mapping:
- OperationalError (lock wait / serialization failure) -> StockConflictError
- IntegrityError (a concurrent writer took the same unique key) -> StockConflictError
- any other DatabaseError -> PersistenceFailure
- domain errors propagate unchanged; the transaction rolls back
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable

from django.db import DatabaseError, IntegrityError, OperationalError, transaction

from inventory.models import Item, StockMovement
from inventory.services.stock_ledger import (
    ZERO,
    StockDelta,
    apply_stock_deltas,
    lock_stock_rows,
)
from stockops.catalog import RETURNABLE_KINDS, get_spec
from stockops.models import ConversionEntry, StockOperation, StockOperationItem
from stockops.services.calculator import aggregate_deltas, plan_operation
from stockops.services.codes import (
    generate_bill_code,
    generate_operation_code,
    normalize_terminal,
)
from stockops.services.exceptions import (
    OperationValidationError,
    PersistenceFailure,
    ReferenceNotFoundError,
    StockConflictError,
)
from stockops.services.requests import (
    LORRY_VARIANTS,
    MONEY_PLACES,
    SALE_VARIANTS,
    TRANSFER_VARIANTS,
    CashFloatAdjustment,
    OperationMetadata,
    StockReturn,
)
from stockops.services.validation import ensure_submittable
from store.models import Store
from store.services.trips import next_trip_id

logger = logging.getLogger(__name__)

CODE_ATTEMPTS = 10


@dataclass(frozen=True)
class CommitResult:
    operation: StockOperation
    applied_deltas: list = field(default_factory=list)
    duplicate: bool = False


# ============================================================
# TRANSACTION WRAPPER
# ============================================================


def run_ledger_transaction(fn: Callable, *, attempts: int = 1, label: str = "ledger write"):
    """
    Run fn() inside transaction.atomic(), translating storage errors.

    Conflicts are retried (whole transaction) up to `attempts` times.
    """
    attempts = max(1, int(attempts))

    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return fn()
        except OperationalError as exc:
            if attempt >= attempts:
                raise StockConflictError(
                    f"{label} conflicted with a concurrent change; please retry."
                ) from exc
            logger.warning(
                "Ledger conflict, retrying",
                extra={"label": label, "attempt": attempt},
            )
        except IntegrityError as exc:
            logger.warning("Ledger unique key collision", extra={"label": label})
            raise StockConflictError(
                f"{label} collided with a concurrent write; please retry."
            ) from exc
        except DatabaseError as exc:
            logger.exception("Ledger persistence failure", extra={"label": label})
            raise PersistenceFailure(f"{label} could not be saved: {exc}") from exc


# ============================================================
# HELPERS
# ============================================================


def touched_keys(request) -> set:
    """
    Every (item_id, store_id) the request can move stock on.
    """
    keys = {(request.item_id, request.store_id)}

    dest_store = request.destination_store_for_conversions
    for line in request.effective_conversions:
        keys.add((line.dest_item_id, dest_store))

    if isinstance(request, TRANSFER_VARIANTS) and not request.convert:
        keys.add((request.item_id, request.destination_store_id))

    return keys


def operation_deltas(operation: StockOperation) -> list[StockDelta]:
    """
    Rebuild the committed deltas from persisted lines (never from live stock).
    """
    lines = list(operation.items.all())
    conversions = list(operation.conversions.all())

    return aggregate_deltas(
        removals=[
            (line.item_id, line.store_id, line.removed_quantity)
            for line in lines
            if line.role == StockOperationItem.Role.SOURCE
        ],
        additions=(
            [(c.dest_item_id, c.dest_store_id, c.dest_quantity) for c in conversions]
            + [
                (line.item_id, line.store_id, line.added_quantity)
                for line in lines
                if line.role == StockOperationItem.Role.DESTINATION
            ]
        ),
    )


def _unique_code(generator: Callable[[], str], *, field_name: str) -> str:
    code = generator()
    for _ in range(CODE_ATTEMPTS - 1):
        if not StockOperation.objects.filter(**{field_name: code}).exists():
            break
        code = generator()
    return code


def _resolve_store(store_id, *, label: str) -> Store:
    store = Store.objects.filter(pk=store_id).first()
    if store is None:
        raise OperationValidationError(f"Unknown {label}.")
    if not store.is_active:
        raise OperationValidationError(f"{label.capitalize()} {store.label} is inactive.")
    return store


def _resolve_items(request) -> Item:
    wanted = {request.item_id} | {line.dest_item_id for line in request.effective_conversions}
    found = {item.pk: item for item in Item.objects.filter(pk__in=wanted)}

    missing = wanted - set(found)
    if missing:
        raise OperationValidationError(
            [f"Unknown item: {item_id}" for item_id in sorted(str(m) for m in missing)]
        )

    item = found[request.item_id]
    if not item.is_active:
        raise OperationValidationError(f"Item {item.code} is inactive.")
    return item


def _resolve_return_reference(request):
    if not isinstance(request, StockReturn) or request.reference_id is None:
        return None

    reference = StockOperation.objects.filter(pk=request.reference_id).first()
    if reference is None:
        raise ReferenceNotFoundError("The referenced operation does not exist.")
    if not reference.is_active:
        raise ReferenceNotFoundError(f"Operation {reference.code} has been reversed.")
    if reference.kind not in RETURNABLE_KINDS:
        raise ReferenceNotFoundError(
            f"Operation {reference.code} ({reference.kind_label}) cannot be returned."
        )
    return reference


def _persist_lines(*, operation, plan, locked) -> None:
    net = {d.key: d.quantity for d in plan.deltas()}

    def resulting(key) -> Decimal:
        return locked[key].quantity + net.get(key, ZERO)

    source_key = (plan.item_id, plan.store_id)
    StockOperationItem.objects.create(
        operation=operation,
        item_id=plan.item_id,
        store_id=plan.store_id,
        role=StockOperationItem.Role.SOURCE,
        previous_stock=plan.previous_stock,
        main_quantity=plan.main_quantity,
        sold_quantity=plan.sold_quantity,
        converted_quantity=plan.converted_quantity,
        removed_quantity=plan.deduction,
        resulting_stock=resulting(source_key),
    )

    for arrival in plan.arrivals:
        key = (arrival.item_id, arrival.store_id)
        StockOperationItem.objects.create(
            operation=operation,
            item_id=arrival.item_id,
            store_id=arrival.store_id,
            role=StockOperationItem.Role.DESTINATION,
            previous_stock=locked[key].quantity,
            main_quantity=arrival.quantity,
            added_quantity=arrival.quantity,
            resulting_stock=resulting(key),
        )

    ConversionEntry.objects.bulk_create(
        [
            ConversionEntry(
                operation=operation,
                source_item_id=conv.source_item_id,
                dest_item_id=conv.dest_item_id,
                dest_store_id=conv.dest_store_id,
                dest_quantity=conv.quantity,
            )
            for conv in plan.conversions
        ]
    )


# ============================================================
# COMMIT
# ============================================================


def commit_operation(request, *, actor=None, metadata: OperationMetadata | None = None) -> CommitResult:
    """
    Commit inside the CALLER's transaction. Use submit_operation() unless
    you already hold one (transfer approval does).
    """
    metadata = metadata or OperationMetadata()
    spec = get_spec(request.kind)

    ensure_submittable(request)

    if metadata.issue_trip_id and not spec.trip_eligible:
        raise OperationValidationError(f"Trip ids are not issued for {spec.label}.")

    store = _resolve_store(request.store_id, label="store")
    destination_store = None
    if isinstance(request, TRANSFER_VARIANTS):
        destination_store = _resolve_store(request.destination_store_id, label="destination store")
    item = _resolve_items(request)
    reference = _resolve_return_reference(request)

    locked = lock_stock_rows(touched_keys(request))
    current = locked[(request.item_id, request.store_id)].quantity
    plan = plan_operation(request, current_stock=current)

    terminal = normalize_terminal(metadata.terminal_code)
    code = _unique_code(
        lambda: generate_operation_code(store=store, terminal_code=terminal),
        field_name="code",
    )

    sale_fields = {}
    if isinstance(request, SALE_VARIANTS):
        sale_fields["sell_price"] = request.sell_price
        sale_fields["customer_name"] = request.customer.name
        sale_fields["customer_contact"] = request.customer.contact
        if request.sold_quantity > 0:
            sale_fields["bill_amount"] = (request.sold_quantity * request.sell_price).quantize(MONEY_PLACES)
            sale_fields["bill_code"] = _unique_code(
                lambda: generate_bill_code(store=store, terminal_code=terminal),
                field_name="bill_code",
            )

    lorry_fields = {}
    if isinstance(request, LORRY_VARIANTS):
        lorry_fields = {
            "lorry_number": request.lorry.lorry_number,
            "driver_name": request.lorry.driver_name,
            "lorry_destination": request.lorry.destination,
        }

    trip_id = next_trip_id(store=store) if metadata.issue_trip_id else None

    operation = StockOperation.objects.create(
        code=code,
        kind=request.kind,
        clearance_type=plan.clearance_type,
        store=store,
        destination_store=destination_store,
        item=item,
        reference=reference,
        is_direct_return=isinstance(request, StockReturn) and request.direct,
        discrepancy=plan.discrepancy,
        cash_amount=request.amount if isinstance(request, CashFloatAdjustment) else None,
        trip_id=trip_id,
        terminal_code=terminal,
        local_id=(metadata.local_id or None),
        comments=metadata.comments,
        created_by=actor,
        **sale_fields,
        **lorry_fields,
    )

    _persist_lines(operation=operation, plan=plan, locked=locked)

    applied = apply_stock_deltas(
        locked=locked,
        deltas=operation_deltas(operation),
        reason=StockMovement.Reason.OPERATION,
        operation=operation,
        actor=actor,
    )

    logger.info(
        "Stock operation committed",
        extra={
            "operation_code": operation.code,
            "operation_kind": int(request.kind),
            "store": store.code,
            "actor_id": getattr(actor, "pk", None),
            "discrepancy": str(plan.discrepancy) if plan.discrepancy is not None else None,
        },
    )

    return CommitResult(operation=operation, applied_deltas=applied)


def _find_duplicate(local_id: str):
    return StockOperation.objects.filter(local_id=local_id).first()


def _duplicate_result(existing: StockOperation) -> CommitResult:
    logger.warning(
        "Duplicate stock operation submission",
        extra={"local_id": existing.local_id, "operation_code": existing.code},
    )
    return CommitResult(
        operation=existing,
        applied_deltas=[d for d in operation_deltas(existing) if d.quantity != 0],
        duplicate=True,
    )


def submit_operation(request, *, actor=None, metadata: OperationMetadata | None = None) -> CommitResult:
    """
    Validate and commit one operation as a single atomic unit.

    Resubmitting with the same metadata.local_id returns the operation
    committed the first time (duplicate=True) and applies nothing.
    """
    metadata = metadata or OperationMetadata()

    if metadata.local_id:
        existing = _find_duplicate(metadata.local_id)
        if existing is not None:
            return _duplicate_result(existing)

    try:
        return run_ledger_transaction(
            lambda: commit_operation(request, actor=actor, metadata=metadata),
            label="Stock operation",
        )
    except StockConflictError:
        # Two terminals replaying the same local_id: the loser hits the
        # unique constraint after the winner committed.
        if metadata.local_id:
            existing = _find_duplicate(metadata.local_id)
            if existing is not None:
                return _duplicate_result(existing)
        raise
