# stockops/services/transfers.py

"""
======================================================
PATH: stockops/services/transfers.py
======================================================
STORE-TO-STORE TRANSFER SERVICE

Flow:
    request_transfer()  -> PENDING (no stock touched)
    approve_transfer()  -> APPROVED + committed transfer operation
    decline_transfer()  -> DECLINED (no stock touched)

Rules:
- The approver picks the clearance type; it may override what was asked.
- FULL approval moves the source stock as read (under lock) at approval
  time, not the stock at request time.
- PARTIAL approval moves arrived_quantity when given, else what was asked.
- auto_approve creates and approves in one transaction.
- Approval commits through ledger.commit_operation(), the same path as a
  directly submitted transfer, inside one transaction with the status change.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from django.utils import timezone

from inventory.models import Item
from inventory.services.stock_ledger import ZERO
from stockops.catalog import ClearanceType
from stockops.models import TransferRequest, TransferRequestConversion
from stockops.services.codes import generate_transfer_code
from stockops.services.exceptions import (
    OperationValidationError,
    TransferRequestNotFoundError,
)
from stockops.services.ledger import (
    CommitResult,
    commit_operation,
    run_ledger_transaction,
)
from stockops.services.requests import (
    ConversionLine,
    OperationMetadata,
    TransferFull,
    TransferPartial,
    normalize_conversions,
    parse_quantity,
)
from stockops.services.transfer_lifecycle import validate_transition
from store.models import Store

logger = logging.getLogger(__name__)

FULL_SENTINEL = "FULL"


def _parse_requested_quantity(quantity) -> tuple[Optional[Decimal], bool]:
    if isinstance(quantity, str) and quantity.strip().upper() == FULL_SENTINEL:
        return None, True
    if quantity in (None, ""):
        return None, False

    return parse_quantity(quantity, field="quantity"), False


def request_transfer(
    *,
    source_store_id,
    destination_store_id,
    item_id,
    quantity,
    conversions=(),
    convert: bool = False,
    actor=None,
    comments: str = "",
    auto_approve: bool = False,
    clearance_type: Optional[str] = None,
) -> TransferRequest:
    """
    Create a PENDING transfer request.

    quantity: a positive number, or "FULL" for all source stock at approval.
    auto_approve: approve immediately (clearance_type defaults to the
    requested mode).
    """
    requested, is_full = _parse_requested_quantity(quantity)
    lines = normalize_conversions(conversions) if convert else ()

    errors = []
    source = Store.objects.filter(pk=source_store_id).first() if source_store_id else None
    destination = Store.objects.filter(pk=destination_store_id).first() if destination_store_id else None
    item = Item.objects.filter(pk=item_id).first() if item_id else None

    if source is None:
        errors.append("Select a valid source store.")
    if destination is None:
        errors.append("Select a valid destination store.")
    if source is not None and destination is not None and source.pk == destination.pk:
        errors.append("Source and destination stores must differ.")
    if item is None:
        errors.append("Select a valid item.")

    if convert:
        if not lines:
            errors.append("Add at least one conversion for the destination store.")
    elif not is_full and (requested is None or requested <= 0):
        errors.append('Quantity must be greater than 0 (or "FULL").')

    dest_ids = {line.dest_item_id for line in lines}
    for index, line in enumerate(lines, start=1):
        if line.dest_item_id is None:
            errors.append(f"Conversion {index}: select a destination item.")
        if line.quantity <= 0:
            errors.append(f"Conversion {index}: quantity must be greater than 0.")
    known = set(Item.objects.filter(pk__in=dest_ids - {None}).values_list("id", flat=True))
    for missing in sorted(str(m) for m in (dest_ids - {None}) - known):
        errors.append(f"Unknown item: {missing}")

    if errors:
        raise OperationValidationError(errors)

    def _create():
        transfer = TransferRequest.objects.create(
            code=generate_transfer_code(),
            source_store=source,
            destination_store=destination,
            item=item,
            requested_quantity=requested,
            is_full_request=is_full,
            convert=convert,
            comments=comments or "",
            requested_by=actor,
        )
        TransferRequestConversion.objects.bulk_create(
            [
                TransferRequestConversion(
                    request=transfer,
                    dest_item_id=line.dest_item_id,
                    dest_quantity=line.quantity,
                )
                for line in lines
            ]
        )

        logger.info(
            "Transfer requested",
            extra={
                "transfer_code": transfer.code,
                "source_store": source.code,
                "destination_store": destination.code,
                "actor_id": getattr(actor, "pk", None),
            },
        )

        if auto_approve:
            # Same transaction: a failed approval leaves no PENDING request behind.
            _approve_locked(
                transfer.pk,
                clearance_type=clearance_type or (ClearanceType.FULL if is_full else ClearanceType.PARTIAL),
                actor=actor,
            )
            transfer.refresh_from_db()
        return transfer

    return run_ledger_transaction(_create, label="Transfer request")


def build_transfer_operation(transfer: TransferRequest, *, clearance_type: str, arrived_quantity=None):
    """
    Translate a transfer request + the approver's clearance choice into
    the operation variant that gets committed.
    """
    lines = tuple(
        ConversionLine(dest_item_id=c.dest_item_id, quantity=c.dest_quantity)
        for c in transfer.conversions.all()
    )

    if clearance_type == ClearanceType.FULL:
        # Unweighed unless the approver entered what actually arrived.
        main = None
        if arrived_quantity not in (None, ""):
            main = parse_quantity(arrived_quantity, field="arrived_quantity")
        return TransferFull(
            transfer.source_store_id,
            transfer.item_id,
            destination_store_id=transfer.destination_store_id,
            main_quantity=main,
            convert=transfer.convert,
            conversions=lines,
        )

    if clearance_type == ClearanceType.PARTIAL:
        # The approver may move a different amount than was asked for.
        quantity = transfer.requested_quantity
        if arrived_quantity not in (None, ""):
            quantity = parse_quantity(arrived_quantity, field="arrived_quantity")
        if quantity is None and not transfer.convert:
            raise OperationValidationError(
                "A FULL request approved as PARTIAL needs arrived_quantity (the amount to move)."
            )
        return TransferPartial(
            transfer.source_store_id,
            transfer.item_id,
            destination_store_id=transfer.destination_store_id,
            main_quantity=quantity or ZERO,
            convert=transfer.convert,
            conversions=lines,
        )

    raise OperationValidationError("Clearance type must be FULL or PARTIAL.")


def _lock_transfer(transfer_id) -> TransferRequest:
    transfer = (
        TransferRequest.objects.select_for_update()
        .filter(pk=transfer_id)
        .first()
    )
    if transfer is None:
        raise TransferRequestNotFoundError("Transfer request not found.")
    return transfer


def _approve_locked(transfer_id, *, clearance_type: str, actor=None, arrived_quantity=None) -> CommitResult:
    """
    Approval body; runs inside the caller's transaction.
    """
    transfer = _lock_transfer(transfer_id)
    validate_transition(transfer=transfer, target_status=TransferRequest.STATUS_APPROVED)

    request = build_transfer_operation(
        transfer,
        clearance_type=clearance_type,
        arrived_quantity=arrived_quantity,
    )
    result = commit_operation(
        request,
        actor=actor,
        metadata=OperationMetadata(comments=f"Transfer {transfer.code}"),
    )

    transfer.status = TransferRequest.STATUS_APPROVED
    transfer.clearance_type = clearance_type
    transfer.operation = result.operation
    transfer.decided_by = actor
    transfer.decided_at = timezone.now()
    transfer.save(
        update_fields=["status", "clearance_type", "operation", "decided_by", "decided_at"]
    )

    logger.info(
        "Transfer approved",
        extra={
            "transfer_code": transfer.code,
            "operation_code": result.operation.code,
            "clearance_type": clearance_type,
            "actor_id": getattr(actor, "pk", None),
        },
    )
    return result


def approve_transfer(
    transfer_id,
    *,
    clearance_type: str,
    actor=None,
    arrived_quantity=None,
) -> CommitResult:
    """
    Approve a PENDING request and commit the transfer operation.
    """
    return run_ledger_transaction(
        lambda: _approve_locked(
            transfer_id,
            clearance_type=clearance_type,
            actor=actor,
            arrived_quantity=arrived_quantity,
        ),
        label="Transfer approval",
    )


def decline_transfer(transfer_id, *, reason: str, actor=None) -> TransferRequest:
    """
    Decline a PENDING request. Requires a reason; never touches stock.
    """
    reason = (reason or "").strip()
    if not reason:
        raise OperationValidationError("A reason is required to decline a transfer.")

    def _decline():
        transfer = _lock_transfer(transfer_id)
        validate_transition(transfer=transfer, target_status=TransferRequest.STATUS_DECLINED)

        transfer.status = TransferRequest.STATUS_DECLINED
        transfer.decline_reason = reason
        transfer.decided_by = actor
        transfer.decided_at = timezone.now()
        transfer.save(update_fields=["status", "decline_reason", "decided_by", "decided_at"])

        logger.info(
            "Transfer declined",
            extra={"transfer_code": transfer.code, "actor_id": getattr(actor, "pk", None)},
        )
        return transfer

    return run_ledger_transaction(_decline, label="Transfer decline")
