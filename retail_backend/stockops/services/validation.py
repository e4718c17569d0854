# stockops/services/validation.py

"""
======================================================
PATH: stockops/services/validation.py
======================================================
SUBMITTABILITY RULES

Decides whether a request may be committed. Pure: no database access.
Database-backed checks (store/item existence, return references) live in
the commit path because they need a consistent read.

Rules per kind:
- every kind: store and item selected, no negative quantities,
  conversion lines need a destination item and a positive quantity
- Full Clear / Full Clear + Sale / Full Clear + Lorry: nothing else
- Partial Clear / Partial Clear + Lorry: main > 0 OR (conversion on AND >= 1 line)
- Partial Clear + Sale: sold > 0
- Item Conversion: mode FULL/PARTIAL and >= 1 line
- Transfer: destination store set and different from source;
  FULL always valid; PARTIAL needs >= 1 line (conversion on) or main > 0
- Stock Return: reference or direct mode; >= 1 line (conversion on) or return > 0
- Cash Float Adjustment: nothing else
"""

from __future__ import annotations

from stockops.catalog import ClearanceType, require_complete
from stockops.services.exceptions import OperationValidationError
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


def _nothing_more(request) -> list[str]:
    return []


def _partial_clear(request) -> list[str]:
    if request.main_quantity > 0:
        return []
    if request.convert and request.conversions:
        return []
    return ["Enter a quantity greater than 0 or add at least one conversion."]


def _partial_sale(request) -> list[str]:
    if request.sold_quantity > 0:
        return []
    return ["Sold quantity must be greater than 0."]


def _item_conversion(request) -> list[str]:
    errors = []
    if request.mode not in ClearanceType.values:
        errors.append("Conversion type must be FULL or PARTIAL.")
    if not request.conversions:
        errors.append("Add at least one conversion destination.")
    return errors


def _transfer_partial(request) -> list[str]:
    if request.convert:
        if not request.conversions:
            return ["Add at least one conversion for the destination store."]
        return []
    if request.main_quantity > 0:
        return []
    return ["Transfer quantity must be greater than 0."]


def _stock_return(request) -> list[str]:
    errors = []
    if not request.direct and request.reference_id is None:
        errors.append("Select the operation being returned, or choose a direct return.")
    if request.direct and request.reference_id is not None:
        errors.append("A direct return cannot also reference an operation.")

    if request.convert:
        if not request.conversions:
            errors.append("Add at least one conversion for the returned stock.")
    elif request.return_quantity <= 0:
        errors.append("Return quantity must be greater than 0.")
    return errors


_KIND_RULES = {
    FullClear: _nothing_more,
    PartialClear: _partial_clear,
    FullClearSale: _nothing_more,
    PartialClearSale: _partial_sale,
    TransferPartial: _transfer_partial,
    TransferFull: _nothing_more,
    PartialClearLorry: _partial_clear,
    FullClearLorry: _nothing_more,
    ItemConversion: _item_conversion,
    CashFloatAdjustment: _nothing_more,
    StockReturn: _stock_return,
}
require_complete((variant.kind for variant in _KIND_RULES), "validator")


_QUANTITY_FIELDS = (
    ("main_quantity", "Main quantity"),
    ("sold_quantity", "Sold quantity"),
    ("return_quantity", "Return quantity"),
    ("sell_price", "Sell price"),
)


def _common_errors(request) -> list[str]:
    errors = []

    if request.store_id is None:
        errors.append("Select a store.")
    if request.item_id is None:
        errors.append("Select an item.")

    for attr, label in _QUANTITY_FIELDS:
        value = getattr(request, attr, None)
        if value is not None and value < 0:
            errors.append(f"{label} cannot be negative.")

    for index, line in enumerate(request.effective_conversions, start=1):
        if line.dest_item_id is None:
            errors.append(f"Conversion {index}: select a destination item.")
        if line.quantity <= 0:
            errors.append(f"Conversion {index}: quantity must be greater than 0.")

    if isinstance(request, TRANSFER_VARIANTS):
        if request.destination_store_id is None:
            errors.append("Select a destination store.")
        elif request.destination_store_id == request.store_id:
            errors.append("Source and destination stores must differ.")

    return errors


def validation_errors(request) -> list[str]:
    """
    All reasons the request cannot be submitted (empty list = submittable).
    """
    rule = _KIND_RULES.get(type(request))
    if rule is None:
        return [f"Unsupported operation request: {type(request).__name__}"]

    return _common_errors(request) + rule(request)


def is_submittable(request) -> bool:
    return not validation_errors(request)


def ensure_submittable(request) -> None:
    errors = validation_errors(request)
    if errors:
        raise OperationValidationError(errors)
