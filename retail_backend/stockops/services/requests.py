# stockops/services/requests.py

"""
======================================================
PATH: stockops/services/requests.py
======================================================
OPERATION REQUESTS (ONE VARIANT PER KIND)

Each operation kind has its own frozen dataclass carrying exactly the
inputs that kind understands. The calculator, validator and commit path
dispatch on the variant type through explicit per-kind tables.

Conventions:
- ids are UUIDs (store_id, item_id, dest_item_id, ...)
- quantities are Decimal (3dp); prices and cash amounts are Decimal (2dp)
- `convert` is the "conversion enabled" switch; when False, any
  conversion lines are ignored
- Transfer variants use store_id as the SOURCE store
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Optional

from inventory.services.stock_ledger import ZERO, StockLedgerError, to_quantity
from stockops.catalog import (
    ClearanceType,
    OperationKind,
    get_spec,
    require_complete,
)
from stockops.services.exceptions import OperationValidationError

MONEY_ZERO = Decimal("0.00")
MONEY_PLACES = Decimal("0.01")


# ============================================================
# SHARED VALUE OBJECTS
# ============================================================


@dataclass(frozen=True)
class ConversionLine:
    """Quantity redirected into another item instead of being wasted."""

    dest_item_id: Optional[uuid.UUID]
    quantity: Decimal


@dataclass(frozen=True)
class CustomerInfo:
    name: str = ""
    contact: str = ""


@dataclass(frozen=True)
class LorryInfo:
    lorry_number: str = ""
    driver_name: str = ""
    destination: str = ""


@dataclass(frozen=True)
class OperationMetadata:
    """
    Caller context that travels beside the request. Never used in stock math.
    """

    terminal_code: str = ""
    comments: str = ""
    local_id: str = ""
    issue_trip_id: bool = False


# ============================================================
# VARIANTS
# ============================================================


@dataclass(frozen=True)
class _ItemOperation:
    store_id: Optional[uuid.UUID]
    item_id: Optional[uuid.UUID]

    kind: ClassVar[OperationKind]

    @property
    def spec(self):
        return get_spec(self.kind)

    @property
    def clearance_type(self) -> Optional[str]:
        return self.spec.clearance

    @property
    def effective_conversions(self) -> tuple:
        if getattr(self, "convert", False):
            return tuple(getattr(self, "conversions", ()))
        return ()

    @property
    def destination_store_for_conversions(self) -> Optional[uuid.UUID]:
        return self.store_id


@dataclass(frozen=True)
class FullClear(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.FULL_CLEAR

    main_quantity: Decimal = ZERO
    convert: bool = False
    conversions: tuple = ()


@dataclass(frozen=True)
class PartialClear(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.PARTIAL_CLEAR

    main_quantity: Decimal = ZERO
    convert: bool = False
    conversions: tuple = ()


@dataclass(frozen=True)
class FullClearSale(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.FULL_CLEAR_SALE

    sold_quantity: Decimal = ZERO
    sell_price: Decimal = MONEY_ZERO
    customer: CustomerInfo = CustomerInfo()
    convert: bool = False
    conversions: tuple = ()


@dataclass(frozen=True)
class PartialClearSale(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.PARTIAL_CLEAR_SALE

    sold_quantity: Decimal = ZERO
    sell_price: Decimal = MONEY_ZERO
    customer: CustomerInfo = CustomerInfo()
    convert: bool = False
    conversions: tuple = ()


@dataclass(frozen=True)
class TransferPartial(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.TRANSFER_PARTIAL

    destination_store_id: Optional[uuid.UUID] = None
    main_quantity: Decimal = ZERO
    convert: bool = False
    conversions: tuple = ()

    @property
    def destination_store_for_conversions(self):
        return self.destination_store_id


@dataclass(frozen=True)
class TransferFull(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.TRANSFER_FULL

    destination_store_id: Optional[uuid.UUID] = None
    # Weighed quantity on arrival; None means "whatever was released".
    main_quantity: Optional[Decimal] = None
    convert: bool = False
    conversions: tuple = ()

    @property
    def destination_store_for_conversions(self):
        return self.destination_store_id


@dataclass(frozen=True)
class PartialClearLorry(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.PARTIAL_CLEAR_LORRY

    main_quantity: Decimal = ZERO
    lorry: LorryInfo = LorryInfo()
    convert: bool = False
    conversions: tuple = ()


@dataclass(frozen=True)
class FullClearLorry(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.FULL_CLEAR_LORRY

    main_quantity: Decimal = ZERO
    lorry: LorryInfo = LorryInfo()
    convert: bool = False
    conversions: tuple = ()


@dataclass(frozen=True)
class ItemConversion(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.ITEM_CONVERSION

    mode: str = ClearanceType.PARTIAL
    conversions: tuple = ()

    @property
    def clearance_type(self):
        return self.mode

    @property
    def effective_conversions(self):
        return tuple(self.conversions)


@dataclass(frozen=True)
class CashFloatAdjustment(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.CASH_FLOAT_ADJUSTMENT

    amount: Decimal = MONEY_ZERO


@dataclass(frozen=True)
class StockReturn(_ItemOperation):
    kind: ClassVar[OperationKind] = OperationKind.STOCK_RETURN

    return_quantity: Decimal = ZERO
    reference_id: Optional[uuid.UUID] = None
    direct: bool = False
    convert: bool = False
    conversions: tuple = ()


OPERATION_VARIANTS = (
    FullClear,
    PartialClear,
    FullClearSale,
    PartialClearSale,
    TransferPartial,
    TransferFull,
    PartialClearLorry,
    FullClearLorry,
    ItemConversion,
    CashFloatAdjustment,
    StockReturn,
)

VARIANT_BY_KIND = {variant.kind: variant for variant in OPERATION_VARIANTS}
require_complete(VARIANT_BY_KIND.keys(), "operation request variants")

SALE_VARIANTS = (FullClearSale, PartialClearSale)
LORRY_VARIANTS = (FullClearLorry, PartialClearLorry)
TRANSFER_VARIANTS = (TransferFull, TransferPartial)


# ============================================================
# FACTORY
# ============================================================


def _as_uuid(value, *, field: str) -> Optional[uuid.UUID]:
    if value in (None, ""):
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise OperationValidationError(f"{field} must be a valid id.")


def parse_quantity(value, *, field: str = "quantity") -> Decimal:
    try:
        return to_quantity(value, field=field)
    except StockLedgerError as exc:
        raise OperationValidationError(str(exc)) from exc


def _as_money(value) -> Decimal:
    if value in (None, ""):
        return MONEY_ZERO
    return parse_quantity(value, field="amount").quantize(MONEY_PLACES)


def normalize_conversions(lines) -> tuple:
    """
    Accept ConversionLine objects or {"dest_item_id", "quantity"} dicts.
    """
    normalized = []
    for line in lines or ():
        if isinstance(line, ConversionLine):
            dest, qty = line.dest_item_id, line.quantity
        else:
            dest, qty = line.get("dest_item_id"), line.get("quantity")
        normalized.append(
            ConversionLine(
                dest_item_id=_as_uuid(dest, field="dest_item_id"),
                quantity=parse_quantity(qty),
            )
        )
    return tuple(normalized)


def build_operation_request(kind, **fields):
    """
    Build the variant for `kind` from a flat field dict (API payload shape).

    Unknown fields for the kind are ignored; that is what lets one command
    serializer feed every variant.
    """
    kind = OperationKind(int(kind))

    store_id = _as_uuid(fields.get("store_id"), field="store_id")
    item_id = _as_uuid(fields.get("item_id"), field="item_id")
    convert = bool(fields.get("convert", False))
    conversions = normalize_conversions(fields.get("conversions"))

    customer = CustomerInfo(
        name=(fields.get("customer_name") or "").strip(),
        contact=(fields.get("customer_contact") or "").strip(),
    )
    lorry = LorryInfo(
        lorry_number=(fields.get("lorry_number") or "").strip(),
        driver_name=(fields.get("driver_name") or "").strip(),
        destination=(fields.get("lorry_destination") or "").strip(),
    )

    main_quantity = parse_quantity(fields.get("main_quantity"), field="main_quantity")
    sold_quantity = parse_quantity(fields.get("sold_quantity"), field="sold_quantity")
    destination_store_id = _as_uuid(
        fields.get("destination_store_id"), field="destination_store_id"
    )

    builders = {
        OperationKind.FULL_CLEAR: lambda: FullClear(
            store_id, item_id, main_quantity=main_quantity, convert=convert, conversions=conversions,
        ),
        OperationKind.PARTIAL_CLEAR: lambda: PartialClear(
            store_id, item_id, main_quantity=main_quantity, convert=convert, conversions=conversions,
        ),
        OperationKind.FULL_CLEAR_SALE: lambda: FullClearSale(
            store_id, item_id,
            sold_quantity=sold_quantity,
            sell_price=_as_money(fields.get("sell_price")),
            customer=customer,
            convert=convert,
            conversions=conversions,
        ),
        OperationKind.PARTIAL_CLEAR_SALE: lambda: PartialClearSale(
            store_id, item_id,
            sold_quantity=sold_quantity,
            sell_price=_as_money(fields.get("sell_price")),
            customer=customer,
            convert=convert,
            conversions=conversions,
        ),
        OperationKind.TRANSFER_PARTIAL: lambda: TransferPartial(
            store_id, item_id,
            destination_store_id=destination_store_id,
            main_quantity=main_quantity,
            convert=convert,
            conversions=conversions,
        ),
        OperationKind.TRANSFER_FULL: lambda: TransferFull(
            store_id, item_id,
            destination_store_id=destination_store_id,
            main_quantity=(
                None if fields.get("main_quantity") in (None, "")
                else main_quantity
            ),
            convert=convert,
            conversions=conversions,
        ),
        OperationKind.PARTIAL_CLEAR_LORRY: lambda: PartialClearLorry(
            store_id, item_id, main_quantity=main_quantity, lorry=lorry, convert=convert, conversions=conversions,
        ),
        OperationKind.FULL_CLEAR_LORRY: lambda: FullClearLorry(
            store_id, item_id, main_quantity=main_quantity, lorry=lorry, convert=convert, conversions=conversions,
        ),
        OperationKind.ITEM_CONVERSION: lambda: ItemConversion(
            store_id, item_id,
            mode=fields.get("conversion_mode") or ClearanceType.PARTIAL,
            conversions=conversions,
        ),
        OperationKind.CASH_FLOAT_ADJUSTMENT: lambda: CashFloatAdjustment(
            store_id, item_id, amount=_as_money(fields.get("amount")),
        ),
        OperationKind.STOCK_RETURN: lambda: StockReturn(
            store_id, item_id,
            return_quantity=parse_quantity(fields.get("return_quantity"), field="return_quantity"),
            reference_id=_as_uuid(fields.get("reference_id"), field="reference_id"),
            direct=bool(fields.get("direct", False)),
            convert=convert,
            conversions=conversions,
        ),
    }
    require_complete(builders.keys(), "build_operation_request")

    return builders[kind]()
