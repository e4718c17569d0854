# stockops/catalog.py

"""
======================================================
PATH: stockops/catalog.py
======================================================
OPERATION TYPE CATALOG

Closed enumeration of the eleven stock operation kinds, plus the static
facts each kind declares. Numbering matches the codes printed on terminal
receipts, so it must never be reused or renumbered.

Adding a kind:
- add it to OperationKind and CATALOG
- bump CATALOG_VERSION
- extend every per-kind table (request factory, calculator, validator);
  require_complete() refuses to import a table that misses a kind
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from django.core.exceptions import ImproperlyConfigured
from django.db import models

CATALOG_VERSION = 1


class OperationKind(models.IntegerChoices):
    FULL_CLEAR = 1, "Full Clear"
    PARTIAL_CLEAR = 2, "Partial Clear"
    FULL_CLEAR_SALE = 3, "Full Clear + Sale"
    PARTIAL_CLEAR_SALE = 4, "Partial Clear + Sale"
    TRANSFER_PARTIAL = 5, "Store Transfer (Partial)"
    TRANSFER_FULL = 6, "Store Transfer (Full)"
    PARTIAL_CLEAR_LORRY = 7, "Partial Clear + Lorry"
    FULL_CLEAR_LORRY = 8, "Full Clear + Lorry"
    ITEM_CONVERSION = 9, "Item Conversion"
    CASH_FLOAT_ADJUSTMENT = 10, "Cash Float Adjustment"
    STOCK_RETURN = 11, "Stock Return"


class ClearanceType(models.TextChoices):
    FULL = "FULL", "Full"
    PARTIAL = "PARTIAL", "Partial"


# Which store's ledger is debited.
SOURCE_OPERATING_STORE = "operating_store"
SOURCE_TRANSFER_ORIGIN = "transfer_origin"

# Clearance declared by the kind itself, or chosen per operation.
CLEARANCE_SELECTABLE = "SELECTABLE"


@dataclass(frozen=True)
class KindSpec:
    kind: OperationKind
    source_store: str
    clearance: Optional[str]  # FULL / PARTIAL / SELECTABLE / None
    sale: bool = False
    conversions: bool = False
    dual_store: bool = False
    lorry: bool = False
    trip_eligible: bool = False
    returnable: bool = False
    affects_stock: bool = True

    @property
    def label(self) -> str:
        return self.kind.label

    @property
    def has_full_variant(self) -> bool:
        return self.clearance in (ClearanceType.FULL, CLEARANCE_SELECTABLE)

    def as_dict(self) -> dict:
        return {
            "kind": int(self.kind),
            "name": self.kind.name,
            "label": self.label,
            "source_store": self.source_store,
            "clearance": self.clearance,
            "has_full_variant": self.has_full_variant,
            "sale": self.sale,
            "conversions": self.conversions,
            "dual_store": self.dual_store,
            "lorry": self.lorry,
            "trip_eligible": self.trip_eligible,
            "returnable": self.returnable,
            "affects_stock": self.affects_stock,
        }


CATALOG: dict[OperationKind, KindSpec] = {
    OperationKind.FULL_CLEAR: KindSpec(
        kind=OperationKind.FULL_CLEAR,
        source_store=SOURCE_OPERATING_STORE,
        clearance=ClearanceType.FULL,
        conversions=True,
        trip_eligible=True,
        returnable=True,
    ),
    OperationKind.PARTIAL_CLEAR: KindSpec(
        kind=OperationKind.PARTIAL_CLEAR,
        source_store=SOURCE_OPERATING_STORE,
        clearance=ClearanceType.PARTIAL,
        conversions=True,
        trip_eligible=True,
        returnable=True,
    ),
    OperationKind.FULL_CLEAR_SALE: KindSpec(
        kind=OperationKind.FULL_CLEAR_SALE,
        source_store=SOURCE_OPERATING_STORE,
        clearance=ClearanceType.FULL,
        sale=True,
        conversions=True,
        trip_eligible=True,
        returnable=True,
    ),
    OperationKind.PARTIAL_CLEAR_SALE: KindSpec(
        kind=OperationKind.PARTIAL_CLEAR_SALE,
        source_store=SOURCE_OPERATING_STORE,
        clearance=ClearanceType.PARTIAL,
        sale=True,
        conversions=True,
        trip_eligible=True,
        returnable=True,
    ),
    OperationKind.TRANSFER_PARTIAL: KindSpec(
        kind=OperationKind.TRANSFER_PARTIAL,
        source_store=SOURCE_TRANSFER_ORIGIN,
        clearance=ClearanceType.PARTIAL,
        conversions=True,
        dual_store=True,
    ),
    OperationKind.TRANSFER_FULL: KindSpec(
        kind=OperationKind.TRANSFER_FULL,
        source_store=SOURCE_TRANSFER_ORIGIN,
        clearance=ClearanceType.FULL,
        conversions=True,
        dual_store=True,
    ),
    OperationKind.PARTIAL_CLEAR_LORRY: KindSpec(
        kind=OperationKind.PARTIAL_CLEAR_LORRY,
        source_store=SOURCE_OPERATING_STORE,
        clearance=ClearanceType.PARTIAL,
        conversions=True,
        lorry=True,
        trip_eligible=True,
    ),
    OperationKind.FULL_CLEAR_LORRY: KindSpec(
        kind=OperationKind.FULL_CLEAR_LORRY,
        source_store=SOURCE_OPERATING_STORE,
        clearance=ClearanceType.FULL,
        conversions=True,
        lorry=True,
        trip_eligible=True,
    ),
    OperationKind.ITEM_CONVERSION: KindSpec(
        kind=OperationKind.ITEM_CONVERSION,
        source_store=SOURCE_OPERATING_STORE,
        clearance=CLEARANCE_SELECTABLE,
        conversions=True,
    ),
    OperationKind.CASH_FLOAT_ADJUSTMENT: KindSpec(
        kind=OperationKind.CASH_FLOAT_ADJUSTMENT,
        source_store=SOURCE_OPERATING_STORE,
        clearance=None,
        affects_stock=False,
    ),
    OperationKind.STOCK_RETURN: KindSpec(
        kind=OperationKind.STOCK_RETURN,
        source_store=SOURCE_OPERATING_STORE,
        clearance=None,
        conversions=True,
    ),
}

RETURNABLE_KINDS = frozenset(k for k, spec in CATALOG.items() if spec.returnable)
LORRY_KINDS = frozenset(k for k, spec in CATALOG.items() if spec.lorry)
TRANSFER_KINDS = frozenset(k for k, spec in CATALOG.items() if spec.dual_store)


def get_spec(kind) -> KindSpec:
    return CATALOG[OperationKind(kind)]


def require_complete(kinds: Iterable, component: str) -> None:
    """
    Fail loudly if a per-kind dispatch table does not cover the catalog exactly.
    """
    covered = {OperationKind(k) for k in kinds}
    expected = set(OperationKind)

    missing = expected - covered
    if missing or len(covered) != len(expected):
        names = ", ".join(sorted(k.name for k in missing)) or "-"
        raise ImproperlyConfigured(
            f"{component} does not handle every operation kind (missing: {names})"
        )


require_complete(CATALOG.keys(), "CATALOG")
