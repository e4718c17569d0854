# stockops/models/operation.py

"""
======================================================
PATH: stockops/models/operation.py
======================================================
STOCK OPERATION (APPEND-ONLY FACTS)

StockOperation
- Created once by the commit service
- The ONLY permitted update is is_active True -> False (reversal)
- Never deleted

StockOperationItem
- One row per (item, store) leg of the operation
- SOURCE: the debited item; keeps previous stock, main / sold / converted
  quantities and the gross removed quantity (signed: a return removes a
  negative amount)
- DESTINATION: unconverted transfer arrival

ConversionEntry
- Fan-out edge: quantity taken from source_item that landed in dest_item
  at dest_store instead of being wasted

OperationReversal
- New fact recorded when an operation is reversed (who, why, what deltas)

Lines, conversions and reversals are immutable.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from stockops.catalog import ClearanceType, OperationKind


class _ImmutableRow(models.Model):
    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError(f"{self.__class__.__name__} records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            f"{self.__class__.__name__} records are immutable and cannot be deleted"
        )


class StockOperation(models.Model):
    MUTABLE_FIELDS = {"is_active"}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=64, unique=True)

    kind = models.PositiveSmallIntegerField(choices=OperationKind.choices, db_index=True)

    clearance_type = models.CharField(
        max_length=8,
        choices=ClearanceType.choices,
        null=True,
        blank=True,
    )

    store = models.ForeignKey(
        "store.Store",
        on_delete=models.PROTECT,
        related_name="stock_operations",
    )
    destination_store = models.ForeignKey(
        "store.Store",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="incoming_stock_operations",
    )
    item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="stock_operations",
    )

    # Stock Return -> the operation being returned (None for direct returns)
    reference = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="returns",
    )
    is_direct_return = models.BooleanField(default=False)

    # Signed discrepancy for full variants: negative = wastage, positive = surplus
    discrepancy = models.DecimalField(max_digits=14, decimal_places=3, null=True, blank=True)

    # Sale variants
    sell_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    bill_code = models.CharField(max_length=64, null=True, blank=True, unique=True)
    bill_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    customer_name = models.CharField(max_length=255, blank=True)
    customer_contact = models.CharField(max_length=64, blank=True)

    # Cash float adjustment
    cash_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    # Lorry variants
    lorry_number = models.CharField(max_length=32, blank=True)
    driver_name = models.CharField(max_length=255, blank=True)
    lorry_destination = models.CharField(max_length=255, blank=True)

    trip_id = models.CharField(max_length=50, null=True, blank=True, db_index=True)
    terminal_code = models.CharField(max_length=16, blank=True)

    # Client-side id for idempotent resubmission from offline terminals
    local_id = models.CharField(max_length=64, null=True, blank=True)

    comments = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_operations",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["local_id"],
                condition=Q(local_id__isnull=False) & ~Q(local_id=""),
                name="uniq_stock_operation_local_id",
            ),
        ]
        indexes = [
            models.Index(fields=["store", "created_at"], name="stockop_store_created_idx"),
            models.Index(fields=["kind", "is_active"], name="stockop_kind_active_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            update_fields = kwargs.get("update_fields")
            if not update_fields or not set(update_fields) <= self.MUTABLE_FIELDS:
                raise ValidationError(
                    "StockOperation records are immutable (only is_active may change)"
                )
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockOperation records cannot be deleted; reverse them instead"
        )

    @property
    def kind_label(self) -> str:
        return OperationKind(self.kind).label

    @property
    def wastage(self) -> Decimal:
        """Loss as a positive number (0 when none)."""
        if self.discrepancy is not None and self.discrepancy < 0:
            return -self.discrepancy
        return Decimal("0.000")

    @property
    def surplus(self) -> Decimal:
        if self.discrepancy is not None and self.discrepancy > 0:
            return self.discrepancy
        return Decimal("0.000")

    def __str__(self):
        return f"{self.code} | {self.kind_label}"


class StockOperationItem(_ImmutableRow):
    class Role(models.TextChoices):
        SOURCE = "SOURCE", "Source"
        DESTINATION = "DESTINATION", "Destination"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    operation = models.ForeignKey(
        StockOperation,
        on_delete=models.PROTECT,
        related_name="items",
    )
    item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="+",
    )
    store = models.ForeignKey(
        "store.Store",
        on_delete=models.PROTECT,
        related_name="+",
    )

    role = models.CharField(max_length=12, choices=Role.choices)

    previous_stock = models.DecimalField(max_digits=14, decimal_places=3)
    main_quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))
    sold_quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))
    converted_quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))

    # SOURCE: gross quantity taken out (signed). DESTINATION: 0.
    removed_quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))
    # DESTINATION: unconverted quantity that arrived. SOURCE: 0.
    added_quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))

    resulting_stock = models.DecimalField(max_digits=14, decimal_places=3)

    class Meta:
        ordering = ["role", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["operation", "item", "store", "role"],
                name="uniq_stockop_item_leg",
            ),
        ]


class ConversionEntry(_ImmutableRow):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    operation = models.ForeignKey(
        StockOperation,
        on_delete=models.PROTECT,
        related_name="conversions",
    )
    source_item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="+",
    )
    dest_item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="+",
    )
    dest_store = models.ForeignKey(
        "store.Store",
        on_delete=models.PROTECT,
        related_name="+",
    )

    dest_quantity = models.DecimalField(max_digits=14, decimal_places=3)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(dest_quantity__gt=0),
                name="stockop_conversion_qty_positive",
            ),
        ]


class OperationReversal(_ImmutableRow):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    operation = models.OneToOneField(
        StockOperation,
        on_delete=models.PROTECT,
        related_name="reversal",
    )

    reason = models.TextField(blank=True)

    # [{"item_id", "store_id", "quantity"}] as applied (already inverted)
    applied_deltas = models.JSONField(default=list)

    reversed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_operation_reversals",
    )
    reversed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-reversed_at"]

    def __str__(self):
        return f"Reversal of {self.operation_id}"
