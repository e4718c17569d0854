# inventory/models/stock_movement.py

"""
CANONICAL INVENTORY LEDGER

Immutable inventory ledger entry, one per applied stock delta.

GUARANTEES:
- Append-only (no updates, no deletes)
- Created ONCE, never edited
- Movement direction validated against the sign of the delta
- OPERATION / REVERSAL movements must reference a stock operation
- balance_after snapshots the stock row right after the delta
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        IN = "IN", "Stock In"
        OUT = "OUT", "Stock Out"

    class Reason(models.TextChoices):
        OPENING = "OPENING", "Opening Balance"
        OPERATION = "OPERATION", "Stock Operation"
        REVERSAL = "REVERSAL", "Operation Reversal"

    OPERATION_REASONS = {Reason.OPERATION, Reason.REVERSAL}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="stock_movements",
    )
    store = models.ForeignKey(
        "store.Store",
        on_delete=models.PROTECT,
        related_name="stock_movements",
    )

    movement_type = models.CharField(max_length=3, choices=MovementType.choices)
    reason = models.CharField(max_length=20, choices=Reason.choices)

    # Always positive; direction lives in movement_type.
    quantity = models.DecimalField(max_digits=14, decimal_places=3)

    balance_after = models.DecimalField(max_digits=14, decimal_places=3)

    operation = models.ForeignKey(
        "stockops.StockOperation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["reason"], name="inv_move_reason_idx"),
            models.Index(fields=["item", "store", "created_at"], name="inv_move_item_store_idx"),
            models.Index(fields=["operation", "created_at"], name="inv_move_operation_idx"),
        ]

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError("quantity must be greater than zero")

        if self.reason in self.OPERATION_REASONS and not self.operation_id:
            raise ValidationError(f"{self.reason} movements must reference an operation")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    @property
    def signed_quantity(self):
        if self.movement_type == self.MovementType.OUT:
            return -self.quantity
        return self.quantity

    def __str__(self):
        return f"{self.item_id} | {self.reason} | {self.signed_quantity}"
