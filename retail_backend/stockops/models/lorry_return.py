# stockops/models/lorry_return.py

"""
LORRY RETURN (APPEND-ONLY)

Goods sent out on a lorry (Partial/Full Clear + Lorry) that came back.
Recording a return never changes stock; it only tracks what the lorry
actually delivered. Return status is derived from these rows.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class LorryReturn(models.Model):
    STATUS_PENDING = "PENDING"
    STATUS_PARTIAL = "PARTIAL_RETURN"
    STATUS_FULL = "FULLY_RETURNED"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    operation = models.ForeignKey(
        "stockops.StockOperation",
        on_delete=models.PROTECT,
        related_name="lorry_returns",
    )

    return_quantity = models.DecimalField(max_digits=14, decimal_places=3)
    wastage_quantity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0.000"),
    )

    notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="lorry_returns",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("LorryReturn records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("LorryReturn records are immutable and cannot be deleted")
