# inventory/models/item.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Item(models.Model):
    """
    Represents a stocked, sellable item.

    STOCK MODEL (IMPORTANT):
    - Item itself does NOT store stock
    - Stock lives in ItemStock, one row per (item, store)
    - Only inventory.services.stock_ledger writes ItemStock.quantity
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=64, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    unit = models.CharField(max_length=16, default="kg")

    selling_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def clean(self):
        if self.selling_price is not None and self.selling_price < 0:
            raise ValidationError({"selling_price": "Selling price cannot be negative."})

    def stock_for(self, store) -> Decimal:
        """
        Current quantity at one store (0 when no row exists yet). Unlocked read.
        """
        row = self.stock_levels.filter(store=store).values_list("quantity", flat=True).first()
        return row if row is not None else Decimal("0.000")

    def __str__(self):
        return f"{self.code} - {self.name}"
