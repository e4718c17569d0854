# inventory/models/item_stock.py

"""
PER-STORE STOCK LEVEL

One row per (item, store). The quantity is signed: partial clears are
allowed to drive it below zero, which flags unrecorded intake rather
than a computed loss.
"""

import uuid
from decimal import Decimal

from django.db import models


class ItemStock(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="stock_levels",
    )
    store = models.ForeignKey(
        "store.Store",
        on_delete=models.PROTECT,
        related_name="stock_levels",
    )

    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0.000"),
    )

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["item", "store"]
        constraints = [
            models.UniqueConstraint(
                fields=["item", "store"],
                name="uniq_item_stock_per_store",
            ),
        ]

    def __str__(self):
        return f"{self.item_id} @ {self.store_id}: {self.quantity}"
