# stockops/models/transfer.py

"""
STORE-TO-STORE TRANSFER REQUEST

Lifecycle: PENDING -> APPROVED | DECLINED (both terminal).
Transitions are enforced by stockops.services.transfer_lifecycle.

requested_quantity is None when the request is for the whole source
stock (is_full_request=True) or only carries conversion lines. The amount actually moved is fixed only at
approval time, from the source stock at that instant.
"""

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q

from stockops.catalog import ClearanceType


class TransferRequest(models.Model):
    STATUS_PENDING = "PENDING"
    STATUS_APPROVED = "APPROVED"
    STATUS_DECLINED = "DECLINED"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_DECLINED, "Declined"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=32, unique=True)

    source_store = models.ForeignKey(
        "store.Store",
        on_delete=models.PROTECT,
        related_name="outgoing_transfer_requests",
    )
    destination_store = models.ForeignKey(
        "store.Store",
        on_delete=models.PROTECT,
        related_name="incoming_transfer_requests",
    )
    item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="transfer_requests",
    )

    requested_quantity = models.DecimalField(max_digits=14, decimal_places=3, null=True, blank=True)
    is_full_request = models.BooleanField(default=False)
    convert = models.BooleanField(default=False)

    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True,
    )

    clearance_type = models.CharField(
        max_length=8,
        choices=ClearanceType.choices,
        null=True,
        blank=True,
        help_text="Chosen by the approver.",
    )

    comments = models.TextField(blank=True)
    decline_reason = models.TextField(blank=True)

    operation = models.OneToOneField(
        "stockops.StockOperation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transfer_request",
    )

    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_transfer_requests",
    )
    requested_at = models.DateTimeField(auto_now_add=True)

    decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_transfer_decisions",
    )
    decided_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-requested_at"]
        constraints = [
            models.CheckConstraint(
                condition=~Q(source_store=models.F("destination_store")),
                name="transfer_request_distinct_stores",
            ),
            models.CheckConstraint(
                condition=Q(is_full_request=True) | Q(requested_quantity__isnull=False) | Q(convert=True),
                name="transfer_request_quantity_or_full",
            ),
        ]

    @property
    def requested_display(self) -> str:
        if self.is_full_request:
            return "FULL"
        if self.requested_quantity is None:
            return "CONVERSION"
        return str(self.requested_quantity)

    def __str__(self):
        return f"{self.code} | {self.status}"


class TransferRequestConversion(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    request = models.ForeignKey(
        TransferRequest,
        on_delete=models.CASCADE,
        related_name="conversions",
    )
    dest_item = models.ForeignKey(
        "inventory.Item",
        on_delete=models.PROTECT,
        related_name="+",
    )
    dest_quantity = models.DecimalField(max_digits=14, decimal_places=3)

    class Meta:
        ordering = ["id"]
