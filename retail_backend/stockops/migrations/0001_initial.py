"""
======================================================
PATH: stockops/migrations/0001_initial.py
======================================================
MIGRATION: CREATE stock operation ledger tables

- StockOperation (append-only header, soft delete via is_active)
- StockOperationItem / ConversionEntry (immutable lines)
- OperationReversal (reversal fact)
- TransferRequest (+ conversions)
- LorryReturn
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion

QTY = {"max_digits": 14, "decimal_places": 3}

KIND_CHOICES = [
    (1, "Full Clear"),
    (2, "Partial Clear"),
    (3, "Full Clear + Sale"),
    (4, "Partial Clear + Sale"),
    (5, "Store Transfer (Partial)"),
    (6, "Store Transfer (Full)"),
    (7, "Partial Clear + Lorry"),
    (8, "Full Clear + Lorry"),
    (9, "Item Conversion"),
    (10, "Cash Float Adjustment"),
    (11, "Stock Return"),
]

CLEARANCE_CHOICES = [("FULL", "Full"), ("PARTIAL", "Partial")]


def _uuid_pk():
    return (
        "id",
        models.UUIDField(
            primary_key=True,
            default=uuid.uuid4,
            editable=False,
            serialize=False,
        ),
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("store", "0001_initial"),
        ("inventory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="StockOperation",
            fields=[
                _uuid_pk(),
                ("code", models.CharField(max_length=64, unique=True)),
                ("kind", models.PositiveSmallIntegerField(choices=KIND_CHOICES, db_index=True)),
                (
                    "clearance_type",
                    models.CharField(max_length=8, choices=CLEARANCE_CHOICES, null=True, blank=True),
                ),
                ("is_direct_return", models.BooleanField(default=False)),
                ("discrepancy", models.DecimalField(null=True, blank=True, **QTY)),
                ("sell_price", models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)),
                ("bill_code", models.CharField(max_length=64, null=True, blank=True, unique=True)),
                ("bill_amount", models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)),
                ("customer_name", models.CharField(max_length=255, blank=True)),
                ("customer_contact", models.CharField(max_length=64, blank=True)),
                ("cash_amount", models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)),
                ("lorry_number", models.CharField(max_length=32, blank=True)),
                ("driver_name", models.CharField(max_length=255, blank=True)),
                ("lorry_destination", models.CharField(max_length=255, blank=True)),
                ("trip_id", models.CharField(max_length=50, null=True, blank=True, db_index=True)),
                ("terminal_code", models.CharField(max_length=16, blank=True)),
                ("local_id", models.CharField(max_length=64, null=True, blank=True)),
                ("comments", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("is_active", models.BooleanField(default=True, db_index=True)),
                (
                    "store",
                    models.ForeignKey(
                        to="store.store",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_operations",
                    ),
                ),
                (
                    "destination_store",
                    models.ForeignKey(
                        to="store.store",
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="incoming_stock_operations",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        to="inventory.item",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_operations",
                    ),
                ),
                (
                    "reference",
                    models.ForeignKey(
                        to="stockops.stockoperation",
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="returns",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_operations",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="stockoperation",
            constraint=models.UniqueConstraint(
                fields=["local_id"],
                condition=models.Q(local_id__isnull=False) & ~models.Q(local_id=""),
                name="uniq_stock_operation_local_id",
            ),
        ),
        migrations.AddIndex(
            model_name="stockoperation",
            index=models.Index(fields=["store", "created_at"], name="stockop_store_created_idx"),
        ),
        migrations.AddIndex(
            model_name="stockoperation",
            index=models.Index(fields=["kind", "is_active"], name="stockop_kind_active_idx"),
        ),
        migrations.CreateModel(
            name="StockOperationItem",
            fields=[
                _uuid_pk(),
                (
                    "role",
                    models.CharField(
                        max_length=12,
                        choices=[("SOURCE", "Source"), ("DESTINATION", "Destination")],
                    ),
                ),
                ("previous_stock", models.DecimalField(**QTY)),
                ("main_quantity", models.DecimalField(default=Decimal("0.000"), **QTY)),
                ("sold_quantity", models.DecimalField(default=Decimal("0.000"), **QTY)),
                ("converted_quantity", models.DecimalField(default=Decimal("0.000"), **QTY)),
                ("removed_quantity", models.DecimalField(default=Decimal("0.000"), **QTY)),
                ("added_quantity", models.DecimalField(default=Decimal("0.000"), **QTY)),
                ("resulting_stock", models.DecimalField(**QTY)),
                (
                    "operation",
                    models.ForeignKey(
                        to="stockops.stockoperation",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        to="inventory.item",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        to="store.store",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                    ),
                ),
            ],
            options={
                "ordering": ["role", "id"],
            },
        ),
        migrations.AddConstraint(
            model_name="stockoperationitem",
            constraint=models.UniqueConstraint(
                fields=["operation", "item", "store", "role"],
                name="uniq_stockop_item_leg",
            ),
        ),
        migrations.CreateModel(
            name="ConversionEntry",
            fields=[
                _uuid_pk(),
                ("dest_quantity", models.DecimalField(**QTY)),
                (
                    "operation",
                    models.ForeignKey(
                        to="stockops.stockoperation",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="conversions",
                    ),
                ),
                (
                    "source_item",
                    models.ForeignKey(
                        to="inventory.item",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                    ),
                ),
                (
                    "dest_item",
                    models.ForeignKey(
                        to="inventory.item",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                    ),
                ),
                (
                    "dest_store",
                    models.ForeignKey(
                        to="store.store",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.AddConstraint(
            model_name="conversionentry",
            constraint=models.CheckConstraint(
                condition=models.Q(dest_quantity__gt=0),
                name="stockop_conversion_qty_positive",
            ),
        ),
        migrations.CreateModel(
            name="OperationReversal",
            fields=[
                _uuid_pk(),
                ("reason", models.TextField(blank=True)),
                ("applied_deltas", models.JSONField(default=list)),
                ("reversed_at", models.DateTimeField(auto_now_add=True)),
                (
                    "operation",
                    models.OneToOneField(
                        to="stockops.stockoperation",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversal",
                    ),
                ),
                (
                    "reversed_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_operation_reversals",
                    ),
                ),
            ],
            options={
                "ordering": ["-reversed_at"],
            },
        ),
        migrations.CreateModel(
            name="TransferRequest",
            fields=[
                _uuid_pk(),
                ("code", models.CharField(max_length=32, unique=True)),
                ("requested_quantity", models.DecimalField(null=True, blank=True, **QTY)),
                ("is_full_request", models.BooleanField(default=False)),
                ("convert", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(
                        max_length=10,
                        choices=[
                            ("PENDING", "Pending"),
                            ("APPROVED", "Approved"),
                            ("DECLINED", "Declined"),
                        ],
                        default="PENDING",
                        db_index=True,
                    ),
                ),
                (
                    "clearance_type",
                    models.CharField(
                        max_length=8,
                        choices=CLEARANCE_CHOICES,
                        null=True,
                        blank=True,
                        help_text="Chosen by the approver.",
                    ),
                ),
                ("comments", models.TextField(blank=True)),
                ("decline_reason", models.TextField(blank=True)),
                ("requested_at", models.DateTimeField(auto_now_add=True)),
                ("decided_at", models.DateTimeField(null=True, blank=True)),
                (
                    "source_store",
                    models.ForeignKey(
                        to="store.store",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="outgoing_transfer_requests",
                    ),
                ),
                (
                    "destination_store",
                    models.ForeignKey(
                        to="store.store",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="incoming_transfer_requests",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        to="inventory.item",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfer_requests",
                    ),
                ),
                (
                    "operation",
                    models.OneToOneField(
                        to="stockops.stockoperation",
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfer_request",
                    ),
                ),
                (
                    "requested_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_transfer_requests",
                    ),
                ),
                (
                    "decided_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_transfer_decisions",
                    ),
                ),
            ],
            options={
                "ordering": ["-requested_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="transferrequest",
            constraint=models.CheckConstraint(
                condition=~models.Q(source_store=models.F("destination_store")),
                name="transfer_request_distinct_stores",
            ),
        ),
        migrations.AddConstraint(
            model_name="transferrequest",
            constraint=models.CheckConstraint(
                condition=(
                    models.Q(is_full_request=True)
                    | models.Q(requested_quantity__isnull=False)
                    | models.Q(convert=True)
                ),
                name="transfer_request_quantity_or_full",
            ),
        ),
        migrations.CreateModel(
            name="TransferRequestConversion",
            fields=[
                _uuid_pk(),
                ("dest_quantity", models.DecimalField(**QTY)),
                (
                    "request",
                    models.ForeignKey(
                        to="stockops.transferrequest",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="conversions",
                    ),
                ),
                (
                    "dest_item",
                    models.ForeignKey(
                        to="inventory.item",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="LorryReturn",
            fields=[
                _uuid_pk(),
                ("return_quantity", models.DecimalField(**QTY)),
                ("wastage_quantity", models.DecimalField(default=Decimal("0.000"), **QTY)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "operation",
                    models.ForeignKey(
                        to="stockops.stockoperation",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="lorry_returns",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="lorry_returns",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
    ]
