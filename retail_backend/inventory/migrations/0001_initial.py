"""
======================================================
PATH: inventory/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Item, ItemStock, StockMovement

The StockMovement -> StockOperation link is added in 0002 because
stockops itself depends on this migration.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("store", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Item",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("code", models.CharField(max_length=64, unique=True, db_index=True)),
                ("name", models.CharField(max_length=255, db_index=True)),
                ("unit", models.CharField(max_length=16, default="kg")),
                (
                    "selling_price",
                    models.DecimalField(
                        max_digits=12,
                        decimal_places=2,
                        default=Decimal("0.00"),
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ItemStock",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                (
                    "quantity",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=3,
                        default=Decimal("0.000"),
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "item",
                    models.ForeignKey(
                        to="inventory.item",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_levels",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        to="store.store",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_levels",
                    ),
                ),
            ],
            options={
                "ordering": ["item", "store"],
            },
        ),
        migrations.AddConstraint(
            model_name="itemstock",
            constraint=models.UniqueConstraint(
                fields=["item", "store"],
                name="uniq_item_stock_per_store",
            ),
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                (
                    "movement_type",
                    models.CharField(
                        max_length=3,
                        choices=[("IN", "Stock In"), ("OUT", "Stock Out")],
                    ),
                ),
                (
                    "reason",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("OPENING", "Opening Balance"),
                            ("OPERATION", "Stock Operation"),
                            ("REVERSAL", "Operation Reversal"),
                        ],
                    ),
                ),
                ("quantity", models.DecimalField(max_digits=14, decimal_places=3)),
                ("balance_after", models.DecimalField(max_digits=14, decimal_places=3)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "item",
                    models.ForeignKey(
                        to="inventory.item",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        to="store.store",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        to=settings.AUTH_USER_MODEL,
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.AddIndex(
            model_name="stockmovement",
            index=models.Index(fields=["reason"], name="inv_move_reason_idx"),
        ),
        migrations.AddIndex(
            model_name="stockmovement",
            index=models.Index(fields=["item", "store", "created_at"], name="inv_move_item_store_idx"),
        ),
    ]
