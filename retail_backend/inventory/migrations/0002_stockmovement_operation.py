"""
======================================================
PATH: inventory/migrations/0002_stockmovement_operation.py
======================================================
MIGRATION: LINK StockMovement -> stockops.StockOperation
"""

from __future__ import annotations

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    dependencies = [
        ("inventory", "0001_initial"),
        ("stockops", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="stockmovement",
            name="operation",
            field=models.ForeignKey(
                to="stockops.stockoperation",
                null=True,
                blank=True,
                on_delete=django.db.models.deletion.PROTECT,
                related_name="stock_movements",
            ),
        ),
        migrations.AddIndex(
            model_name="stockmovement",
            index=models.Index(fields=["operation", "created_at"], name="inv_move_operation_idx"),
        ),
    ]
