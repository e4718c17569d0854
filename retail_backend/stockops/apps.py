# stockops/apps.py

"""
STOCK OPERATIONS APP CONFIG

Stock Operation Ledger Engine:
- Operation catalog (eleven kinds)
- Preview / validation / commit
- Transfer approval workflow
- Reversal (soft delete with inverse deltas)
"""

from django.apps import AppConfig


class StockOpsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "stockops"
    verbose_name = "Stock Operations"
