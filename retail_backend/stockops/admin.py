# stockops/admin.py

"""
Operations are facts: visible in admin, never edited there.
Reverse through the API so the stock ledger stays consistent.
"""

from django.contrib import admin

from inventory.admin import ReadOnlyAdmin
from stockops.models import (
    ConversionEntry,
    LorryReturn,
    OperationReversal,
    StockOperation,
    StockOperationItem,
    TransferRequest,
)


class StockOperationItemInline(admin.TabularInline):
    model = StockOperationItem
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class ConversionEntryInline(admin.TabularInline):
    model = ConversionEntry
    fk_name = "operation"
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(StockOperation)
class StockOperationAdmin(ReadOnlyAdmin):
    list_display = ("code", "kind", "clearance_type", "store", "item", "discrepancy", "trip_id", "is_active", "created_at")
    list_filter = ("kind", "clearance_type", "is_active", "store")
    search_fields = ("code", "bill_code", "trip_id", "local_id", "item__code")
    inlines = [StockOperationItemInline, ConversionEntryInline]


@admin.register(OperationReversal)
class OperationReversalAdmin(ReadOnlyAdmin):
    list_display = ("operation", "reversed_by", "reversed_at")
    search_fields = ("operation__code",)


@admin.register(TransferRequest)
class TransferRequestAdmin(ReadOnlyAdmin):
    list_display = ("code", "source_store", "destination_store", "item", "requested_display", "status", "requested_at")
    list_filter = ("status",)
    search_fields = ("code", "item__code")


@admin.register(LorryReturn)
class LorryReturnAdmin(ReadOnlyAdmin):
    list_display = ("operation", "return_quantity", "wastage_quantity", "created_at")
    search_fields = ("operation__code", "operation__trip_id")
