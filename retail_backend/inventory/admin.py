# inventory/admin.py

"""
Admin rules:
- Items are editable master data.
- ItemStock and StockMovement are read-only here; stock changes only
  through stock operations (or the seed_inventory opening balances).
"""

from django.contrib import admin

from inventory.models import Item, ItemStock, StockMovement


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "unit", "selling_price", "is_active")
    list_filter = ("is_active", "unit")
    search_fields = ("code", "name")


@admin.register(ItemStock)
class ItemStockAdmin(ReadOnlyAdmin):
    list_display = ("item", "store", "quantity", "updated_at")
    list_filter = ("store",)
    search_fields = ("item__code", "item__name")


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdmin):
    list_display = ("created_at", "item", "store", "movement_type", "reason", "quantity", "balance_after", "operation")
    list_filter = ("reason", "movement_type", "store")
    search_fields = ("item__code", "operation__code")
