# store/admin.py

from django.contrib import admin

from store.models import Store, TripCounter


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("code", "name")


@admin.register(TripCounter)
class TripCounterAdmin(admin.ModelAdmin):
    list_display = ("store", "last_value", "updated_at")
    readonly_fields = ("store", "last_value", "updated_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
