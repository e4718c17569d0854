# inventory/serializers/item.py

"""
ITEM SERIALIZERS

Stock is exposed read-only. The only way to change it is a stock
operation (or its reversal) through the stockops API.
"""

from rest_framework import serializers

from inventory.models import Item, ItemStock, StockMovement


class ItemStockSerializer(serializers.ModelSerializer):
    store_code = serializers.CharField(source="store.code", read_only=True)
    store_name = serializers.CharField(source="store.name", read_only=True)

    class Meta:
        model = ItemStock
        fields = [
            "store",
            "store_code",
            "store_name",
            "quantity",
            "updated_at",
        ]
        read_only_fields = fields


class ItemSerializer(serializers.ModelSerializer):
    stock_levels = ItemStockSerializer(many=True, read_only=True)

    class Meta:
        model = Item
        fields = [
            "id",
            "code",
            "name",
            "unit",
            "selling_price",
            "is_active",
            "stock_levels",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "stock_levels",
            "created_at",
            "updated_at",
        ]

    def validate_selling_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Selling price cannot be negative.")
        return value


class StockMovementSerializer(serializers.ModelSerializer):
    operation_code = serializers.CharField(source="operation.code", read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "item",
            "store",
            "movement_type",
            "reason",
            "quantity",
            "balance_after",
            "operation",
            "operation_code",
            "performed_by",
            "created_at",
        ]
        read_only_fields = fields
