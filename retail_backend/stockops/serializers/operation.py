# stockops/serializers/operation.py

"""
STOCK OPERATION READ SERIALIZERS

History rows carry the persisted main / converted breakdown so screens
can show wastage without recomputing it from live stock.
"""

from rest_framework import serializers

from stockops.models import (
    ConversionEntry,
    LorryReturn,
    OperationReversal,
    StockOperation,
    StockOperationItem,
    TransferRequest,
    TransferRequestConversion,
)
from stockops.services.reports import reconstruct_discrepancy


class StockOperationItemSerializer(serializers.ModelSerializer):
    item_code = serializers.CharField(source="item.code", read_only=True)
    store_code = serializers.CharField(source="store.code", read_only=True)

    class Meta:
        model = StockOperationItem
        fields = [
            "id",
            "role",
            "item",
            "item_code",
            "store",
            "store_code",
            "previous_stock",
            "main_quantity",
            "sold_quantity",
            "converted_quantity",
            "removed_quantity",
            "added_quantity",
            "resulting_stock",
        ]
        read_only_fields = fields


class ConversionEntrySerializer(serializers.ModelSerializer):
    source_item_code = serializers.CharField(source="source_item.code", read_only=True)
    dest_item_code = serializers.CharField(source="dest_item.code", read_only=True)
    dest_store_code = serializers.CharField(source="dest_store.code", read_only=True)

    class Meta:
        model = ConversionEntry
        fields = [
            "id",
            "source_item",
            "source_item_code",
            "dest_item",
            "dest_item_code",
            "dest_store",
            "dest_store_code",
            "dest_quantity",
        ]
        read_only_fields = fields


class OperationReversalSerializer(serializers.ModelSerializer):
    class Meta:
        model = OperationReversal
        fields = [
            "id",
            "reason",
            "applied_deltas",
            "reversed_by",
            "reversed_at",
        ]
        read_only_fields = fields


class StockOperationSerializer(serializers.ModelSerializer):
    kind_label = serializers.CharField(read_only=True)
    store_code = serializers.CharField(source="store.code", read_only=True)
    destination_store_code = serializers.CharField(
        source="destination_store.code", read_only=True, default=None
    )
    item_code = serializers.CharField(source="item.code", read_only=True)
    item_name = serializers.CharField(source="item.name", read_only=True)
    reference_code = serializers.CharField(source="reference.code", read_only=True, default=None)

    wastage = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    surplus = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    reconstructed_discrepancy = serializers.SerializerMethodField()

    items = StockOperationItemSerializer(many=True, read_only=True)
    conversions = ConversionEntrySerializer(many=True, read_only=True)
    reversal = serializers.SerializerMethodField()

    class Meta:
        model = StockOperation
        fields = [
            "id",
            "code",
            "kind",
            "kind_label",
            "clearance_type",
            "store",
            "store_code",
            "destination_store",
            "destination_store_code",
            "item",
            "item_code",
            "item_name",
            "reference",
            "reference_code",
            "is_direct_return",
            "discrepancy",
            "wastage",
            "surplus",
            "reconstructed_discrepancy",
            "sell_price",
            "bill_code",
            "bill_amount",
            "customer_name",
            "customer_contact",
            "cash_amount",
            "lorry_number",
            "driver_name",
            "lorry_destination",
            "trip_id",
            "terminal_code",
            "local_id",
            "comments",
            "created_by",
            "created_at",
            "is_active",
            "items",
            "conversions",
            "reversal",
        ]
        read_only_fields = fields

    def get_reconstructed_discrepancy(self, obj):
        value = reconstruct_discrepancy(obj)
        return str(value) if value is not None else None

    def get_reversal(self, obj):
        reversal = getattr(obj, "reversal", None) if not obj.is_active else None
        if reversal is None:
            return None
        return OperationReversalSerializer(reversal).data


class TransferRequestConversionSerializer(serializers.ModelSerializer):
    dest_item_code = serializers.CharField(source="dest_item.code", read_only=True)

    class Meta:
        model = TransferRequestConversion
        fields = ["id", "dest_item", "dest_item_code", "dest_quantity"]
        read_only_fields = fields


class TransferRequestSerializer(serializers.ModelSerializer):
    source_store_code = serializers.CharField(source="source_store.code", read_only=True)
    destination_store_code = serializers.CharField(source="destination_store.code", read_only=True)
    item_code = serializers.CharField(source="item.code", read_only=True)
    requested = serializers.CharField(source="requested_display", read_only=True)
    operation_code = serializers.CharField(source="operation.code", read_only=True, default=None)
    conversions = TransferRequestConversionSerializer(many=True, read_only=True)

    class Meta:
        model = TransferRequest
        fields = [
            "id",
            "code",
            "source_store",
            "source_store_code",
            "destination_store",
            "destination_store_code",
            "item",
            "item_code",
            "requested",
            "requested_quantity",
            "is_full_request",
            "convert",
            "conversions",
            "status",
            "clearance_type",
            "comments",
            "decline_reason",
            "operation",
            "operation_code",
            "requested_by",
            "requested_at",
            "decided_by",
            "decided_at",
        ]
        read_only_fields = fields


class LorryReturnSerializer(serializers.ModelSerializer):
    class Meta:
        model = LorryReturn
        fields = [
            "id",
            "operation",
            "return_quantity",
            "wastage_quantity",
            "notes",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields
