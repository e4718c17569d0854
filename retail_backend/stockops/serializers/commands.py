# stockops/serializers/commands.py

"""
STOCK OPERATION COMMAND SERIALIZERS

These serializers do NOT touch the database.
They validate payload shape only; business rules live in
stockops.services.validation and the commit path.
"""

from rest_framework import serializers

from stockops.catalog import ClearanceType, OperationKind
from stockops.services.requests import OperationMetadata, build_operation_request
from stockops.services.transfers import FULL_SENTINEL


def _qty_field(**kwargs):
    return serializers.DecimalField(
        max_digits=14,
        decimal_places=3,
        required=False,
        allow_null=True,
        **kwargs,
    )


def _text_field(max_length: int = 255):
    return serializers.CharField(required=False, allow_blank=True, max_length=max_length)


class ConversionLineSerializer(serializers.Serializer):
    dest_item_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)


class OperationCommandSerializer(serializers.Serializer):
    """
    One flat payload for every operation kind; fields a kind does not use
    are ignored when the request variant is built.
    """

    kind = serializers.ChoiceField(choices=OperationKind.choices)

    store_id = serializers.UUIDField()
    item_id = serializers.UUIDField(required=False, allow_null=True)

    main_quantity = _qty_field()
    sold_quantity = _qty_field()
    return_quantity = _qty_field()

    sell_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)

    convert = serializers.BooleanField(required=False, default=False)
    conversion_mode = serializers.ChoiceField(choices=ClearanceType.choices, required=False)
    conversions = ConversionLineSerializer(many=True, required=False)

    destination_store_id = serializers.UUIDField(required=False, allow_null=True)

    reference_id = serializers.UUIDField(required=False, allow_null=True)
    direct = serializers.BooleanField(required=False, default=False)

    customer_name = _text_field()
    customer_contact = _text_field(64)

    lorry_number = _text_field(32)
    driver_name = _text_field()
    lorry_destination = _text_field()

    terminal_code = _text_field(16)
    comments = serializers.CharField(required=False, allow_blank=True)
    local_id = _text_field(64)
    issue_trip_id = serializers.BooleanField(required=False, default=False)

    def to_operation_request(self):
        data = dict(self.validated_data)
        return build_operation_request(data.pop("kind"), **data)

    def to_metadata(self) -> OperationMetadata:
        data = self.validated_data
        return OperationMetadata(
            terminal_code=data.get("terminal_code", ""),
            comments=data.get("comments", ""),
            local_id=(data.get("local_id") or "").strip(),
            issue_trip_id=bool(data.get("issue_trip_id", False)),
        )


class PreviewCommandSerializer(OperationCommandSerializer):
    """
    Same payload as a submission, plus an optional client-side stock value.
    When current_stock is omitted the live (unlocked) stock is used.
    """

    current_stock = serializers.DecimalField(
        max_digits=14,
        decimal_places=3,
        required=False,
        allow_null=True,
    )

    def to_operation_request(self):
        data = dict(self.validated_data)
        data.pop("current_stock", None)
        return build_operation_request(data.pop("kind"), **data)


class ReversalCommandSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)


class TransferRequestCommandSerializer(serializers.Serializer):
    source_store_id = serializers.UUIDField()
    destination_store_id = serializers.UUIDField()
    item_id = serializers.UUIDField()

    # A number, or "FULL" for all source stock at approval time.
    quantity = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)

    convert = serializers.BooleanField(required=False, default=False)
    conversions = ConversionLineSerializer(many=True, required=False)
    comments = serializers.CharField(required=False, allow_blank=True)

    auto_approve = serializers.BooleanField(required=False, default=False)
    clearance_type = serializers.ChoiceField(choices=ClearanceType.choices, required=False)

    def validate_quantity(self, value):
        if value in (None, ""):
            return None
        value = value.strip()
        if value.upper() == FULL_SENTINEL:
            return FULL_SENTINEL
        try:
            return serializers.DecimalField(max_digits=14, decimal_places=3).to_internal_value(value)
        except serializers.ValidationError:
            raise serializers.ValidationError('Enter a number or "FULL".')


class TransferApprovalSerializer(serializers.Serializer):
    clearance_type = serializers.ChoiceField(choices=ClearanceType.choices)
    arrived_quantity = serializers.DecimalField(
        max_digits=14,
        decimal_places=3,
        required=False,
        allow_null=True,
    )


class TransferDeclineSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)


class LorryReturnCommandSerializer(serializers.Serializer):
    return_quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    wastage_quantity = serializers.DecimalField(
        max_digits=14,
        decimal_places=3,
        required=False,
        default=0,
    )
    notes = serializers.CharField(required=False, allow_blank=True)


class ReportQuerySerializer(serializers.Serializer):
    """
    Query params shared by the report endpoints. Blank values mean
    "no filter" (the views drop them before validating).
    """

    store_id = serializers.UUIDField(required=False)
    item_id = serializers.UUIDField(required=False)
    date_from = serializers.DateField(required=False, input_formats=["%Y-%m-%d"])
    date_to = serializers.DateField(required=False, input_formats=["%Y-%m-%d"])
    q = serializers.CharField(required=False, max_length=100)

    def validate(self, attrs):
        date_from, date_to = attrs.get("date_from"), attrs.get("date_to")
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({"date_to": "date_to cannot be before date_from."})
        return attrs
