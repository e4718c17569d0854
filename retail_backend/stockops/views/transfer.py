# stockops/views/transfer.py

"""
TRANSFER REQUEST VIEWSET

- create:  storekeepers and up request a transfer (PENDING)
- approve: managers commit it (stock is read under lock at approval time)
- decline: managers reject it with a reason (no stock effect)
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import (
    CAP_STOCKOPS_VIEW,
    CAP_TRANSFERS_APPROVE,
    CAP_TRANSFERS_REQUEST,
    HasCapability,
)
from stockops.filters import TransferRequestFilter
from stockops.models import TransferRequest
from stockops.serializers import (
    StockOperationSerializer,
    TransferApprovalSerializer,
    TransferDeclineSerializer,
    TransferRequestCommandSerializer,
    TransferRequestSerializer,
)
from stockops.services.exceptions import StockOperationError
from stockops.services.transfers import (
    approve_transfer,
    decline_transfer,
    request_transfer,
)
from stockops.views.errors import service_error_response


class TransferRequestViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = TransferRequestSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filterset_class = TransferRequestFilter
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    required_capability = None

    def get_permissions(self):
        if self.action == "create":
            self.required_capability = CAP_TRANSFERS_REQUEST
        elif self.action in ("approve", "decline"):
            self.required_capability = CAP_TRANSFERS_APPROVE
        else:
            self.required_capability = CAP_STOCKOPS_VIEW
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        return (
            TransferRequest.objects.select_related(
                "source_store",
                "destination_store",
                "item",
                "operation",
            )
            .prefetch_related("conversions", "conversions__dest_item")
            .order_by("-requested_at")
        )

    def _transfer_payload(self, transfer):
        transfer = self.get_queryset().get(pk=transfer.pk)
        return TransferRequestSerializer(transfer).data

    def create(self, request, *args, **kwargs):
        command = TransferRequestCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        data = command.validated_data

        try:
            transfer = request_transfer(
                source_store_id=data["source_store_id"],
                destination_store_id=data["destination_store_id"],
                item_id=data["item_id"],
                quantity=data.get("quantity"),
                conversions=data.get("conversions") or (),
                convert=data.get("convert", False),
                actor=request.user,
                comments=data.get("comments", ""),
                auto_approve=data.get("auto_approve", False),
                clearance_type=data.get("clearance_type"),
            )
        except StockOperationError as exc:
            return service_error_response(exc)

        return Response(self._transfer_payload(transfer), status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        command = TransferApprovalSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            result = approve_transfer(
                pk,
                clearance_type=command.validated_data["clearance_type"],
                actor=request.user,
                arrived_quantity=command.validated_data.get("arrived_quantity"),
            )
        except StockOperationError as exc:
            return service_error_response(exc)

        transfer = TransferRequest.objects.get(operation=result.operation)
        return Response(
            {
                "transfer": self._transfer_payload(transfer),
                "operation": StockOperationSerializer(result.operation).data,
                "applied_deltas": [d.as_dict() for d in result.applied_deltas],
            }
        )

    @action(detail=True, methods=["post"], url_path="decline")
    def decline(self, request, pk=None):
        command = TransferDeclineSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            transfer = decline_transfer(
                pk,
                reason=command.validated_data["reason"],
                actor=request.user,
            )
        except StockOperationError as exc:
            return service_error_response(exc)

        return Response(self._transfer_payload(transfer))
