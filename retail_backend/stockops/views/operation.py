# stockops/views/operation.py

"""
======================================================
PATH: stockops/views/operation.py
======================================================
STOCK OPERATION VIEWSET

Endpoints (under /api/stock-ops/):
- GET  operations/                      history (filters: store, kind, item, dates)
- GET  operations/<id>/                 one operation with its lines
- POST operations/                      submit (atomic commit)
- POST operations/preview/              live projection, never persists
- POST operations/<id>/reverse/         exact inverse of the committed deltas
- GET  operations/<id>/lorry-returns/   lorry return log + derived status
- POST operations/<id>/lorry-returns/   record a lorry return
- GET  operations/summary/              grouped counts / wastage / sales
- GET  operations/returnable/           candidates for a Stock Return
- GET  operations/lorry-pending/        lorry clearances still awaiting returns

Submissions never trust client-supplied stock: the commit path reads the
locked row. Preview may take `current_stock` from the client.
"""

from __future__ import annotations

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.services.stock_ledger import read_stock
from permissions.roles import (
    CAP_REPORTS_VIEW,
    CAP_STOCKOPS_REVERSE,
    CAP_STOCKOPS_SUBMIT,
    CAP_STOCKOPS_VIEW,
    HasAnyCapability,
    HasCapability,
)
from stockops.filters import StockOperationFilter
from stockops.models import StockOperation
from stockops.serializers import (
    LorryReturnCommandSerializer,
    LorryReturnSerializer,
    OperationCommandSerializer,
    PreviewCommandSerializer,
    ReportQuerySerializer,
    ReversalCommandSerializer,
    StockOperationSerializer,
)
from stockops.services.calculator import preview_operation
from stockops.services.exceptions import StockOperationError
from stockops.services.ledger import submit_operation, touched_keys
from stockops.services.lorry_returns import (
    lorry_pending,
    lorry_summary,
    record_lorry_return,
)
from stockops.services.reports import operation_summary, returnable_operations
from stockops.services.reversal import reverse_operation
from stockops.services.validation import validation_errors
from stockops.views.errors import error_response, service_error_response


def _deltas_payload(deltas) -> list[dict]:
    return [delta.as_dict() for delta in deltas]


class StockOperationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Stock operations (READ + SUBMIT + PREVIEW + REVERSE).
    """

    serializer_class = StockOperationSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filterset_class = StockOperationFilter
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        if self.action in ("create", "lorry_returns"):
            self.required_capability = CAP_STOCKOPS_SUBMIT
            if self.action == "lorry_returns" and self.request.method == "GET":
                self.required_capability = CAP_STOCKOPS_VIEW
            return [IsAuthenticated(), HasCapability()]

        if self.action == "reverse":
            self.required_capability = CAP_STOCKOPS_REVERSE
            return [IsAuthenticated(), HasCapability()]

        if self.action == "summary":
            self.required_capability = CAP_REPORTS_VIEW
            return [IsAuthenticated(), HasCapability()]

        self.required_any_capabilities = {CAP_STOCKOPS_VIEW, CAP_REPORTS_VIEW}
        return [IsAuthenticated(), HasAnyCapability()]

    def get_queryset(self):
        qs = (
            StockOperation.objects.select_related(
                "store",
                "destination_store",
                "item",
                "reference",
                "reversal",
            )
            .prefetch_related(
                "items",
                "items__item",
                "items__store",
                "conversions",
                "conversions__source_item",
                "conversions__dest_item",
                "conversions__dest_store",
            )
            .order_by("-created_at")
        )

        # History hides reversed operations unless ?is_active= is given.
        if self.action == "list" and "is_active" not in self.request.query_params:
            qs = qs.filter(is_active=True)
        return qs

    # --------------------------------------------------
    # SUBMIT
    # --------------------------------------------------

    def create(self, request, *args, **kwargs):
        command = OperationCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            operation_request = command.to_operation_request()
            result = submit_operation(
                operation_request,
                actor=request.user,
                metadata=command.to_metadata(),
            )
        except StockOperationError as exc:
            return service_error_response(exc)

        payload = {
            "operation": StockOperationSerializer(result.operation).data,
            "applied_deltas": _deltas_payload(result.applied_deltas),
            "duplicate": result.duplicate,
        }
        return Response(
            payload,
            status=status.HTTP_200_OK if result.duplicate else status.HTTP_201_CREATED,
        )

    # --------------------------------------------------
    # PREVIEW (no writes)
    # --------------------------------------------------

    @action(detail=False, methods=["post"], url_path="preview")
    def preview(self, request):
        command = PreviewCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            operation_request = command.to_operation_request()
        except StockOperationError as exc:
            return service_error_response(exc)

        errors = validation_errors(operation_request)
        if operation_request.store_id is None or operation_request.item_id is None:
            return Response({"submittable": False, "errors": errors, "preview": None})

        snapshot = read_stock(touched_keys(operation_request))
        current = command.validated_data.get("current_stock")
        if current is None:
            current = snapshot[(operation_request.item_id, operation_request.store_id)]

        try:
            projection = preview_operation(
                operation_request,
                current_stock=current,
                stock_lookup=snapshot,
            )
        except StockOperationError as exc:
            return service_error_response(exc)

        return Response(
            {
                "submittable": not errors,
                "errors": errors,
                "preview": projection.as_dict(),
            }
        )

    # --------------------------------------------------
    # REVERSE
    # --------------------------------------------------

    @action(detail=True, methods=["post"], url_path="reverse")
    def reverse(self, request, pk=None):
        command = ReversalCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            result = reverse_operation(
                pk,
                actor=request.user,
                reason=command.validated_data.get("reason", ""),
            )
        except StockOperationError as exc:
            return service_error_response(exc)

        operation = self.get_queryset().get(pk=result.operation.pk)
        return Response(
            {
                "operation": StockOperationSerializer(operation).data,
                "applied_deltas": _deltas_payload(result.applied_deltas),
            }
        )

    # --------------------------------------------------
    # LORRY RETURNS
    # --------------------------------------------------

    @action(detail=True, methods=["get", "post"], url_path="lorry-returns")
    def lorry_returns(self, request, pk=None):
        if request.method == "POST":
            command = LorryReturnCommandSerializer(data=request.data)
            command.is_valid(raise_exception=True)
            try:
                record_lorry_return(
                    pk,
                    return_quantity=command.validated_data["return_quantity"],
                    wastage_quantity=command.validated_data.get("wastage_quantity"),
                    notes=command.validated_data.get("notes", ""),
                    actor=request.user,
                )
            except StockOperationError as exc:
                return service_error_response(exc)

        operation = self.get_object()
        returns = operation.lorry_returns.order_by("created_at")
        return Response(
            {
                "operation": operation.code,
                "trip_id": operation.trip_id,
                "summary": lorry_summary(operation).as_dict(),
                "returns": LorryReturnSerializer(returns, many=True).data,
            },
            status=status.HTTP_201_CREATED if request.method == "POST" else status.HTTP_200_OK,
        )

    # --------------------------------------------------
    # REPORTS
    # --------------------------------------------------

    def _report_query(self, request):
        """
        Validated report params, or (None, 400 response).
        """
        raw = {
            key: value.strip()
            for key, value in request.query_params.items()
            if key in ReportQuerySerializer().fields and value.strip()
        }
        query = ReportQuerySerializer(data=raw)
        if not query.is_valid():
            return None, error_response(
                code="VALIDATION_FAILED",
                message="Invalid report parameters.",
                http_status=status.HTTP_400_BAD_REQUEST,
                details={"fields": query.errors},
            )
        return query.validated_data, None

    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        """
        GET /api/stock-ops/operations/summary/?store_id=&date_from=YYYY-MM-DD&date_to=YYYY-MM-DD
        """
        params, error = self._report_query(request)
        if error is not None:
            return error

        store_id = params.get("store_id")
        date_from, date_to = params.get("date_from"), params.get("date_to")
        return Response(
            {
                "store_id": str(store_id) if store_id else None,
                "date_from": date_from.isoformat() if date_from else None,
                "date_to": date_to.isoformat() if date_to else None,
                "rows": operation_summary(store_id=store_id, date_from=date_from, date_to=date_to),
            }
        )

    @action(detail=False, methods=["get"], url_path="returnable")
    def returnable(self, request):
        """
        GET /api/stock-ops/operations/returnable/?store_id=&item_id=&q=
        """
        params, error = self._report_query(request)
        if error is not None:
            return error

        qs = returnable_operations(
            store_id=params.get("store_id"),
            item_id=params.get("item_id"),
            search=params.get("q", ""),
        )
        qs = qs.prefetch_related("items", "conversions").select_related("reversal")

        page = self.paginate_queryset(qs)
        serializer = StockOperationSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=False, methods=["get"], url_path="lorry-pending")
    def pending_lorries(self, request):
        """
        GET /api/stock-ops/operations/lorry-pending/?store_id=
        """
        params, error = self._report_query(request)
        if error is not None:
            return error

        return Response({"results": lorry_pending(store_id=params.get("store_id"))})
