# inventory/views/item.py

"""
ITEM VIEWSET

Purpose:
- Item master data (code, name, unit, price)
- Per-store stock levels (read-only)
- Per-item movement ledger

Query params:
- ?q=<search>        code / name contains
- ?store_id=<uuid>   only items that have a stock row at that store
"""

from django.db.models import Q
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from inventory.models import Item, StockMovement
from inventory.serializers import ItemSerializer, StockMovementSerializer
from permissions.roles import (
    CAP_INVENTORY_EDIT,
    CAP_STOCKOPS_VIEW,
    HasCapability,
)


class ItemViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ItemSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filterset_fields = ["is_active"]

    required_capability = None

    def get_permissions(self):
        if self.action in ("list", "retrieve", "movements"):
            self.required_capability = CAP_STOCKOPS_VIEW
        else:
            self.required_capability = CAP_INVENTORY_EDIT
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        qs = Item.objects.prefetch_related("stock_levels", "stock_levels__store")

        search = (self.request.query_params.get("q") or "").strip()
        if search:
            qs = qs.filter(Q(code__icontains=search) | Q(name__icontains=search))

        store_id = (self.request.query_params.get("store_id") or "").strip()
        if store_id:
            qs = qs.filter(stock_levels__store_id=store_id)

        return qs.order_by("name")

    @action(detail=True, methods=["get"], url_path="movements")
    def movements(self, request, pk=None):
        """
        GET /api/inventory/items/<id>/movements/?store_id=<uuid>
        """
        item = self.get_object()

        qs = (
            StockMovement.objects.filter(item=item)
            .select_related("operation")
            .order_by("-created_at")
        )
        store_id = (request.query_params.get("store_id") or "").strip()
        if store_id:
            qs = qs.filter(store_id=store_id)

        page = self.paginate_queryset(qs)
        serializer = StockMovementSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)
