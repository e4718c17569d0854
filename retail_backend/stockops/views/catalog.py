# stockops/views/catalog.py

"""
Catalog + trip id endpoints.

GET  /api/stock-ops/kinds/        the operation catalog (what the terminal renders)
GET  /api/stock-ops/trips/next/   advisory: the id the next trip would get
POST /api/stock-ops/trips/next/   issue (consume) the next trip id for a store
"""

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import CAP_STOCKOPS_SUBMIT, CAP_STOCKOPS_VIEW, HasCapability
from stockops.catalog import CATALOG, CATALOG_VERSION
from stockops.views.errors import error_response
from store.models import Store
from store.services.trips import next_trip_id, peek_trip_id


class OperationKindCatalogView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_STOCKOPS_VIEW

    def get(self, request):
        return Response(
            {
                "version": CATALOG_VERSION,
                "kinds": [spec.as_dict() for _, spec in sorted(CATALOG.items())],
            }
        )


class NextTripIdView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = None

    def get_permissions(self):
        if self.request.method == "POST":
            self.required_capability = CAP_STOCKOPS_SUBMIT
        else:
            self.required_capability = CAP_STOCKOPS_VIEW
        return [IsAuthenticated(), HasCapability()]

    def _store(self, raw):
        raw = str(raw or "").strip()
        if not raw:
            return None
        return Store.objects.filter(pk=raw, is_active=True).first()

    def _missing_store(self):
        return error_response(
            code="VALIDATION_FAILED",
            message="store_id must reference an active store.",
            http_status=status.HTTP_400_BAD_REQUEST,
        )

    @extend_schema(
        parameters=[OpenApiParameter("store_id", OpenApiTypes.UUID, OpenApiParameter.QUERY)],
    )
    def get(self, request):
        store = self._store(request.query_params.get("store_id"))
        if store is None:
            return self._missing_store()
        return Response({"store_id": str(store.pk), "trip_id": peek_trip_id(store=store), "issued": False})

    def post(self, request):
        store = self._store(request.data.get("store_id") if isinstance(request.data, dict) else None)
        if store is None:
            return self._missing_store()
        return Response(
            {"store_id": str(store.pk), "trip_id": next_trip_id(store=store), "issued": True},
            status=status.HTTP_201_CREATED,
        )
