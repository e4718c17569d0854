# stockops/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from stockops.views import (
    NextTripIdView,
    OperationKindCatalogView,
    StockOperationViewSet,
    TransferRequestViewSet,
)

router = DefaultRouter()
router.register(r"operations", StockOperationViewSet, basename="stock-operations")
router.register(r"transfers", TransferRequestViewSet, basename="transfers")

urlpatterns = [
    path("kinds/", OperationKindCatalogView.as_view(), name="stockops-kinds"),
    path("trips/next/", NextTripIdView.as_view(), name="stockops-next-trip"),
    path("", include(router.urls)),
]
