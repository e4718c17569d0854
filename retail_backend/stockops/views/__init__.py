from .catalog import NextTripIdView, OperationKindCatalogView
from .operation import StockOperationViewSet
from .transfer import TransferRequestViewSet

__all__ = [
    "NextTripIdView",
    "OperationKindCatalogView",
    "StockOperationViewSet",
    "TransferRequestViewSet",
]
