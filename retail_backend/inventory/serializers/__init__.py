from .item import ItemSerializer, ItemStockSerializer, StockMovementSerializer

__all__ = [
    "ItemSerializer",
    "ItemStockSerializer",
    "StockMovementSerializer",
]
