from .item import Item
from .item_stock import ItemStock
from .stock_movement import StockMovement

__all__ = [
    "Item",
    "ItemStock",
    "StockMovement",
]
