from .item import ItemViewSet

__all__ = ["ItemViewSet"]
