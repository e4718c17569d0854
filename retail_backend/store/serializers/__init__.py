from .store import StoreSerializer

__all__ = ["StoreSerializer"]
