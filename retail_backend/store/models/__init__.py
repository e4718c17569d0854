from .store import Store
from .trip_counter import TripCounter

__all__ = [
    "Store",
    "TripCounter",
]
