# store/models/trip_counter.py

"""
TRIP COUNTER

One row per store. The value only moves forward; it is advanced
under a row lock by store.services.trips.next_trip_id().
"""

from django.db import models


class TripCounter(models.Model):
    store = models.OneToOneField(
        "store.Store",
        on_delete=models.CASCADE,
        related_name="trip_counter",
    )

    last_value = models.PositiveIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.store.label} trip #{self.last_value}"
